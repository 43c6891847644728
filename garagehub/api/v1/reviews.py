"""Reviews API."""

import uuid
from typing import Literal

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from garagehub.auth.dependencies import get_current_user
from garagehub.database import get_db
from garagehub.models.user import User
from garagehub.repositories.review import ReviewRepository
from garagehub.schemas.workshop import ReviewCreate, ReviewResponse

router = APIRouter(prefix="/api/v1/reviews", tags=["reviews"])


@router.post("", response_model=ReviewResponse, status_code=201)
async def create_review(
    data: ReviewCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ReviewResponse:
    review = await ReviewRepository(db).create(user, data)
    await db.commit()
    return ReviewResponse.model_validate(review)


@router.get("/{target_type}/{target_id}")
async def list_reviews(
    target_type: Literal["workshop", "supplier", "product"],
    target_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> dict:
    """Reviews for a target with the average rating.

    Returns:
        {"reviews": [...], "average": str, "count": int}
    """
    repo = ReviewRepository(db)
    reviews = await repo.list_for_target(target_type, target_id)
    return {
        "reviews": [ReviewResponse.model_validate(r) for r in reviews],
        "average": str(await repo.average_rating(target_type, target_id)),
        "count": len(reviews),
    }
