"""Review repository with rating aggregation."""

from __future__ import annotations

import uuid
from decimal import ROUND_HALF_UP, Decimal

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from garagehub.errors import ConflictError, NotFoundError
from garagehub.models.review import Review
from garagehub.models.supplier import Part, Supplier
from garagehub.models.user import User
from garagehub.models.workshop import Workshop
from garagehub.schemas.workshop import ReviewCreate

logger = structlog.get_logger()

TARGET_MODELS = {"workshop": Workshop, "supplier": Supplier, "product": Part}


class ReviewRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, user: User, data: ReviewCreate) -> Review:
        """Add a review; a user reviews each target at most once."""
        target = await self.db.get(TARGET_MODELS[data.target_type], data.target_id)
        if target is None:
            raise NotFoundError(data.target_type.capitalize(), data.target_id)

        existing = await self.db.execute(
            select(Review.id).where(
                Review.user_id == user.id,
                Review.target_type == data.target_type,
                Review.target_id == data.target_id,
            )
        )
        if existing.scalar_one_or_none() is not None:
            raise ConflictError("You have already reviewed this")

        review = Review(user_id=user.id, **data.model_dump())
        self.db.add(review)
        await self.db.flush()

        if data.target_type in ("workshop", "supplier"):
            target.rating = await self.average_rating(data.target_type, data.target_id)
            await self.db.flush()

        logger.info(
            "review_created",
            review_id=str(review.id),
            target_type=data.target_type,
            rating=data.rating,
        )
        return review

    async def list_for_target(self, target_type: str, target_id: uuid.UUID) -> list[Review]:
        result = await self.db.execute(
            select(Review)
            .where(Review.target_type == target_type, Review.target_id == target_id)
            .order_by(Review.created_at.desc())
        )
        return list(result.scalars().all())

    async def average_rating(self, target_type: str, target_id: uuid.UUID) -> Decimal:
        result = await self.db.execute(
            select(func.avg(Review.rating)).where(
                Review.target_type == target_type, Review.target_id == target_id
            )
        )
        average = result.scalar_one_or_none() or 0
        return Decimal(str(average)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
