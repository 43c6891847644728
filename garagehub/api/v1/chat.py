"""Chat API: order threads and supplier/workshop marketplace rooms."""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from garagehub.auth.dependencies import get_current_supplier, get_current_user, require_roles
from garagehub.database import get_db
from garagehub.errors import NotFoundError
from garagehub.models.supplier import Supplier
from garagehub.models.user import User
from garagehub.models.workshop import Workshop
from garagehub.repositories.chat import ChatRepository
from garagehub.repositories.order import OrderRepository
from garagehub.schemas.messaging import ChatMessageCreate, ChatMessageResponse, ChatThreadResponse

router = APIRouter(prefix="/api/v1/chat", tags=["chat"])


# Order threads


@router.get("/orders/{order_id}", response_model=list[ChatMessageResponse])
async def order_messages(
    order_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[ChatMessageResponse]:
    order = await OrderRepository(db).get_for_user(order_id, user)
    messages = await ChatRepository(db).list_order_messages(order.id)
    return [ChatMessageResponse.model_validate(m) for m in messages]


@router.post("/orders/{order_id}", response_model=ChatMessageResponse, status_code=201)
async def post_order_message(
    order_id: uuid.UUID,
    data: ChatMessageCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ChatMessageResponse:
    order = await OrderRepository(db).get_for_user(order_id, user)
    message = await ChatRepository(db).post_order_message(order, user, data.message, data.image_url)
    await db.commit()
    return ChatMessageResponse.model_validate(message)


@router.post("/orders/{order_id}/read")
async def mark_order_read(
    order_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    order = await OrderRepository(db).get_for_user(order_id, user)
    updated = await ChatRepository(db).mark_order_read(order.id, user.id)
    await db.commit()
    return {"updated": updated}


# Marketplace rooms


@router.get("/threads", response_model=list[ChatThreadResponse])
async def supplier_threads(
    supplier: Supplier = Depends(get_current_supplier),
    db: AsyncSession = Depends(get_db),
) -> list[ChatThreadResponse]:
    threads = await ChatRepository(db).supplier_threads(supplier)
    return [ChatThreadResponse(**t) for t in threads]


@router.get("/rooms/{supplier_id}/{workshop_id}", response_model=list[ChatMessageResponse])
async def room_messages(
    supplier_id: uuid.UUID,
    workshop_id: uuid.UUID,
    user: User = Depends(require_roles("workshop", "supplier")),
    db: AsyncSession = Depends(get_db),
) -> list[ChatMessageResponse]:
    await _room_parties(db, supplier_id, workshop_id, user)
    messages = await ChatRepository(db).list_room_messages(supplier_id, workshop_id)
    return [ChatMessageResponse.model_validate(m) for m in messages]


@router.post(
    "/rooms/{supplier_id}/{workshop_id}",
    response_model=ChatMessageResponse,
    status_code=201,
)
async def post_room_message(
    supplier_id: uuid.UUID,
    workshop_id: uuid.UUID,
    data: ChatMessageCreate,
    user: User = Depends(require_roles("workshop", "supplier")),
    db: AsyncSession = Depends(get_db),
) -> ChatMessageResponse:
    supplier, workshop = await _room_parties(db, supplier_id, workshop_id, user)
    message = await ChatRepository(db).post_room_message(
        supplier, workshop, user, data.message, data.image_url
    )
    await db.commit()
    return ChatMessageResponse.model_validate(message)


@router.post("/rooms/{supplier_id}/{workshop_id}/read")
async def mark_room_read(
    supplier_id: uuid.UUID,
    workshop_id: uuid.UUID,
    user: User = Depends(require_roles("workshop", "supplier")),
    db: AsyncSession = Depends(get_db),
) -> dict:
    await _room_parties(db, supplier_id, workshop_id, user)
    updated = await ChatRepository(db).mark_room_read(supplier_id, workshop_id, user.id)
    await db.commit()
    return {"updated": updated}


async def _room_parties(
    db: AsyncSession, supplier_id: uuid.UUID, workshop_id: uuid.UUID, user: User
) -> tuple[Supplier, Workshop]:
    """Both ends of a room; the caller must own one of them."""
    supplier = await db.get(Supplier, supplier_id)
    if supplier is None:
        raise NotFoundError("Supplier", supplier_id)
    workshop = await db.get(Workshop, workshop_id)
    if workshop is None:
        raise NotFoundError("Workshop", workshop_id)
    if user.id not in (supplier.user_id, workshop.user_id):
        # Hide rooms the caller is not part of
        raise NotFoundError("Chat room")
    return supplier, workshop
