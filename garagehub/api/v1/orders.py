"""Orders API: supplier orders, their workflow and pickup QR."""

import uuid
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from garagehub.auth.dependencies import (
    get_current_supplier,
    get_current_user,
    get_current_workshop,
    require_roles,
)
from garagehub.auth.rate_limit import limit_order_creation
from garagehub.database import get_db
from garagehub.errors import NotFoundError, PermissionDeniedError, ValidationFailedError
from garagehub.models.supplier import Supplier
from garagehub.models.user import User
from garagehub.models.workshop import Workshop
from garagehub.repositories.order import OrderRepository
from garagehub.schemas.order import (
    OrderCreate,
    OrderQRResponse,
    OrderReject,
    OrderResponse,
    OrderStatusUpdate,
    QRScanRequest,
)
from garagehub.schemas.wallet import EscrowResponse
from garagehub.wallet.ledger import WalletService

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/orders", tags=["orders"])


@router.post(
    "", response_model=OrderResponse, status_code=201, dependencies=[Depends(limit_order_creation)]
)
async def create_order(
    data: OrderCreate,
    workshop: Workshop = Depends(get_current_workshop),
    db: AsyncSession = Depends(get_db),
) -> OrderResponse:
    order = await OrderRepository(db).create_order(
        workshop,
        data.supplier_id,
        [(line.part_id, line.quantity) for line in data.items],
        delivery_type=data.delivery_type,
        payment_method=data.payment_method,
        delivery_address=data.delivery_address,
        notes=data.notes,
    )
    await db.commit()
    return OrderResponse.model_validate(order)


@router.get("", response_model=list[OrderResponse])
async def list_orders(
    status: Optional[str] = Query(None, description="Filter by status"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[OrderResponse]:
    """Orders visible to the caller: their workshop's, their shop's, or their runs."""
    orders = await OrderRepository(db).list_for_user(user, status)
    return [OrderResponse.model_validate(o) for o in orders]


@router.get("/available", response_model=list[OrderResponse])
async def list_available_orders(
    user: User = Depends(require_roles("runner", "admin")),
    db: AsyncSession = Depends(get_db),
) -> list[OrderResponse]:
    orders = await OrderRepository(db).list_available_for_runners()
    return [OrderResponse.model_validate(o) for o in orders]


@router.post("/scan-qr", response_model=OrderResponse)
async def scan_qr(
    data: QRScanRequest,
    supplier: Supplier = Depends(get_current_supplier),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> OrderResponse:
    """Verify a pickup QR presented at the supplier counter."""
    order = await OrderRepository(db).scan_pickup_qr(supplier, data.qr_token, user)
    await db.commit()
    return OrderResponse.model_validate(order)


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> OrderResponse:
    order = await OrderRepository(db).get_for_user(order_id, user)
    return OrderResponse.model_validate(order)


@router.patch("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: uuid.UUID,
    data: OrderStatusUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> OrderResponse:
    repo = OrderRepository(db)
    order = await repo.get(order_id, for_update=True)
    order = await repo.change_status(order, data.status, user)
    await db.commit()
    return OrderResponse.model_validate(order)


@router.post("/{order_id}/accept", response_model=OrderResponse)
async def accept_order(
    order_id: uuid.UUID,
    supplier: Supplier = Depends(get_current_supplier),
    db: AsyncSession = Depends(get_db),
) -> OrderResponse:
    """Supplier accepts; this issues the pickup id and QR token."""
    repo = OrderRepository(db)
    order = await _supplier_order(repo, order_id, supplier)
    order = await repo.accept(order)
    await db.commit()
    return OrderResponse.model_validate(order)


@router.post("/{order_id}/reject", response_model=OrderResponse)
async def reject_order(
    order_id: uuid.UUID,
    data: OrderReject,
    supplier: Supplier = Depends(get_current_supplier),
    db: AsyncSession = Depends(get_db),
) -> OrderResponse:
    repo = OrderRepository(db)
    order = await _supplier_order(repo, order_id, supplier)
    order = await repo.reject(order, data.reason)
    await db.commit()
    return OrderResponse.model_validate(order)


@router.get("/{order_id}/qr", response_model=OrderQRResponse)
async def get_order_qr(
    order_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> OrderQRResponse:
    """Pickup QR for the workshop or the assigned runner to present."""
    repo = OrderRepository(db)
    order = await repo.get_for_user(order_id, user)
    workshop_id, _ = await repo.actor_ids(user)
    if order.workshop_id != workshop_id and order.runner_id != user.id:
        raise PermissionDeniedError("Only the ordering workshop or its runner can view the QR")
    if order.qr_token is None:
        raise ValidationFailedError("The supplier has not accepted this order yet")
    return OrderQRResponse(
        order_id=order.id,
        pickup_id=order.pickup_id,
        qr_token=order.qr_token,
        qr_expires=order.qr_expires,
    )


@router.get("/{order_id}/escrow", response_model=EscrowResponse)
async def get_order_escrow(
    order_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> EscrowResponse:
    order = await OrderRepository(db).get_for_user(order_id, user)
    escrow = await WalletService(db).get_escrow(order.id)
    if escrow is None:
        raise NotFoundError("Escrow for order", order.id)
    return EscrowResponse.model_validate(escrow)


async def _supplier_order(repo: OrderRepository, order_id: uuid.UUID, supplier: Supplier):
    order = await repo.get(order_id, for_update=True)
    if order.supplier_id != supplier.id:
        raise PermissionDeniedError("This order belongs to another supplier")
    return order
