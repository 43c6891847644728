"""Cart API: workshop basket and checkout."""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from garagehub.auth.dependencies import get_current_workshop
from garagehub.auth.rate_limit import limit_order_creation
from garagehub.database import get_db
from garagehub.models.order import CartItem
from garagehub.models.workshop import Workshop
from garagehub.repositories.cart import CartRepository
from garagehub.repositories.order import OrderRepository
from garagehub.schemas.order import (
    CartItemCreate,
    CartItemResponse,
    CartItemUpdate,
    CheckoutRequest,
    OrderResponse,
)

router = APIRouter(prefix="/api/v1/cart", tags=["cart"])


def _cart_item(item: CartItem) -> CartItemResponse:
    return CartItemResponse(
        id=item.id,
        part_id=item.part_id,
        supplier_id=item.supplier_id,
        quantity=item.quantity,
        delivery_type=item.delivery_type,
        part_name=item.part.name if item.part is not None else None,
        unit_price=item.part.price if item.part is not None else None,
    )


@router.get("", response_model=list[CartItemResponse])
async def get_cart(
    workshop: Workshop = Depends(get_current_workshop),
    db: AsyncSession = Depends(get_db),
) -> list[CartItemResponse]:
    return [_cart_item(item) for item in await CartRepository(db).list(workshop)]


@router.post("", response_model=CartItemResponse, status_code=201)
async def add_to_cart(
    data: CartItemCreate,
    workshop: Workshop = Depends(get_current_workshop),
    db: AsyncSession = Depends(get_db),
) -> CartItemResponse:
    item = await CartRepository(db).add(workshop, data.part_id, data.quantity, data.delivery_type)
    await db.commit()
    return _cart_item(item)


@router.patch("/{item_id}", response_model=CartItemResponse)
async def update_cart_item(
    item_id: uuid.UUID,
    data: CartItemUpdate,
    workshop: Workshop = Depends(get_current_workshop),
    db: AsyncSession = Depends(get_db),
) -> CartItemResponse:
    repo = CartRepository(db)
    item = await repo.update(await repo.get(workshop, item_id), data.quantity, data.delivery_type)
    await db.commit()
    return _cart_item(item)


@router.delete("/{item_id}", status_code=204)
async def remove_cart_item(
    item_id: uuid.UUID,
    workshop: Workshop = Depends(get_current_workshop),
    db: AsyncSession = Depends(get_db),
) -> None:
    repo = CartRepository(db)
    await repo.remove(await repo.get(workshop, item_id))
    await db.commit()


@router.delete("", status_code=204)
async def clear_cart(
    workshop: Workshop = Depends(get_current_workshop),
    db: AsyncSession = Depends(get_db),
) -> None:
    await CartRepository(db).clear(workshop)
    await db.commit()


@router.post(
    "/checkout",
    response_model=list[OrderResponse],
    status_code=201,
    dependencies=[Depends(limit_order_creation)],
)
async def checkout(
    data: CheckoutRequest,
    workshop: Workshop = Depends(get_current_workshop),
    db: AsyncSession = Depends(get_db),
) -> list[OrderResponse]:
    """Place one order per supplier in the cart.

    Wallet payment is taken up front and held in escrow. If any order
    fails (stock, balance) nothing is committed.
    """
    orders = await OrderRepository(db).checkout_cart(
        workshop,
        payment_method=data.payment_method,
        delivery_address=data.delivery_address,
        notes=data.notes,
    )
    await db.commit()
    return [OrderResponse.model_validate(o) for o in orders]
