"""Marketplace API: catalog, supplier browsing and delivery quotes."""

import uuid
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from garagehub.auth.dependencies import get_current_workshop
from garagehub.database import get_db
from garagehub.errors import NotFoundError
from garagehub.marketplace.catalog import BRANDS, CATEGORIES
from garagehub.models.supplier import Supplier
from garagehub.models.workshop import Workshop
from garagehub.repositories.order import OrderRepository
from garagehub.repositories.part import PartRepository
from garagehub.schemas.marketplace import PartResponse, QuoteResponse, SupplierDetail, SupplierResponse

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/marketplace", tags=["marketplace"])


@router.get("/brands")
async def list_brands() -> list[str]:
    return BRANDS


@router.get("/categories")
async def list_categories() -> list[str]:
    return CATEGORIES


@router.get("/suppliers", response_model=list[SupplierResponse])
async def list_suppliers(
    type: Optional[str] = Query(None, description="OEM or Halfcut"),
    state: Optional[str] = Query(None),
    q: Optional[str] = Query(None, description="Name or city substring"),
    db: AsyncSession = Depends(get_db),
) -> list[SupplierResponse]:
    suppliers = await PartRepository(db).list_suppliers(supplier_type=type, state=state, q=q)
    return [SupplierResponse.model_validate(s) for s in suppliers]


@router.get("/suppliers/{supplier_id}", response_model=SupplierDetail)
async def get_supplier(
    supplier_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> SupplierDetail:
    supplier, product_count, categories = await PartRepository(db).supplier_detail(supplier_id)
    detail = SupplierDetail.model_validate(supplier)
    detail.product_count = product_count
    detail.categories = categories
    return detail


@router.get("/suppliers/{supplier_id}/products")
async def list_supplier_products(
    supplier_id: uuid.UUID,
    q: Optional[str] = Query(None, description="Name, SKU or GarageHub code"),
    brand: Optional[str] = Query(None),
    model: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    in_stock: bool = Query(False),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
) -> dict:
    """Products of one supplier.

    Returns:
        {"products": [...], "total": int}
    """
    if await db.get(Supplier, supplier_id) is None:
        raise NotFoundError("Supplier", supplier_id)

    parts, total = await PartRepository(db).search(
        supplier_id=supplier_id,
        q=q,
        brand=brand,
        model=model,
        category=category,
        in_stock=in_stock,
        limit=limit,
        offset=offset,
    )
    return {
        "products": [PartResponse.model_validate(p) for p in parts],
        "total": total,
    }


@router.get("/products")
async def search_products(
    q: Optional[str] = Query(None),
    brand: Optional[str] = Query(None),
    model: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    in_stock: bool = Query(False),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
) -> dict:
    parts, total = await PartRepository(db).search(
        q=q,
        brand=brand,
        model=model,
        category=category,
        in_stock=in_stock,
        limit=limit,
        offset=offset,
    )
    return {
        "products": [PartResponse.model_validate(p) for p in parts],
        "total": total,
    }


@router.get("/quote", response_model=QuoteResponse)
async def delivery_quote(
    supplier_id: uuid.UUID,
    item_count: int = Query(1, ge=1),
    workshop: Workshop = Depends(get_current_workshop),
    db: AsyncSession = Depends(get_db),
) -> QuoteResponse:
    """Distance and runner delivery charge from a supplier to the caller's workshop."""
    supplier = await db.get(Supplier, supplier_id)
    if supplier is None:
        raise NotFoundError("Supplier", supplier_id)
    quote = await OrderRepository(db).quote(workshop, supplier, item_count)
    return QuoteResponse(**quote)
