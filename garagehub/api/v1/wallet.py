"""Wallet API: balance, history and provider top-ups."""

import structlog
from fastapi import APIRouter, Depends, Header, Query
from sqlalchemy.ext.asyncio import AsyncSession

from garagehub.auth.dependencies import get_current_user
from garagehub.database import get_db
from garagehub.models.user import User
from garagehub.schemas.wallet import (
    TopupConfirm,
    TopupRequest,
    TopupResponse,
    TransactionResponse,
    WalletResponse,
)
from garagehub.wallet.ledger import WalletService

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/wallet", tags=["wallet"])


@router.get("", response_model=WalletResponse)
async def get_balance(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> WalletResponse:
    wallet = await WalletService(db).get_wallet(user.id)
    await db.commit()
    return WalletResponse.model_validate(wallet)


@router.get("/transactions", response_model=list[TransactionResponse])
async def list_transactions(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[TransactionResponse]:
    entries = await WalletService(db).list_transactions(user.id, limit=limit, offset=offset)
    return [TransactionResponse.model_validate(e) for e in entries]


@router.post("/topup", response_model=TopupResponse, status_code=201)
async def start_topup(
    data: TopupRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> TopupResponse:
    """Record a pending top-up.

    The client completes payment with the hosted provider using the returned
    reference; the balance changes only when the provider confirms.
    """
    entry = await WalletService(db).initiate_topup(user.id, data.amount)
    await db.commit()
    return TopupResponse(reference=entry.reference, amount=entry.amount, status=entry.status)


@router.post("/topup/confirm", response_model=TopupResponse)
async def confirm_topup(
    data: TopupConfirm,
    x_payment_signature: str = Header(""),
    db: AsyncSession = Depends(get_db),
) -> TopupResponse:
    """Payment provider callback, signed with HMAC-SHA256 of the reference."""
    entry = await WalletService(db).confirm_topup(data.reference, x_payment_signature)
    await db.commit()
    return TopupResponse(reference=entry.reference, amount=entry.amount, status=entry.status)
