"""Wallet balances, transaction log and order escrow."""

from __future__ import annotations

import hashlib
import hmac
import secrets
import uuid
from decimal import Decimal
from typing import Optional

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from garagehub.config import settings
from garagehub.errors import (
    ConflictError,
    InsufficientFundsError,
    NotFoundError,
    PermissionDeniedError,
    ValidationFailedError,
)
from garagehub.marketplace.geo import to_cents
from garagehub.models.base import utcnow
from garagehub.models.order import SupplierOrder
from garagehub.models.supplier import Supplier
from garagehub.models.wallet import PlatformEscrow, TransactionLog, Wallet
from garagehub.models.workshop import Workshop
from garagehub.notifications.service import NotificationService, short_ref
from garagehub.realtime.hub import emit_wallet_balance

logger = structlog.get_logger()


def sign_reference(reference: str) -> str:
    """HMAC-SHA256 signature the payment provider sends back with a top-up."""
    return hmac.new(
        settings.payment_callback_secret.encode("utf-8"),
        reference.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


def verify_reference_signature(reference: str, signature: str) -> bool:
    return hmac.compare_digest(sign_reference(reference), signature or "")


class WalletService:
    """All balance movements go through here so every change is logged."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.notifications = NotificationService(db)

    async def get_wallet(self, user_id: uuid.UUID, for_update: bool = False) -> Wallet:
        """Get a user's wallet, creating an empty one on first use."""
        stmt = select(Wallet).where(Wallet.user_id == user_id)
        if for_update:
            stmt = stmt.with_for_update()
        wallet = (await self.db.execute(stmt)).scalar_one_or_none()
        if wallet is None:
            wallet = Wallet(user_id=user_id, balance=Decimal("0.00"))
            self.db.add(wallet)
            await self.db.flush()
        return wallet

    async def list_transactions(
        self, user_id: uuid.UUID, limit: int = 50, offset: int = 0
    ) -> list[TransactionLog]:
        stmt = (
            select(TransactionLog)
            .where(
                (TransactionLog.from_user_id == user_id) | (TransactionLog.to_user_id == user_id)
            )
            .order_by(TransactionLog.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        return list((await self.db.execute(stmt)).scalars().all())

    async def credit(
        self,
        user_id: uuid.UUID,
        amount: Decimal,
        transaction_type: str,
        description: str,
        order_id: Optional[uuid.UUID] = None,
        from_user_id: Optional[uuid.UUID] = None,
        notify: bool = True,
    ) -> TransactionLog:
        amount = to_cents(amount)
        wallet = await self.get_wallet(user_id, for_update=True)
        wallet.balance = to_cents(wallet.balance + amount)

        entry = TransactionLog(
            order_id=order_id,
            transaction_type=transaction_type,
            from_user_id=from_user_id,
            to_user_id=user_id,
            amount=amount,
            description=description,
            status="completed",
        )
        self.db.add(entry)
        await self.db.flush()

        await emit_wallet_balance(user_id, wallet.balance)
        if notify:
            await self.notifications.notify_wallet_transaction(user_id, amount, description)

        logger.info(
            "wallet_credited",
            user_id=str(user_id),
            amount=str(amount),
            transaction_type=transaction_type,
        )
        return entry

    async def debit(
        self,
        user_id: uuid.UUID,
        amount: Decimal,
        transaction_type: str,
        description: str,
        order_id: Optional[uuid.UUID] = None,
        to_user_id: Optional[uuid.UUID] = None,
    ) -> TransactionLog:
        """Take money out of a wallet.

        Raises:
            InsufficientFundsError: balance lower than amount
        """
        amount = to_cents(amount)
        wallet = await self.get_wallet(user_id, for_update=True)
        if wallet.balance < amount:
            logger.warning(
                "wallet_insufficient_funds",
                user_id=str(user_id),
                balance=str(wallet.balance),
                amount=str(amount),
            )
            raise InsufficientFundsError()

        wallet.balance = to_cents(wallet.balance - amount)
        entry = TransactionLog(
            order_id=order_id,
            transaction_type=transaction_type,
            from_user_id=user_id,
            to_user_id=to_user_id,
            amount=amount,
            description=description,
            status="completed",
        )
        self.db.add(entry)
        await self.db.flush()

        await emit_wallet_balance(user_id, wallet.balance)

        logger.info(
            "wallet_debited",
            user_id=str(user_id),
            amount=str(amount),
            transaction_type=transaction_type,
        )
        return entry

    # Top-ups

    async def initiate_topup(self, user_id: uuid.UUID, amount: Decimal) -> TransactionLog:
        """Record a pending top-up; the provider confirms it later."""
        amount = to_cents(amount)
        if amount < settings.min_topup_amount:
            raise ValidationFailedError(
                f"Minimum top-up is RM {settings.min_topup_amount:.2f}"
            )

        entry = TransactionLog(
            transaction_type="topup",
            to_user_id=user_id,
            amount=amount,
            description="Wallet top-up",
            status="pending",
            reference=secrets.token_hex(16),
        )
        self.db.add(entry)
        await self.db.flush()

        logger.info("wallet_topup_initiated", user_id=str(user_id), reference=entry.reference)
        return entry

    async def confirm_topup(self, reference: str, signature: str) -> TransactionLog:
        """Apply a provider-confirmed top-up. Confirming twice is a no-op."""
        if not verify_reference_signature(reference, signature):
            logger.warning("wallet_topup_bad_signature", reference=reference)
            raise PermissionDeniedError("Invalid payment signature")

        result = await self.db.execute(
            select(TransactionLog)
            .where(TransactionLog.reference == reference, TransactionLog.transaction_type == "topup")
            .with_for_update()
        )
        entry = result.scalar_one_or_none()
        if entry is None:
            raise NotFoundError("Top-up", reference)
        if entry.status == "completed":
            return entry
        if entry.status != "pending":
            raise ConflictError(f"Top-up is {entry.status}")

        wallet = await self.get_wallet(entry.to_user_id, for_update=True)
        wallet.balance = to_cents(wallet.balance + entry.amount)
        entry.status = "completed"
        await self.db.flush()

        await emit_wallet_balance(entry.to_user_id, wallet.balance)
        await self.notifications.notify_wallet_transaction(
            entry.to_user_id, entry.amount, "Wallet top-up"
        )

        logger.info(
            "wallet_topup_confirmed",
            user_id=str(entry.to_user_id),
            amount=str(entry.amount),
            reference=reference,
        )
        return entry

    # Escrow

    async def hold_order_payment(self, order: SupplierOrder, workshop_user_id: uuid.UUID) -> PlatformEscrow:
        """Charge the workshop and park the money in escrow until delivery."""
        ref = short_ref(order.id)
        await self.debit(
            workshop_user_id,
            order.total_amount,
            "order_payment",
            f"Payment for order {ref}",
            order_id=order.id,
        )

        escrow = PlatformEscrow(
            order_id=order.id,
            workshop_id=order.workshop_id,
            supplier_id=order.supplier_id,
            total_amount=order.total_amount,
            parts_amount=order.items_total,
            delivery_amount=order.delivery_charge,
            platform_fee_percent=settings.platform_fee_percent,
            status="holding",
            hold_at=utcnow(),
        )
        self.db.add(escrow)
        self.db.add(
            TransactionLog(
                order_id=order.id,
                transaction_type="escrow_hold",
                from_user_id=workshop_user_id,
                amount=to_cents(order.total_amount),
                description=f"Escrow hold for order {ref}",
                status="completed",
            )
        )
        order.payment_status = "paid"
        await self.db.flush()

        logger.info("escrow_held", order_id=str(order.id), amount=str(order.total_amount))
        return escrow

    async def get_escrow(self, order_id: uuid.UUID) -> Optional[PlatformEscrow]:
        result = await self.db.execute(
            select(PlatformEscrow).where(PlatformEscrow.order_id == order_id).with_for_update()
        )
        return result.scalar_one_or_none()

    async def release_escrow(self, order: SupplierOrder) -> Optional[PlatformEscrow]:
        """Pay out a delivered order: supplier gets parts minus the platform fee,
        the runner gets the delivery charge."""
        escrow = await self.get_escrow(order.id)
        if escrow is None or escrow.status != "holding":
            return escrow

        ref = short_ref(order.id)
        fee = to_cents(escrow.parts_amount * escrow.platform_fee_percent / Decimal("100"))
        supplier_payout = to_cents(escrow.parts_amount - fee)
        runner_payout = to_cents(escrow.delivery_amount) if order.runner_id else Decimal("0.00")

        supplier_user_id = (
            await self.db.execute(select(Supplier.user_id).where(Supplier.id == order.supplier_id))
        ).scalar_one()

        await self.credit(
            supplier_user_id,
            supplier_payout,
            "supplier_payout",
            f"Payout for order {ref}",
            order_id=order.id,
        )
        if runner_payout > 0:
            await self.credit(
                order.runner_id,
                runner_payout,
                "runner_payout",
                f"Delivery payout for order {ref}",
                order_id=order.id,
            )
        self.db.add(
            TransactionLog(
                order_id=order.id,
                transaction_type="platform_fee",
                amount=fee,
                platform_commission=fee,
                description=f"Platform fee for order {ref}",
                status="completed",
            )
        )
        self.db.add(
            TransactionLog(
                order_id=order.id,
                transaction_type="escrow_release",
                amount=to_cents(escrow.total_amount),
                platform_commission=fee,
                description=f"Escrow release for order {ref}",
                status="completed",
            )
        )

        escrow.runner_id = order.runner_id
        escrow.platform_fee_amount = fee
        escrow.supplier_payout = supplier_payout
        escrow.runner_payout = runner_payout
        escrow.status = "released"
        escrow.release_at = utcnow()
        await self.db.flush()

        logger.info(
            "escrow_released",
            order_id=str(order.id),
            platform_fee=str(fee),
            supplier_payout=str(supplier_payout),
            runner_payout=str(runner_payout),
        )
        return escrow

    async def refund_escrow(self, order: SupplierOrder) -> Optional[PlatformEscrow]:
        """Return held funds to the workshop for a cancelled order."""
        escrow = await self.get_escrow(order.id)
        if escrow is None or escrow.status != "holding":
            return escrow

        workshop_user_id = (
            await self.db.execute(select(Workshop.user_id).where(Workshop.id == order.workshop_id))
        ).scalar_one()

        await self.credit(
            workshop_user_id,
            escrow.total_amount,
            "refund",
            f"Refund for order {short_ref(order.id)}",
            order_id=order.id,
        )
        escrow.status = "refunded"
        escrow.release_at = utcnow()
        order.payment_status = "refunded"
        await self.db.flush()

        logger.info("escrow_refunded", order_id=str(order.id), amount=str(escrow.total_amount))
        return escrow

    async def platform_revenue(self) -> Decimal:
        result = await self.db.execute(
            select(func.coalesce(func.sum(PlatformEscrow.platform_fee_amount), 0)).where(
                PlatformEscrow.status == "released"
            )
        )
        return to_cents(result.scalar_one())
