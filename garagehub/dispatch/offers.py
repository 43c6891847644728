"""Runner delivery offers: broadcast to nearby runners, first to accept wins."""

from __future__ import annotations

import uuid
from datetime import timedelta
from typing import Optional

import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from garagehub.config import settings
from garagehub.errors import ConflictError, NotFoundError, PermissionDeniedError
from garagehub.marketplace.geo import distance_between, to_cents
from garagehub.models.base import ensure_utc, utcnow
from garagehub.models.order import DeliveryAssignment, DeliveryOffer, SupplierOrder
from garagehub.models.supplier import Supplier
from garagehub.models.user import User
from garagehub.models.workshop import Workshop
from garagehub.notifications.service import NotificationService
from garagehub.realtime.hub import emit_delivery_updated, emit_order_updated
from garagehub.repositories.workflow import ORDER_TRANSITIONS, check_transition

logger = structlog.get_logger()


class DispatchService:
    """Creates and resolves delivery offers for runner-delivered orders."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.notifications = NotificationService(db)

    async def nearby_runners(self, supplier: Supplier) -> list[tuple[User, float]]:
        """Approved, active runners with a known position inside the offer radius,
        nearest first."""
        result = await self.db.execute(
            select(User).where(
                User.role == "runner",
                User.is_active == True,  # noqa: E712
                User.is_approved == True,  # noqa: E712
                User.latitude.is_not(None),
                User.longitude.is_not(None),
            )
        )
        candidates = []
        for runner in result.scalars().all():
            distance = distance_between(supplier, runner)
            if distance is not None and distance <= settings.runner_offer_radius_km:
                candidates.append((runner, distance))
        candidates.sort(key=lambda pair: pair[1])
        return candidates

    async def create_offers(self, order: SupplierOrder) -> list[DeliveryOffer]:
        """Offer an order to every nearby runner.

        Any still-pending offers for the order are expired first.
        """
        supplier = await self.db.get(Supplier, order.supplier_id)
        await self._expire_pending(order.id)

        now = utcnow()
        expires_at = now + timedelta(seconds=settings.runner_offer_ttl_seconds)
        offers = []
        for runner, distance in await self.nearby_runners(supplier):
            offer = DeliveryOffer(
                order_id=order.id,
                runner_id=runner.id,
                status="pending",
                distance_km=to_cents(distance),
                offered_at=now,
                expires_at=expires_at,
            )
            self.db.add(offer)
            offers.append(offer)
        await self.db.flush()

        for offer in offers:
            await self.notifications.notify_delivery_offer(offer.runner_id, order, offer.distance_km)

        logger.info("delivery_offers_created", order_id=str(order.id), runners=len(offers))
        return offers

    async def list_for_runner(
        self, runner_id: uuid.UUID, status: Optional[str] = None
    ) -> list[DeliveryOffer]:
        await self._expire_stale(runner_id)
        stmt = select(DeliveryOffer).where(DeliveryOffer.runner_id == runner_id)
        if status:
            stmt = stmt.where(DeliveryOffer.status == status)
        stmt = stmt.order_by(DeliveryOffer.offered_at.desc())
        return list((await self.db.execute(stmt)).scalars().all())

    async def get_runner_offer(self, offer_id: uuid.UUID, runner_id: uuid.UUID) -> DeliveryOffer:
        offer = await self.db.get(DeliveryOffer, offer_id)
        if offer is None:
            raise NotFoundError("Delivery offer", offer_id)
        if offer.runner_id != runner_id:
            raise PermissionDeniedError("This offer belongs to another runner")
        return offer

    async def accept(self, offer_id: uuid.UUID, runner: User) -> DeliveryAssignment:
        """Claim an order. Only one runner can win it.

        Raises:
            ConflictError: offer no longer pending, expired, or order taken
        """
        offer = await self.get_runner_offer(offer_id, runner.id)
        if offer.status != "pending":
            raise ConflictError(f"Offer is already {offer.status}")
        if ensure_utc(offer.expires_at) <= utcnow():
            offer.status = "expired"
            await self.db.flush()
            raise ConflictError("Offer has expired")

        order = (
            await self.db.execute(
                select(SupplierOrder).where(SupplierOrder.id == offer.order_id).with_for_update()
            )
        ).scalar_one()
        if order.runner_id is not None:
            raise ConflictError("Order was already taken by another runner")
        check_transition(ORDER_TRANSITIONS, order.status, "assigned_runner", "order")

        now = utcnow()
        order.runner_id = runner.id
        order.status = "assigned_runner"
        offer.status = "accepted"
        offer.responded_at = now
        await self._expire_pending(order.id, exclude_offer_id=offer.id)

        supplier = await self.db.get(Supplier, order.supplier_id)
        workshop = await self.db.get(Workshop, order.workshop_id)
        assignment = DeliveryAssignment(
            order_id=order.id,
            runner_id=runner.id,
            status="pending",
            pickup_location=supplier.address if supplier else None,
            dropoff_location=order.delivery_address or (workshop.address if workshop else None),
        )
        self.db.add(assignment)
        await self.db.flush()

        await emit_order_updated(order)
        await emit_delivery_updated(order.id, assignment.status, runner.id)
        await self.notifications.notify_order_update(order)

        logger.info("delivery_offer_accepted", offer_id=str(offer.id), order_id=str(order.id))
        return assignment

    async def reject(self, offer_id: uuid.UUID, runner: User) -> DeliveryOffer:
        offer = await self.get_runner_offer(offer_id, runner.id)
        if offer.status != "pending":
            raise ConflictError(f"Offer is already {offer.status}")
        offer.status = "rejected"
        offer.responded_at = utcnow()
        await self.db.flush()
        logger.info("delivery_offer_rejected", offer_id=str(offer.id))
        return offer

    async def expire_for_order(self, order_id: uuid.UUID) -> None:
        await self._expire_pending(order_id)

    async def _expire_pending(
        self, order_id: uuid.UUID, exclude_offer_id: Optional[uuid.UUID] = None
    ) -> None:
        stmt = update(DeliveryOffer).where(
            DeliveryOffer.order_id == order_id, DeliveryOffer.status == "pending"
        )
        if exclude_offer_id is not None:
            stmt = stmt.where(DeliveryOffer.id != exclude_offer_id)
        await self.db.execute(
            stmt.values(status="expired", responded_at=utcnow()).execution_options(
                synchronize_session="fetch"
            )
        )

    async def _expire_stale(self, runner_id: uuid.UUID) -> None:
        await self.db.execute(
            update(DeliveryOffer)
            .where(
                DeliveryOffer.runner_id == runner_id,
                DeliveryOffer.status == "pending",
                DeliveryOffer.expires_at <= utcnow(),
            )
            .values(status="expired")
            .execution_options(synchronize_session="fetch")
        )
