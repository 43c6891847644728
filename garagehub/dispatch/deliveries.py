"""Runner-side delivery tracking."""

from __future__ import annotations

import uuid
from decimal import Decimal

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from garagehub.errors import NotFoundError, PermissionDeniedError
from garagehub.models.base import utcnow
from garagehub.models.order import DeliveryAssignment
from garagehub.models.user import User
from garagehub.notifications.service import NotificationService
from garagehub.realtime.hub import emit_delivery_location, emit_delivery_updated
from garagehub.repositories.order import OrderRepository
from garagehub.repositories.workflow import DELIVERY_TRANSITIONS, check_transition

logger = structlog.get_logger()

# Assignment status -> order status it drives
ORDER_STATUS_FOR_DELIVERY = {
    "en_route": "delivering",
    "delivered": "delivered",
}


class DeliveryService:
    """Assignments a runner works on after winning an offer."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.orders = OrderRepository(db)
        self.notifications = NotificationService(db)

    async def list_for_runner(self, runner_id: uuid.UUID, active_only: bool = False) -> list[DeliveryAssignment]:
        stmt = select(DeliveryAssignment).where(DeliveryAssignment.runner_id == runner_id)
        if active_only:
            stmt = stmt.where(DeliveryAssignment.status.not_in(("delivered", "cancelled")))
        stmt = stmt.order_by(DeliveryAssignment.created_at.desc())
        return list((await self.db.execute(stmt)).scalars().all())

    async def get_for_runner(self, assignment_id: uuid.UUID, runner: User) -> DeliveryAssignment:
        assignment = await self.db.get(DeliveryAssignment, assignment_id)
        if assignment is None:
            raise NotFoundError("Delivery", assignment_id)
        if assignment.runner_id != runner.id and runner.role != "admin":
            raise PermissionDeniedError("This delivery belongs to another runner")
        return assignment

    async def update_location(
        self, assignment: DeliveryAssignment, latitude: Decimal, longitude: Decimal
    ) -> DeliveryAssignment:
        assignment.current_lat = latitude
        assignment.current_lng = longitude
        await self.db.flush()
        await emit_delivery_location(assignment.order_id, latitude, longitude)
        return assignment

    async def update_status(self, assignment: DeliveryAssignment, new_status: str) -> DeliveryAssignment:
        """Advance a delivery and mirror the change onto its order."""
        check_transition(DELIVERY_TRANSITIONS, assignment.status, new_status, "delivery")

        order = await self.orders.get(assignment.order_id, for_update=True)
        now = utcnow()
        if new_status in ("picked_up", "en_route") and assignment.picked_up_at is None:
            assignment.picked_up_at = now
        if new_status == "delivered":
            assignment.delivered_at = now
        assignment.status = new_status
        await self.db.flush()

        order_status = ORDER_STATUS_FOR_DELIVERY.get(new_status)
        if new_status == "delivered" and order.status == "assigned_runner":
            await self.orders.apply_status(order, "delivering")
        if order_status and order.status != order_status:
            await self.orders.apply_status(order, order_status)

        await emit_delivery_updated(order.id, new_status, assignment.runner_id)
        await self.notifications.notify_delivery_update(order, new_status)

        logger.info(
            "delivery_status_updated",
            assignment_id=str(assignment.id),
            order_id=str(order.id),
            status=new_status,
        )
        return assignment
