"""Towing request repository."""

from __future__ import annotations

import uuid

import structlog
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from garagehub.errors import ConflictError, NotFoundError, PermissionDeniedError
from garagehub.models.service import TowingRequest
from garagehub.models.user import User
from garagehub.models.workshop import Workshop
from garagehub.notifications.service import NotificationService
from garagehub.realtime.hub import emit_towing_updated
from garagehub.repositories.workflow import TOWING_TRANSITIONS, check_transition
from garagehub.schemas.service import TowingCreate

logger = structlog.get_logger()


class TowingRepository:
    """Customer tow requests picked up by towing operators."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.notifications = NotificationService(db)

    async def get(self, request_id: uuid.UUID) -> TowingRequest:
        request = await self.db.get(TowingRequest, request_id)
        if request is None:
            raise NotFoundError("Towing request", request_id)
        return request

    async def get_visible(self, request_id: uuid.UUID, user: User) -> TowingRequest:
        request = await self.get(request_id)
        if user.role == "admin" or request.customer_id == user.id:
            return request
        if user.role == "towing" and request.towing_service_id in (None, user.id):
            return request
        raise PermissionDeniedError("You cannot view this towing request")

    async def create(self, customer: User, data: TowingCreate) -> TowingRequest:
        if data.workshop_id is not None and await self.db.get(Workshop, data.workshop_id) is None:
            raise NotFoundError("Workshop", data.workshop_id)

        request = TowingRequest(customer_id=customer.id, status="pending", **data.model_dump())
        self.db.add(request)
        await self.db.flush()

        await emit_towing_updated(request)
        logger.info("towing_requested", towing_id=str(request.id), customer_id=str(customer.id))
        return request

    async def list_for_customer(self, customer_id: uuid.UUID) -> list[TowingRequest]:
        result = await self.db.execute(
            select(TowingRequest)
            .where(TowingRequest.customer_id == customer_id)
            .order_by(TowingRequest.created_at.desc())
        )
        return list(result.scalars().all())

    async def list_for_operator(self, operator_id: uuid.UUID) -> list[TowingRequest]:
        """Open requests anyone can take plus the operator's own jobs."""
        result = await self.db.execute(
            select(TowingRequest)
            .where(
                or_(
                    (TowingRequest.status == "pending")
                    & TowingRequest.towing_service_id.is_(None),
                    TowingRequest.towing_service_id == operator_id,
                )
            )
            .order_by(TowingRequest.created_at.desc())
        )
        return list(result.scalars().all())

    async def assign(self, request: TowingRequest, operator: User, estimated_cost=None) -> TowingRequest:
        if request.towing_service_id is not None:
            raise ConflictError("Request already has a towing operator")
        check_transition(TOWING_TRANSITIONS, request.status, "assigned", "towing request")

        request.towing_service_id = operator.id
        request.status = "assigned"
        if estimated_cost is not None:
            request.estimated_cost = estimated_cost
        await self.db.flush()

        await emit_towing_updated(request)
        await self.notifications.notify_towing_update(request.customer_id, request)
        logger.info("towing_assigned", towing_id=str(request.id), operator_id=str(operator.id))
        return request

    async def update_status(self, request: TowingRequest, new_status: str, user: User) -> TowingRequest:
        is_operator = request.towing_service_id is not None and request.towing_service_id == user.id
        is_customer = request.customer_id == user.id
        if new_status == "cancelled":
            if not (is_operator or is_customer or user.role == "admin"):
                raise PermissionDeniedError("You cannot cancel this towing request")
        elif not (is_operator or user.role == "admin"):
            raise PermissionDeniedError("Only the assigned operator can update this request")

        check_transition(TOWING_TRANSITIONS, request.status, new_status, "towing request")
        previous = request.status
        request.status = new_status
        await self.db.flush()

        await emit_towing_updated(request)
        if not is_customer:
            await self.notifications.notify_towing_update(request.customer_id, request)
        elif request.towing_service_id is not None:
            await self.notifications.notify_towing_update(request.towing_service_id, request)

        logger.info(
            "towing_status_updated",
            towing_id=str(request.id),
            from_status=previous,
            to_status=new_status,
        )
        return request
