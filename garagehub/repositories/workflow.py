"""Status transition tables for every workflow-driven entity."""

from __future__ import annotations

from garagehub.errors import InvalidStatusTransitionError

ORDER_TRANSITIONS: dict[str, set[str]] = {
    "created": {"accepted", "cancelled"},
    "accepted": {"preparing", "cancelled"},
    "preparing": {"assigned_runner", "delivered", "cancelled"},
    "assigned_runner": {"delivering", "cancelled"},
    "delivering": {"delivered"},
    "delivered": set(),
    "cancelled": set(),
}

JOB_TRANSITIONS: dict[str, set[str]] = {
    "pending": {"in_progress", "cancelled"},
    "in_progress": {"completed", "cancelled"},
    "completed": set(),
    "cancelled": set(),
}

BOOKING_TRANSITIONS: dict[str, set[str]] = {
    "pending": {"approved", "rejected", "workshop_proposed", "cancelled"},
    "workshop_proposed": {"approved", "cancelled"},
    "approved": {"completed", "cancelled"},
    "rejected": set(),
    "completed": set(),
    "cancelled": set(),
}

TOWING_TRANSITIONS: dict[str, set[str]] = {
    "pending": {"assigned", "cancelled"},
    "assigned": {"en_route", "cancelled"},
    "en_route": {"completed"},
    "completed": set(),
    "cancelled": set(),
}

DELIVERY_TRANSITIONS: dict[str, set[str]] = {
    "pending": {"picked_up", "cancelled"},
    "picked_up": {"en_route", "cancelled"},
    "en_route": {"delivered"},
    "delivered": set(),
    "cancelled": set(),
}


def check_transition(
    table: dict[str, set[str]], current: str, new: str, entity: str = "record"
) -> None:
    """Raise InvalidStatusTransitionError unless current -> new is allowed."""
    if new not in table.get(current, set()):
        raise InvalidStatusTransitionError(current, new, entity)


def is_terminal(table: dict[str, set[str]], status: str) -> bool:
    return not table.get(status)
