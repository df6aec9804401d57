"""
ORDER LIFECYCLE DOMAIN RULES

This module defines the ONLY allowed lifecycle transitions
for Order entities.

    pending    -> confirmed | cancelled
    confirmed  -> processing | cancelled
    processing -> ready | cancelled
    ready      -> completed | cancelled
    completed  -> (terminal)
    cancelled  -> (terminal)

DESIGN PRINCIPLES:
- No database writes
- No stock mutation
- No side effects
- Single source of truth
"""

from common.exceptions import ValidationError
from orders.models import Order

# ============================================================
# STATE DEFINITIONS
# ============================================================

VALID_STATUSES = {value for value, _ in Order.STATUS_CHOICES}

TERMINAL_STATES = {
    Order.STATUS_COMPLETED,
    Order.STATUS_CANCELLED,
}

ALLOWED_TRANSITIONS = {
    Order.STATUS_PENDING: {
        Order.STATUS_CONFIRMED,
        Order.STATUS_CANCELLED,
    },
    Order.STATUS_CONFIRMED: {
        Order.STATUS_PROCESSING,
        Order.STATUS_CANCELLED,
    },
    Order.STATUS_PROCESSING: {
        Order.STATUS_READY,
        Order.STATUS_CANCELLED,
    },
    Order.STATUS_READY: {
        Order.STATUS_COMPLETED,
        Order.STATUS_CANCELLED,
    },
    Order.STATUS_COMPLETED: set(),
    Order.STATUS_CANCELLED: set(),
}


# ============================================================
# DOMAIN RULES
# ============================================================


def ensure_valid_status(status: str) -> str:
    status = (status or "").strip().lower()
    if status not in VALID_STATUSES:
        raise ValidationError(f"invalid order status: {status or '<empty>'}")
    return status


def can_transition(*, from_status: str, to_status: str) -> bool:
    # a no-op "transition" is always allowed
    if from_status == to_status:
        return True

    return to_status in ALLOWED_TRANSITIONS.get(from_status, set())


def validate_transition(*, order: Order, target_status: str) -> None:
    if not can_transition(from_status=order.status, to_status=target_status):
        raise ValidationError(
            f"invalid status transition from {order.status} to {target_status}"
        )
