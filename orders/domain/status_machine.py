"""
Order status transitions.
"""
from __future__ import annotations

from datetime import datetime

from orders.domain.errors import InvalidTransitionError
from orders.domain.order import OrderStatus

TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELLED}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset({OrderStatus.REFUNDED}),
    OrderStatus.CANCELLED: frozenset(),
    OrderStatus.REFUNDED: frozenset(),
}

# Statuses a customer may cancel from. Narrower than the transition table:
# CONFIRMED orders are cancelled by an admin only.
CUSTOMER_CANCELLABLE = frozenset({OrderStatus.PENDING, OrderStatus.PROCESSING})

# Timestamp set when an order enters the status.
_ENTRY_TIMESTAMPS = {
    OrderStatus.CANCELLED: "cancelled_at",
    OrderStatus.DELIVERED: "completed_at",
}


def allowed_transitions(status: OrderStatus) -> frozenset[OrderStatus]:
    return TRANSITIONS[status]


def is_terminal(status: OrderStatus) -> bool:
    return not TRANSITIONS[status]


def can_transition(current: OrderStatus, requested: OrderStatus) -> bool:
    return requested in TRANSITIONS[current]


def validate_transition(current: OrderStatus, requested: OrderStatus) -> None:
    """Raise InvalidTransitionError unless ``current -> requested`` is an edge."""
    if is_terminal(current):
        raise InvalidTransitionError(
            current,
            requested,
            f"Order in terminal status {current.value} cannot transition to {requested.value}",
        )
    if not can_transition(current, requested):
        raise InvalidTransitionError(current, requested)


def transition_changes(
    current: OrderStatus,
    requested: OrderStatus,
    now: datetime,
) -> dict:
    """Validate a transition and return the field changes it causes."""
    validate_transition(current, requested)
    changes = {"status": requested}
    timestamp_field = _ENTRY_TIMESTAMPS.get(requested)
    if timestamp_field:
        changes[timestamp_field] = now
    return changes
