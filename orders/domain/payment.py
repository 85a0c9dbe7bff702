"""
Payment status reconciliation.

A payment-status write may move the order itself: a PAID notification
without an explicit order status confirms a PENDING order. The promotion
goes through the transition table, so a payment that arrives after the
order has moved on (or was cancelled) is recorded without touching the
order status.
"""
from __future__ import annotations

from datetime import datetime

from orders.domain.order import Order, OrderStatus, PaymentStatus
from orders.domain.status_machine import can_transition


def reconcile_payment_status(
    order: Order,
    payment_status: PaymentStatus,
    status_requested: bool,
    now: datetime,
) -> dict:
    """Return the field changes caused by setting ``payment_status`` on ``order``."""
    changes = {"payment_status": payment_status}
    if payment_status != PaymentStatus.PAID:
        return changes

    if order.paid_at is None:
        changes["paid_at"] = now

    if not status_requested and can_transition(order.status, OrderStatus.CONFIRMED):
        changes["status"] = OrderStatus.CONFIRMED

    return changes
