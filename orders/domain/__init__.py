from orders.domain.errors import (
    AuthorizationError,
    ConcurrentUpdateError,
    InvalidTransitionError,
    NotFoundError,
    OrderError,
    StaleOrderStateError,
    ValidationError,
)
from orders.domain.order import Order, OrderItem, OrderStatus, PaymentStatus

__all__ = [
    "AuthorizationError",
    "ConcurrentUpdateError",
    "InvalidTransitionError",
    "NotFoundError",
    "Order",
    "OrderError",
    "OrderItem",
    "OrderStatus",
    "PaymentStatus",
    "StaleOrderStateError",
    "ValidationError",
]
