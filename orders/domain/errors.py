"""
Domain errors with stable error codes.
"""
from __future__ import annotations


class OrderError(Exception):
    """Base error for the order engine."""
    code = "ORDER_ERROR"

    def __init__(self, message: str, code: str | None = None):
        self.message = message
        if code is not None:
            self.code = code
        super().__init__(self.message)


class ValidationError(OrderError):
    """Malformed or incomplete input."""
    code = "VALIDATION_ERROR"


class NotFoundError(OrderError):
    """Unknown order, or an order not owned by the caller."""
    code = "NOT_FOUND"


class AuthorizationError(OrderError):
    """Caller is not allowed to perform the operation."""
    code = "FORBIDDEN"


class InvalidTransitionError(OrderError):
    """Requested status change is not in the transition table."""
    code = "INVALID_STATE"

    def __init__(self, current, requested, message: str | None = None):
        self.current = current
        self.requested = requested
        super().__init__(
            message or f"Cannot transition from {_name(current)} to {_name(requested)}"
        )


class StaleOrderStateError(OrderError):
    """Order status changed between read and conditional write."""
    code = "CONFLICT"

    def __init__(self, order_id, expected_status):
        self.order_id = order_id
        self.expected_status = expected_status
        super().__init__(
            f"Order {order_id} is no longer in status {_name(expected_status)}"
        )


class ConcurrentUpdateError(OrderError):
    """Conditional write kept losing to concurrent writers."""
    code = "CONFLICT"


def _name(status) -> str:
    return getattr(status, "value", status)
