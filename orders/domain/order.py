"""
Domain model for Order aggregate.
"""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID, uuid4

from orders.domain.errors import ValidationError


class OrderStatus(str, Enum):
    """Order fulfillment status."""
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"
    REFUNDED = "REFUNDED"


class PaymentStatus(str, Enum):
    """Order payment status."""
    UNPAID = "UNPAID"
    PAID = "PAID"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


def parse_order_status(value) -> OrderStatus | None:
    """Parse an order status at the boundary, rejecting unknown values."""
    if value is None or isinstance(value, OrderStatus):
        return value
    try:
        return OrderStatus(str(value).upper())
    except ValueError:
        raise ValidationError(f"Unknown order status: {value}") from None


def parse_payment_status(value) -> PaymentStatus | None:
    """Parse a payment status at the boundary, rejecting unknown values."""
    if value is None or isinstance(value, PaymentStatus):
        return value
    try:
        return PaymentStatus(str(value).upper())
    except ValueError:
        raise ValidationError(f"Unknown payment status: {value}") from None


class OrderItem:
    """Order line item, snapshotting product identity and price."""

    def __init__(
        self,
        product_id: str,
        sku: str,
        product_name: str,
        quantity: int,
        unit_price: Decimal,
        total_price: Decimal | None = None,
        id: UUID | None = None,
    ):
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise ValidationError("Quantity must be a positive integer")
        if unit_price < 0:
            raise ValidationError("Unit price must be non-negative")

        self.id = id
        self.product_id = product_id
        self.sku = sku
        self.product_name = product_name
        self.quantity = quantity
        self.unit_price = unit_price
        self.total_price = total_price


class Order:
    """Order aggregate root."""

    def __init__(
        self,
        user_id: str,
        items: list[OrderItem],
        subtotal: Decimal,
        tax_amount: Decimal,
        shipping_cost: Decimal,
        total: Decimal,
        shipping_address: dict | None = None,
        billing_address: dict | None = None,
        payment_method: str | None = None,
        notes: str | None = None,
        id: UUID | None = None,
        order_number: str | None = None,
        status: OrderStatus = OrderStatus.PENDING,
        payment_status: PaymentStatus = PaymentStatus.UNPAID,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
        paid_at: datetime | None = None,
        cancelled_at: datetime | None = None,
        completed_at: datetime | None = None,
    ):
        self.id = id or uuid4()
        self.order_number = order_number
        self.user_id = user_id
        self._items = list(items)
        self.subtotal = subtotal
        self.tax_amount = tax_amount
        self.shipping_cost = shipping_cost
        self.total = total
        self.status = status
        self.payment_status = payment_status
        self.shipping_address = shipping_address
        self.billing_address = billing_address
        self.payment_method = payment_method
        self.notes = notes
        self.created_at = created_at
        self.updated_at = updated_at
        self.paid_at = paid_at
        self.cancelled_at = cancelled_at
        self.completed_at = completed_at

    @property
    def items(self) -> list[OrderItem]:
        """Get order items (immutable)."""
        return list(self._items)

    def is_owned_by(self, user_id: str | None) -> bool:
        return user_id is not None and self.user_id == str(user_id)

    def __repr__(self) -> str:
        return f"<Order {self.order_number or self.id} {self.status.value}/{self.payment_status.value}>"
