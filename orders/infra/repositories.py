"""
Infrastructure repositories for domain entities.
"""
from __future__ import annotations

import logging
import secrets
from decimal import Decimal
from uuid import UUID

from django.db import IntegrityError, transaction
from django.db.models import Count, Q, Sum
from django.utils import timezone

from orders.domain.order import Order, OrderItem, OrderStatus, PaymentStatus
from orders.infra.models import OrderItemORM, OrderORM

logger = logging.getLogger(__name__)

# Generated order numbers tried before a collision is reported.
ORDER_NUMBER_ATTEMPTS = 5

# Domain fields that may change after creation.
MUTABLE_FIELDS = frozenset({
    "status",
    "payment_status",
    "notes",
    "paid_at",
    "cancelled_at",
    "completed_at",
})


def _as_uuid(value) -> UUID | None:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (ValueError, TypeError, AttributeError):
        return None


class OrderRepository:
    """Repository for Order aggregate."""

    def generate_order_number(self) -> str:
        return f"ORD-{timezone.now():%Y%m%d}-{secrets.token_hex(4).upper()}"

    def _queryset(self):
        return OrderORM.objects.prefetch_related("items")

    def get_by_id(self, order_id, user_id: str | None = None) -> Order | None:
        """Get order by ID with items, optionally scoped to an owner."""
        order_uuid = _as_uuid(order_id)
        if order_uuid is None:
            return None
        lookup = {"id": order_uuid}
        if user_id is not None:
            lookup["user_id"] = str(user_id)
        order_orm = self._queryset().filter(**lookup).first()
        return self._to_domain(order_orm) if order_orm else None

    def get_by_order_number(self, order_number: str, user_id: str | None = None) -> Order | None:
        """Get order by order number, optionally scoped to an owner."""
        lookup = {"order_number": order_number}
        if user_id is not None:
            lookup["user_id"] = str(user_id)
        order_orm = self._queryset().filter(**lookup).first()
        return self._to_domain(order_orm) if order_orm else None

    def list(self, filters: dict | None = None, offset: int = 0, limit: int = 10) -> tuple[list[Order], int]:
        """Get a page of orders newest first, plus the unpaged match count."""
        queryset = OrderORM.objects.filter(**self._filter_kwargs(filters or {}))
        total = queryset.count()
        page = (
            queryset
            .prefetch_related("items")
            .order_by("-created_at", "-id")[offset:offset + limit]
        )
        return [self._to_domain(order_orm) for order_orm in page], total

    def create(self, order: Order) -> Order:
        """
        Persist an order and its items in one transaction.

        A generated order number that collides with an existing one is
        regenerated; an explicit ``order.order_number`` is never replaced.
        """
        for attempt in range(1, ORDER_NUMBER_ATTEMPTS + 1):
            order_number = order.order_number or self.generate_order_number()
            try:
                with transaction.atomic():
                    order_orm = self._insert(order, order_number)
            except IntegrityError:
                if (
                    order.order_number
                    or attempt == ORDER_NUMBER_ATTEMPTS
                    or not OrderORM.objects.filter(order_number=order_number).exists()
                ):
                    raise
                logger.warning(
                    "order_number_collision",
                    extra={"operation": "create_order", "attempt": attempt},
                )
                continue
            return self.get_by_id(order_orm.id)

    def _insert(self, order: Order, order_number: str) -> OrderORM:
        order_orm = OrderORM.objects.create(
            id=order.id,
            order_number=order_number,
            user_id=order.user_id,
            subtotal=order.subtotal,
            tax_amount=order.tax_amount,
            shipping_cost=order.shipping_cost,
            total=order.total,
            status=order.status.value,
            payment_status=order.payment_status.value,
            shipping_address=order.shipping_address,
            billing_address=order.billing_address,
            payment_method=order.payment_method,
            notes=order.notes,
        )
        OrderItemORM.objects.bulk_create([
            OrderItemORM(
                order=order_orm,
                product_id=item.product_id,
                sku=item.sku,
                product_name=item.product_name,
                position=position,
                quantity=item.quantity,
                unit_price=item.unit_price,
                total_price=item.total_price,
            )
            for position, item in enumerate(order.items)
        ])
        return order_orm

    def update_if_status(self, order_id: UUID, expected_status: OrderStatus, changes: dict) -> bool:
        """
        Apply ``changes`` only if the stored status is still ``expected_status``.

        Single conditional UPDATE; returns False when another writer moved
        the order first.
        """
        unknown = set(changes) - MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields cannot be updated: {sorted(unknown)}")

        values = {
            key: value.value if isinstance(value, (OrderStatus, PaymentStatus)) else value
            for key, value in changes.items()
        }
        values["updated_at"] = timezone.now()
        updated = (
            OrderORM.objects
            .filter(id=order_id, status=expected_status.value)
            .update(**values)
        )
        return updated == 1

    def delete(self, order_id) -> bool:
        order_uuid = _as_uuid(order_id)
        if order_uuid is None:
            return False
        deleted, _ = OrderORM.objects.filter(id=order_uuid).delete()
        return deleted > 0

    def statistics(self) -> dict:
        """Order counts by status and revenue from paid, non-refunded orders."""
        counts = OrderORM.objects.aggregate(
            total_orders=Count("id"),
            pending_orders=Count("id", filter=Q(status=OrderStatus.PENDING.value)),
            completed_orders=Count("id", filter=Q(status=OrderStatus.DELIVERED.value)),
            cancelled_orders=Count("id", filter=Q(status=OrderStatus.CANCELLED.value)),
        )
        revenue = (
            OrderORM.objects
            .filter(payment_status=PaymentStatus.PAID.value)
            .exclude(status=OrderStatus.REFUNDED.value)
            .aggregate(total=Sum("subtotal"))["total"]
        )
        counts["total_revenue"] = (revenue or Decimal("0")).quantize(Decimal("0.01"))
        return counts

    def _filter_kwargs(self, filters: dict) -> dict:
        lookup = {}
        if filters.get("status") is not None:
            lookup["status"] = OrderStatus(filters["status"]).value
        if filters.get("payment_status") is not None:
            lookup["payment_status"] = PaymentStatus(filters["payment_status"]).value
        if filters.get("user_id") is not None:
            lookup["user_id"] = str(filters["user_id"])
        if filters.get("order_number") is not None:
            lookup["order_number"] = filters["order_number"]
        return lookup

    def _to_domain(self, order_orm: OrderORM) -> Order:
        """Convert ORM model to domain entity."""
        items = [
            OrderItem(
                id=item_orm.id,
                product_id=item_orm.product_id,
                sku=item_orm.sku,
                product_name=item_orm.product_name,
                quantity=item_orm.quantity,
                unit_price=item_orm.unit_price,
                total_price=item_orm.total_price,
            )
            for item_orm in sorted(order_orm.items.all(), key=lambda item: item.position)
        ]

        return Order(
            id=order_orm.id,
            order_number=order_orm.order_number,
            user_id=order_orm.user_id,
            items=items,
            subtotal=order_orm.subtotal,
            tax_amount=order_orm.tax_amount,
            shipping_cost=order_orm.shipping_cost,
            total=order_orm.total,
            status=OrderStatus(order_orm.status),
            payment_status=PaymentStatus(order_orm.payment_status),
            shipping_address=order_orm.shipping_address,
            billing_address=order_orm.billing_address,
            payment_method=order_orm.payment_method,
            notes=order_orm.notes,
            created_at=order_orm.created_at,
            updated_at=order_orm.updated_at,
            paid_at=order_orm.paid_at,
            cancelled_at=order_orm.cancelled_at,
            completed_at=order_orm.completed_at,
        )
