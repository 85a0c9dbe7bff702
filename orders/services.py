"""
Application services for order operations.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from orders.domain.errors import (
    AuthorizationError,
    InvalidTransitionError,
    NotFoundError,
    StaleOrderStateError,
    ValidationError,
)
from orders.domain.order import (
    Order,
    OrderItem,
    OrderStatus,
    parse_order_status,
    parse_payment_status,
)
from orders.domain.payment import reconcile_payment_status
from orders.domain.pricing import (
    DEFAULT_SHIPPING_COST,
    DEFAULT_TAX_RATE,
    FREE_SHIPPING_THRESHOLD,
    STOREFRONT_SHIPPING_COST,
    CartQuote,
    calculate_order_totals,
    quote_cart,
    to_money,
)
from orders.domain.status_machine import CUSTOMER_CANCELLABLE, transition_changes
from orders.infra.locks import order_lock
from orders.infra.pii_masker import mask_pii_in_dict
from orders.infra.repositories import OrderRepository
from orders.infra.retry import retry_on_conflict


logger = logging.getLogger(__name__)


def _max_attempts() -> int:
    return int(getattr(settings, "ORDERS_STATUS_UPDATE_MAX_ATTEMPTS", 3))


def _positive_int(value, name: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{name} must be a positive integer")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be a positive integer") from None
    if number < 1 or (number != value and str(number) != str(value).strip()):
        raise ValidationError(f"{name} must be a positive integer")
    return number


def _required_text(item: Mapping, key: str) -> str:
    value = item.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{key} is required for every item")
    return value


class OrderService:
    """Service for order operations."""

    def __init__(self, order_repo: OrderRepository | None = None, clock=None):
        self.order_repo = order_repo or OrderRepository()
        self.clock = clock or timezone.now

    def create_order(
        self,
        owner_id: str,
        items: list[dict],
        shipping_address: dict,
        billing_address: dict | None = None,
        payment_method: str | None = None,
        notes: str | None = None,
        tax_rate=None,
        shipping_cost=None,
    ) -> Order:
        """Price and persist a new PENDING/UNPAID order."""
        if not owner_id:
            raise ValidationError("Order owner is required")
        if not items:
            raise ValidationError("empty order")
        if not isinstance(shipping_address, Mapping) or not shipping_address:
            raise ValidationError("shippingAddress is required")
        if billing_address is not None and not isinstance(billing_address, Mapping):
            raise ValidationError("billingAddress must be an address")

        order_items = [self._build_item(item) for item in items]
        priced = calculate_order_totals(
            order_items,
            tax_rate=tax_rate if tax_rate is not None else getattr(
                settings, "ORDERS_DEFAULT_TAX_RATE", DEFAULT_TAX_RATE
            ),
            shipping_cost=shipping_cost if shipping_cost is not None else getattr(
                settings, "ORDERS_DEFAULT_SHIPPING_COST", DEFAULT_SHIPPING_COST
            ),
        )
        for line in priced.lines:
            line.item.total_price = line.total_price

        order = Order(
            user_id=str(owner_id),
            items=order_items,
            subtotal=priced.subtotal,
            tax_amount=priced.tax_amount,
            shipping_cost=priced.shipping_cost,
            total=priced.total,
            shipping_address=dict(shipping_address),
            billing_address=dict(billing_address) if billing_address else None,
            payment_method=payment_method,
            notes=notes,
        )
        created = self.order_repo.create(order)

        logger.info(
            "order_created",
            extra=mask_pii_in_dict({
                "operation": "create_order",
                "order_id": str(created.id),
                "user_id": created.user_id,
                "status": created.status.value,
            }),
        )
        return created

    def find_all(self, filters: dict | None = None, page=1, limit=10) -> dict:
        """Filtered, paginated order listing, newest first."""
        filters = dict(filters or {})
        parsed = {
            "status": parse_order_status(filters.get("status")),
            "payment_status": parse_payment_status(filters.get("payment_status")),
            "user_id": filters.get("user_id") or None,
            "order_number": filters.get("order_number") or None,
        }
        return self._paginate(parsed, page, limit)

    def find_user_orders(self, user_id: str, page=1, limit=10) -> dict:
        """Paginated orders of one user, newest first."""
        if not user_id:
            raise ValidationError("userId is required")
        return self._paginate({"user_id": user_id}, page, limit)

    def find_one(self, order_id, owner_id: str | None = None) -> Order:
        """Get an order by id; an owner mismatch is reported as not found."""
        order = self.order_repo.get_by_id(order_id, user_id=owner_id)
        if order is None:
            raise NotFoundError(f"Order with ID {order_id} not found")
        return order

    def find_by_order_number(self, order_number: str, owner_id: str | None = None) -> Order:
        order = self.order_repo.get_by_order_number(order_number, user_id=owner_id)
        if order is None:
            raise NotFoundError(f"Order {order_number} not found")
        return order

    def update_status(self, order_id, status=None, payment_status=None, notes: str | None = None) -> Order:
        """
        Change order status and/or payment status.

        The status change is validated against the transition table, a
        payment status is reconciled into the order status, and the write
        only lands if the order is still in the status it was validated
        against.
        """
        status = parse_order_status(status)
        payment_status = parse_payment_status(payment_status)
        if status is None and payment_status is None and notes is None:
            raise ValidationError("Nothing to update: provide status, paymentStatus or notes")

        self._apply_status_update(order_id, status, payment_status, notes)
        order = self.find_one(order_id)

        logger.info(
            "order_status_updated",
            extra={
                "operation": "update_status",
                "order_id": str(order.id),
                "status": order.status.value,
                "payment_status": order.payment_status.value,
            },
        )
        return order

    def cancel_order(self, order_id, caller_user_id: str) -> Order:
        """Cancel an order on behalf of its owner."""
        self._apply_cancellation(order_id, caller_user_id)
        order = self.find_one(order_id)

        logger.info(
            "order_cancelled",
            extra=mask_pii_in_dict({
                "operation": "cancel_order",
                "order_id": str(order.id),
                "user_id": str(caller_user_id),
            }),
        )
        return order

    def remove(self, order_id) -> bool:
        """Administrative hard delete."""
        if not self.order_repo.delete(order_id):
            raise NotFoundError(f"Order with ID {order_id} not found")
        logger.warning("order_deleted", extra={"operation": "remove", "order_id": str(order_id)})
        return True

    def get_statistics(self) -> dict:
        return self.order_repo.statistics()

    def quote_cart(self, items: list[dict], coupon_discount=0) -> CartQuote:
        """Storefront cart totals, using the same pricing rules as orders."""
        return quote_cart(
            items,
            coupon_discount=coupon_discount or 0,
            tax_rate=getattr(settings, "ORDERS_DEFAULT_TAX_RATE", DEFAULT_TAX_RATE),
            free_shipping_threshold=getattr(
                settings, "ORDERS_FREE_SHIPPING_THRESHOLD", FREE_SHIPPING_THRESHOLD
            ),
            shipping_cost=getattr(
                settings, "ORDERS_STOREFRONT_SHIPPING_COST", STOREFRONT_SHIPPING_COST
            ),
        )

    @retry_on_conflict(max_attempts=_max_attempts)
    def _apply_status_update(self, order_id, status, payment_status, notes) -> None:
        with transaction.atomic(), order_lock(order_id):
            order = self.find_one(order_id)
            now = self.clock()

            changes = {}
            if status is not None:
                changes.update(transition_changes(order.status, status, now))
            if payment_status is not None:
                changes.update(
                    reconcile_payment_status(order, payment_status, status is not None, now)
                )
            if notes is not None:
                changes["notes"] = notes

            self._write(order, changes)

    @retry_on_conflict(max_attempts=_max_attempts)
    def _apply_cancellation(self, order_id, caller_user_id) -> None:
        with transaction.atomic(), order_lock(order_id):
            order = self.find_one(order_id)

            if not order.is_owned_by(caller_user_id):
                raise AuthorizationError("You can only cancel your own orders")
            if order.status not in CUSTOMER_CANCELLABLE:
                raise InvalidTransitionError(
                    order.status,
                    OrderStatus.CANCELLED,
                    f"Cannot cancel order with status {order.status.value}",
                )

            self._write(order, transition_changes(order.status, OrderStatus.CANCELLED, self.clock()))

    def _write(self, order: Order, changes: dict) -> None:
        if not self.order_repo.update_if_status(order.id, order.status, changes):
            raise StaleOrderStateError(order.id, order.status)

    def _paginate(self, filters: dict, page, limit) -> dict:
        page = _positive_int(page, "page")
        limit = min(
            _positive_int(limit, "limit"),
            int(getattr(settings, "ORDERS_MAX_PAGE_SIZE", 100)),
        )
        orders, total = self.order_repo.list(filters, offset=(page - 1) * limit, limit=limit)
        return {
            "data": orders,
            "meta": {
                "total": total,
                "page": page,
                "limit": limit,
                "total_pages": (total + limit - 1) // limit,
            },
        }

    def _build_item(self, item: Mapping) -> OrderItem:
        if not isinstance(item, Mapping):
            raise ValidationError("Each item must be an object")
        return OrderItem(
            product_id=_required_text(item, "product_id"),
            sku=_required_text(item, "sku"),
            product_name=_required_text(item, "product_name"),
            quantity=_positive_int(item.get("quantity"), "quantity"),
            unit_price=to_money(item.get("unit_price"), "unitPrice"),
        )
