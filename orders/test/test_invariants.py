"""
Tests for order invariants enforced end to end through the service.
"""
from decimal import Decimal

from django.test import TestCase

from orders.domain.errors import InvalidTransitionError
from orders.domain.order import OrderStatus, PaymentStatus
from orders.domain.status_machine import TRANSITIONS
from orders.infra.models import OrderORM
from orders.services import OrderService

ITEMS = [
    {"product_id": "p-1", "sku": "SKU-1", "product_name": "Mug", "quantity": 3, "unit_price": "19.99"},
    {"product_id": "p-2", "sku": "SKU-2", "product_name": "Tea", "quantity": 1, "unit_price": "4.35"},
]


class OrderInvariantTest(TestCase):
    """Tests for status and money invariants."""

    def setUp(self):
        self.service = OrderService()

    def order_in(self, status):
        order = self.service.create_order("user-a", ITEMS, {"city": "Paris"})
        OrderORM.objects.filter(id=order.id).update(status=status.value)
        return order

    def test_only_table_transitions_are_persisted(self):
        """Every (current, requested) pair either lands or leaves the order untouched."""
        for current in OrderStatus:
            for requested in OrderStatus:
                with self.subTest(current=current, requested=requested):
                    order = self.order_in(current)
                    if requested in TRANSITIONS[current]:
                        updated = self.service.update_status(order.id, status=requested)
                        self.assertEqual(updated.status, requested)
                    else:
                        with self.assertRaises(InvalidTransitionError):
                            self.service.update_status(order.id, status=requested)
                        self.assertEqual(OrderORM.objects.get(id=order.id).status, current.value)

    def test_terminal_states_reject_everything(self):
        for terminal in (OrderStatus.CANCELLED, OrderStatus.REFUNDED):
            order = self.order_in(terminal)
            for requested in OrderStatus:
                with self.subTest(terminal=terminal, requested=requested):
                    with self.assertRaises(InvalidTransitionError):
                        self.service.update_status(order.id, status=requested)

    def test_totals_are_consistent_after_persistence(self):
        order = self.service.create_order("user-a", ITEMS, {"city": "Paris"}, shipping_cost="3.50")
        stored = OrderORM.objects.get(id=order.id)

        self.assertEqual(stored.subtotal, Decimal("64.32"))
        self.assertEqual(stored.total, stored.subtotal + stored.tax_amount + stored.shipping_cost)
        self.assertEqual(sum(item.total_price for item in stored.items.all()), stored.subtotal)

    def test_money_never_changes_after_creation(self):
        order = self.order_in(OrderStatus.PENDING)
        self.service.update_status(order.id, payment_status=PaymentStatus.PAID)
        self.service.update_status(order.id, status=OrderStatus.PROCESSING)
        self.service.update_status(order.id, status=OrderStatus.SHIPPED)
        updated = self.service.update_status(order.id, status=OrderStatus.DELIVERED)

        self.assertEqual(updated.subtotal, order.subtotal)
        self.assertEqual(updated.tax_amount, order.tax_amount)
        self.assertEqual(updated.total, order.total)
        self.assertEqual([i.total_price for i in updated.items], [i.total_price for i in order.items])

    def test_paid_at_is_set_once(self):
        order = self.order_in(OrderStatus.PENDING)
        first = self.service.update_status(order.id, payment_status=PaymentStatus.PAID)
        again = self.service.update_status(order.id, payment_status=PaymentStatus.PAID)
        self.assertEqual(again.paid_at, first.paid_at)
        self.assertEqual(again.status, OrderStatus.CONFIRMED)
