"""
Tests for conflicting writers on the same order.

The stale-read repository hands the service an order status that another
writer has already moved on from, which is what a read that races a
committed write observes.
"""
from datetime import datetime, timezone

from django.test import TestCase, override_settings

from orders.domain.errors import ConcurrentUpdateError, InvalidTransitionError
from orders.domain.order import OrderStatus, PaymentStatus
from orders.infra.models import OrderORM
from orders.infra.repositories import OrderRepository
from orders.services import OrderService

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)

ITEMS = [{
    "product_id": "product-1",
    "sku": "SKU-1",
    "product_name": "Mug",
    "quantity": 1,
    "unit_price": "12.00",
}]


class StaleReadOrderRepository(OrderRepository):
    """Serves ``stale_statuses`` to the first reads, one per read."""

    def __init__(self, stale_statuses=()):
        self.stale_statuses = list(stale_statuses)
        self.writes = 0

    def get_by_id(self, order_id, user_id=None):
        order = super().get_by_id(order_id, user_id=user_id)
        if order is not None and self.stale_statuses:
            order.status = self.stale_statuses.pop(0)
        return order

    def update_if_status(self, order_id, expected_status, changes):
        self.writes += 1
        return super().update_if_status(order_id, expected_status, changes)


class ConcurrentStatusUpdateTest(TestCase):

    def create_order(self, committed_status):
        """An order whose stored status is what the competing writer left behind."""
        order = OrderService().create_order("user-a", ITEMS, {"city": "Paris"})
        OrderORM.objects.filter(id=order.id).update(status=committed_status.value)
        return order

    def service(self, *stale_statuses):
        repo = StaleReadOrderRepository(stale_statuses)
        return OrderService(order_repo=repo, clock=lambda: NOW), repo

    def test_cancel_is_revalidated_after_losing_to_processing(self):
        """Read CONFIRMED, another writer moved it to PROCESSING; CANCELLED is still legal."""
        order = self.create_order(OrderStatus.PROCESSING)
        service, repo = self.service(OrderStatus.CONFIRMED)

        updated = service.update_status(order.id, status=OrderStatus.CANCELLED)

        self.assertEqual(repo.writes, 2)
        self.assertEqual(updated.status, OrderStatus.CANCELLED)
        self.assertEqual(updated.cancelled_at, NOW)

    def test_loser_fails_against_post_write_state(self):
        """Read CONFIRMED, another writer cancelled; PROCESSING is then illegal."""
        order = self.create_order(OrderStatus.CANCELLED)
        service, repo = self.service(OrderStatus.CONFIRMED)

        with self.assertRaises(InvalidTransitionError) as context:
            service.update_status(order.id, status=OrderStatus.PROCESSING)

        self.assertEqual(context.exception.current, OrderStatus.CANCELLED)
        self.assertEqual(repo.writes, 1)
        self.assertEqual(OrderORM.objects.get(id=order.id).status, OrderStatus.CANCELLED.value)

    def test_payment_promotion_is_recomputed_after_conflict(self):
        """PAID no longer confirms once the order has been cancelled."""
        order = self.create_order(OrderStatus.CANCELLED)
        service, repo = self.service(OrderStatus.PENDING)

        updated = service.update_status(order.id, payment_status=PaymentStatus.PAID)

        self.assertEqual(repo.writes, 2)
        self.assertEqual(updated.status, OrderStatus.CANCELLED)
        self.assertEqual(updated.payment_status, PaymentStatus.PAID)
        self.assertEqual(updated.paid_at, NOW)

    def test_customer_cancel_loses_to_shipping(self):
        order = self.create_order(OrderStatus.SHIPPED)
        service, _ = self.service(OrderStatus.PROCESSING)

        with self.assertRaises(InvalidTransitionError):
            service.cancel_order(order.id, "user-a")
        stored = OrderORM.objects.get(id=order.id)
        self.assertEqual(stored.status, OrderStatus.SHIPPED.value)
        self.assertIsNone(stored.cancelled_at)

    @override_settings(ORDERS_STATUS_UPDATE_MAX_ATTEMPTS=2)
    def test_gives_up_after_max_attempts(self):
        """Every attempt reads a stale status; nothing is written."""
        order = self.create_order(OrderStatus.SHIPPED)
        service, repo = self.service(OrderStatus.CONFIRMED, OrderStatus.PROCESSING)

        with self.assertRaises(ConcurrentUpdateError) as context:
            service.update_status(order.id, notes="gift wrap")

        self.assertEqual(context.exception.code, "CONFLICT")
        self.assertEqual(repo.writes, 2)
        stored = OrderORM.objects.get(id=order.id)
        self.assertEqual(stored.status, OrderStatus.SHIPPED.value)
        self.assertIsNone(stored.notes)

    def test_conditional_write_only_matches_expected_status(self):
        order = self.create_order(OrderStatus.PROCESSING)
        repo = OrderRepository()

        self.assertFalse(repo.update_if_status(order.id, OrderStatus.CONFIRMED, {"notes": "x"}))
        self.assertTrue(repo.update_if_status(order.id, OrderStatus.PROCESSING, {"notes": "y"}))
        self.assertEqual(OrderORM.objects.get(id=order.id).notes, "y")

    def test_conditional_write_rejects_immutable_fields(self):
        order = self.create_order(OrderStatus.PENDING)
        with self.assertRaises(ValueError):
            OrderRepository().update_if_status(order.id, OrderStatus.PENDING, {"total": 0})
