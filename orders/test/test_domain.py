"""
Unit tests for domain models, status transitions and payment reconciliation.
"""
from datetime import datetime, timezone
from decimal import Decimal

from django.test import SimpleTestCase

from orders.domain.errors import InvalidTransitionError, ValidationError
from orders.domain.order import (
    Order,
    OrderItem,
    OrderStatus,
    PaymentStatus,
    parse_order_status,
    parse_payment_status,
)
from orders.domain.payment import reconcile_payment_status
from orders.domain.status_machine import (
    TRANSITIONS,
    allowed_transitions,
    is_terminal,
    transition_changes,
    validate_transition,
)

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def make_order(status=OrderStatus.PENDING, payment_status=PaymentStatus.UNPAID, **kwargs):
    return Order(
        user_id="user-a",
        items=[OrderItem("p-1", "SKU-1", "Mug", 2, Decimal("100.00"), Decimal("200.00"))],
        subtotal=Decimal("200.00"),
        tax_amount=Decimal("40.00"),
        shipping_cost=Decimal("0.00"),
        total=Decimal("240.00"),
        status=status,
        payment_status=payment_status,
        **kwargs,
    )


class OrderItemTest(SimpleTestCase):
    """Tests for OrderItem value object."""

    def test_create_order_item(self):
        """Test creating order item with valid data."""
        item = OrderItem("p-1", "SKU-1", "Mug", 2, Decimal("100.00"))
        self.assertEqual(item.quantity, 2)
        self.assertEqual(item.unit_price, Decimal("100.00"))
        self.assertIsNone(item.total_price)

    def test_order_item_non_positive_quantity_fails(self):
        """Test that zero or negative quantity raises error."""
        for quantity in (0, -1):
            with self.subTest(quantity=quantity):
                with self.assertRaises(ValidationError):
                    OrderItem("p-1", "SKU-1", "Mug", quantity, Decimal("1.00"))

    def test_order_item_negative_price_fails(self):
        """Test that negative price raises error."""
        with self.assertRaises(ValidationError):
            OrderItem("p-1", "SKU-1", "Mug", 1, Decimal("-100.00"))


class OrderTest(SimpleTestCase):

    def test_new_order_defaults(self):
        order = make_order()
        self.assertEqual(order.status, OrderStatus.PENDING)
        self.assertEqual(order.payment_status, PaymentStatus.UNPAID)
        self.assertIsNotNone(order.id)

    def test_items_are_a_copy(self):
        order = make_order()
        order.items.append("extra")
        self.assertEqual(len(order.items), 1)

    def test_ownership(self):
        order = make_order()
        self.assertTrue(order.is_owned_by("user-a"))
        self.assertFalse(order.is_owned_by("user-b"))
        self.assertFalse(order.is_owned_by(None))


class StatusParsingTest(SimpleTestCase):

    def test_parse_known_values(self):
        self.assertEqual(parse_order_status("shipped"), OrderStatus.SHIPPED)
        self.assertEqual(parse_payment_status("PAID"), PaymentStatus.PAID)
        self.assertIsNone(parse_order_status(None))

    def test_unknown_values_are_validation_errors(self):
        with self.assertRaises(ValidationError):
            parse_order_status("LOST")
        with self.assertRaises(ValidationError):
            parse_payment_status("MAYBE")


class StatusMachineTest(SimpleTestCase):
    """Tests for the transition table."""

    def test_table(self):
        self.assertEqual(
            allowed_transitions(OrderStatus.PENDING),
            {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
        )
        self.assertEqual(
            allowed_transitions(OrderStatus.CONFIRMED),
            {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
        )
        self.assertEqual(
            allowed_transitions(OrderStatus.PROCESSING),
            {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
        )
        self.assertEqual(allowed_transitions(OrderStatus.SHIPPED), {OrderStatus.DELIVERED})
        self.assertEqual(allowed_transitions(OrderStatus.DELIVERED), {OrderStatus.REFUNDED})
        self.assertEqual(set(TRANSITIONS), set(OrderStatus))

    def test_terminal_states(self):
        self.assertTrue(is_terminal(OrderStatus.CANCELLED))
        self.assertTrue(is_terminal(OrderStatus.REFUNDED))
        self.assertFalse(is_terminal(OrderStatus.DELIVERED))

    def test_every_pair_outside_the_table_fails(self):
        for current in OrderStatus:
            for requested in OrderStatus:
                with self.subTest(current=current, requested=requested):
                    if requested in TRANSITIONS[current]:
                        validate_transition(current, requested)
                    else:
                        with self.assertRaises(InvalidTransitionError) as context:
                            validate_transition(current, requested)
                        self.assertEqual(context.exception.current, current)
                        self.assertEqual(context.exception.requested, requested)

    def test_cancel_sets_cancelled_at(self):
        changes = transition_changes(OrderStatus.PENDING, OrderStatus.CANCELLED, NOW)
        self.assertEqual(changes, {"status": OrderStatus.CANCELLED, "cancelled_at": NOW})

    def test_deliver_sets_completed_at(self):
        changes = transition_changes(OrderStatus.SHIPPED, OrderStatus.DELIVERED, NOW)
        self.assertEqual(changes, {"status": OrderStatus.DELIVERED, "completed_at": NOW})

    def test_other_transitions_have_no_timestamp(self):
        changes = transition_changes(OrderStatus.PROCESSING, OrderStatus.SHIPPED, NOW)
        self.assertEqual(changes, {"status": OrderStatus.SHIPPED})

    def test_invalid_transition_message(self):
        with self.assertRaises(InvalidTransitionError) as context:
            transition_changes(OrderStatus.PENDING, OrderStatus.SHIPPED, NOW)
        self.assertIn("PENDING", str(context.exception))
        self.assertIn("SHIPPED", str(context.exception))
        self.assertEqual(context.exception.code, "INVALID_STATE")


class PaymentReconcilerTest(SimpleTestCase):
    """Tests for folding payment status into order status."""

    def test_paid_confirms_pending_order(self):
        changes = reconcile_payment_status(make_order(), PaymentStatus.PAID, False, NOW)
        self.assertEqual(changes, {
            "payment_status": PaymentStatus.PAID,
            "paid_at": NOW,
            "status": OrderStatus.CONFIRMED,
        })

    def test_paid_with_explicit_status_does_not_promote(self):
        changes = reconcile_payment_status(make_order(), PaymentStatus.PAID, True, NOW)
        self.assertNotIn("status", changes)
        self.assertEqual(changes["paid_at"], NOW)

    def test_paid_after_order_moved_on_keeps_status(self):
        for status in (OrderStatus.PROCESSING, OrderStatus.SHIPPED, OrderStatus.CANCELLED):
            with self.subTest(status=status):
                changes = reconcile_payment_status(make_order(status), PaymentStatus.PAID, False, NOW)
                self.assertNotIn("status", changes)
                self.assertEqual(changes["payment_status"], PaymentStatus.PAID)

    def test_paid_at_is_set_once(self):
        earlier = datetime(2026, 2, 1, tzinfo=timezone.utc)
        order = make_order(OrderStatus.CONFIRMED, PaymentStatus.PAID, paid_at=earlier)
        changes = reconcile_payment_status(order, PaymentStatus.PAID, False, NOW)
        self.assertNotIn("paid_at", changes)

    def test_other_payment_statuses_only_persist_the_field(self):
        for payment_status in (PaymentStatus.FAILED, PaymentStatus.REFUNDED, PaymentStatus.UNPAID):
            with self.subTest(payment_status=payment_status):
                changes = reconcile_payment_status(make_order(), payment_status, False, NOW)
                self.assertEqual(changes, {"payment_status": payment_status})
