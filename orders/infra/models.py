from __future__ import annotations

from uuid import uuid4

from django.db import models

from orders.domain.order import OrderStatus, PaymentStatus


OPERATION_TYPE = (
    ("CREATE_ORDER", "Create order"),
    ("UPDATE_ORDER_STATUS", "Update order status"),
    ("CANCEL_ORDER", "Cancel order"),
    ("DELETE_ORDER", "Delete order"),
)


class TimeStampedModel(models.Model):
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class OrderORM(TimeStampedModel):

    STATUS_CHOICES = tuple((status.value, status.value.title()) for status in OrderStatus)
    PAYMENT_STATUS_CHOICES = tuple((status.value, status.value.title()) for status in PaymentStatus)

    id = models.UUIDField(primary_key=True, default=uuid4, editable=False)
    order_number = models.CharField(max_length=32, unique=True)
    user_id = models.CharField(max_length=64)

    subtotal = models.DecimalField(max_digits=12, decimal_places=2)
    tax_amount = models.DecimalField(max_digits=12, decimal_places=2)
    shipping_cost = models.DecimalField(max_digits=12, decimal_places=2)
    total = models.DecimalField(max_digits=12, decimal_places=2)

    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=OrderStatus.PENDING.value)
    payment_status = models.CharField(
        max_length=16,
        choices=PAYMENT_STATUS_CHOICES,
        default=PaymentStatus.UNPAID.value,
    )

    shipping_address = models.JSONField(null=True, blank=True)
    billing_address = models.JSONField(null=True, blank=True)
    payment_method = models.CharField(max_length=64, null=True, blank=True)
    notes = models.TextField(null=True, blank=True)

    paid_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "orders_order"
        indexes = [
            models.Index(fields=("user_id", "-created_at"), name="orders_user_created_idx"),
            models.Index(fields=("status",), name="orders_status_idx"),
            models.Index(fields=("payment_status",), name="orders_payment_status_idx"),
        ]

    def __str__(self):
        return self.order_number


class OrderItemORM(TimeStampedModel):
    id = models.UUIDField(primary_key=True, default=uuid4, editable=False)
    order = models.ForeignKey(
        OrderORM,
        on_delete=models.CASCADE,
        related_name="items",
    )
    product_id = models.CharField(max_length=64)
    sku = models.CharField(max_length=64)
    product_name = models.CharField(max_length=255)
    position = models.PositiveIntegerField(default=0)
    quantity = models.PositiveIntegerField()
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    total_price = models.DecimalField(max_digits=12, decimal_places=2)

    class Meta:
        db_table = "orders_order_item"
        indexes = [
            models.Index(fields=("order",), name="orders_item_order_idx"),
        ]

    def __str__(self):
        return f"{self.sku} x{self.quantity}"


class IdempotencyKey(TimeStampedModel):
    key = models.CharField(max_length=255)
    user_id = models.CharField(max_length=64)
    operation = models.CharField(max_length=32, choices=OPERATION_TYPE)
    request_hash = models.CharField(max_length=255)
    response_payload = models.JSONField()

    class Meta:
        db_table = "orders_idempotency_key"
        unique_together = [("key", "user_id", "operation")]
        indexes = [
            models.Index(fields=("request_hash",), name="orders_idem_hash_idx"),
        ]
