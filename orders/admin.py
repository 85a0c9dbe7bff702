from django.contrib import admin

from orders.infra.models import IdempotencyKey, OrderItemORM, OrderORM


class OrderItemInline(admin.TabularInline):
    model = OrderItemORM
    extra = 0
    can_delete = False
    readonly_fields = ("product_id", "sku", "product_name", "quantity", "unit_price", "total_price")


@admin.register(OrderORM)
class OrderAdmin(admin.ModelAdmin):
    list_display = ("order_number", "user_id", "status", "payment_status", "total", "created_at")
    list_filter = ("status", "payment_status", "created_at")
    search_fields = ("order_number", "user_id")
    inlines = (OrderItemInline,)
    # Status and money change only through the order service.
    readonly_fields = (
        "id", "order_number", "user_id", "status", "payment_status",
        "subtotal", "tax_amount", "shipping_cost", "total",
        "paid_at", "cancelled_at", "completed_at",
    )


@admin.register(IdempotencyKey)
class IdempotencyAdmin(admin.ModelAdmin):
    list_display = ("key", "user_id", "operation", "created_at")
    list_filter = ("operation", "created_at")
    search_fields = ("key", "user_id")
    readonly_fields = ("key", "user_id", "operation", "request_hash", "response_payload")
