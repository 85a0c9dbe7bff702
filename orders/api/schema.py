"""
GraphQL schema definition using Ariadne.
"""
from ariadne import (
    EnumType,
    MutationType,
    QueryType,
    ScalarType,
    load_schema_from_path,
    make_executable_schema,
)
from decimal import Decimal
from uuid import UUID
from datetime import datetime
from pathlib import Path

from orders.api.identity import require_admin, require_user
from orders.domain.order import OrderStatus, PaymentStatus
from orders.domain.pricing import to_decimal

# Load schema from .graphql files
SCHEMAS_DIR = Path(__file__).parent / "schemas"
type_defs = "\n".join([
    load_schema_from_path(SCHEMAS_DIR / "common.graphql"),
    load_schema_from_path(SCHEMAS_DIR / "query.graphql"),
    load_schema_from_path(SCHEMAS_DIR / "mutation.graphql"),
])

query = QueryType()
mutation = MutationType()


def _service(info):
    return info.context["service"]


@query.field("order")
def resolve_order(_, info, id):
    """Resolve order query; customers only see their own orders."""
    caller = require_user(info)
    return _service(info).find_one(id, owner_id=caller.owner_scope)


@query.field("orderByNumber")
def resolve_order_by_number(_, info, order_number):
    caller = require_user(info)
    return _service(info).find_by_order_number(order_number, owner_id=caller.owner_scope)


@query.field("orders")
def resolve_orders(_, info, filter=None, page=1, limit=10):
    """Resolve admin order listing with filters and pagination."""
    require_admin(info)
    return _service(info).find_all(filter or {}, page=page, limit=limit)


@query.field("myOrders")
def resolve_my_orders(_, info, page=1, limit=10):
    caller = require_user(info)
    return _service(info).find_user_orders(caller.user_id, page=page, limit=limit)


@query.field("orderStatistics")
def resolve_order_statistics(_, info):
    require_admin(info)
    return _service(info).get_statistics()


@query.field("cartQuote")
def resolve_cart_quote(_, info, input: dict):
    """Storefront cart totals; available to guests."""
    return _service(info).quote_cart(
        input["items"],
        coupon_discount=input.get("coupon_discount"),
    )


@mutation.field("createOrder")
def resolve_create_order(_, info, input: dict):
    """Resolve create order mutation."""
    caller = require_user(info)
    return _service(info).create_order(
        owner_id=caller.user_id,
        items=input["items"],
        shipping_address=input["shipping_address"],
        billing_address=input.get("billing_address"),
        payment_method=input.get("payment_method"),
        notes=input.get("notes"),
        tax_rate=input.get("tax_rate"),
        shipping_cost=input.get("shipping_cost"),
    )


@mutation.field("updateOrderStatus")
def resolve_update_order_status(_, info, id, input: dict):
    """Admin status change; payment callbacks are relayed through here too."""
    require_admin(info)
    return _service(info).update_status(
        id,
        status=input.get("status"),
        payment_status=input.get("payment_status"),
        notes=input.get("notes"),
    )


@mutation.field("cancelOrder")
def resolve_cancel_order(_, info, id):
    caller = require_user(info)
    return _service(info).cancel_order(id, caller.user_id)


@mutation.field("deleteOrder")
def resolve_delete_order(_, info, id):
    require_admin(info)
    _service(info).remove(id)
    return {"id": id, "deleted": True}


order_status_enum = EnumType("OrderStatus", OrderStatus)
payment_status_enum = EnumType("PaymentStatus", PaymentStatus)

# Define custom scalars
decimal_scalar = ScalarType("Decimal")
uuid_scalar = ScalarType("UUID")
datetime_scalar = ScalarType("DateTime")


@decimal_scalar.serializer
def serialize_decimal(value):
    """Serialize Decimal to string with two decimal places."""
    if isinstance(value, Decimal):
        return f"{value:.2f}"
    return str(value)


@decimal_scalar.value_parser
def parse_decimal_value(value):
    """Parse Decimal from string or number."""
    if isinstance(value, bool):
        raise ValueError(f"Expected decimal, got boolean: {value}")
    return to_decimal(value, "Decimal")


@uuid_scalar.serializer
def serialize_uuid(value):
    """Serialize UUID to string."""
    return str(value)


@uuid_scalar.value_parser
def parse_uuid_value(value):
    """Parse UUID from string."""
    if isinstance(value, UUID):
        return value
    return UUID(str(value))


@datetime_scalar.serializer
def serialize_datetime(value):
    """Serialize DateTime to ISO format string."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


@datetime_scalar.value_parser
def parse_datetime_value(value):
    """Parse DateTime from string."""
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace('Z', '+00:00'))


# Create executable schema
schema = make_executable_schema(
    type_defs,
    query,
    mutation,
    order_status_enum,
    payment_status_enum,
    datetime_scalar,
    decimal_scalar,
    uuid_scalar,
    convert_names_case=True,
)
