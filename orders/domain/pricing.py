"""
Order pricing: line totals, subtotal, tax, shipping and total.

All money is handled as ``Decimal`` and rounded half away from zero to
cents. The same helpers back the storefront cart quote, so what a customer
is shown and what an order persists are computed by one implementation.

Subtotal policy: the subtotal is the rounded sum of the raw
``unit_price * quantity`` values, not the sum of the rounded line totals.
Unit prices are limited to whole cents, which makes both sums equal for
every accepted input.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Sequence

from orders.domain.errors import ValidationError

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

DEFAULT_TAX_RATE = Decimal("0.20")
DEFAULT_SHIPPING_COST = ZERO
FREE_SHIPPING_THRESHOLD = Decimal("50.00")
STOREFRONT_SHIPPING_COST = Decimal("5.99")


def to_decimal(value: Any, field_name: str = "amount") -> Decimal:
    """Convert an incoming number to Decimal without going through binary floats."""
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool) or value is None:
        raise ValidationError(f"{field_name} must be a number")
    else:
        try:
            result = Decimal(str(value))
        except InvalidOperation:
            raise ValidationError(f"{field_name} must be a number") from None
    if not result.is_finite():
        raise ValidationError(f"{field_name} must be a finite number")
    return result


def quantize_money(value: Decimal) -> Decimal:
    """Round to cents, half away from zero."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def to_money(value: Any, field_name: str = "amount") -> Decimal:
    """Parse a non-negative amount expressed in whole cents."""
    amount = to_decimal(value, field_name)
    if amount < 0:
        raise ValidationError(f"{field_name} must be non-negative")
    if amount != quantize_money(amount):
        raise ValidationError(f"{field_name} must have at most 2 decimal places")
    return quantize_money(amount)


def to_tax_rate(value: Any) -> Decimal:
    rate = to_decimal(value, "taxRate")
    if rate < 0 or rate > 1:
        raise ValidationError("taxRate must be between 0 and 1")
    return rate


@dataclass(frozen=True)
class PricedLine:
    """A line item together with its rounded total."""
    item: Any
    unit_price: Decimal
    quantity: int
    total_price: Decimal


@dataclass(frozen=True)
class PricedOrder:
    """Monetary fields of an order."""
    subtotal: Decimal
    tax_amount: Decimal
    shipping_cost: Decimal
    total: Decimal
    lines: list[PricedLine] = field(default_factory=list)


@dataclass(frozen=True)
class CartQuote:
    """Storefront cart summary."""
    item_count: int
    subtotal: Decimal
    discount: Decimal
    shipping: Decimal
    tax: Decimal
    total: Decimal


def line_total(unit_price: Decimal, quantity: int) -> Decimal:
    return quantize_money(unit_price * quantity)


def _quantity(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValidationError("quantity must be a positive integer")
    return value


def _read(item: Any, name: str) -> Any:
    if isinstance(item, dict):
        return item.get(name)
    return getattr(item, name, None)


def calculate_order_totals(
    items: Sequence[Any],
    tax_rate: Any = None,
    shipping_cost: Any = None,
) -> PricedOrder:
    """
    Price an order.

    ``items`` are objects or mappings exposing ``unit_price`` and
    ``quantity``. ``None`` for ``tax_rate`` or ``shipping_cost`` selects the
    default; an explicit zero is honoured.
    """
    if not items:
        raise ValidationError("empty order")

    rate = DEFAULT_TAX_RATE if tax_rate is None else to_tax_rate(tax_rate)
    shipping = (
        DEFAULT_SHIPPING_COST
        if shipping_cost is None
        else to_money(shipping_cost, "shippingCost")
    )

    raw_subtotal = Decimal("0")
    lines = []
    for item in items:
        unit_price = to_money(_read(item, "unit_price"), "unitPrice")
        quantity = _quantity(_read(item, "quantity"))
        raw_subtotal += unit_price * quantity
        lines.append(PricedLine(item, unit_price, quantity, line_total(unit_price, quantity)))

    subtotal = quantize_money(raw_subtotal)
    tax_amount = quantize_money(subtotal * rate)
    total = quantize_money(subtotal + tax_amount + shipping)

    return PricedOrder(
        subtotal=subtotal,
        tax_amount=tax_amount,
        shipping_cost=shipping,
        total=total,
        lines=lines,
    )


def quote_cart(
    items: Sequence[Any],
    coupon_discount: Any = ZERO,
    tax_rate: Any = DEFAULT_TAX_RATE,
    free_shipping_threshold: Any = FREE_SHIPPING_THRESHOLD,
    shipping_cost: Any = STOREFRONT_SHIPPING_COST,
) -> CartQuote:
    """
    Quote a storefront cart.

    Tax applies to the discounted subtotal. Shipping is free from
    ``free_shipping_threshold`` upwards and for empty carts. The discount is
    capped at the subtotal.
    """
    rate = to_tax_rate(tax_rate)
    threshold = to_money(free_shipping_threshold, "freeShippingThreshold")
    flat_shipping = to_money(shipping_cost, "shippingCost")

    item_count = 0
    raw_subtotal = Decimal("0")
    for item in items:
        quantity = _quantity(_read(item, "quantity"))
        raw_subtotal += to_money(_read(item, "unit_price"), "unitPrice") * quantity
        item_count += quantity

    subtotal = quantize_money(raw_subtotal)
    discount = min(to_money(coupon_discount, "couponDiscount"), subtotal)

    if item_count == 0 or subtotal >= threshold:
        shipping = ZERO
    else:
        shipping = flat_shipping

    tax = quantize_money((subtotal - discount) * rate)
    total = quantize_money(subtotal - discount + shipping + tax)

    return CartQuote(
        item_count=item_count,
        subtotal=subtotal,
        discount=discount,
        shipping=shipping,
        tax=tax,
        total=total,
    )
