"""Validation and pricing of a prospective cart or order line.

:func:`price_line` is the pure rule set (availability, step multiple, integral
subtotal) applied to an already-resolved :class:`PricingView`;
:func:`validate_and_price` resolves pricing fresh and applies it. Every write
of a cart price cache, every checkout line and every order edit goes through
here.
"""

from dataclasses import dataclass
from decimal import Decimal

from protean.exceptions import ValidationError

from groupbuy.catalogue.pricing import PricingView, resolve_pricing
from groupbuy.shared.errors import ErrorCode, business_error
from groupbuy.shared.money import format_price, is_whole, line_subtotal, to_kopecks
from groupbuy.shared.quantity import ZERO, format_decimal, is_multiple_of, to_decimal


@dataclass(frozen=True)
class PricedLine:
    product_id: str
    collection_id: str | None
    quantity: str
    step: str
    unit_price: int
    subtotal: int
    pricing: PricingView


def parse_quantity(quantity) -> Decimal:
    try:
        return to_decimal(quantity)
    except ValidationError:
        raise business_error(ErrorCode.INVALID_QUANTITY, f"Invalid quantity: {quantity!r}") from None


def check_quantity(quantity, step, product_id=None) -> Decimal:
    """Positive multiple of ``step``, or QUANTITY_NOT_MULTIPLE_OF_STEP carrying the step."""
    quantity_dec = parse_quantity(quantity)
    if quantity_dec <= ZERO or not is_multiple_of(quantity_dec, step):
        raise business_error(
            ErrorCode.QUANTITY_NOT_MULTIPLE_OF_STEP,
            f"Quantity must be a positive multiple of {format_decimal(step)}",
            step=format_decimal(step),
            product_id=product_id,
        )
    return quantity_dec


def exact_subtotal(unit_price, quantity, step, product_id=None) -> int:
    """``unit_price * quantity / step`` in kopecks, or PRICE_STEP_MISMATCH when fractional."""
    amount = line_subtotal(unit_price, quantity, step)
    if not is_whole(amount):
        raise business_error(
            ErrorCode.PRICE_STEP_MISMATCH,
            f"Price {format_price(unit_price)} cannot be split evenly by step {format_decimal(step)}",
            step=format_decimal(step),
            product_id=product_id,
        )
    return to_kopecks(amount)


def price_line(pricing: PricingView, quantity) -> PricedLine:
    if not pricing.is_available:
        raise business_error(
            ErrorCode.PRODUCT_NOT_AVAILABLE,
            "Product is not available in this collection",
            product_id=pricing.product_id,
            collection_id=pricing.collection_id,
        )

    quantity_dec = check_quantity(quantity, pricing.step, product_id=pricing.product_id)
    subtotal = exact_subtotal(pricing.price, quantity_dec, pricing.step, product_id=pricing.product_id)

    return PricedLine(
        product_id=pricing.product_id,
        collection_id=pricing.collection_id,
        quantity=format_decimal(quantity_dec),
        step=pricing.step,
        unit_price=pricing.price,
        subtotal=subtotal,
        pricing=pricing,
    )


def validate_and_price(product_id, collection_id, quantity) -> PricedLine:
    return price_line(resolve_pricing(product_id, collection_id), quantity)
