"""Money helpers — all amounts are integer kopecks."""

from decimal import Decimal

from groupbuy.shared.quantity import ZERO, steps_in, to_decimal


def line_subtotal(unit_price: int, quantity, step) -> Decimal:
    """Exact ``unit_price * (quantity / step)``; may be fractional if price and step disagree."""
    return Decimal(unit_price) * steps_in(quantity, step)


def is_whole(amount: Decimal) -> bool:
    return amount % 1 == ZERO


def to_kopecks(amount: Decimal) -> int:
    """Convert an exact whole decimal amount to int kopecks."""
    if not is_whole(amount):
        raise ValueError(f"Amount {amount} has fractional kopecks")
    return int(amount)


def format_price(kopecks: int) -> str:
    """Render kopecks as rubles for messages: 45000 -> "450 ₽", 12350 -> "123.5 ₽"."""
    rubles = to_decimal(kopecks) / 100
    text = f"{rubles:.2f}"
    if text.endswith(".00"):
        text = text[:-3]
    elif text.endswith("0"):
        text = text[:-1]
    return f"{text} ₽"
