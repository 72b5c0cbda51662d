"""Exact decimal arithmetic for fractional quantities and steps.

Quantities and steps live at rest as decimal strings ("1.5", "0.25") and are
converted through this module only, so every component agrees on parsing,
comparison and formatting. Binary floats never enter these calculations.
"""

from decimal import Decimal, InvalidOperation

from protean.exceptions import ValidationError

ZERO = Decimal("0")


def to_decimal(value, field="quantity") -> Decimal:
    """Parse a decimal string (or int/Decimal) into a finite ``Decimal``."""
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, float):
        # repr() keeps the shortest round-tripping text ("0.1", not 0.1000000000000000055...)
        result = _parse(repr(value), field)
    else:
        result = _parse(str(value).strip(), field)

    if not result.is_finite():
        raise ValidationError({field: [f"Not a finite decimal: {value!r}"]})
    return result


def _parse(text, field):
    try:
        return Decimal(text)
    except InvalidOperation:
        raise ValidationError({field: [f"Not a decimal value: {text!r}"]}) from None


def format_decimal(value) -> str:
    """Render a decimal in plain notation without trailing zeros ("2.50" -> "2.5", "1E+2" -> "100")."""
    dec = to_decimal(value)
    if dec == ZERO:
        return "0"
    normalized = dec.normalize()
    return format(normalized, "f")


def is_positive(value) -> bool:
    return to_decimal(value) > ZERO


def is_multiple_of(value, step) -> bool:
    """True when ``value`` is an exact whole multiple of ``step``."""
    step_dec = to_decimal(step, field="step")
    if step_dec <= ZERO:
        return False
    return to_decimal(value) % step_dec == ZERO


def steps_in(value, step) -> Decimal:
    """Number of steps contained in ``value`` (exact, may be fractional)."""
    return to_decimal(value) / to_decimal(step, field="step")


def round_down_to_step(value, step) -> Decimal:
    """Largest multiple of ``step`` not exceeding ``value``."""
    dec = to_decimal(value)
    step_dec = to_decimal(step, field="step")
    return dec - (dec % step_dec)


def add(left, right) -> str:
    return format_decimal(to_decimal(left) + to_decimal(right))


def subtract(left, right) -> str:
    return format_decimal(to_decimal(left) - to_decimal(right))
