"""Tests for exact decimal quantity helpers."""

from decimal import Decimal

import pytest
from protean.exceptions import ValidationError

from groupbuy.shared.quantity import (
    add,
    format_decimal,
    is_multiple_of,
    is_positive,
    round_down_to_step,
    steps_in,
    subtract,
    to_decimal,
)


class TestParsing:
    def test_parses_decimal_strings(self):
        assert to_decimal("1.5") == Decimal("1.5")

    def test_parses_integers(self):
        assert to_decimal(3) == Decimal("3")

    def test_float_uses_shortest_representation(self):
        assert to_decimal(0.1) == Decimal("0.1")

    def test_strips_whitespace(self):
        assert to_decimal(" 2.25 ") == Decimal("2.25")

    def test_rejects_garbage(self):
        with pytest.raises(ValidationError) as exc:
            to_decimal("one and a half")
        assert "quantity" in exc.value.messages

    def test_rejects_non_finite(self):
        with pytest.raises(ValidationError):
            to_decimal("NaN")

    def test_error_is_reported_under_given_field(self):
        with pytest.raises(ValidationError) as exc:
            to_decimal("abc", field="step")
        assert "step" in exc.value.messages


class TestFormatting:
    def test_drops_trailing_zeros(self):
        assert format_decimal("2.50") == "2.5"

    def test_plain_notation_for_exponents(self):
        assert format_decimal(Decimal("1E+2")) == "100"

    def test_zero(self):
        assert format_decimal("0.000") == "0"


class TestStepArithmetic:
    def test_multiple_of_fractional_step(self):
        assert is_multiple_of("1.5", "0.5")

    def test_not_multiple(self):
        assert not is_multiple_of("1.3", "0.5")

    def test_binary_float_pitfall_is_avoided(self):
        # 0.3 / 0.1 is not exactly 3 in binary floating point
        assert is_multiple_of("0.3", "0.1")

    def test_zero_step_is_never_satisfied(self):
        assert not is_multiple_of("1", "0")

    def test_steps_in(self):
        assert steps_in("1.5", "0.5") == Decimal("3")

    def test_round_down_to_step(self):
        assert round_down_to_step("1.3", "0.5") == Decimal("1.0")

    def test_round_down_below_one_step_is_zero(self):
        assert round_down_to_step("0.2", "0.5") == Decimal("0")

    def test_add_and_subtract_return_strings(self):
        assert add("1.5", "0.25") == "1.75"
        assert subtract("3", "0.5") == "2.5"

    def test_is_positive(self):
        assert is_positive("0.001")
        assert not is_positive("0")
