"""Line validation rules applied to an already-resolved pricing view."""

import pytest
from groupbuy.cart.validation import check_quantity, exact_subtotal, parse_quantity, price_line
from groupbuy.catalogue.pricing import PricingView, unavailable
from groupbuy.shared.errors import error_code, error_hints
from protean.exceptions import ValidationError


def _view(price=15000, step="0.5"):
    return PricingView(
        product_id="p-1",
        collection_id="col-1",
        is_available=True,
        price=price,
        step=step,
        display_stock_hint=None,
    )


class TestPriceLine:
    def test_subtotal_is_price_per_step(self):
        line = price_line(_view(), "1.5")
        assert line.subtotal == 45000
        assert line.unit_price == 15000
        assert line.step == "0.5"
        assert line.quantity == "1.5"

    def test_quantity_is_normalized(self):
        assert price_line(_view(), "2.50").quantity == "2.5"

    def test_unavailable_product(self):
        with pytest.raises(ValidationError) as exc:
            price_line(unavailable("p-1", "col-1"), "1")
        assert error_code(exc.value) == "PRODUCT_NOT_AVAILABLE"
        assert error_hints(exc.value)["collection_id"] == "col-1"

    def test_quantity_off_step_carries_step_hint(self):
        with pytest.raises(ValidationError) as exc:
            price_line(_view(), "1.3")
        assert error_code(exc.value) == "QUANTITY_NOT_MULTIPLE_OF_STEP"
        assert error_hints(exc.value)["step"] == "0.5"

    def test_zero_quantity_is_rejected(self):
        with pytest.raises(ValidationError) as exc:
            price_line(_view(), "0")
        assert error_code(exc.value) == "QUANTITY_NOT_MULTIPLE_OF_STEP"

    def test_negative_quantity_is_rejected(self):
        with pytest.raises(ValidationError):
            price_line(_view(), "-0.5")

    def test_fractional_subtotal_is_a_price_step_mismatch(self):
        with pytest.raises(ValidationError) as exc:
            price_line(_view(price=10001, step="2"), "2")
        assert error_code(exc.value) == "PRICE_STEP_MISMATCH"

    def test_free_product_prices_to_zero(self):
        assert price_line(_view(price=0), "1").subtotal == 0


class TestQuantityRules:
    def test_parse_quantity_rejects_text(self):
        with pytest.raises(ValidationError) as exc:
            parse_quantity("lots")
        assert error_code(exc.value) == "INVALID_QUANTITY"

    def test_check_quantity_accepts_multiples(self):
        assert str(check_quantity("0.75", "0.25")) == "0.75"

    def test_exact_subtotal(self):
        assert exact_subtotal(8000, "4", "2") == 16000
