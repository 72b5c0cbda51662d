"""Tests for business error helpers and the owner key."""

import pytest
from protean.exceptions import ValidationError

from groupbuy.shared.errors import ErrorCode, business_error, error_code, error_hints
from groupbuy.shared.owner import Owner


class TestBusinessError:
    def test_carries_code_and_detail(self):
        exc = business_error(ErrorCode.CART_EMPTY, "Cart is empty")
        assert isinstance(exc, ValidationError)
        assert error_code(exc) == "CART_EMPTY"
        assert exc.messages["detail"] == ["Cart is empty"]

    def test_hints_are_stringified_and_none_is_skipped(self):
        exc = business_error(ErrorCode.QUANTITY_NOT_MULTIPLE_OF_STEP, "bad", step="0.5", product_id=None)
        assert error_hints(exc) == {"step": "0.5"}

    def test_plain_validation_error_has_no_code(self):
        assert error_code(ValidationError({"quantity": ["bad"]})) is None


class TestOwner:
    def test_user_owner(self):
        owner = Owner(user_id="user-1")
        assert not owner.is_guest
        assert owner.as_filter() == {"user_id": "user-1"}

    def test_guest_owner(self):
        owner = Owner(session_id="sess-1")
        assert owner.is_guest
        assert owner.as_filter() == {"session_id": "sess-1"}

    def test_both_keys_are_rejected(self):
        with pytest.raises(ValidationError) as exc:
            Owner(user_id="user-1", session_id="sess-1")
        assert error_code(exc.value) == "OWNER_REQUIRED"

    def test_no_key_is_rejected(self):
        with pytest.raises(ValidationError):
            Owner()
