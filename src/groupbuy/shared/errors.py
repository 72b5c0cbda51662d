"""Stable business error codes.

Business failures are raised as ``protean.exceptions.ValidationError`` whose
messages carry a ``code`` key with one of the values below, a human readable
``detail``, and optional correction hints (``step``, ``collection_id``...).
Callers map the code, never the wording.
"""

from enum import Enum

from protean.exceptions import ValidationError


class ErrorCode(Enum):
    PRODUCT_NOT_AVAILABLE = "PRODUCT_NOT_AVAILABLE"
    QUANTITY_NOT_MULTIPLE_OF_STEP = "QUANTITY_NOT_MULTIPLE_OF_STEP"
    INVALID_QUANTITY = "INVALID_QUANTITY"
    PRICE_STEP_MISMATCH = "PRICE_STEP_MISMATCH"
    COLLECTION_NOT_ACTIVE = "COLLECTION_NOT_ACTIVE"
    NO_ACTIVE_COLLECTION = "NO_ACTIVE_COLLECTION"
    COLLECTION_NOT_FOUND = "COLLECTION_NOT_FOUND"
    COLLECTION_SELECTION_REQUIRED = "COLLECTION_SELECTION_REQUIRED"
    CART_EMPTY = "CART_EMPTY"
    CART_ITEM_NOT_FOUND = "CART_ITEM_NOT_FOUND"
    ORDER_CANNOT_BE_EDITED = "ORDER_CANNOT_BE_EDITED"
    ORDER_CANNOT_BE_CANCELLED = "ORDER_CANNOT_BE_CANCELLED"
    CANNOT_DELETE_LAST_ITEM = "CANNOT_DELETE_LAST_ITEM"
    ORDER_NOT_FOUND = "ORDER_NOT_FOUND"
    ORDER_ITEM_NOT_FOUND = "ORDER_ITEM_NOT_FOUND"
    DUPLICATE_ORDER_ITEM = "DUPLICATE_ORDER_ITEM"
    INVALID_STATUS = "INVALID_STATUS"
    INVALID_STATUS_TRANSITION = "INVALID_STATUS_TRANSITION"
    INVALID_DELIVERY_TYPE = "INVALID_DELIVERY_TYPE"
    GUEST_CONTACT_REQUIRED = "GUEST_CONTACT_REQUIRED"
    OWNER_REQUIRED = "OWNER_REQUIRED"
    ORDER_SUBMIT_FAILED = "ORDER_SUBMIT_FAILED"


def business_error(code: ErrorCode, detail: str, **hints) -> ValidationError:
    """Build a ValidationError tagged with a machine-readable code."""
    messages = {"code": [code.value], "detail": [detail]}
    for key, value in hints.items():
        if value is not None:
            messages[key] = [str(value)]
    return ValidationError(messages)


def error_code(exc: ValidationError) -> str | None:
    """Return the business code carried by ``exc``, if any."""
    codes = (exc.messages or {}).get("code") if isinstance(exc.messages, dict) else None
    return codes[0] if codes else None


def error_hints(exc: ValidationError) -> dict:
    """Correction hints carried by ``exc`` (everything except code and detail)."""
    if not isinstance(exc.messages, dict):
        return {}
    return {key: values[0] for key, values in exc.messages.items() if key not in ("code", "detail") and values}
