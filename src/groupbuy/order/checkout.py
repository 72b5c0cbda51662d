"""Checkout orchestration above single-order placement.

``place_order`` submits one collection and, once the order is committed,
enqueues the admin notification. ``submit_checkout`` spans several
collections: selection problems reject the whole request, after which every
collection is placed independently and its failure, if any, is reported next
to the others' successes.
"""

from dataclasses import dataclass, field

import structlog
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from groupbuy.catalogue.selection import active_collections, resolve_collection_selection
from groupbuy.notifications import notify_safely
from groupbuy.notifications.port import NotificationType
from groupbuy.order.creation import PlaceOrder
from groupbuy.order.order import Order
from groupbuy.shared.errors import ErrorCode, error_code, error_hints

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class PlacedOrder:
    collection_id: str
    order_id: int
    order_number: str
    total: int


@dataclass(frozen=True)
class CheckoutFailure:
    collection_id: str
    code: str
    detail: str
    hints: dict = field(default_factory=dict)


@dataclass
class CheckoutResult:
    orders: list = field(default_factory=list)
    failures: list = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return bool(self.orders) and not self.failures


def place_order(
    owner,
    collection_id,
    delivery_type=None,
    delivery_address=None,
    payment_method=None,
    guest_contact=None,
) -> int:
    """Place one order and notify admins. Returns the order id."""
    guest_contact = guest_contact or {}
    order_id = current_domain.process(
        PlaceOrder(
            user_id=owner.user_id,
            session_id=owner.session_id,
            collection_id=collection_id,
            delivery_type=delivery_type or "PICKUP",
            delivery_address=delivery_address,
            payment_method=payment_method,
            guest_name=guest_contact.get("name"),
            guest_phone=guest_contact.get("phone"),
            guest_email=guest_contact.get("email"),
            guest_telegram=guest_contact.get("telegram"),
            guest_contact_method=guest_contact.get("contact_method"),
            guest_contact_info=guest_contact.get("contact_info"),
        ),
        asynchronous=False,
    )

    notify_safely(NotificationType.ORDER_NOTIFICATION.value, {"id": order_id})
    return order_id


def _targets(collection_ids):
    active = active_collections()
    if not collection_ids:
        return [resolve_collection_selection(None, active, require_explicit=True)]

    seen = set()
    chosen = []
    for collection_id in collection_ids:
        collection = resolve_collection_selection(collection_id, active)
        if str(collection.id) not in seen:
            seen.add(str(collection.id))
            chosen.append(collection)
    return chosen


def submit_checkout(owner, collection_ids=None, **delivery) -> CheckoutResult:
    """Place one order per target collection.

    ``delivery`` is passed through to :func:`place_order` (delivery type and
    address, payment method, guest contact).
    """
    result = CheckoutResult()

    for collection in _targets(collection_ids):
        collection_id = str(collection.id)
        try:
            order_id = place_order(owner, collection_id, **delivery)
        except ValidationError as exc:
            code = error_code(exc) or ErrorCode.ORDER_SUBMIT_FAILED.value
            detail = (exc.messages.get("detail") or [code])[0] if isinstance(exc.messages, dict) else code
            result.failures.append(
                CheckoutFailure(collection_id=collection_id, code=code, detail=detail, hints=error_hints(exc))
            )
            logger.info("checkout_collection_rejected", collection_id=collection_id, code=code)
            continue
        except Exception:
            logger.exception("checkout_collection_failed", collection_id=collection_id)
            result.failures.append(
                CheckoutFailure(
                    collection_id=collection_id,
                    code=ErrorCode.ORDER_SUBMIT_FAILED.value,
                    detail="Order could not be submitted",
                )
            )
            continue

        order = current_domain.repository_for(Order).get(order_id)
        result.orders.append(
            PlacedOrder(
                collection_id=collection_id,
                order_id=order.id,
                order_number=order.order_number,
                total=order.total,
            )
        )

    logger.info(
        "checkout_submitted",
        placed=len(result.orders),
        failed=len(result.failures),
    )
    return result
