"""Automatic completion of orders in closed collections.

A SUBMITTED order is completed once its collection has been CLOSED for at
least the grace period (3 days by default). Each order is completed in its
own unit of work; one failure does not stop the others.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

import structlog
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from groupbuy.catalogue.collection import Collection
from groupbuy.order.cancellation import ChangeOrderStatus
from groupbuy.order.order import Order, OrderStatus

logger = structlog.get_logger(__name__)

DEFAULT_GRACE = timedelta(days=3)


@dataclass
class AutoCompletionResult:
    completed: int = 0
    errors: list = field(default_factory=list)


def _aware(moment):
    return moment.replace(tzinfo=UTC) if moment.tzinfo is None else moment


def _closed_collection_ends():
    """Map of CLOSED collection id -> end timestamp."""
    ends = {}
    for collection in current_domain.repository_for(Collection).closed():
        if collection.ends_at is not None:
            ends[str(collection.id)] = _aware(collection.ends_at)
    return ends


def _submitted_in_closed():
    ends = _closed_collection_ends()
    orders = current_domain.repository_for(Order).with_status(OrderStatus.SUBMITTED)
    return [(order, ends[str(order.collection_id)]) for order in orders if str(order.collection_id) in ends]


def orders_due_for_completion(now=None, grace=DEFAULT_GRACE) -> list:
    """SUBMITTED orders whose collection closed at least ``grace`` ago, oldest first."""
    cutoff = _aware(now or datetime.now(UTC)) - grace
    due = [order for order, ended in _submitted_in_closed() if ended <= cutoff]
    return sorted(due, key=lambda o: (o.submitted_at is None, o.submitted_at and _aware(o.submitted_at), o.id))


def auto_complete_orders(now=None, grace=DEFAULT_GRACE) -> AutoCompletionResult:
    result = AutoCompletionResult()
    due = orders_due_for_completion(now, grace)
    logger.info("auto_completion_started", candidates=len(due))

    for order in due:
        try:
            current_domain.process(
                ChangeOrderStatus(order_id=order.id, status=OrderStatus.COMPLETED.value),
                asynchronous=False,
            )
        except ValidationError as exc:
            result.errors.append(f"Failed to auto-complete order {order.id}: {exc.messages}")
            logger.warning("auto_completion_failed", order_id=order.id, error=exc.messages)
            continue

        result.completed += 1
        logger.info("order_auto_completed", order_id=order.id, order_number=order.order_number)

    return result


def auto_completion_stats(now=None, grace=DEFAULT_GRACE) -> dict:
    """Counts of SUBMITTED orders in closed collections: still in grace vs overdue."""
    cutoff = _aware(now or datetime.now(UTC)) - grace
    pending = overdue = 0
    for _, ended in _submitted_in_closed():
        if ended <= cutoff:
            overdue += 1
        else:
            pending += 1
    return {"pending": pending, "overdue": overdue, "grace_days": grace.days}
