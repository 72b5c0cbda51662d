"""Order cancellation and status changes — commands and handler.

Every cancellation, full or partial, puts the cancelled quantities back into
stock in the same unit of work. Other status changes never touch stock.
"""

import json

import structlog
from protean import handle
from protean.fields import Integer, String, Text
from protean.utils.globals import current_domain

from groupbuy.domain import groupbuy
from groupbuy.inventory import ledger
from groupbuy.order.order import Order, OrderStatus
from groupbuy.shared.errors import ErrorCode, business_error

logger = structlog.get_logger(__name__)


@groupbuy.command(part_of="Order")
class CancelOrder:
    order_id = Integer(required=True)


@groupbuy.command(part_of="Order")
class PartialCancelOrder:
    order_id = Integer(required=True)
    items = Text(required=True)  # JSON: list of {product_id, quantity}


@groupbuy.command(part_of="Order")
class ChangeOrderStatus:
    order_id = Integer(required=True)
    status = String(required=True, max_length=20)


def _restock(returned):
    for product_id, quantity in returned:
        ledger.increase(product_id, quantity)


@groupbuy.command_handler(part_of=Order)
class CancelOrderHandler:
    @handle(CancelOrder)
    def cancel_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        returned = order.cancel()
        _restock(returned)
        repo.add(order)
        logger.info("order_cancelled", order_id=order.id, restocked_lines=len(returned))

    @handle(PartialCancelOrder)
    def partial_cancel_order(self, command):
        items = json.loads(command.items) if isinstance(command.items, str) else command.items
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)

        returned = order.partial_cancel((entry["product_id"], entry["quantity"]) for entry in items)
        _restock(returned)
        repo.add(order)
        logger.info(
            "order_partially_cancelled",
            order_id=order.id,
            total=order.total,
            remaining_lines=len(order.items),
            status=order.status,
        )
        return returned

    @handle(ChangeOrderStatus)
    def change_status(self, command):
        try:
            target = OrderStatus(command.status)
        except ValueError:
            raise business_error(ErrorCode.INVALID_STATUS, f"Unknown order status {command.status!r}") from None

        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)

        order.assert_can_transition(target)
        if target == OrderStatus.CANCELLED:
            _restock(order.cancel())
        else:
            order.transition_to(target)
        repo.add(order)
        logger.info("order_status_changed", order_id=order.id, status=order.status)
