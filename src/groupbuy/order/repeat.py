"""Repeat order — refill a cart in another collection from a past order."""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from groupbuy.cart.cart_item import CartItem
from groupbuy.cart.validation import price_line
from groupbuy.catalogue.pricing import resolve_pricing
from groupbuy.catalogue.selection import require_active_collection
from groupbuy.domain import groupbuy
from groupbuy.order.order import Order
from groupbuy.shared.errors import ErrorCode, business_error, error_code
from groupbuy.shared.owner import Owner
from groupbuy.shared.quantity import ZERO, round_down_to_step, to_decimal

logger = structlog.get_logger(__name__)


@groupbuy.command(part_of="CartItem")
class RepeatOrder:
    order_id = Integer(required=True)
    user_id = Identifier()
    session_id = String(max_length=255)
    collection_id = Identifier(required=True)  # Target collection


@groupbuy.command_handler(part_of=CartItem)
class RepeatOrderHandler:
    @handle(RepeatOrder)
    def repeat_order(self, command):
        """Put the order's still-available products into the owner's cart.

        Quantities are rounded down to the target step; an existing cart line
        for the product is overwritten. Lines that cannot be added are logged
        and skipped. Returns the number of lines added.
        """
        owner = Owner(user_id=command.user_id, session_id=command.session_id)
        try:
            order = current_domain.repository_for(Order).get(command.order_id)
        except ObjectNotFoundError:
            order = None
        if order is None or not owner.owns(order):
            raise business_error(ErrorCode.ORDER_NOT_FOUND, "Order not found", order_id=command.order_id)

        require_active_collection(command.collection_id)

        repo = current_domain.repository_for(CartItem)
        added = 0
        for item in order.items:
            pricing = resolve_pricing(item.product_id, command.collection_id)
            if not pricing.is_available:
                continue

            quantity = round_down_to_step(to_decimal(item.quantity), pricing.step)
            if quantity <= ZERO:
                continue

            try:
                priced = price_line(pricing, quantity)
            except ValidationError as exc:
                logger.warning(
                    "repeat_order_line_skipped",
                    order_id=order.id,
                    product_id=str(item.product_id),
                    code=error_code(exc),
                )
                continue

            line = repo.find_line(owner, command.collection_id, item.product_id)
            if line is None:
                line = CartItem.create(
                    owner=owner,
                    collection_id=command.collection_id,
                    product_id=item.product_id,
                    quantity=priced.quantity,
                    unit_price=priced.unit_price,
                )
            else:
                line.change_quantity(priced.quantity, priced.unit_price)
            repo.add(line)
            added += 1

        logger.info("order_repeated", order_id=order.id, collection_id=str(command.collection_id), added=added)
        return added
