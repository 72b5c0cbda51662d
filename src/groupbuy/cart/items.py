"""Cart line management — commands and handler.

Every write re-resolves pricing for the line's collection; the cached
``unit_price`` is only ever taken from validator output.
"""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from groupbuy.cart.cart_item import CartItem
from groupbuy.cart.validation import parse_quantity, price_line
from groupbuy.catalogue.pricing import resolve_pricing
from groupbuy.catalogue.selection import require_active_collection
from groupbuy.domain import groupbuy
from groupbuy.shared.errors import ErrorCode, business_error
from groupbuy.shared.owner import Owner

logger = structlog.get_logger(__name__)


@groupbuy.command(part_of="CartItem")
class AddToCart:
    user_id = Identifier()
    session_id = String(max_length=255)
    collection_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = String(required=True, max_length=32)


@groupbuy.command(part_of="CartItem")
class UpdateCartItemQuantity:
    user_id = Identifier()
    session_id = String(max_length=255)
    item_id = Identifier(required=True)
    quantity = String(required=True, max_length=32)


@groupbuy.command(part_of="CartItem")
class RemoveFromCart:
    user_id = Identifier()
    session_id = String(max_length=255)
    item_id = Identifier(required=True)


@groupbuy.command(part_of="CartItem")
class ClearCart:
    user_id = Identifier()
    session_id = String(max_length=255)
    collection_id = Identifier()  # Omit to clear every collection


def _owner(command) -> Owner:
    return Owner(user_id=command.user_id, session_id=command.session_id)


def _owned_item(repo, owner, item_id) -> CartItem:
    try:
        item = repo.get(item_id)
    except ObjectNotFoundError:
        item = None

    if item is None or not item.is_active or not owner.owns(item):
        raise business_error(ErrorCode.CART_ITEM_NOT_FOUND, "Cart item not found", item_id=item_id)
    return item


@groupbuy.command_handler(part_of=CartItem)
class ManageCartHandler:
    @handle(AddToCart)
    def add_to_cart(self, command):
        owner = _owner(command)
        require_active_collection(command.collection_id)

        repo = current_domain.repository_for(CartItem)
        pricing = resolve_pricing(command.product_id, command.collection_id)
        requested = price_line(pricing, command.quantity)

        existing = repo.find_line(owner, command.collection_id, command.product_id)
        if existing is None:
            item = CartItem.create(
                owner=owner,
                collection_id=command.collection_id,
                product_id=command.product_id,
                quantity=requested.quantity,
                unit_price=requested.unit_price,
            )
        else:
            combined = price_line(pricing, parse_quantity(existing.quantity) + parse_quantity(requested.quantity))
            existing.change_quantity(combined.quantity, combined.unit_price)
            item = existing

        repo.add(item)
        logger.info(
            "cart_item_added",
            item_id=str(item.id),
            collection_id=str(command.collection_id),
            product_id=str(command.product_id),
            quantity=item.quantity,
            guest=owner.is_guest,
        )
        return str(item.id)

    @handle(UpdateCartItemQuantity)
    def update_quantity(self, command):
        owner = _owner(command)
        repo = current_domain.repository_for(CartItem)
        item = _owned_item(repo, owner, command.item_id)
        require_active_collection(item.collection_id)

        priced = price_line(resolve_pricing(item.product_id, item.collection_id), command.quantity)
        item.change_quantity(priced.quantity, priced.unit_price)
        repo.add(item)
        return str(item.id)

    @handle(RemoveFromCart)
    def remove_from_cart(self, command):
        owner = _owner(command)
        repo = current_domain.repository_for(CartItem)
        item = _owned_item(repo, owner, command.item_id)
        repo.remove(item)
        logger.info("cart_item_removed", item_id=str(command.item_id))

    @handle(ClearCart)
    def clear_cart(self, command):
        owner = _owner(command)
        repo = current_domain.repository_for(CartItem)
        items = repo.for_owner(owner, command.collection_id)
        for item in items:
            repo.remove(item)

        logger.info(
            "cart_cleared",
            collection_id=str(command.collection_id) if command.collection_id else None,
            removed=len(items),
        )
        return len(items)
