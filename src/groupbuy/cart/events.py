"""Domain events for the CartItem aggregate."""

from protean.fields import Identifier, Integer, String

from groupbuy.domain import groupbuy


@groupbuy.event(part_of="CartItem")
class CartItemAdded:
    """A product was put into a cart, or its quantity was increased by an add."""

    __version__ = 1

    item_id = Identifier(required=True)
    collection_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = String(required=True)
    unit_price = Integer(required=True)
    user_id = Identifier()
    session_id = String(max_length=255)


@groupbuy.event(part_of="CartItem")
class CartItemQuantityChanged:
    """The quantity of a cart line was replaced."""

    __version__ = 1

    item_id = Identifier(required=True)
    previous_quantity = String(required=True)
    new_quantity = String(required=True)
    unit_price = Integer(required=True)


@groupbuy.event(part_of="CartItem")
class CartItemReassigned:
    """A guest cart line now belongs to an authenticated user."""

    __version__ = 1

    item_id = Identifier(required=True)
    user_id = Identifier(required=True)
    previous_session_id = String(max_length=255)
    previous_user_id = Identifier()


@groupbuy.event(part_of="CartItem")
class CartItemDeactivated:
    """A cart line was retired without being deleted (e.g. after a merge)."""

    __version__ = 1

    item_id = Identifier(required=True)
    reason = String(max_length=100)
