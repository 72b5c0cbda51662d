"""Domain events for the Order aggregate."""

from protean.fields import Boolean, DateTime, Identifier, Integer, String, Text

from groupbuy.domain import groupbuy


@groupbuy.event(part_of="Order")
class OrderPlaced:
    """A cart was converted into a SUBMITTED order."""

    __version__ = 1

    order_id = Integer(required=True)
    order_number = String(required=True)
    collection_id = Identifier(required=True)
    user_id = Identifier()
    session_id = String(max_length=255)
    is_guest_order = Boolean(default=False)
    items = Text(required=True)  # JSON: list of line snapshots
    total = Integer(required=True)
    delivery_type = String(required=True)
    submitted_at = DateTime(required=True)


@groupbuy.event(part_of="Order")
class OrderItemAdded:
    __version__ = 1

    order_id = Integer(required=True)
    item_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = String(required=True)
    unit_price = Integer(required=True)
    subtotal = Integer(required=True)
    new_total = Integer(required=True)
    edit_version = Integer(required=True)


@groupbuy.event(part_of="Order")
class OrderItemQuantityChanged:
    __version__ = 1

    order_id = Integer(required=True)
    item_id = Identifier(required=True)
    previous_quantity = String(required=True)
    new_quantity = String(required=True)
    new_total = Integer(required=True)
    edit_version = Integer(required=True)


@groupbuy.event(part_of="Order")
class OrderItemRemoved:
    __version__ = 1

    order_id = Integer(required=True)
    item_id = Identifier(required=True)
    product_id = Identifier(required=True)
    new_total = Integer(required=True)
    edit_version = Integer(required=True)


@groupbuy.event(part_of="Order")
class OrderPartiallyCancelled:
    """Some quantity was taken off one or more lines; ``returned`` lists what goes back to stock."""

    __version__ = 1

    order_id = Integer(required=True)
    returned = Text(required=True)  # JSON: list of {product_id, quantity}
    new_total = Integer(required=True)
    remaining_lines = Integer(required=True)


@groupbuy.event(part_of="Order")
class OrderCancelled:
    __version__ = 1

    order_id = Integer(required=True)
    previous_status = String(required=True)
    cancelled_at = DateTime(required=True)


@groupbuy.event(part_of="Order")
class OrderStatusChanged:
    __version__ = 1

    order_id = Integer(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    changed_at = DateTime(required=True)


@groupbuy.event(part_of="Order")
class OrderDeliveryChanged:
    __version__ = 1

    order_id = Integer(required=True)
    delivery_type = String(required=True)
    delivery_address = String(max_length=500)
    edit_version = Integer(required=True)


@groupbuy.event(part_of="Order")
class OrderReassigned:
    """A guest order, or an order of a merged account, moved to a user."""

    __version__ = 1

    order_id = Integer(required=True)
    user_id = Identifier(required=True)
    previous_user_id = Identifier()
    previous_session_id = String(max_length=255)
