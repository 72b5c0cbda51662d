"""Order modification — commands and handler.

Handles line additions, removals, quantity updates and delivery changes.
All modifications are only allowed in SUBMITTED state and do not move stock.
"""

from protean import handle
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from groupbuy.cart.validation import validate_and_price
from groupbuy.domain import groupbuy
from groupbuy.order.order import Order


@groupbuy.command(part_of="Order")
class AddOrderItem:
    """Add a product to an order, priced against the order's collection as of now."""

    order_id = Integer(required=True)
    product_id = Identifier(required=True)
    quantity = String(required=True, max_length=32)


@groupbuy.command(part_of="Order")
class UpdateOrderItemQuantity:
    """Change a line's quantity, keeping its original unit price and step."""

    order_id = Integer(required=True)
    item_id = Identifier(required=True)
    quantity = String(required=True, max_length=32)


@groupbuy.command(part_of="Order")
class RemoveOrderItem:
    order_id = Integer(required=True)
    item_id = Identifier(required=True)


@groupbuy.command(part_of="Order")
class ChangeDeliveryDetails:
    order_id = Integer(required=True)
    delivery_type = String(required=True, max_length=20)
    delivery_address = String(max_length=500)


@groupbuy.command_handler(part_of=Order)
class ModifyOrderHandler:
    @handle(AddOrderItem)
    def add_item(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.assert_editable()

        line = validate_and_price(command.product_id, order.collection_id, command.quantity)
        item = order.add_line(line)
        repo.add(order)
        return str(item.id)

    @handle(UpdateOrderItemQuantity)
    def update_item_quantity(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.update_line_quantity(command.item_id, command.quantity)
        repo.add(order)

    @handle(RemoveOrderItem)
    def remove_item(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.remove_line(command.item_id)
        repo.add(order)

    @handle(ChangeDeliveryDetails)
    def change_delivery(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.change_delivery(command.delivery_type, command.delivery_address)
        repo.add(order)
