"""Order placement — converts one collection's cart into a SUBMITTED order.

The handler runs inside a single unit of work: the order id allocation, the
order with its line snapshots, every stock decrease and every cart row
deletion commit together or not at all. All lines are priced fresh before
anything is written, so one invalid line rejects the whole order.
"""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from groupbuy.cart.cart_item import CartItem
from groupbuy.cart.validation import validate_and_price
from groupbuy.catalogue.selection import require_active_collection
from groupbuy.domain import groupbuy
from groupbuy.inventory import ledger
from groupbuy.order.order import GuestContact, Order
from groupbuy.order.sequence import allocate_order_id
from groupbuy.shared.errors import ErrorCode, business_error
from groupbuy.shared.owner import Owner

logger = structlog.get_logger(__name__)


@groupbuy.command(part_of="Order")
class PlaceOrder:
    user_id = Identifier()
    session_id = String(max_length=255)
    collection_id = Identifier(required=True)
    delivery_type = String(max_length=20, default="PICKUP")
    delivery_address = String(max_length=500)
    payment_method = String(max_length=50)
    # Guest orders only
    guest_name = String(max_length=255)
    guest_phone = String(max_length=50)
    guest_email = String(max_length=255)
    guest_telegram = String(max_length=100)
    guest_contact_method = String(max_length=20)
    guest_contact_info = String(max_length=500)


def _guest_contact(command) -> GuestContact:
    return GuestContact(
        name=command.guest_name,
        phone=command.guest_phone,
        email=command.guest_email,
        telegram=command.guest_telegram,
        contact_method=command.guest_contact_method,
        contact_info=command.guest_contact_info,
    )


@groupbuy.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        owner = Owner(user_id=command.user_id, session_id=command.session_id)
        guest_contact = _guest_contact(command) if owner.is_guest else None

        cart_repo = current_domain.repository_for(CartItem)
        cart_items = cart_repo.for_owner(owner, command.collection_id)
        if not cart_items:
            raise business_error(ErrorCode.CART_EMPTY, "Cart is empty", collection_id=command.collection_id)

        require_active_collection(command.collection_id)

        lines = [validate_and_price(item.product_id, command.collection_id, item.quantity) for item in cart_items]

        order = Order.create(
            order_id=allocate_order_id(),
            owner=owner,
            collection_id=command.collection_id,
            lines=lines,
            delivery_type=command.delivery_type,
            delivery_address=command.delivery_address,
            payment_method=command.payment_method,
            guest_contact=guest_contact,
        )

        for line in lines:
            ledger.decrease(line.product_id, line.quantity)
        for item in cart_items:
            cart_repo.remove(item)

        current_domain.repository_for(Order).add(order)

        logger.info(
            "order_placed",
            order_id=order.id,
            order_number=order.order_number,
            collection_id=str(command.collection_id),
            total=order.total,
            lines=len(lines),
            guest=owner.is_guest,
        )
        return order.id
