"""Guest-to-user merge — carts and orders of a session move to the signed-in user.

The cart merge is best-effort per line: every guest line is merged in its own
unit of work and a failing line is counted as skipped. Guest orders move in a
single unit of work. Deactivated guest lines are kept for a retention period and
then removed by ``purge_inactive_cart_items``.
"""

from datetime import UTC, datetime, timedelta

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from groupbuy.cart.cart_item import CartItem
from groupbuy.domain import groupbuy
from groupbuy.order.order import Order
from groupbuy.shared.owner import Owner
from groupbuy.shared.quantity import add

logger = structlog.get_logger(__name__)

INACTIVE_RETENTION = timedelta(days=30)


@groupbuy.command(part_of="CartItem")
class MergeGuestCartItem:
    """Move one guest cart line into a user's cart."""

    item_id = Identifier(required=True)
    user_id = Identifier(required=True)


@groupbuy.command(part_of="Order")
class MigrateGuestOrders:
    session_id = String(required=True, max_length=255)
    user_id = Identifier(required=True)


@groupbuy.command_handler(part_of=CartItem)
class GuestCartMergeHandler:
    @handle(MergeGuestCartItem)
    def merge_item(self, command):
        """Sum into the user's line for the same (collection, product), or hand the line over."""
        repo = current_domain.repository_for(CartItem)
        guest_item = repo.get(command.item_id)
        if not guest_item.is_active or not guest_item.is_guest:
            raise ValidationError({"item_id": ["Only active guest cart lines can be merged"]})

        user_item = repo.find_line(Owner(user_id=command.user_id), guest_item.collection_id, guest_item.product_id)
        if user_item is None:
            guest_item.reassign_to_user(command.user_id)
            repo.add(guest_item)
            return str(guest_item.id)

        user_item.change_quantity(add(user_item.quantity, guest_item.quantity), user_item.unit_price)
        guest_item.deactivate(reason="merged")
        repo.add(user_item)
        repo.add(guest_item)
        return str(user_item.id)


@groupbuy.command_handler(part_of=Order)
class GuestOrderMigrationHandler:
    @handle(MigrateGuestOrders)
    def migrate(self, command):
        repo = current_domain.repository_for(Order)
        orders = repo.guest_orders(command.session_id)
        for order in orders:
            order.reassign_to_user(command.user_id)
            repo.add(order)
        return len(orders)


def merge_guest_cart(session_id, user_id) -> dict:
    """Merge every active guest line; returns ``{merged, skipped, total}``."""
    guest_items = current_domain.repository_for(CartItem).for_owner(Owner(session_id=session_id))
    merged = skipped = 0

    for item in guest_items:
        try:
            current_domain.process(MergeGuestCartItem(item_id=item.id, user_id=user_id), asynchronous=False)
        except Exception:
            logger.exception("guest_cart_line_merge_failed", item_id=str(item.id), session_id=session_id)
            skipped += 1
        else:
            merged += 1

    logger.info("guest_cart_merged", session_id=session_id, user_id=str(user_id), merged=merged, skipped=skipped)
    return {"merged": merged, "skipped": skipped, "total": len(guest_items)}


def migrate_guest_orders(session_id, user_id) -> int:
    migrated = current_domain.process(
        MigrateGuestOrders(session_id=session_id, user_id=user_id),
        asynchronous=False,
    )
    logger.info("guest_orders_migrated", session_id=session_id, user_id=str(user_id), migrated=migrated)
    return migrated


def merge_guest_into_user(session_id, user_id) -> dict:
    """Run the cart merge and the order migration for a freshly signed-in user."""
    cart = merge_guest_cart(session_id, user_id)
    orders = migrate_guest_orders(session_id, user_id)
    return {"cart": cart, "orders_migrated": orders}


def purge_inactive_cart_items(older_than=INACTIVE_RETENTION, now=None) -> int:
    """Delete cart lines deactivated by merges more than ``older_than`` ago."""
    cutoff = (now or datetime.now(UTC)) - older_than
    repo = current_domain.repository_for(CartItem)
    stale = repo.inactive_before(cutoff)
    for item in stale:
        repo.remove(item)

    logger.info("inactive_cart_items_purged", purged=len(stale), cutoff=cutoff.isoformat())
    return len(stale)
