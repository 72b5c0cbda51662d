"""Account merge — fold a source account into a target account.

Used when a Telegram identity being linked already belongs to another
account. Everything happens in one unit of work: any failure leaves both
accounts untouched.
"""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from groupbuy.accounts.account import Favorite, UserAccount
from groupbuy.cart.cart_item import CartItem
from groupbuy.domain import groupbuy
from groupbuy.order.order import Order
from groupbuy.shared.owner import Owner
from groupbuy.shared.quantity import add

logger = structlog.get_logger(__name__)


@groupbuy.command(part_of="UserAccount")
class MergeAccounts:
    target_user_id = Identifier(required=True)
    source_user_id = Identifier(required=True)
    telegram_id = String(max_length=50)
    telegram_username = String(max_length=100)
    telegram_photo_url = String(max_length=500)
    name = String(max_length=255)
    first_name = String(max_length=100)
    last_name = String(max_length=100)


def _move_orders(source_id, target_id) -> int:
    repo = current_domain.repository_for(Order)
    orders = repo.for_user(source_id)
    for order in orders:
        order.reassign_to_user(target_id)
        repo.add(order)
    return len(orders)


def _move_cart(source_id, target_id) -> int:
    repo = current_domain.repository_for(CartItem)
    source, target = Owner(user_id=source_id), Owner(user_id=target_id)

    moved = 0
    for item in repo.for_owner(source):
        existing = repo.find_line(target, item.collection_id, item.product_id)
        if existing is None:
            item.reassign_to_user(target_id)
            repo.add(item)
        else:
            existing.change_quantity(add(existing.quantity, item.quantity), existing.unit_price)
            repo.add(existing)
            repo.remove(item)
        moved += 1

    for item in repo.inactive_for_owner(source):
        repo.remove(item)
    return moved


def _move_favorites(source_id, target_id) -> int:
    repo = current_domain.repository_for(Favorite)
    already = {str(fav.product_id) for fav in repo.for_user(target_id)}

    moved = 0
    for fav in repo.for_user(source_id):
        if str(fav.product_id) not in already:
            repo.add(Favorite(user_id=str(target_id), product_id=fav.product_id, created_at=fav.created_at))
            already.add(str(fav.product_id))
            moved += 1
        repo.remove(fav)
    return moved


def _move_referrals(source_id, target_id) -> int:
    repo = current_domain.repository_for(UserAccount)
    referred = repo.referred_by(source_id)
    moved = 0
    for account in referred:
        if str(account.id) == str(target_id):
            continue  # Handled on the loaded target
        account.referred_by = str(target_id)
        repo.add(account)
        moved += 1
    return moved


@groupbuy.command_handler(part_of=UserAccount)
class MergeAccountsHandler:
    @handle(MergeAccounts)
    def merge_accounts(self, command):
        repo = current_domain.repository_for(UserAccount)
        target = repo.get(command.target_user_id)
        source = repo.get(command.source_user_id)
        target_id, source_id = str(target.id), str(source.id)

        stats = {
            "orders": _move_orders(source_id, target_id),
            "cart_items": _move_cart(source_id, target_id),
            "favorites": _move_favorites(source_id, target_id),
            "referrals": _move_referrals(source_id, target_id),
        }

        if target.referred_by and str(target.referred_by) == source_id:
            target.referred_by = None
        target.absorb_profile(source)
        if command.telegram_id:
            target.link_telegram(
                command.telegram_id,
                username=command.telegram_username,
                photo_url=command.telegram_photo_url,
                name=command.name,
                first_name=command.first_name,
                last_name=command.last_name,
            )

        repo.add(target)
        repo.remove(source)

        logger.info("accounts_merged", target_user_id=target_id, source_user_id=source_id, **stats)
        return target_id
