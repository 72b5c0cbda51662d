import pytest
from groupbuy.accounts.account import Favorite, UserAccount
from groupbuy.accounts.account_merge import MergeAccounts
from groupbuy.cart.cart_item import CartItem
from groupbuy.order.order import Order
from groupbuy.shared.owner import Owner
from protean import current_domain
from protean.exceptions import ObjectNotFoundError


@pytest.fixture
def accounts():
    repo = current_domain.repository_for(UserAccount)
    target = UserAccount.register(name="Ann", loyalty_points=100)
    source = UserAccount.register(name="Ann (telegram)", phone="+7000", loyalty_points=40, telegram_id="tg-1")
    repo.add(target)
    repo.add(source)
    return target, source


def _merge(target, source, **telegram):
    return current_domain.process(
        MergeAccounts(target_user_id=target.id, source_user_id=source.id, **telegram),
        asynchronous=False,
    )


class TestMergeAccounts:
    def test_source_is_removed_and_profile_absorbed(self, accounts):
        target, source = accounts

        assert _merge(target, source, telegram_id="tg-1", telegram_username="ann") == str(target.id)

        repo = current_domain.repository_for(UserAccount)
        merged = repo.get(target.id)
        assert merged.name == "Ann"
        assert merged.phone == "+7000"
        assert merged.loyalty_points == 140
        assert merged.telegram_id == "tg-1"
        with pytest.raises(ObjectNotFoundError):
            repo.get(source.id)

    def test_orders_move_to_target(self, accounts, make_product, make_collection, place):
        target, source = accounts
        product = make_product()
        collection = make_collection()
        order = place(Owner(user_id=str(source.id)), collection, (product, "1"))

        _merge(target, source)

        assert str(current_domain.repository_for(Order).get(order.id).user_id) == str(target.id)

    def test_cart_lines_are_summed(self, accounts, make_product, make_collection, add_to_cart):
        target, source = accounts
        tomatoes = make_product()
        cucumbers = make_product(title="Cucumbers")
        collection = make_collection()
        target_owner, source_owner = Owner(user_id=str(target.id)), Owner(user_id=str(source.id))
        add_to_cart(target_owner, collection, tomatoes, "1")
        add_to_cart(source_owner, collection, tomatoes, "0.5")
        add_to_cart(source_owner, collection, cucumbers, "2")

        _merge(target, source)

        repo = current_domain.repository_for(CartItem)
        quantities = {str(item.product_id): item.quantity for item in repo.for_owner(target_owner)}
        assert quantities == {str(tomatoes.id): "1.5", str(cucumbers.id): "2"}
        assert repo.for_owner(source_owner) == []

    def test_favorites_are_deduplicated(self, accounts):
        target, source = accounts
        repo = current_domain.repository_for(Favorite)
        repo.add(Favorite(user_id=str(target.id), product_id="p-1"))
        repo.add(Favorite(user_id=str(source.id), product_id="p-1"))
        repo.add(Favorite(user_id=str(source.id), product_id="p-2"))

        _merge(target, source)

        assert sorted(str(f.product_id) for f in repo.for_user(target.id)) == ["p-1", "p-2"]
        assert repo.for_user(source.id) == []

    def test_referrals_point_to_target(self, accounts):
        target, source = accounts
        repo = current_domain.repository_for(UserAccount)
        friend = UserAccount.register(name="Friend", referred_by=str(source.id))
        repo.add(friend)

        _merge(target, source)

        assert str(repo.get(friend.id).referred_by) == str(target.id)

    def test_target_never_refers_itself(self, accounts):
        target, source = accounts
        repo = current_domain.repository_for(UserAccount)
        target.referred_by = str(source.id)
        repo.add(target)

        _merge(target, source)

        assert repo.get(target.id).referred_by is None

    def test_missing_source_changes_nothing(self, accounts):
        target, _ = accounts
        with pytest.raises(ObjectNotFoundError):
            current_domain.process(
                MergeAccounts(target_user_id=target.id, source_user_id="missing"), asynchronous=False
            )
        assert current_domain.repository_for(UserAccount).get(target.id).loyalty_points == 100
