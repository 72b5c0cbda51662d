from datetime import UTC, datetime, timedelta

from groupbuy.catalogue.collection import Collection
from groupbuy.order.cancellation import ChangeOrderStatus
from groupbuy.order.completion import auto_complete_orders, auto_completion_stats, orders_due_for_completion
from groupbuy.order.order import Order, OrderStatus
from protean import current_domain

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=UTC)


def _close(collection, days_ago):
    collection.close(ends_at=NOW - timedelta(days=days_ago))
    current_domain.repository_for(Collection).add(collection)


def _status(order):
    return current_domain.repository_for(Order).get(order.id).status


class TestAutoCompletion:
    def test_completes_orders_after_grace_period(self, user, make_product, make_collection, place):
        product = make_product()
        collection = make_collection()
        order = place(user, collection, (product, "1"))
        _close(collection, days_ago=4)

        result = auto_complete_orders(now=NOW)

        assert result.completed == 1
        assert result.errors == []
        assert _status(order) == OrderStatus.COMPLETED.value

    def test_recently_closed_collection_is_left_alone(self, user, make_product, make_collection, place):
        product = make_product()
        collection = make_collection()
        order = place(user, collection, (product, "1"))
        _close(collection, days_ago=1)

        assert auto_complete_orders(now=NOW).completed == 0
        assert _status(order) == OrderStatus.SUBMITTED.value

    def test_active_collection_is_left_alone(self, user, make_product, make_collection, place):
        product = make_product()
        collection = make_collection()
        place(user, collection, (product, "1"))

        assert orders_due_for_completion(now=NOW) == []

    def test_only_submitted_orders_are_candidates(self, user, make_product, make_collection, place):
        product = make_product()
        collection = make_collection()
        paid = place(user, collection, (product, "1"))
        submitted = place(user, collection, (product, "1"))
        current_domain.process(ChangeOrderStatus(order_id=paid.id, status="PAID"), asynchronous=False)
        _close(collection, days_ago=10)

        due = orders_due_for_completion(now=NOW)

        assert [order.id for order in due] == [submitted.id]

    def test_custom_grace(self, user, make_product, make_collection, place):
        product = make_product()
        collection = make_collection()
        place(user, collection, (product, "1"))
        _close(collection, days_ago=1)

        assert auto_complete_orders(now=NOW, grace=timedelta(hours=12)).completed == 1

    def test_stats(self, user, make_product, make_collection, place):
        product = make_product()
        old = make_collection(title="Old")
        recent = make_collection(title="Recent")
        place(user, old, (product, "1"))
        place(user, recent, (product, "1"))
        _close(old, days_ago=5)
        _close(recent, days_ago=1)

        assert auto_completion_stats(now=NOW) == {"pending": 1, "overdue": 1, "grace_days": 3}


class TestManyOrders:
    def _store_open_orders(self, user, collection, priced, count):
        repo = current_domain.repository_for(Order)
        for offset in range(count):
            order = Order.create(
                order_id=10_000 + offset,
                owner=user,
                collection_id=str(collection.id),
                lines=[priced("1")],
            )
            repo.add(order)

    def test_due_orders_past_the_first_hundred_are_found(self, user, make_product, make_collection, place, priced):
        product = make_product()
        open_collection = make_collection(title="Open")
        closed_collection = make_collection(title="Closed")
        self._store_open_orders(user, open_collection, priced, 101)
        target = place(user, closed_collection, (product, "1"))
        _close(closed_collection, days_ago=10)

        due = orders_due_for_completion(now=NOW)

        assert [order.id for order in due] == [target.id]
        assert auto_complete_orders(now=NOW).completed == 1
        assert _status(target) == OrderStatus.COMPLETED.value

    def test_repository_returns_every_matching_order(self, user, make_collection, priced):
        collection = make_collection()
        self._store_open_orders(user, collection, priced, 105)

        repo = current_domain.repository_for(Order)
        assert len(repo.with_status(OrderStatus.SUBMITTED)) == 105
        assert len(repo.for_user(user.user_id)) == 105
