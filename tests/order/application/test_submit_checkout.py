import pytest
from groupbuy.catalogue.product import Product
from groupbuy.order.checkout import submit_checkout
from groupbuy.order.order import Order
from groupbuy.shared.errors import error_code
from protean import current_domain
from protean.exceptions import ValidationError


class TestSubmitCheckout:
    def test_single_active_collection_needs_no_choice(self, user, make_product, make_collection, add_to_cart):
        product = make_product()
        collection = make_collection()
        add_to_cart(user, collection, product, "1")

        result = submit_checkout(user)

        assert result.succeeded
        assert result.orders[0].collection_id == str(collection.id)
        assert result.orders[0].order_number == "ORD-00001"
        assert result.orders[0].total == 30000

    def test_several_active_collections_require_a_choice(self, user, make_collection):
        make_collection(title="Autumn")
        make_collection(title="Winter")

        with pytest.raises(ValidationError) as exc:
            submit_checkout(user)
        assert error_code(exc.value) == "COLLECTION_SELECTION_REQUIRED"

    def test_no_active_collection(self, user):
        with pytest.raises(ValidationError) as exc:
            submit_checkout(user, ["anything"])
        assert error_code(exc.value) == "NO_ACTIVE_COLLECTION"

    def test_one_order_per_collection(self, user, make_product, make_collection, add_to_cart):
        product = make_product()
        autumn = make_collection(title="Autumn")
        winter = make_collection(title="Winter")
        add_to_cart(user, autumn, product, "1")
        add_to_cart(user, winter, product, "2")

        result = submit_checkout(user, [autumn.id, winter.id, autumn.id])

        assert result.succeeded
        assert len(result.orders) == 2
        assert {o.total for o in result.orders} == {30000, 60000}

    def test_failures_are_reported_per_collection(self, user, make_product, make_collection, add_to_cart):
        tomatoes = make_product()
        cucumbers = make_product(title="Cucumbers", base_step="1")
        autumn = make_collection(title="Autumn")
        winter = make_collection(title="Winter")
        add_to_cart(user, autumn, tomatoes, "1")
        add_to_cart(user, winter, cucumbers, "1")

        cucumbers.is_active = False
        current_domain.repository_for(Product).add(cucumbers)

        result = submit_checkout(user, [autumn.id, winter.id])

        assert not result.succeeded
        assert [o.collection_id for o in result.orders] == [str(autumn.id)]
        assert result.failures[0].collection_id == str(winter.id)
        assert result.failures[0].code == "PRODUCT_NOT_AVAILABLE"
        assert current_domain.repository_for(Order).get(result.orders[0].order_id).total == 30000

    def test_unknown_collection_rejects_request(self, user, make_collection):
        make_collection()
        with pytest.raises(ValidationError) as exc:
            submit_checkout(user, ["missing"])
        assert error_code(exc.value) == "COLLECTION_NOT_FOUND"

    def test_empty_cart_is_a_per_collection_failure(self, user, make_collection):
        collection = make_collection()
        result = submit_checkout(user, [collection.id])

        assert result.orders == []
        assert result.failures[0].code == "CART_EMPTY"
