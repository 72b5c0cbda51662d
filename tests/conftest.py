import os
from pathlib import Path

import pytest
from protean.integrations.pytest import DomainFixture


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Select the Protean config environment before the domain is imported."""
    os.environ["PROTEAN_ENV"] = session.config.option.env


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = str(Path(item.fspath))

        if "/domain/" in test_path:
            item.add_marker(pytest.mark.domain)
        elif "/application/" in test_path:
            item.add_marker(pytest.mark.application)
        elif "/bdd/" in test_path:
            item.add_marker(pytest.mark.bdd)


@pytest.fixture(scope="session")
def groupbuy_bed():
    from groupbuy.domain import groupbuy

    bed = DomainFixture(groupbuy)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(groupbuy_bed):
    with groupbuy_bed.domain_context():
        yield


@pytest.fixture(autouse=True)
def run_around_tests(_ctx):
    """Fixture to automatically cleanup infrastructure after every test"""
    yield

    from protean import current_domain

    for _, provider in current_domain.providers.items():
        provider._data_reset()

    current_domain.event_store.store._data_reset()


@pytest.fixture(autouse=True)
def notification_sink():
    """Route notifications to the recording fake for every test."""
    from groupbuy.notifications import reset_sink, set_sink
    from groupbuy.notifications.fake_sink import FakeNotificationSink

    sink = FakeNotificationSink()
    set_sink(sink)
    yield sink
    reset_sink()


# ---------------------------------------------------------------------------
# Catalog builders
# ---------------------------------------------------------------------------
@pytest.fixture
def make_product():
    from protean import current_domain

    from groupbuy.catalogue.product import Product

    def _make(**overrides):
        fields = {
            "title": "Tomatoes",
            "base_price": 15000,
            "base_step": "0.5",
            "stock_quantity": "100",
            "unit_label": "kg",
        }
        fields.update(overrides)
        product = Product.create(**fields)
        current_domain.repository_for(Product).add(product)
        return product

    return _make


@pytest.fixture
def make_collection():
    from protean import current_domain

    from groupbuy.catalogue.collection import Collection

    def _make(title="Autumn harvest", active=True, starts_at=None, ends_at=None):
        collection = Collection.create(title=title, starts_at=starts_at, ends_at=ends_at)
        if active:
            collection.activate(starts_at=starts_at)
        current_domain.repository_for(Collection).add(collection)
        return collection

    return _make


@pytest.fixture
def make_override():
    from protean import current_domain

    from groupbuy.catalogue.override import CollectionProductOverride

    def _make(collection, product, **values):
        override = CollectionProductOverride.create(collection_id=collection.id, product_id=product.id, **values)
        current_domain.repository_for(CollectionProductOverride).add(override)
        return override

    return _make


@pytest.fixture
def user():
    from groupbuy.shared.owner import Owner

    return Owner(user_id="user-001")


@pytest.fixture
def guest():
    from groupbuy.shared.owner import Owner

    return Owner(session_id="sess-guest-001")


@pytest.fixture
def add_to_cart():
    """Process AddToCart for an owner; returns the cart item id."""
    from protean import current_domain

    from groupbuy.cart.items import AddToCart

    def _add(owner, collection, product, quantity):
        return current_domain.process(
            AddToCart(
                user_id=owner.user_id,
                session_id=owner.session_id,
                collection_id=collection.id,
                product_id=product.id,
                quantity=quantity,
            ),
            asynchronous=False,
        )

    return _add


@pytest.fixture
def place(add_to_cart):
    """Fill the owner's cart for a collection and place it; returns the stored order."""
    from protean import current_domain

    from groupbuy.order.checkout import place_order
    from groupbuy.order.order import Order

    def _place(owner, collection, *lines, **delivery):
        for product, quantity in lines:
            add_to_cart(owner, collection, product, quantity)
        order_id = place_order(owner, collection.id, **delivery)
        return current_domain.repository_for(Order).get(order_id)

    return _place
