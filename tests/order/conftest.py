import pytest


@pytest.fixture
def priced():
    """Build a validated line for an unsaved product; no storage involved."""
    from groupbuy.cart.validation import price_line
    from groupbuy.catalogue.pricing import layer_pricing
    from groupbuy.catalogue.product import Product

    def _priced(quantity="1", title="Tomatoes", base_price=15000, base_step="0.5", collection_id="col-1"):
        product = Product.create(title=title, base_price=base_price, base_step=base_step, unit_label="kg")
        return price_line(layer_pricing(product, collection_id=collection_id), quantity)

    return _priced


@pytest.fixture
def make_order(priced):
    from groupbuy.order.order import Order
    from groupbuy.shared.owner import Owner

    def _make(lines=None, order_id=1, owner=None, **kwargs):
        return Order.create(
            order_id=order_id,
            owner=owner or Owner(user_id="user-001"),
            collection_id="col-1",
            lines=lines if lines is not None else [priced("1.5")],
            **kwargs,
        )

    return _make

