"""Domain events for catalogue aggregates (Product, Collection)."""

from protean.fields import DateTime, Identifier, Integer, String

from groupbuy.domain import groupbuy


@groupbuy.event(part_of="Product")
class ProductRegistered:
    """A product was added to the shared catalog."""

    __version__ = 1

    product_id: Identifier(required=True)
    title: String(required=True)
    base_price: Integer(required=True)
    base_step: String(required=True)
    stock_quantity: String(required=True)
    registered_at: DateTime(required=True)


@groupbuy.event(part_of="Product")
class StockDecreased:
    """Stock was taken for an order; ``shortfall`` is what the zero clamp swallowed."""

    __version__ = 1

    product_id: Identifier(required=True)
    amount: String(required=True)
    previous_stock: String(required=True)
    new_stock: String(required=True)
    shortfall: String(default="0")
    changed_at: DateTime(required=True)


@groupbuy.event(part_of="Product")
class StockIncreased:
    """Stock was returned, e.g. by an order cancellation."""

    __version__ = 1

    product_id: Identifier(required=True)
    amount: String(required=True)
    previous_stock: String(required=True)
    new_stock: String(required=True)
    changed_at: DateTime(required=True)


@groupbuy.event(part_of="Collection")
class CollectionCreated:
    """A new sales period was drafted."""

    __version__ = 1

    collection_id: Identifier(required=True)
    title: String(required=True)
    created_at: DateTime(required=True)


@groupbuy.event(part_of="Collection")
class CollectionActivated:
    """A sales period opened for carts and orders."""

    __version__ = 1

    collection_id: Identifier(required=True)
    activated_at: DateTime(required=True)


@groupbuy.event(part_of="Collection")
class CollectionClosed:
    """A sales period stopped accepting carts and orders."""

    __version__ = 1

    collection_id: Identifier(required=True)
    closed_at: DateTime(required=True)
