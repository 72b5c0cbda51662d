"""Per-collection overrides of a product's price, step, hint and stock ceiling."""

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, Identifier, Integer, String

from groupbuy.catalogue.product import StockHint
from groupbuy.domain import groupbuy
from groupbuy.shared.quantity import ZERO, format_decimal, to_decimal


@groupbuy.aggregate
class CollectionProductOverride:
    """Optional values that shadow the product's base values within one collection.

    Unset fields fall through to the product; ``is_active=False`` hides the
    product from the collection entirely.
    """

    collection_id: Identifier(required=True)
    product_id: Identifier(required=True)
    price: Integer(min_value=0)
    step: String(max_length=32)
    stock_ceiling: String(max_length=32)
    display_stock_hint: String(choices=StockHint)
    is_active: Boolean(default=True)

    @invariant.post
    def step_must_be_positive_when_set(self):
        if self.step is not None and to_decimal(self.step, field="step") <= ZERO:
            raise ValidationError({"step": ["Override step must be greater than zero"]})

    @classmethod
    def create(
        cls,
        collection_id,
        product_id,
        price=None,
        step=None,
        stock_ceiling=None,
        display_stock_hint=None,
        is_active=True,
    ):
        return cls(
            collection_id=collection_id,
            product_id=product_id,
            price=price,
            step=format_decimal(step) if step is not None else None,
            stock_ceiling=format_decimal(stock_ceiling) if stock_ceiling is not None else None,
            display_stock_hint=display_stock_hint,
            is_active=is_active,
        )


@groupbuy.repository(part_of=CollectionProductOverride)
class CollectionProductOverrideRepository:
    def find_for(self, collection_id, product_id):
        """The override for the (collection, product) pair, or None."""
        records = (
            self._dao.query.filter(collection_id=str(collection_id), product_id=str(product_id)).limit(None).all().items
        )
        return records[0] if records else None
