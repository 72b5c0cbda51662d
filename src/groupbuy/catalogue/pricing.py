"""Collection-scoped pricing resolution.

A collection override shadows the product's base values field by field
(``override value ?? product value``). The layering itself is the pure
function :func:`layer_pricing`; :func:`resolve_pricing` loads the two records
and applies it. Resolution is always a fresh read and never raises for a
missing or inactive product; it returns the unavailable sentinel instead.
"""

from dataclasses import dataclass

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from groupbuy.catalogue.override import CollectionProductOverride
from groupbuy.catalogue.product import Product, StockHint
from groupbuy.shared.quantity import format_decimal

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class PricingView:
    product_id: str | None
    collection_id: str | None
    is_available: bool
    price: int
    step: str
    display_stock_hint: str | None
    stock_ceiling: str | None = None
    product: Product | None = None


def unavailable(product_id=None, collection_id=None) -> PricingView:
    return PricingView(
        product_id=str(product_id) if product_id is not None else None,
        collection_id=str(collection_id) if collection_id is not None else None,
        is_available=False,
        price=0,
        step="1",
        display_stock_hint=StockHint.OUT.value,
    )


def _coalesce(override_value, base_value):
    return override_value if override_value is not None else base_value


def layer_pricing(product, override=None, collection_id=None) -> PricingView:
    """Apply ``override`` on top of ``product``. No storage access."""
    if product is None or not product.is_active:
        return unavailable(product.id if product is not None else None, collection_id)

    hint = _coalesce(override.display_stock_hint if override else None, product.display_stock_hint)
    override_enabled = override is None or override.is_active is not False
    is_available = override_enabled and hint != StockHint.OUT.value

    return PricingView(
        product_id=str(product.id),
        collection_id=str(collection_id) if collection_id is not None else None,
        is_available=is_available,
        price=_coalesce(override.price if override else None, product.base_price),
        step=format_decimal(_coalesce(override.step if override else None, product.base_step)),
        display_stock_hint=hint,
        stock_ceiling=override.stock_ceiling if override else None,
        product=product,
    )


def resolve_pricing(product_id, collection_id) -> PricingView:
    """Effective price, step and availability of a product within a collection."""
    try:
        product = current_domain.repository_for(Product).get(product_id)
    except ObjectNotFoundError:
        logger.debug("pricing_product_missing", product_id=str(product_id), collection_id=str(collection_id))
        return unavailable(product_id, collection_id)

    override = current_domain.repository_for(CollectionProductOverride).find_for(collection_id, product_id)
    return layer_pricing(product, override, collection_id=collection_id)
