"""Read-side cart view, re-priced fresh for every ACTIVE collection."""

from dataclasses import dataclass, field

from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from groupbuy.cart.cart_item import CartItem
from groupbuy.cart.validation import price_line
from groupbuy.catalogue.pricing import resolve_pricing
from groupbuy.catalogue.selection import active_collections
from groupbuy.shared.errors import error_code


@dataclass(frozen=True)
class CartLineView:
    item_id: str
    product_id: str
    title: str | None
    unit_label: str | None
    quantity: str
    step: str
    unit_price: int
    subtotal: int
    is_available: bool
    problem: str | None = None


@dataclass
class CollectionCart:
    collection_id: str
    title: str
    lines: list = field(default_factory=list)
    total: int = 0

    @property
    def has_problems(self) -> bool:
        return any(line.problem for line in self.lines)


@dataclass
class CartSummary:
    collections: list = field(default_factory=list)

    @property
    def total(self) -> int:
        return sum(cart.total for cart in self.collections)

    @property
    def item_count(self) -> int:
        return sum(len(cart.lines) for cart in self.collections)


def _line_view(item) -> CartLineView:
    pricing = resolve_pricing(item.product_id, item.collection_id)
    product = pricing.product
    try:
        priced = price_line(pricing, item.quantity)
    except ValidationError as exc:
        return CartLineView(
            item_id=str(item.id),
            product_id=str(item.product_id),
            title=product.title if product else None,
            unit_label=product.unit_label if product else None,
            quantity=item.quantity,
            step=pricing.step,
            unit_price=pricing.price,
            subtotal=0,
            is_available=pricing.is_available,
            problem=error_code(exc),
        )

    return CartLineView(
        item_id=str(item.id),
        product_id=str(item.product_id),
        title=product.title,
        unit_label=product.unit_label,
        quantity=priced.quantity,
        step=priced.step,
        unit_price=priced.unit_price,
        subtotal=priced.subtotal,
        is_available=True,
    )


def summarize_cart(owner, collection_ids=None) -> CartSummary:
    """Owner's cart grouped by ACTIVE collection.

    Lines that are unavailable or no longer valid for the current step are
    reported with a ``problem`` code and left out of the totals; nothing is
    written.
    """
    repo = current_domain.repository_for(CartItem)
    wanted = {str(cid) for cid in collection_ids} if collection_ids else None

    summary = CartSummary()
    for collection in active_collections():
        if wanted is not None and str(collection.id) not in wanted:
            continue

        cart = CollectionCart(collection_id=str(collection.id), title=collection.title)
        for item in repo.for_owner(owner, collection.id):
            line = _line_view(item)
            cart.lines.append(line)
            if line.problem is None:
                cart.total += line.subtotal

        if cart.lines:
            summary.collections.append(cart)

    return summary
