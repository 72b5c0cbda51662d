"""CartItem aggregate — one (owner, collection, product) line of a cart.

The owner is either an authenticated ``user_id`` or a guest ``session_id``,
never both. ``unit_price`` is a cache written from validated pricing; money
calculations always re-resolve pricing instead of trusting it.
"""

from datetime import UTC, datetime

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, Integer, String

from groupbuy.cart.events import CartItemAdded, CartItemDeactivated, CartItemQuantityChanged, CartItemReassigned
from groupbuy.domain import groupbuy
from groupbuy.shared.quantity import ZERO, format_decimal, to_decimal


def _aware(moment):
    return moment.replace(tzinfo=UTC) if moment.tzinfo is None else moment


@groupbuy.aggregate
class CartItem:
    user_id = Identifier()
    session_id = String(max_length=255)
    collection_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = String(required=True, max_length=32)
    unit_price = Integer(default=0)
    is_active = Boolean(default=True)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def must_have_exactly_one_owner(self):
        if bool(self.user_id) == bool(self.session_id):
            raise ValidationError({"owner": ["Cart item must belong to a user or a guest session, not both"]})

    @invariant.post
    def quantity_must_be_positive(self):
        if to_decimal(self.quantity) <= ZERO:
            raise ValidationError({"quantity": ["Quantity must be greater than zero"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, owner, collection_id, product_id, quantity, unit_price):
        now = datetime.now(UTC)
        item = cls(
            user_id=owner.user_id,
            session_id=owner.session_id,
            collection_id=collection_id,
            product_id=product_id,
            quantity=format_decimal(quantity),
            unit_price=unit_price,
            is_active=True,
            created_at=now,
            updated_at=now,
        )
        item.raise_(
            CartItemAdded(
                item_id=str(item.id),
                collection_id=str(collection_id),
                product_id=str(product_id),
                quantity=item.quantity,
                unit_price=unit_price,
                user_id=str(owner.user_id) if owner.user_id else None,
                session_id=owner.session_id,
            )
        )
        return item

    @property
    def is_guest(self) -> bool:
        return not self.user_id

    # -------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------
    def change_quantity(self, quantity, unit_price):
        """Replace quantity and refresh the price cache from validated pricing."""
        previous = self.quantity
        self.quantity = format_decimal(quantity)
        self.unit_price = unit_price
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartItemQuantityChanged(
                item_id=str(self.id),
                previous_quantity=previous,
                new_quantity=self.quantity,
                unit_price=unit_price,
            )
        )

    def reassign_to_user(self, user_id):
        previous_session_id = self.session_id
        previous_user_id = self.user_id
        with atomic_change(self):
            self.user_id = str(user_id)
            self.session_id = None
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartItemReassigned(
                item_id=str(self.id),
                user_id=str(user_id),
                previous_session_id=previous_session_id,
                previous_user_id=str(previous_user_id) if previous_user_id else None,
            )
        )

    def deactivate(self, reason=None):
        self.is_active = False
        self.updated_at = datetime.now(UTC)
        self.raise_(CartItemDeactivated(item_id=str(self.id), reason=reason))


@groupbuy.repository(part_of=CartItem)
class CartItemRepository:
    def for_owner(self, owner, collection_id=None) -> list:
        """Active lines of ``owner``, optionally limited to one collection."""
        filters = dict(owner.as_filter(), is_active=True)
        if collection_id is not None:
            filters["collection_id"] = str(collection_id)
        return [item for item in self._dao.query.filter(**filters).limit(None).all().items if owner.owns(item)]

    def inactive_for_owner(self, owner) -> list:
        filters = dict(owner.as_filter(), is_active=False)
        return [item for item in self._dao.query.filter(**filters).limit(None).all().items if owner.owns(item)]

    def inactive_before(self, cutoff) -> list:
        """Inactive lines of any owner last touched before ``cutoff``."""
        records = self._dao.query.filter(is_active=False).limit(None).all().items
        return [item for item in records if item.updated_at is not None and _aware(item.updated_at) < cutoff]

    def find_line(self, owner, collection_id, product_id):
        """The owner's active line for (collection, product), or None."""
        for item in self.for_owner(owner, collection_id):
            if str(item.product_id) == str(product_id):
                return item
        return None

    def remove(self, item):
        self._dao.delete(item)
