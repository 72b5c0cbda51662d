"""Order aggregate — an immutable snapshot of a cart submitted for one collection.

State Machine:
    SUBMITTED → PAID → COMPLETED
    SUBMITTED → COMPLETED
    SUBMITTED → CANCELLED

Lines (OrderItem) capture title, unit, quantity, step, unit price, subtotal
and image at creation time and are never re-derived from the catalog. While
the order is SUBMITTED its lines can be edited and partially cancelled; every
change recomputes ``total`` as the sum of line subtotals plus delivery cost.

Stock is not touched here. Callers return stock through the inventory ledger
using the quantities these methods report.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, HasMany, Identifier, Integer, String, ValueObject

from groupbuy.cart.validation import check_quantity, exact_subtotal, parse_quantity
from groupbuy.domain import groupbuy
from groupbuy.order.events import (
    OrderCancelled,
    OrderDeliveryChanged,
    OrderItemAdded,
    OrderItemQuantityChanged,
    OrderItemRemoved,
    OrderPartiallyCancelled,
    OrderPlaced,
    OrderReassigned,
    OrderStatusChanged,
)
from groupbuy.shared.errors import ErrorCode, business_error
from groupbuy.shared.quantity import ZERO, format_decimal, is_multiple_of, to_decimal


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    SUBMITTED = "SUBMITTED"
    PAID = "PAID"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class DeliveryType(Enum):
    PICKUP = "PICKUP"
    DELIVERY = "DELIVERY"


_VALID_TRANSITIONS = {
    OrderStatus.SUBMITTED: {OrderStatus.PAID, OrderStatus.COMPLETED, OrderStatus.CANCELLED},
    OrderStatus.PAID: {OrderStatus.COMPLETED},
    OrderStatus.COMPLETED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}

DEFAULT_PAYMENT_METHOD = "development"


def order_number_for(order_id) -> str:
    """Human-readable order number, a pure function of the numeric id: 42 -> "ORD-00042"."""
    return f"ORD-{int(order_id):05d}"


def delivery_cost_for(delivery_type, items_total) -> int:  # noqa: ARG001
    """Delivery fee in kopecks. Delivery is currently free for every type."""
    return 0


def parse_delivery_type(value) -> DeliveryType:
    try:
        return DeliveryType(value or DeliveryType.PICKUP.value)
    except ValueError:
        raise business_error(
            ErrorCode.INVALID_DELIVERY_TYPE,
            f"Delivery type must be PICKUP or DELIVERY, got {value!r}",
        ) from None


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@groupbuy.value_object(part_of="Order")
class GuestContact:
    """How to reach the customer behind a guest order.

    A contact method is mandatory, plus at least one way to use it.
    """

    name = String(max_length=255)
    phone = String(max_length=50)
    email = String(max_length=255)
    telegram = String(max_length=100)
    contact_method = String(max_length=20)
    contact_info = String(max_length=500)

    @invariant.post
    def must_be_reachable(self):
        if not self.contact_method:
            raise business_error(ErrorCode.GUEST_CONTACT_REQUIRED, "Guest contact method is required")
        if not (self.phone or self.email or self.contact_info or self.telegram):
            raise business_error(
                ErrorCode.GUEST_CONTACT_REQUIRED, "At least one contact method must be provided"
            )


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@groupbuy.entity(part_of="Order")
class OrderItem:
    """One order line, frozen at the prices and step in force when it was written."""

    product_id = Identifier(required=True)
    title = String(required=True, max_length=255)
    unit_label = String(max_length=50)
    quantity = String(required=True, max_length=32)
    step = String(required=True, max_length=32)
    unit_price = Integer(required=True, min_value=0)
    subtotal = Integer(required=True, min_value=0)
    image_path = String(max_length=500)

    @invariant.post
    def quantity_must_be_a_positive_step_multiple(self):
        if to_decimal(self.quantity) <= ZERO or not is_multiple_of(self.quantity, self.step):
            raise ValidationError({"quantity": [f"Quantity must be a positive multiple of {self.step}"]})

    @classmethod
    def from_priced_line(cls, line):
        product = line.pricing.product
        return cls(
            product_id=line.product_id,
            title=product.title,
            unit_label=product.unit_label,
            quantity=line.quantity,
            step=line.step,
            unit_price=line.unit_price,
            subtotal=line.subtotal,
            image_path=product.image_path,
        )

    def snapshot(self) -> dict:
        return {
            "product_id": str(self.product_id),
            "title": self.title,
            "unit_label": self.unit_label,
            "quantity": self.quantity,
            "step": self.step,
            "unit_price": self.unit_price,
            "subtotal": self.subtotal,
        }


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@groupbuy.aggregate
class Order:
    id = Integer(identifier=True)
    order_number = String(max_length=20)
    user_id = Identifier()
    session_id = String(max_length=255)
    is_guest_order = Boolean(default=False)
    guest_contact = ValueObject(GuestContact)
    collection_id = Identifier(required=True)
    status = String(choices=OrderStatus, default=OrderStatus.SUBMITTED.value)
    items = HasMany(OrderItem)
    total = Integer(default=0)
    delivery_type = String(choices=DeliveryType, default=DeliveryType.PICKUP.value)
    delivery_address = String(max_length=500)
    delivery_cost = Integer(default=0)
    payment_method = String(max_length=50, default=DEFAULT_PAYMENT_METHOD)
    edit_version = Integer(default=0)
    submitted_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def must_have_exactly_one_owner(self):
        if bool(self.user_id) == bool(self.session_id):
            raise ValidationError({"owner": ["Order must belong to a user or a guest session, not both"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        order_id,
        owner,
        collection_id,
        lines,
        delivery_type=None,
        delivery_address=None,
        payment_method=None,
        guest_contact=None,
    ):
        """Build a SUBMITTED order from validated lines (``PricedLine``)."""
        delivery = parse_delivery_type(delivery_type)
        items_total = sum(line.subtotal for line in lines)
        delivery_cost = delivery_cost_for(delivery, items_total)
        now = datetime.now(UTC)

        order = cls(
            id=order_id,
            order_number=order_number_for(order_id),
            user_id=owner.user_id,
            session_id=owner.session_id,
            is_guest_order=owner.is_guest,
            guest_contact=guest_contact,
            collection_id=collection_id,
            status=OrderStatus.SUBMITTED.value,
            items=[OrderItem.from_priced_line(line) for line in lines],
            total=items_total + delivery_cost,
            delivery_type=delivery.value,
            delivery_address=delivery_address if delivery == DeliveryType.DELIVERY else None,
            delivery_cost=delivery_cost,
            payment_method=payment_method or DEFAULT_PAYMENT_METHOD,
            edit_version=0,
            submitted_at=now,
            updated_at=now,
        )

        order.raise_(
            OrderPlaced(
                order_id=order.id,
                order_number=order.order_number,
                collection_id=str(collection_id),
                user_id=str(owner.user_id) if owner.user_id else None,
                session_id=owner.session_id,
                is_guest_order=order.is_guest_order,
                items=json.dumps([item.snapshot() for item in order.items]),
                total=order.total,
                delivery_type=order.delivery_type,
                submitted_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    @property
    def items_total(self) -> int:
        return sum(item.subtotal for item in self.items)

    def _recalculate_total(self):
        self.total = self.items_total + (self.delivery_cost or 0)

    def _record_edit(self):
        self.edit_version = (self.edit_version or 0) + 1
        self.updated_at = datetime.now(UTC)

    def assert_editable(self):
        if self.status != OrderStatus.SUBMITTED.value:
            raise business_error(
                ErrorCode.ORDER_CANNOT_BE_EDITED,
                f"Order in status {self.status} cannot be edited",
                order_id=self.id,
            )

    def _assert_cancellable(self):
        if self.status != OrderStatus.SUBMITTED.value:
            raise business_error(
                ErrorCode.ORDER_CANNOT_BE_CANCELLED,
                f"Order in status {self.status} cannot be cancelled",
                order_id=self.id,
            )

    def assert_can_transition(self, target):
        current = OrderStatus(self.status)
        if target not in _VALID_TRANSITIONS[current]:
            raise business_error(
                ErrorCode.INVALID_STATUS_TRANSITION,
                f"Cannot transition from {current.value} to {target.value}",
                order_id=self.id,
            )

    def find_item(self, item_id):
        item = next((i for i in self.items if str(i.id) == str(item_id)), None)
        if item is None:
            raise business_error(ErrorCode.ORDER_ITEM_NOT_FOUND, "Order item not found", item_id=item_id)
        return item

    def item_for_product(self, product_id):
        return next((i for i in self.items if str(i.product_id) == str(product_id)), None)

    # -------------------------------------------------------------------
    # Line edits (SUBMITTED only)
    # -------------------------------------------------------------------
    def add_line(self, line):
        """Add a freshly priced line (``PricedLine``); one line per product."""
        self.assert_editable()
        if self.item_for_product(line.product_id) is not None:
            raise business_error(
                ErrorCode.DUPLICATE_ORDER_ITEM,
                "Product is already in the order; change its quantity instead",
                product_id=line.product_id,
            )

        item = OrderItem.from_priced_line(line)
        self.add_items(item)
        self._recalculate_total()
        self._record_edit()

        self.raise_(
            OrderItemAdded(
                order_id=self.id,
                item_id=str(item.id),
                product_id=str(item.product_id),
                quantity=item.quantity,
                unit_price=item.unit_price,
                subtotal=item.subtotal,
                new_total=self.total,
                edit_version=self.edit_version,
            )
        )
        return item

    def update_line_quantity(self, item_id, quantity):
        """Re-quantify a line at its stored unit price and step."""
        self.assert_editable()
        item = self.find_item(item_id)

        quantity_dec = check_quantity(quantity, item.step, product_id=str(item.product_id))
        subtotal = exact_subtotal(item.unit_price, quantity_dec, item.step, product_id=str(item.product_id))

        previous = item.quantity
        item.quantity = format_decimal(quantity_dec)
        item.subtotal = subtotal
        self._recalculate_total()
        self._record_edit()

        self.raise_(
            OrderItemQuantityChanged(
                order_id=self.id,
                item_id=str(item.id),
                previous_quantity=previous,
                new_quantity=item.quantity,
                new_total=self.total,
                edit_version=self.edit_version,
            )
        )

    def remove_line(self, item_id):
        self.assert_editable()
        item = self.find_item(item_id)
        if len(self.items) <= 1:
            raise business_error(
                ErrorCode.CANNOT_DELETE_LAST_ITEM,
                "Cannot delete the last item; cancel the order instead",
                order_id=self.id,
            )

        self.remove_items(item)
        self._recalculate_total()
        self._record_edit()

        self.raise_(
            OrderItemRemoved(
                order_id=self.id,
                item_id=str(item.id),
                product_id=str(item.product_id),
                new_total=self.total,
                edit_version=self.edit_version,
            )
        )

    def change_delivery(self, delivery_type, delivery_address=None):
        self.assert_editable()
        delivery = parse_delivery_type(delivery_type)

        self.delivery_type = delivery.value
        self.delivery_address = delivery_address if delivery == DeliveryType.DELIVERY else None
        self.delivery_cost = delivery_cost_for(delivery, self.items_total)
        self._recalculate_total()
        self._record_edit()

        self.raise_(
            OrderDeliveryChanged(
                order_id=self.id,
                delivery_type=self.delivery_type,
                delivery_address=self.delivery_address,
                edit_version=self.edit_version,
            )
        )

    # -------------------------------------------------------------------
    # Cancellation
    # -------------------------------------------------------------------
    def partial_cancel(self, cancellations):
        """Take quantities off lines.

        ``cancellations`` is an iterable of ``(product_id, quantity)``. Each
        quantity must be a positive multiple of the line's step; a line whose
        quantity reaches zero is removed. When no line remains the order is
        cancelled. Returns ``[(product_id, returned_quantity)]`` for the
        caller to put back into stock.
        """
        self._assert_cancellable()

        # Validate everything before touching any line. Repeated products are
        # summed so each line is planned once.
        plan = {}
        for product_id, quantity in cancellations:
            item = self.item_for_product(product_id)
            if item is None:
                raise business_error(
                    ErrorCode.ORDER_ITEM_NOT_FOUND, "Product is not in the order", product_id=product_id
                )
            requested = check_quantity(quantity, item.step, product_id=str(product_id))
            key = str(item.product_id)
            if key in plan:
                plan[key] = (item, plan[key][1] + requested)
            else:
                plan[key] = (item, requested)

        returned = []
        for item, requested in plan.values():
            current = parse_quantity(item.quantity)
            taken = min(requested, current)
            remaining = current - taken
            if remaining <= ZERO:
                self.remove_items(item)
            else:
                item.quantity = format_decimal(remaining)
                item.subtotal = exact_subtotal(item.unit_price, remaining, item.step, product_id=str(item.product_id))
            if taken > ZERO:
                returned.append((str(item.product_id), format_decimal(taken)))

        self._recalculate_total()
        self.updated_at = datetime.now(UTC)

        self.raise_(
            OrderPartiallyCancelled(
                order_id=self.id,
                returned=json.dumps([{"product_id": pid, "quantity": qty} for pid, qty in returned]),
                new_total=self.total,
                remaining_lines=len(self.items),
            )
        )

        if not self.items:
            self._mark_cancelled()
        return returned

    def cancel(self):
        """Cancel the whole order. Returns ``[(product_id, quantity)]`` to restock."""
        self._assert_cancellable()
        returned = [(str(item.product_id), item.quantity) for item in self.items]
        self._mark_cancelled()
        return returned

    def _mark_cancelled(self):
        previous = self.status
        now = datetime.now(UTC)
        self.status = OrderStatus.CANCELLED.value
        self.updated_at = now
        self.raise_(OrderCancelled(order_id=self.id, previous_status=previous, cancelled_at=now))

    # -------------------------------------------------------------------
    # Status
    # -------------------------------------------------------------------
    def transition_to(self, target):
        """Move to a non-cancelled status (PAID, COMPLETED)."""
        self.assert_can_transition(target)
        previous = self.status
        now = datetime.now(UTC)
        self.status = target.value
        self.updated_at = now

        self.raise_(
            OrderStatusChanged(order_id=self.id, previous_status=previous, new_status=target.value, changed_at=now)
        )

    # -------------------------------------------------------------------
    # Ownership
    # -------------------------------------------------------------------
    def reassign_to_user(self, user_id):
        previous_user_id = self.user_id
        previous_session_id = self.session_id
        with atomic_change(self):
            self.user_id = str(user_id)
            self.session_id = None
            self.is_guest_order = False
        self.updated_at = datetime.now(UTC)

        self.raise_(
            OrderReassigned(
                order_id=self.id,
                user_id=str(user_id),
                previous_user_id=str(previous_user_id) if previous_user_id else None,
                previous_session_id=previous_session_id,
            )
        )


@groupbuy.repository(part_of=Order)
class OrderRepository:
    def guest_orders(self, session_id) -> list:
        """Guest orders of a session that no user has claimed yet."""
        records = self._dao.query.filter(session_id=session_id, is_guest_order=True).limit(None).all().items
        return [order for order in records if not order.user_id]

    def for_user(self, user_id) -> list:
        return self._dao.query.filter(user_id=str(user_id)).limit(None).all().items

    def with_status(self, status) -> list:
        return self._dao.query.filter(status=status.value).limit(None).all().items
