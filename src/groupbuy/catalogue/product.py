"""Product aggregate — the shared catalog entry sold across collections.

Quantities (stock, minimum stock, step) are decimal strings and are only
interpreted through ``groupbuy.shared.quantity``. Prices are integer kopecks.
Stock is the only field mutated after registration, and only through
``decrease_stock`` / ``increase_stock`` (called by the inventory ledger).
"""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Integer, String

from groupbuy.catalogue.events import ProductRegistered, StockDecreased, StockIncreased
from groupbuy.domain import groupbuy
from groupbuy.shared.quantity import ZERO, format_decimal, to_decimal


class StockHint(Enum):
    IN = "IN"
    LOW = "LOW"
    OUT = "OUT"


@groupbuy.aggregate
class Product:
    """Catalog product with base price, base step and current stock."""

    title: String(required=True, max_length=255)
    unit_label: String(max_length=50, default="pcs")
    base_price: Integer(required=True, min_value=0)
    base_step: String(max_length=32, default="1")
    stock_quantity: String(max_length=32, default="0")
    min_stock: String(max_length=32, default="0")
    is_active: Boolean(default=True)
    display_stock_hint: String(choices=StockHint)
    image_path: String(max_length=500)
    category: String(max_length=100)
    created_at: DateTime()
    updated_at: DateTime()

    @invariant.post
    def base_step_must_be_positive(self):
        if to_decimal(self.base_step, field="base_step") <= ZERO:
            raise ValidationError({"base_step": ["Step must be greater than zero"]})

    @invariant.post
    def stock_cannot_be_negative(self):
        if to_decimal(self.stock_quantity, field="stock_quantity") < ZERO:
            raise ValidationError({"stock_quantity": ["Stock cannot be negative"]})

    @classmethod
    def create(
        cls,
        title,
        base_price,
        base_step="1",
        stock_quantity="0",
        min_stock="0",
        unit_label="pcs",
        display_stock_hint=None,
        image_path=None,
        category=None,
        is_active=True,
    ):
        now = datetime.now(UTC)
        product = cls(
            title=title,
            base_price=base_price,
            base_step=format_decimal(base_step),
            stock_quantity=format_decimal(stock_quantity),
            min_stock=format_decimal(min_stock),
            unit_label=unit_label,
            display_stock_hint=display_stock_hint,
            image_path=image_path,
            category=category,
            is_active=is_active,
            created_at=now,
            updated_at=now,
        )

        product.raise_(
            ProductRegistered(
                product_id=str(product.id),
                title=title,
                base_price=base_price,
                base_step=product.base_step,
                stock_quantity=product.stock_quantity,
                registered_at=now,
            )
        )

        return product

    def decrease_stock(self, amount):
        """Take ``amount`` out of stock, clamping at zero.

        Returns the shortfall (the part of ``amount`` that was not covered by
        stock) as a Decimal; zero when stock was sufficient.
        """
        amount_dec = to_decimal(amount, field="amount")
        previous = to_decimal(self.stock_quantity)
        remaining = previous - amount_dec
        shortfall = -remaining if remaining < ZERO else ZERO

        now = datetime.now(UTC)
        self.stock_quantity = format_decimal(max(remaining, ZERO))
        self.updated_at = now

        self.raise_(
            StockDecreased(
                product_id=str(self.id),
                amount=format_decimal(amount_dec),
                previous_stock=format_decimal(previous),
                new_stock=self.stock_quantity,
                shortfall=format_decimal(shortfall),
                changed_at=now,
            )
        )
        return shortfall

    def increase_stock(self, amount):
        amount_dec = to_decimal(amount, field="amount")
        previous = to_decimal(self.stock_quantity)

        now = datetime.now(UTC)
        self.stock_quantity = format_decimal(previous + amount_dec)
        self.updated_at = now

        self.raise_(
            StockIncreased(
                product_id=str(self.id),
                amount=format_decimal(amount_dec),
                previous_stock=format_decimal(previous),
                new_stock=self.stock_quantity,
                changed_at=now,
            )
        )

    def is_low_stock(self) -> bool:
        return to_decimal(self.stock_quantity) <= to_decimal(self.min_stock or "0")
