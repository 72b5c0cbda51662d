"""Inventory ledger — stock movements on Product.

Runs inside the caller's unit of work: order placement and cancellation call
it so that stock changes commit or roll back with the order. Decreases clamp
at zero; the lost part is logged as a shortfall rather than rejected.
"""

import structlog
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from groupbuy.catalogue.product import Product
from groupbuy.shared.quantity import ZERO, format_decimal, to_decimal

logger = structlog.get_logger(__name__)


def _amount(amount):
    amount_dec = to_decimal(amount, field="amount")
    if amount_dec <= ZERO:
        raise ValidationError({"amount": ["Stock movement must be greater than zero"]})
    return amount_dec


def decrease(product_id, amount) -> Product:
    """Take ``amount`` of a product out of stock (never below zero)."""
    amount_dec = _amount(amount)
    repo = current_domain.repository_for(Product)
    product = repo.get(product_id)

    shortfall = product.decrease_stock(amount_dec)
    repo.add(product)

    if shortfall > ZERO:
        logger.warning(
            "stock_shortfall",
            product_id=str(product_id),
            requested=format_decimal(amount_dec),
            shortfall=format_decimal(shortfall),
        )
    elif product.is_low_stock():
        logger.info("stock_low", product_id=str(product_id), stock=product.stock_quantity)
    return product


def increase(product_id, amount) -> Product:
    """Return ``amount`` of a product to stock."""
    amount_dec = _amount(amount)
    repo = current_domain.repository_for(Product)
    product = repo.get(product_id)

    product.increase_stock(amount_dec)
    repo.add(product)
    logger.debug("stock_returned", product_id=str(product_id), amount=format_decimal(amount_dec))
    return product


def is_low_stock(product_id) -> bool:
    return current_domain.repository_for(Product).get(product_id).is_low_stock()
