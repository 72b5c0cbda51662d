"""Shared BDD fixtures and step definitions."""

import pytest
from groupbuy.catalogue.product import Product
from protean import current_domain
from pytest_bdd import given, parsers, then


@pytest.fixture
def catalog():
    """Products and collections created by Given steps, by title."""
    return {"products": {}, "collections": {}}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a product "{title}" priced {price:d} per step of "{step}" with stock "{stock}"'))
def _(catalog, make_product, title, price, step, stock):
    catalog["products"][title] = make_product(title=title, base_price=price, base_step=step, stock_quantity=stock)


@given(parsers.cfparse('an active collection "{title}"'))
def _(catalog, make_collection, title):
    catalog["collections"][title] = make_collection(title=title)


@given(parsers.cfparse('"{product}" costs {price:d} per step of "{step}" in "{collection}"'))
def _(catalog, make_override, product, price, step, collection):
    make_override(catalog["collections"][collection], catalog["products"][product], price=price, step=step)


@given(parsers.cfparse('"{product}" is hidden in "{collection}"'))
def _(catalog, make_override, product, collection):
    make_override(catalog["collections"][collection], catalog["products"][product], is_active=False)


@given(parsers.cfparse('the customer has "{quantity}" of "{product}" in "{collection}"'))
def _(catalog, user, add_to_cart, quantity, product, collection):
    add_to_cart(user, catalog["collections"][collection], catalog["products"][product], quantity)


@given(parsers.cfparse('a guest has "{quantity}" of "{product}" in "{collection}"'))
def _(catalog, guest, add_to_cart, quantity, product, collection):
    add_to_cart(guest, catalog["collections"][collection], catalog["products"][product], quantity)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the stock of "{product}" is "{stock}"'))
def _(catalog, product, stock):
    stored = current_domain.repository_for(Product).get(catalog["products"][product].id)
    assert stored.stock_quantity == stock
