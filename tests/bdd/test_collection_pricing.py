"""BDD tests for collection-scoped pricing of cart lines."""

from groupbuy.cart.summary import summarize_cart
from groupbuy.shared.errors import error_code, error_hints
from protean.exceptions import ValidationError
from pytest_bdd import parsers, scenarios, then, when

scenarios("features/collection_pricing.feature")


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse('the customer adds "{quantity}" of "{product}" in "{collection}"'))
def _(catalog, user, add_to_cart, quantity, product, collection):
    add_to_cart(user, catalog["collections"][collection], catalog["products"][product], quantity)


@when(
    parsers.cfparse('the customer tries to add "{quantity}" of "{product}" in "{collection}"'),
    target_fixture="error",
)
def _(catalog, user, add_to_cart, quantity, product, collection):
    try:
        add_to_cart(user, catalog["collections"][collection], catalog["products"][product], quantity)
    except ValidationError as exc:
        return exc
    return None


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the cart total for "{collection}" is {total:d}'))
def _(catalog, user, collection, total):
    summary = summarize_cart(user, collection_ids=[catalog["collections"][collection].id])
    assert summary.total == total


@then(parsers.cfparse('the request fails with "{code}"'))
def _(error, code):
    assert error is not None
    assert error_code(error) == code


@then(parsers.cfparse('the step hint is "{step}"'))
def _(error, step):
    assert error_hints(error)["step"] == step
