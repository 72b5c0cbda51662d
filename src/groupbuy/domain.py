"""Group-buy bounded context — collection-scoped pricing and order fulfillment.

Handles the product catalog as seen through time-boxed sales periods
(collections), carts scoped to one collection, the atomic cart-to-order
conversion with stock adjustment, post-submission order edits, and merging
guest carts/orders into authenticated accounts.
"""

from protean.domain import Domain

groupbuy = Domain(name="groupbuy")
