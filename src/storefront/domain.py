"""Storefront bounded context — sessions, carts, wishlists and orders.

Handles anonymous and identified storefront sessions, the shopper-facing
collections (cart, wishlist, recently viewed products) that move from a guest
session to a user at login, and the order state machine driven by payment
provider webhooks.
"""

from protean.domain import Domain

from storefront.utils.logging import get_logger

logger = get_logger(__name__)

# Domain Composition Root
storefront = Domain(name="storefront")
