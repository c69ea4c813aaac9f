"""Read side of the cart. A shopper without a cart sees an empty one."""

from protean.utils.globals import current_domain

from storefront.cart.cart import Cart, empty_cart_dict
from storefront.shared.owner import Owner


def get_cart(session_id=None, user_id=None) -> dict:
    cart = current_domain.repository_for(Cart).find_for(Owner.resolve(session_id, user_id))
    return cart.summary() if cart else empty_cart_dict()
