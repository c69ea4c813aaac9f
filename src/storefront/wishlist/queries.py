"""Read side of the wishlist."""

from protean.utils.globals import current_domain

from storefront.shared.owner import Owner
from storefront.wishlist.wishlist import Wishlist


def get_wishlist(session_id=None, user_id=None) -> dict:
    wishlist = current_domain.repository_for(Wishlist).find_for(Owner.resolve(session_id, user_id))
    return wishlist.summary() if wishlist else {"wishlist_id": None, "items": []}
