"""Domain events for the Wishlist aggregate."""

from protean.fields import Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="Wishlist")
class WishlistItemAdded:
    __version__ = 1

    wishlist_id = Identifier(required=True)
    product_id = Identifier(required=True)
    variant_key = String(required=True)


@storefront.event(part_of="Wishlist")
class WishlistItemRemoved:
    __version__ = 1

    wishlist_id = Identifier(required=True)
    product_id = Identifier(required=True)
    variant_key = String(required=True)


@storefront.event(part_of="Wishlist")
class WishlistCleared:
    __version__ = 1

    wishlist_id = Identifier(required=True)
    items_removed = Integer(required=True)


@storefront.event(part_of="Wishlist")
class GuestWishlistMerged:
    __version__ = 1

    wishlist_id = Identifier(required=True)
    guest_wishlist_id = Identifier()  # Empty when the guest wishlist was adopted as-is
    user_id = Identifier(required=True)
    items_added = Integer(required=True)
