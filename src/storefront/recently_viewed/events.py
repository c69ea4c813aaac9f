"""Domain events for recently viewed products."""

from protean.fields import DateTime, Identifier, String

from storefront.domain import storefront


@storefront.event(part_of="ProductView")
class ProductViewed:
    __version__ = 1

    view_id = Identifier(required=True)
    owner_kind = String(required=True)
    owner_key = String(required=True)
    product_id = Identifier(required=True)
    viewed_at = DateTime(required=True)


@storefront.event(part_of="ProductView")
class ProductViewReassigned:
    """A guest's view was handed over to the user who logged in."""

    __version__ = 1

    view_id = Identifier(required=True)
    session_id = String(required=True)
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)
