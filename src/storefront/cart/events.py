"""Domain events for the Cart aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String, Text

from storefront.domain import storefront


@storefront.event(part_of="Cart")
class CartItemAdded:
    """A product combination was added to the cart, or its quantity increased."""

    __version__ = 1

    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)
    variant_key = String(required=True)
    quantity = Integer(required=True)  # Quantity added by this call
    new_quantity = Integer(required=True)  # Line quantity afterwards
    unit_price = Float(required=True)


@storefront.event(part_of="Cart")
class CartItemQuantityUpdated:
    __version__ = 1

    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)
    variant_key = String(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)


@storefront.event(part_of="Cart")
class CartItemRemoved:
    __version__ = 1

    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)
    variant_key = String(required=True)


@storefront.event(part_of="Cart")
class CartCleared:
    __version__ = 1

    cart_id = Identifier(required=True)
    items_removed = Integer(required=True)
    cleared_at = DateTime(required=True)


@storefront.event(part_of="Cart")
class GuestCartMerged:
    """A guest cart was folded into a user's cart at login."""

    __version__ = 1

    cart_id = Identifier(required=True)
    guest_cart_id = Identifier(required=True)
    user_id = Identifier(required=True)
    lines_merged = Integer(required=True)


@storefront.event(part_of="Cart")
class CartAdopted:
    """A guest cart was re-keyed to a user who had no cart yet."""

    __version__ = 1

    cart_id = Identifier(required=True)
    session_id = Identifier(required=True)
    user_id = Identifier(required=True)


@storefront.event(part_of="Cart")
class BillingDetailsAttached:
    __version__ = 1

    cart_id = Identifier(required=True)
    billing_details = Text(required=True)  # JSON
