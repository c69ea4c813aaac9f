"""Billing details captured from the shopper before checkout."""

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import String, Text

from storefront.domain import storefront


@storefront.value_object
class BillingDetails:
    """Contact and billing address for an order.

    Attached to the cart while the shopper fills in the checkout form and
    copied verbatim onto the order when it is placed.
    """

    email = String(required=True, max_length=254)
    first_name = String(required=True, max_length=100)
    last_name = String(required=True, max_length=100)
    country = String(required=True, max_length=100)
    street_address_1 = String(required=True, max_length=255)
    street_address_2 = String(max_length=255)
    city = String(required=True, max_length=100)
    state_or_county = String(max_length=100)
    phone = String(required=True, max_length=30)
    order_notes = Text()

    @invariant.post
    def email_must_look_like_an_address(self):
        local, _, domain = (self.email or "").partition("@")
        if not local or "." not in domain:
            raise ValidationError({"email": [f"Invalid email address: {self.email!r}"]})
