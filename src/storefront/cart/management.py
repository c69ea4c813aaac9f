"""Cart management — clearing, billing details and the guest cart merge at login."""

from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from storefront.cart.cart import Cart
from storefront.domain import logger, storefront
from storefront.shared.billing import BillingDetails
from storefront.shared.errors import ErrorCode, NotFoundError
from storefront.shared.owner import Owner


@storefront.command(part_of="Cart")
class ClearCart:
    session_id = String(max_length=64)
    user_id = Identifier()


@storefront.command(part_of="Cart")
class AttachBillingDetails:
    session_id = String(max_length=64)
    user_id = Identifier()
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


@storefront.command(part_of="Cart")
class MergeGuestCart:
    """Fold the cart of a guest session into the cart of the user who just logged in."""

    session_id = String(required=True, max_length=64)
    user_id = Identifier(required=True)


@storefront.command_handler(part_of=Cart)
class ManageCartHandler:
    @handle(ClearCart)
    def clear_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.find_for(Owner.resolve(command.session_id, command.user_id))
        if cart is None:
            return
        cart.clear()
        repo.add(cart)

    @handle(AttachBillingDetails)
    def attach_billing_details(self, command):
        repo = current_domain.repository_for(Cart)
        owner = Owner.resolve(command.session_id, command.user_id)
        cart = repo.find_for(owner)
        if cart is None:
            raise NotFoundError(ErrorCode.CART_NOT_FOUND, "No cart for this shopper", owner=owner.key)

        cart.attach_billing_details(
            BillingDetails(
                email=command.email,
                first_name=command.first_name,
                last_name=command.last_name,
                country=command.country,
                street_address_1=command.street_address_1,
                street_address_2=command.street_address_2,
                city=command.city,
                state_or_county=command.state_or_county,
                phone=command.phone,
                order_notes=command.order_notes,
            )
        )
        repo.add(cart)

    @handle(MergeGuestCart)
    def merge_guest_cart(self, command):
        repo = current_domain.repository_for(Cart)
        guest_cart = repo.find_for(Owner.session(command.session_id))
        user_cart = repo.find_for(Owner.user(command.user_id))

        if guest_cart is None:
            return str(user_cart.id) if user_cart else None

        if user_cart is None:
            guest_cart.adopt_by(command.user_id)
            repo.add(guest_cart)
            logger.info("guest_cart_adopted", cart_id=str(guest_cart.id), user_id=str(command.user_id))
            return str(guest_cart.id)

        user_cart.absorb(guest_cart)
        repo.add(user_cart)
        repo.discard(guest_cart)
        logger.info(
            "guest_cart_merged",
            cart_id=str(user_cart.id),
            guest_cart_id=str(guest_cart.id),
            user_id=str(command.user_id),
        )
        return str(user_cart.id)
