"""Checkout — turn the shopper's cart into a pending order and open a payment session.

The cart is left untouched here. It is cleared only once the provider confirms
payment, so an abandoned payment page does not cost the shopper their cart.
"""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.cart.cart import Cart
from storefront.catalog import get_catalog
from storefront.domain import logger, storefront
from storefront.order.order import Order, PaymentProvider
from storefront.payments.gateway import get_gateway
from storefront.shared.errors import ErrorCode, InvalidRequestError, NotFoundError, StockError
from storefront.shared.owner import Owner
from storefront.utils import settings


@storefront.command(part_of="Order")
class Checkout:
    session_id = String(required=True, max_length=64)
    user_id = Identifier()
    payment_provider = String(required=True, choices=PaymentProvider)
    currency = String(max_length=3)


def _frozen_items(cart: Cart) -> list[dict]:
    """Snapshot cart lines with catalogue display data, checking stock on the way."""
    catalog = get_catalog()
    items = []
    for line in cart.items:
        variant_item_ids = line.selected_variant_item_ids
        product = catalog.get_product(str(line.product_id))
        if product is None:
            raise NotFoundError(ErrorCode.PRODUCT_NOT_FOUND, "Product not found", product_id=str(line.product_id))
        if not catalog.has_stock(str(line.product_id), variant_item_ids, line.quantity):
            raise StockError(
                ErrorCode.INSUFFICIENT_STOCK,
                f"Not enough stock for {product.name}",
                product_id=str(line.product_id),
            )

        items.append(
            {
                "product_id": str(line.product_id),
                "product_name": product.name,
                "product_image": product.image,
                "variant_name": product.variant_name(variant_item_ids),
                "variant_item_ids": variant_item_ids,
                "quantity": line.quantity,
                "unit_price": line.unit_price,
            }
        )
    return items


@storefront.command_handler(part_of=Order)
class CheckoutHandler:
    @handle(Checkout)
    def checkout(self, command):
        cart = current_domain.repository_for(Cart).find_for(Owner.resolve(command.session_id, command.user_id))
        if cart is None or not cart.items:
            raise InvalidRequestError(ErrorCode.EMPTY_CART, "Cart is empty")
        if cart.billing_details is None:
            raise InvalidRequestError(ErrorCode.MISSING_BILLING_DETAILS, "Billing details are required")

        order = Order.place(
            session_id=command.session_id,
            user_id=command.user_id,
            payment_provider=command.payment_provider,
            items=_frozen_items(cart),
            currency=command.currency or settings.DEFAULT_CURRENCY,
            billing_details=cart.billing_details,
        )

        # Open the provider session before persisting so a provider outage leaves no orphan order
        session = get_gateway(command.payment_provider).create_checkout(order)
        order.open_payment_session(session.provider_session_id)
        current_domain.repository_for(Order).add(order)

        logger.info(
            "order_placed",
            order_id=str(order.id),
            payment_provider=command.payment_provider,
            total_amount=order.total_amount,
        )
        return {
            "order_id": str(order.id),
            "redirect_url": session.redirect_url,
            "payment_provider_session_id": session.provider_session_id,
        }
