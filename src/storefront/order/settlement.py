"""Settlement of paid orders — event handler reacting to OrderPaid.

Runs only once the `paid` status has been committed, so a webhook delivery
that loses a concurrent write never reduces stock or clears a cart. Stock is
reduced line by line; a failing line is logged for manual reconciliation and
does not stop the remaining lines or undo the payment.
"""

from protean import handle
from protean.utils.globals import current_domain

from storefront.cart.cart import Cart
from storefront.catalog import get_catalog
from storefront.domain import logger, storefront
from storefront.order.events import OrderPaid
from storefront.order.order import Order


def reduce_stock(order: Order) -> list[str]:
    """Reduce stock for every line. Returns the product ids that failed."""
    catalog = get_catalog()
    failed = []
    for item in order.items:
        try:
            catalog.reduce_variant_stock(str(item.product_id), item.selected_variant_item_ids, item.quantity)
        except Exception as exc:
            failed.append(str(item.product_id))
            logger.error(
                "stock_reduction_failed",
                order_id=str(order.id),
                product_id=str(item.product_id),
                quantity=item.quantity,
                error=str(exc),
                reconciliation_required=True,
            )
    return failed


def clear_shopper_cart(order: Order) -> bool:
    """Empty the cart of the identity the order was placed under."""
    repo = current_domain.repository_for(Cart)
    cart = repo.find_for(order.shopper)
    if cart is None:
        return False
    cart.clear()
    repo.add(cart)
    return True


@storefront.event_handler(part_of=Order)
class OrderSettlementEventHandler:
    """Applies the side effects of a committed payment."""

    @handle(OrderPaid)
    def on_order_paid(self, event: OrderPaid) -> None:
        order = current_domain.repository_for(Order).get(event.order_id)

        failed = reduce_stock(order)
        cleared = clear_shopper_cart(order)
        logger.info(
            "order_settled",
            order_id=str(order.id),
            stock_failures=len(failed),
            cart_cleared=cleared,
        )
