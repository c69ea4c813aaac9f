"""Admin order management — status changes, listing and lookup."""

import math

from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import logger, storefront
from storefront.order.order import Order, OrderStatus
from storefront.shared.errors import ErrorCode, InvalidRequestError, NotFoundError

MAX_PAGE_SIZE = 100


def parse_status(value: str) -> OrderStatus:
    try:
        return OrderStatus(value)
    except ValueError:
        raise InvalidRequestError(
            ErrorCode.INVALID_STATUS,
            f"Unknown order status {value!r}",
            allowed=[s.value for s in OrderStatus],
        ) from None


def load_order(order_id) -> Order:
    try:
        return current_domain.repository_for(Order).get(order_id)
    except ObjectNotFoundError:
        raise NotFoundError(ErrorCode.ORDER_NOT_FOUND, "Order not found", order_id=str(order_id)) from None


@storefront.command(part_of="Order")
class UpdateOrderStatus:
    order_id = Identifier(required=True)
    status = String(required=True, max_length=20)
    reason = String(max_length=500)


@storefront.command_handler(part_of=Order)
class AdminOrderHandler:
    @handle(UpdateOrderStatus)
    def update_order_status(self, command):
        target = parse_status(command.status)
        order = load_order(command.order_id)
        previous = order.status

        order.change_status(target, reason=command.reason)
        current_domain.repository_for(Order).add(order)

        logger.info("order_status_updated", order_id=str(order.id), previous=previous, status=order.status)
        return order.status


def get_order(order_id) -> dict:
    return load_order(order_id).summary()


def list_orders(page: int = 1, limit: int = 20, status: str | None = None) -> dict:
    if page < 1 or limit < 1 or limit > MAX_PAGE_SIZE:
        raise ValidationError({"pagination": [f"page must be >= 1 and limit between 1 and {MAX_PAGE_SIZE}"]})
    if status:
        status = parse_status(status).value

    orders, total = current_domain.repository_for(Order).page(page, limit, status)
    return {
        "orders": [order.summary() for order in orders],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "total_pages": math.ceil(total / limit) if total else 0,
        },
    }
