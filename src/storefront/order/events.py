"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Float, Identifier, String, Text

from storefront.domain import storefront


@storefront.event(part_of="Order")
class OrderPlaced:
    """A pending order was created at checkout from the shopper's cart."""

    __version__ = 1

    order_id = Identifier(required=True)
    session_id = String(required=True)
    user_id = Identifier()
    payment_provider = String(required=True)
    items = Text(required=True)  # JSON: frozen item snapshot
    total_amount = Float(required=True)
    currency = String(required=True)
    placed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class PaymentSessionOpened:
    __version__ = 1

    order_id = Identifier(required=True)
    payment_provider = String(required=True)
    payment_provider_session_id = String(required=True)


@storefront.event(part_of="Order")
class OrderPaid:
    __version__ = 1

    order_id = Identifier(required=True)
    payment_provider = String(required=True)
    payment_provider_session_id = String()
    total_amount = Float(required=True)
    paid_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderFailed:
    __version__ = 1

    order_id = Identifier(required=True)
    reason = String(max_length=500)
    failed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderCancelled:
    __version__ = 1

    order_id = Identifier(required=True)
    reason = String(max_length=500)
    cancelled_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderCompleted:
    __version__ = 1

    order_id = Identifier(required=True)
    completed_at = DateTime(required=True)
