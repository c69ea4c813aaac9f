"""Order aggregate (CQRS) — a frozen snapshot of a cart awaiting payment.

State Machine:
    PENDING → PAID → COMPLETED
    PENDING → FAILED
    PENDING → CANCELLED

Orders are created PENDING at checkout. Only a payment provider confirmation,
re-verified with the provider, moves an order to PAID; failure and
cancellation come from provider callbacks or an admin. COMPLETED is set by an
admin once fulfilment is confirmed. Every other transition is rejected.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, Text, ValueObject

from storefront.domain import logger, storefront
from storefront.order.events import (
    OrderCancelled,
    OrderCompleted,
    OrderFailed,
    OrderPaid,
    OrderPlaced,
    PaymentSessionOpened,
)
from storefront.shared.billing import BillingDetails
from storefront.shared.owner import Owner


class OrderStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class PaymentProvider(Enum):
    STRIPE = "stripe"
    TABBY = "tabby"


_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PAID, OrderStatus.FAILED, OrderStatus.CANCELLED},
    OrderStatus.PAID: {OrderStatus.COMPLETED},
    OrderStatus.FAILED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
    OrderStatus.COMPLETED: set(),  # Terminal
}


@storefront.entity(part_of="Order")
class OrderItem:
    """A line of the order, frozen at checkout.

    Later price or name changes in the catalogue do not affect it.
    """

    product_id = Identifier(required=True)
    product_name = String(required=True, max_length=255)
    product_image = String(max_length=1000)
    variant_name = String(max_length=255)
    variant_item_ids = Text()  # JSON array
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)

    @property
    def selected_variant_item_ids(self) -> list[str]:
        return json.loads(self.variant_item_ids) if self.variant_item_ids else []

    def snapshot(self):
        return {
            "product_id": str(self.product_id),
            "product_name": self.product_name,
            "product_image": self.product_image,
            "variant_name": self.variant_name,
            "variant_item_ids": self.selected_variant_item_ids,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
        }


@storefront.aggregate
class Order:
    session_id = String(required=True, max_length=64)
    user_id = Identifier()
    payment_provider = String(required=True, choices=PaymentProvider)
    payment_provider_session_id = String(max_length=255)
    items = HasMany(OrderItem)
    total_amount = Float(required=True, min_value=0.0)
    currency = String(required=True, max_length=3)
    billing_details = ValueObject(BillingDetails)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    status_reason = String(max_length=500)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        session_id,
        payment_provider,
        items,
        currency,
        billing_details=None,
        user_id=None,
    ):
        """Create a pending order from a list of item dicts."""
        if not items:
            raise ValidationError({"items": ["Order must contain at least one item"]})

        now = datetime.now(UTC)
        order_items = [
            OrderItem(
                product_id=item["product_id"],
                product_name=item["product_name"],
                product_image=item.get("product_image"),
                variant_name=item.get("variant_name"),
                variant_item_ids=json.dumps(item.get("variant_item_ids") or []),
                quantity=item["quantity"],
                unit_price=item["unit_price"],
            )
            for item in items
        ]
        total_amount = round(sum(i.quantity * i.unit_price for i in order_items), 2)

        order = cls(
            session_id=session_id,
            user_id=user_id,
            payment_provider=payment_provider,
            total_amount=total_amount,
            currency=currency.upper(),
            billing_details=billing_details,
            status=OrderStatus.PENDING.value,
            created_at=now,
            updated_at=now,
        )
        for item in order_items:
            order.add_items(item)
        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                session_id=session_id,
                user_id=str(user_id) if user_id else None,
                payment_provider=payment_provider,
                items=json.dumps([i.snapshot() for i in order_items]),
                total_amount=total_amount,
                currency=order.currency,
                placed_at=now,
            )
        )
        return order

    @property
    def shopper(self) -> Owner:
        """Identity the order was placed under."""
        return Owner.resolve(self.session_id, self.user_id)

    @property
    def is_pending(self) -> bool:
        return self.status == OrderStatus.PENDING.value

    # -------------------------------------------------------------------
    # State machine
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target: OrderStatus):
        current = OrderStatus(self.status)
        if target not in _VALID_TRANSITIONS.get(current, set()):
            logger.warning(
                "order_transition_rejected",
                order_id=str(self.id),
                current=current.value,
                target=target.value,
            )
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target.value}"]})

    def open_payment_session(self, payment_provider_session_id):
        if not self.is_pending:
            raise ValidationError({"status": ["Payment sessions can only be opened for pending orders"]})

        self.payment_provider_session_id = payment_provider_session_id
        self.updated_at = datetime.now(UTC)
        self.raise_(
            PaymentSessionOpened(
                order_id=str(self.id),
                payment_provider=self.payment_provider,
                payment_provider_session_id=payment_provider_session_id,
            )
        )

    def mark_paid(self, payment_provider_session_id=None):
        self._assert_can_transition(OrderStatus.PAID)

        now = datetime.now(UTC)
        if payment_provider_session_id:
            self.payment_provider_session_id = payment_provider_session_id
        self.status = OrderStatus.PAID.value
        self.updated_at = now
        self.raise_(
            OrderPaid(
                order_id=str(self.id),
                payment_provider=self.payment_provider,
                payment_provider_session_id=self.payment_provider_session_id,
                total_amount=self.total_amount,
                paid_at=now,
            )
        )

    def fail(self, reason=None):
        self._assert_can_transition(OrderStatus.FAILED)

        now = datetime.now(UTC)
        self.status = OrderStatus.FAILED.value
        self.status_reason = reason
        self.updated_at = now
        self.raise_(OrderFailed(order_id=str(self.id), reason=reason, failed_at=now))

    def cancel(self, reason=None):
        self._assert_can_transition(OrderStatus.CANCELLED)

        now = datetime.now(UTC)
        self.status = OrderStatus.CANCELLED.value
        self.status_reason = reason
        self.updated_at = now
        self.raise_(OrderCancelled(order_id=str(self.id), reason=reason, cancelled_at=now))

    def complete(self):
        self._assert_can_transition(OrderStatus.COMPLETED)

        now = datetime.now(UTC)
        self.status = OrderStatus.COMPLETED.value
        self.updated_at = now
        self.raise_(OrderCompleted(order_id=str(self.id), completed_at=now))

    def change_status(self, target: OrderStatus, reason=None):
        """Apply an admin-requested status change through the state machine."""
        if target == OrderStatus.PAID:
            raise ValidationError({"status": ["Orders are only marked paid by a verified payment confirmation"]})

        transitions = {
            OrderStatus.FAILED: lambda: self.fail(reason),
            OrderStatus.CANCELLED: lambda: self.cancel(reason),
            OrderStatus.COMPLETED: self.complete,
        }
        if target not in transitions:
            self._assert_can_transition(target)
        transitions[target]()

    def summary(self):
        return {
            "order_id": str(self.id),
            "session_id": self.session_id,
            "user_id": str(self.user_id) if self.user_id else None,
            "status": self.status,
            "payment_provider": self.payment_provider,
            "payment_provider_session_id": self.payment_provider_session_id,
            "items": [item.snapshot() for item in self.items],
            "total_amount": self.total_amount,
            "currency": self.currency,
            "billing_details": self.billing_details.to_dict() if self.billing_details else None,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@storefront.repository(part_of=Order)
class OrderRepository:
    def find_by_reference(self, order_id) -> Order | None:
        if not order_id:
            return None
        results = self._dao.query.filter(id=str(order_id)).all().items
        return results[0] if results else None

    def find_by_provider_session(self, payment_provider_session_id) -> Order | None:
        if not payment_provider_session_id:
            return None
        results = self._dao.query.filter(payment_provider_session_id=str(payment_provider_session_id)).all().items
        return results[0] if results else None

    def page(self, page: int, limit: int, status: str | None = None):
        """One page of orders, newest first. Returns (orders, total)."""
        query = self._dao.query
        if status:
            query = query.filter(status=status)
        result = query.order_by("-created_at").offset((page - 1) * limit).limit(limit).all()
        return result.items, result.total
