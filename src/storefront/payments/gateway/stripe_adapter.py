"""Stripe payment gateway adapter (Checkout Sessions).

Stripe captures card payments when the Checkout Session completes, so a paid
session is reported as CAPTURED and `capture_payment` only confirms it.
Sessions paid with delayed methods complete unpaid and stay PENDING until the
payment intent settles; a declined intent is reported as FAILED. Webhooks are
authenticated with the endpoint's signing secret.
"""

import json

import stripe

from storefront.domain import logger
from storefront.payments.gateway.port import (
    CaptureResult,
    CheckoutSession,
    PaymentGateway,
    PaymentStatus,
    PaymentVerification,
    WebhookNotification,
)
from storefront.shared.errors import ErrorCode, PaymentProviderError
from storefront.utils import settings

_HANDLED_EVENTS = {
    "checkout.session.completed",
    "checkout.session.async_payment_succeeded",
    "checkout.session.async_payment_failed",
    "checkout.session.expired",
}


_FAILED_INTENT_STATUSES = {"requires_payment_method", "canceled"}


def _minor_units(amount: float) -> int:
    return int(round(amount * 100))


def _intent_status(session) -> str | None:
    # Unexpanded intents come back as a bare id string
    return getattr(session.payment_intent, "status", None)


def _intent_failure(session) -> str:
    error = getattr(session.payment_intent, "last_payment_error", None)
    return getattr(error, "message", None) or "Stripe payment failed"


class StripeGateway(PaymentGateway):
    """Production Stripe gateway adapter."""

    provider = "stripe"

    def __init__(self, api_key: str, webhook_secret: str) -> None:
        self.api_key = api_key
        self.webhook_secret = webhook_secret

    def create_checkout(self, order) -> CheckoutSession:
        line_items = [
            {
                "price_data": {
                    "currency": order.currency.lower(),
                    "product_data": {"name": item.product_name},
                    "unit_amount": _minor_units(item.unit_price),
                },
                "quantity": item.quantity,
            }
            for item in order.items
        ]
        try:
            session = stripe.checkout.Session.create(
                api_key=self.api_key,
                mode="payment",
                line_items=line_items,
                client_reference_id=str(order.id),
                metadata={"order_id": str(order.id)},
                customer_email=order.billing_details.email if order.billing_details else None,
                success_url=f"{settings.STOREFRONT_BASE_URL}/checkout/success?order={order.id}",
                cancel_url=f"{settings.STOREFRONT_BASE_URL}/checkout/cancel?order={order.id}",
            )
        except stripe.StripeError as exc:
            logger.error("stripe_checkout_failed", order_id=str(order.id), error=str(exc))
            raise PaymentProviderError(ErrorCode.PAYMENT_VERIFICATION_FAILED, "Could not open Stripe checkout") from exc

        return CheckoutSession(provider_session_id=session.id, redirect_url=session.url)

    def retrieve_payment(self, payment_id: str) -> PaymentVerification:
        try:
            session = stripe.checkout.Session.retrieve(payment_id, api_key=self.api_key, expand=["payment_intent"])
        except stripe.StripeError as exc:
            logger.error("stripe_retrieve_failed", payment_id=payment_id, error=str(exc))
            raise PaymentProviderError(
                ErrorCode.PAYMENT_VERIFICATION_FAILED, "Could not verify Stripe payment", payment_id=payment_id
            ) from exc

        failure_reason = None
        if session.payment_status in ("paid", "no_payment_required"):
            status = PaymentStatus.CAPTURED
        elif session.status == "expired":
            status = PaymentStatus.EXPIRED
        elif session.status == "complete" and _intent_status(session) in _FAILED_INTENT_STATUSES:
            # Delayed payment methods complete the session unpaid; a declined
            # debit sends the intent back to requires_payment_method
            status = PaymentStatus.FAILED
            failure_reason = _intent_failure(session)
        else:
            status = PaymentStatus.PENDING

        amount_total = session.amount_total
        return PaymentVerification(
            payment_id=session.id,
            status=status,
            reference_id=session.client_reference_id,
            amount=amount_total / 100 if amount_total is not None else None,
            currency=(session.currency or "").upper() or None,
            failure_reason=failure_reason,
        )

    def capture_payment(self, payment_id: str, amount: float, currency: str) -> CaptureResult:
        verification = self.retrieve_payment(payment_id)
        if verification.status == PaymentStatus.CAPTURED:
            return CaptureResult(success=True, capture_id=payment_id)
        return CaptureResult(success=False, failure_reason=f"Session is {verification.status.value}")

    def verify_webhook_signature(self, payload: bytes, signature: str) -> bool:
        try:
            stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except (ValueError, stripe.SignatureVerificationError):
            return False
        return True

    def parse_webhook(self, payload: bytes) -> WebhookNotification | None:
        event = json.loads(payload)
        if event.get("type") not in _HANDLED_EVENTS:
            return None

        session = event["data"]["object"]
        return WebhookNotification(
            payment_id=session["id"],
            reference_id=session.get("client_reference_id") or (session.get("metadata") or {}).get("order_id"),
            event_type=event["type"],
        )
