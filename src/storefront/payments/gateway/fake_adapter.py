"""Configurable fake payment gateway for development and testing.

Simulates a provider without any external calls. Tests (or the non-production
simulate endpoint) decide what the provider reports for each payment, and
every call is recorded in `calls` so duplicate captures are visible.
"""

import json
from uuid import uuid4

from storefront.payments.gateway.port import (
    CaptureResult,
    CheckoutSession,
    PaymentGateway,
    PaymentStatus,
    PaymentVerification,
    WebhookNotification,
)
from storefront.shared.errors import ErrorCode, PaymentProviderError


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self, provider: str = "tabby") -> None:
        self.provider = provider
        self.payments: dict[str, PaymentVerification] = {}
        self.capture_should_succeed: bool = True
        self.failure_reason: str = "Capture declined"
        self.unreachable: bool = False
        self.calls: list[dict] = []

    # -------------------------------------------------------------------
    # Test controls
    # -------------------------------------------------------------------
    def set_payment_status(
        self,
        payment_id: str,
        status: PaymentStatus,
        reference_id: str | None = None,
        amount: float | None = None,
        currency: str | None = None,
    ) -> None:
        previous = self.payments.get(payment_id)
        self.payments[payment_id] = PaymentVerification(
            payment_id=payment_id,
            status=status,
            reference_id=reference_id or (previous.reference_id if previous else None),
            amount=amount if amount is not None else (previous.amount if previous else None),
            currency=currency or (previous.currency if previous else None),
        )

    def configure(self, capture_should_succeed: bool = True, failure_reason: str = "Capture declined", unreachable: bool = False) -> None:
        """Configure gateway behavior at runtime."""
        self.capture_should_succeed = capture_should_succeed
        self.failure_reason = failure_reason
        self.unreachable = unreachable

    def calls_to(self, method: str) -> list[dict]:
        return [c for c in self.calls if c["method"] == method]

    # -------------------------------------------------------------------
    # PaymentGateway
    # -------------------------------------------------------------------
    def create_checkout(self, order) -> CheckoutSession:
        payment_id = f"fake_pay_{uuid4().hex[:12]}"
        self.calls.append({"method": "create_checkout", "order_id": str(order.id), "amount": order.total_amount})
        self.set_payment_status(
            payment_id,
            PaymentStatus.PENDING,
            reference_id=str(order.id),
            amount=order.total_amount,
            currency=order.currency,
        )
        return CheckoutSession(
            provider_session_id=payment_id,
            redirect_url=f"https://checkout.example.test/{self.provider}/{payment_id}",
        )

    def retrieve_payment(self, payment_id: str) -> PaymentVerification:
        self.calls.append({"method": "retrieve_payment", "payment_id": payment_id})
        if self.unreachable:
            raise PaymentProviderError(ErrorCode.PAYMENT_VERIFICATION_FAILED, "Provider unreachable")
        if payment_id not in self.payments:
            raise PaymentProviderError(
                ErrorCode.PAYMENT_VERIFICATION_FAILED, "Unknown payment", payment_id=payment_id
            )
        return self.payments[payment_id]

    def capture_payment(self, payment_id: str, amount: float, currency: str) -> CaptureResult:
        self.calls.append({"method": "capture_payment", "payment_id": payment_id, "amount": amount, "currency": currency})
        if not self.capture_should_succeed:
            return CaptureResult(success=False, failure_reason=self.failure_reason)

        self.set_payment_status(payment_id, PaymentStatus.CAPTURED)
        return CaptureResult(success=True, capture_id=f"fake_cap_{uuid4().hex[:12]}")

    def verify_webhook_signature(self, payload: bytes, signature: str) -> bool:  # noqa: ARG002
        return signature == "test-signature"

    def parse_webhook(self, payload: bytes) -> WebhookNotification | None:
        body = json.loads(payload)
        if not body.get("payment_id"):
            return None
        return WebhookNotification(
            payment_id=body["payment_id"],
            reference_id=body.get("reference_id"),
            event_type=body.get("event_type"),
        )
