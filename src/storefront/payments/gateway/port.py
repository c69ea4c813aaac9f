"""Payment gateway port (abstract interface).

Defines the contract every payment provider adapter implements: open a
hosted checkout for an order, report the authoritative status of a payment,
capture an authorized payment, and authenticate and parse webhook deliveries.
Webhook bodies are never trusted for the payment status; the order flow always
asks `retrieve_payment`.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum


class PaymentStatus(Enum):
    PENDING = "pending"  # Shopper has not finished at the provider
    AUTHORIZED = "authorized"  # Approved, funds still to be captured
    CAPTURED = "captured"  # Approved and already settled by the provider
    FAILED = "failed"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


@dataclass(frozen=True)
class CheckoutSession:
    """Hosted checkout opened at the provider for one order."""

    provider_session_id: str
    redirect_url: str


@dataclass(frozen=True)
class PaymentVerification:
    """What the provider says about a payment right now."""

    payment_id: str
    status: PaymentStatus
    reference_id: str | None = None  # Our order id, as echoed back by the provider
    amount: float | None = None
    currency: str | None = None
    failure_reason: str | None = None


@dataclass(frozen=True)
class CaptureResult:
    success: bool
    capture_id: str | None = None
    failure_reason: str | None = None


@dataclass(frozen=True)
class WebhookNotification:
    """The parts of a webhook body needed to find the payment and the order."""

    payment_id: str
    reference_id: str | None = None
    event_type: str | None = None


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    provider: str

    @abstractmethod
    def create_checkout(self, order) -> CheckoutSession:
        """Open a hosted checkout for a pending order."""
        ...

    @abstractmethod
    def retrieve_payment(self, payment_id: str) -> PaymentVerification:
        """Query the provider for the current status of a payment.

        Raises PaymentProviderError when the provider cannot answer.
        """
        ...

    @abstractmethod
    def capture_payment(self, payment_id: str, amount: float, currency: str) -> CaptureResult:
        """Capture an authorized payment."""
        ...

    @abstractmethod
    def verify_webhook_signature(self, payload: bytes, signature: str) -> bool:
        """Verify that a webhook payload is authentically from the provider."""
        ...

    @abstractmethod
    def parse_webhook(self, payload: bytes) -> WebhookNotification | None:
        """Extract the payment reference from a verified webhook body.

        Returns None for event types the storefront does not act upon.
        """
        ...
