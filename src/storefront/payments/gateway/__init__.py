"""Payment gateway factory.

One gateway per provider. Stripe and Tabby adapters are installed when their
credentials are configured; otherwise a FakeGateway stands in, which is what
development and the test suite use.
"""

from storefront.payments.gateway.fake_adapter import FakeGateway
from storefront.payments.gateway.port import PaymentGateway
from storefront.payments.gateway.stripe_adapter import StripeGateway
from storefront.payments.gateway.tabby_adapter import TabbyGateway
from storefront.utils import settings

_gateways: dict[str, PaymentGateway] = {}


def _default_gateway(provider: str) -> PaymentGateway:
    if provider == "stripe" and settings.STRIPE_SECRET_KEY:
        return StripeGateway(settings.STRIPE_SECRET_KEY, settings.STRIPE_WEBHOOK_SECRET)
    if provider == "tabby" and settings.TABBY_SECRET_KEY:
        return TabbyGateway(
            secret_key=settings.TABBY_SECRET_KEY,
            merchant_code=settings.TABBY_MERCHANT_CODE,
            webhook_secret=settings.TABBY_WEBHOOK_SECRET,
            api_url=settings.TABBY_API_URL,
        )
    return FakeGateway(provider)


def get_gateway(provider: str) -> PaymentGateway:
    """Return the gateway for a payment provider."""
    if provider not in _gateways:
        _gateways[provider] = _default_gateway(provider)
    return _gateways[provider]


def set_gateway(provider: str, gateway: PaymentGateway) -> None:
    """Override the gateway for a provider (useful for tests)."""
    _gateways[provider] = gateway


def reset_gateways() -> None:
    """Reset all providers to their default gateways."""
    _gateways.clear()
