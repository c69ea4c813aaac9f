"""Storefront domain errors.

Every error carries a stable machine-readable `code` and a human-readable
`detail`. Mapping codes to transport status codes is the API layer's job.
Malformed input is reported with Protean's `ValidationError` instead.
"""

from enum import Enum


class ErrorCode(Enum):
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    SESSION_EXPIRED = "SESSION_EXPIRED"
    SESSION_REVOKED = "SESSION_REVOKED"
    SESSION_REQUIRED = "SESSION_REQUIRED"
    INVALID_SESSION_TOKEN = "INVALID_SESSION_TOKEN"
    CART_NOT_FOUND = "CART_NOT_FOUND"
    WISHLIST_NOT_FOUND = "WISHLIST_NOT_FOUND"
    ITEM_NOT_FOUND = "ITEM_NOT_FOUND"
    ORDER_NOT_FOUND = "ORDER_NOT_FOUND"
    PRODUCT_NOT_FOUND = "PRODUCT_NOT_FOUND"
    INSUFFICIENT_STOCK = "INSUFFICIENT_STOCK"
    INVALID_STATUS = "INVALID_STATUS"
    EMPTY_CART = "EMPTY_CART"
    MISSING_BILLING_DETAILS = "MISSING_BILLING_DETAILS"
    PAYMENT_VERIFICATION_FAILED = "PAYMENT_VERIFICATION_FAILED"
    PAYMENT_CAPTURE_FAILED = "PAYMENT_CAPTURE_FAILED"


class StorefrontError(Exception):
    """Base class for all storefront domain errors."""

    def __init__(self, code: ErrorCode, detail: str | None = None, **context) -> None:
        self.code = code
        self.detail = detail or code.value.replace("_", " ").capitalize()
        self.context = context
        super().__init__(f"{code.value}: {self.detail}")

    def to_dict(self) -> dict:
        return {"code": self.code.value, "detail": self.detail, **self.context}


class NotFoundError(StorefrontError):
    """A session, cart, wishlist, item, order or product does not exist."""


class SessionError(StorefrontError):
    """The session exists but can no longer be used (expired or revoked)."""


class StockError(StorefrontError):
    """Not enough stock to satisfy a request."""


class InvalidRequestError(StorefrontError):
    """The request is well-formed but not acceptable in the current state."""


class PaymentProviderError(StorefrontError):
    """The payment provider rejected a call or could not be reached."""
