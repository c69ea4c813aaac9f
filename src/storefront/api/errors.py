"""Mapping of storefront error codes to HTTP responses."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

from storefront.domain import logger
from storefront.shared.errors import ErrorCode, StorefrontError

_STATUS_BY_CODE = {
    ErrorCode.SESSION_NOT_FOUND: 404,
    ErrorCode.SESSION_EXPIRED: 401,
    ErrorCode.SESSION_REVOKED: 401,
    ErrorCode.SESSION_REQUIRED: 401,
    ErrorCode.INVALID_SESSION_TOKEN: 401,
    ErrorCode.CART_NOT_FOUND: 404,
    ErrorCode.WISHLIST_NOT_FOUND: 404,
    ErrorCode.ITEM_NOT_FOUND: 404,
    ErrorCode.ORDER_NOT_FOUND: 404,
    ErrorCode.PRODUCT_NOT_FOUND: 404,
    ErrorCode.INSUFFICIENT_STOCK: 409,
    ErrorCode.INVALID_STATUS: 400,
    ErrorCode.EMPTY_CART: 400,
    ErrorCode.MISSING_BILLING_DETAILS: 400,
    ErrorCode.PAYMENT_VERIFICATION_FAILED: 502,
    ErrorCode.PAYMENT_CAPTURE_FAILED: 502,
}


def status_for(error: StorefrontError) -> int:
    return _STATUS_BY_CODE.get(error.code, 400)


async def storefront_error_handler(request: Request, exc: StorefrontError) -> JSONResponse:
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error("request_failed", path=request.url.path, **exc.to_dict())
    return JSONResponse(status_code=status_code, content={"error": exc.to_dict()})


def register_error_handlers(app: FastAPI) -> None:
    """Protean exceptions (validation, not found) plus storefront error codes."""
    register_exception_handlers(app)
    app.add_exception_handler(StorefrontError, storefront_error_handler)
