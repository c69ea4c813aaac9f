"""FastAPI routes for the storefront — sessions, cart, wishlist, orders and webhooks.

Shopper-facing routes resolve the shopper from the session store. The session
is presented as a signed token (the `X-Session-Token` header or the session
cookie) or as a bare `X-Session-Id` header; the user id is whatever user the
session is bound to.
"""

import json
import os
from dataclasses import dataclass

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request, Response
from protean.utils.globals import current_domain

from storefront.account.flows import login, logout
from storefront.api.schemas import (
    AddCartItemRequest,
    BillingDetailsSchema,
    CartResponse,
    CheckoutRequest,
    CheckoutResponse,
    EnsureSessionRequest,
    IdentityChangeResponse,
    LoginRequest,
    LogoutRequest,
    OrderListResponse,
    OrderResponse,
    RecentProductsResponse,
    SessionResponse,
    StatusResponse,
    TrackViewRequest,
    UpdateCartItemRequest,
    UpdateOrderStatusRequest,
    WishlistItemRequest,
    WishlistResponse,
)
from storefront.cart.items import AddCartItem, RemoveCartItem, UpdateCartItemQuantity
from storefront.cart.management import AttachBillingDetails, ClearCart
from storefront.cart.queries import get_cart
from storefront.domain import logger
from storefront.order.admin import UpdateOrderStatus, get_order, list_orders
from storefront.order.checkout import Checkout
from storefront.order.order import PaymentProvider
from storefront.order.payment_confirmation import ProcessPaymentConfirmation
from storefront.payments.gateway import get_gateway
from storefront.payments.gateway.fake_adapter import FakeGateway
from storefront.payments.gateway.port import PaymentStatus
from storefront.recently_viewed.queries import get_recent
from storefront.recently_viewed.tracking import TrackProductView
from storefront.session.lifecycle import EnsureSession, RevokeSession
from storefront.session.session import StorefrontSession
from storefront.session.tokens import read_session_token, sign_session_token
from storefront.shared.errors import ErrorCode, SessionError
from storefront.utils import settings
from storefront.utils.logging import add_context
from storefront.wishlist.management import AddWishlistItem, ClearWishlist, RemoveWishlistItem
from storefront.wishlist.queries import get_wishlist


@dataclass(frozen=True)
class Shopper:
    session_id: str
    user_id: str | None = None


def _presented_session_id(request: Request, token: str | None, session_id: str | None) -> str:
    if token:
        signed_session_id = read_session_token(token)
        if signed_session_id is None:
            raise SessionError(ErrorCode.INVALID_SESSION_TOKEN, "Session token is invalid or has expired")
        return signed_session_id
    if session_id:
        return session_id

    cookie = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if cookie:
        return _presented_session_id(request, cookie, None)
    raise SessionError(ErrorCode.SESSION_REQUIRED, "No session presented")


async def current_shopper(
    request: Request,
    x_session_token: str | None = Header(default=None),
    x_session_id: str | None = Header(default=None),
) -> Shopper:
    """Resolve the shopper behind a request.

    Explicit headers win over the cookie. Unknown, revoked and expired
    sessions are rejected, and the user id comes from the session's binding.
    """
    session_id = _presented_session_id(request, x_session_token, x_session_id)
    session = current_domain.repository_for(StorefrontSession).get_usable(session_id)

    user_id = str(session.bound_user_id) if session.bound_user_id else None
    add_context(session_id=session_id, user_id=user_id)
    return Shopper(session_id=session_id, user_id=user_id)


def _remember_session(response: Response, token: str) -> None:
    response.set_cookie(
        settings.SESSION_COOKIE_NAME,
        token,
        max_age=settings.SESSION_TTL_DAYS * 24 * 60 * 60,
        httponly=True,
        samesite="lax",
        secure=settings.PROTEAN_ENV == "production",
    )


def _client(request: Request) -> dict:
    return {
        "user_agent": request.headers.get("user-agent"),
        "ip_address": request.client.host if request.client else None,
    }


def _session_response(session_id: str) -> SessionResponse:
    session = current_domain.repository_for(StorefrontSession).get_usable(session_id)
    return SessionResponse(**session.summary(), session_token=sign_session_token(str(session.id), session.expires_at))


def _identity_change(session_id: str) -> IdentityChangeResponse:
    session = current_domain.repository_for(StorefrontSession).get(session_id)
    return IdentityChangeResponse(
        session_id=session_id,
        session_token=sign_session_token(session_id, session.expires_at),
    )


# ---------------------------------------------------------------------------
# Session Router
# ---------------------------------------------------------------------------
session_router = APIRouter(prefix="/sessions", tags=["sessions"])


@session_router.post("", response_model=SessionResponse)
async def ensure_session(body: EnsureSessionRequest, request: Request, response: Response) -> SessionResponse:
    """Touch the presented session, or issue a new one."""
    session_id = current_domain.process(
        EnsureSession(session_id=body.session_id, **_client(request)),
        asynchronous=False,
    )
    result = _session_response(session_id)
    _remember_session(response, result.session_token)
    return result


@session_router.get("/{session_id}", response_model=SessionResponse)
async def read_session(session_id: str) -> SessionResponse:
    return _session_response(session_id)


@session_router.delete("/{session_id}", response_model=StatusResponse)
async def revoke_session(session_id: str) -> StatusResponse:
    current_domain.process(RevokeSession(session_id=session_id), asynchronous=False)
    return StatusResponse(status="revoked")


# ---------------------------------------------------------------------------
# Account Router
# ---------------------------------------------------------------------------
account_router = APIRouter(prefix="/account", tags=["account"])


@account_router.post("/login", response_model=IdentityChangeResponse)
async def login_shopper(body: LoginRequest, request: Request, response: Response) -> IdentityChangeResponse:
    """Merge the guest session into the user and bind the session.

    Authenticating the user is the caller's job; this endpoint trusts `user_id`.
    """
    session_id = login(user_id=body.user_id, session_id=body.session_id, **_client(request))
    result = _identity_change(session_id)
    _remember_session(response, result.session_token)
    return result


@account_router.post("/logout", response_model=IdentityChangeResponse)
async def logout_shopper(body: LogoutRequest, request: Request, response: Response) -> IdentityChangeResponse:
    session_id = logout(body.session_id, **_client(request))
    result = _identity_change(session_id)
    _remember_session(response, result.session_token)
    return result


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/cart", tags=["cart"])


@cart_router.get("", response_model=CartResponse)
async def read_cart(shopper: Shopper = Depends(current_shopper)) -> CartResponse:
    return CartResponse(**get_cart(shopper.session_id, shopper.user_id))


@cart_router.post("/items", response_model=CartResponse)
async def add_cart_item(body: AddCartItemRequest, shopper: Shopper = Depends(current_shopper)) -> CartResponse:
    command = AddCartItem(
        session_id=shopper.session_id,
        user_id=shopper.user_id,
        product_id=body.product_id,
        variant_item_ids=json.dumps(body.variant_item_ids),
        quantity=body.quantity,
        unit_price=body.unit_price,
    )
    current_domain.process(command, asynchronous=False)
    return CartResponse(**get_cart(shopper.session_id, shopper.user_id))


@cart_router.put("/items", response_model=CartResponse)
async def update_cart_item(body: UpdateCartItemRequest, shopper: Shopper = Depends(current_shopper)) -> CartResponse:
    command = UpdateCartItemQuantity(
        session_id=shopper.session_id,
        user_id=shopper.user_id,
        product_id=body.product_id,
        variant_item_ids=json.dumps(body.variant_item_ids),
        quantity=body.quantity,
    )
    current_domain.process(command, asynchronous=False)
    return CartResponse(**get_cart(shopper.session_id, shopper.user_id))


@cart_router.delete("/items/{product_id}", response_model=CartResponse)
async def remove_cart_item(
    product_id: str,
    variant_item_ids: list[str] = Query(default=[]),
    shopper: Shopper = Depends(current_shopper),
) -> CartResponse:
    command = RemoveCartItem(
        session_id=shopper.session_id,
        user_id=shopper.user_id,
        product_id=product_id,
        variant_item_ids=json.dumps(variant_item_ids),
    )
    current_domain.process(command, asynchronous=False)
    return CartResponse(**get_cart(shopper.session_id, shopper.user_id))


@cart_router.delete("", response_model=CartResponse)
async def clear_cart(shopper: Shopper = Depends(current_shopper)) -> CartResponse:
    current_domain.process(ClearCart(session_id=shopper.session_id, user_id=shopper.user_id), asynchronous=False)
    return CartResponse(**get_cart(shopper.session_id, shopper.user_id))


@cart_router.put("/billing", response_model=CartResponse)
async def attach_billing_details(
    body: BillingDetailsSchema, shopper: Shopper = Depends(current_shopper)
) -> CartResponse:
    command = AttachBillingDetails(session_id=shopper.session_id, user_id=shopper.user_id, **body.model_dump())
    current_domain.process(command, asynchronous=False)
    return CartResponse(**get_cart(shopper.session_id, shopper.user_id))


# ---------------------------------------------------------------------------
# Wishlist Router
# ---------------------------------------------------------------------------
wishlist_router = APIRouter(prefix="/wishlist", tags=["wishlist"])


@wishlist_router.get("", response_model=WishlistResponse)
async def read_wishlist(shopper: Shopper = Depends(current_shopper)) -> WishlistResponse:
    return WishlistResponse(**get_wishlist(shopper.session_id, shopper.user_id))


@wishlist_router.post("/items", response_model=WishlistResponse)
async def add_wishlist_item(
    body: WishlistItemRequest, shopper: Shopper = Depends(current_shopper)
) -> WishlistResponse:
    command = AddWishlistItem(
        session_id=shopper.session_id,
        user_id=shopper.user_id,
        product_id=body.product_id,
        variant_item_ids=json.dumps(body.variant_item_ids),
    )
    current_domain.process(command, asynchronous=False)
    return WishlistResponse(**get_wishlist(shopper.session_id, shopper.user_id))


@wishlist_router.delete("/items/{product_id}", response_model=WishlistResponse)
async def remove_wishlist_item(
    product_id: str,
    variant_item_ids: list[str] = Query(default=[]),
    shopper: Shopper = Depends(current_shopper),
) -> WishlistResponse:
    command = RemoveWishlistItem(
        session_id=shopper.session_id,
        user_id=shopper.user_id,
        product_id=product_id,
        variant_item_ids=json.dumps(variant_item_ids),
    )
    current_domain.process(command, asynchronous=False)
    return WishlistResponse(**get_wishlist(shopper.session_id, shopper.user_id))


@wishlist_router.delete("", response_model=WishlistResponse)
async def clear_wishlist(shopper: Shopper = Depends(current_shopper)) -> WishlistResponse:
    current_domain.process(ClearWishlist(session_id=shopper.session_id, user_id=shopper.user_id), asynchronous=False)
    return WishlistResponse(**get_wishlist(shopper.session_id, shopper.user_id))


# ---------------------------------------------------------------------------
# Recently Viewed Router
# ---------------------------------------------------------------------------
recently_viewed_router = APIRouter(prefix="/recently-viewed", tags=["recently-viewed"])


@recently_viewed_router.post("", response_model=StatusResponse)
async def track_view(body: TrackViewRequest, shopper: Shopper = Depends(current_shopper)) -> StatusResponse:
    command = TrackProductView(session_id=shopper.session_id, user_id=shopper.user_id, product_id=body.product_id)
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="tracked")


@recently_viewed_router.get("", response_model=RecentProductsResponse)
async def read_recently_viewed(
    limit: int | None = Query(default=None, ge=1, le=50),
    shopper: Shopper = Depends(current_shopper),
) -> RecentProductsResponse:
    return RecentProductsResponse(products=get_recent(shopper.session_id, shopper.user_id, limit))


# ---------------------------------------------------------------------------
# Checkout Router
# ---------------------------------------------------------------------------
checkout_router = APIRouter(prefix="/checkout", tags=["checkout"])


@checkout_router.post("", status_code=201, response_model=CheckoutResponse)
async def checkout(body: CheckoutRequest, shopper: Shopper = Depends(current_shopper)) -> CheckoutResponse:
    """Create a pending order from the cart and open the provider's hosted checkout."""
    command = Checkout(
        session_id=shopper.session_id,
        user_id=shopper.user_id,
        payment_provider=body.payment_provider,
        currency=body.currency,
    )
    result = current_domain.process(command, asynchronous=False)
    return CheckoutResponse(**result)


# ---------------------------------------------------------------------------
# Admin Order Router
# ---------------------------------------------------------------------------
admin_order_router = APIRouter(prefix="/admin/orders", tags=["admin"])


@admin_order_router.get("", response_model=OrderListResponse)
async def admin_list_orders(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    status: str | None = None,
) -> OrderListResponse:
    return OrderListResponse(**list_orders(page=page, limit=limit, status=status))


@admin_order_router.get("/{order_id}", response_model=OrderResponse)
async def admin_get_order(order_id: str) -> OrderResponse:
    return OrderResponse(**get_order(order_id))


@admin_order_router.put("/{order_id}/status", response_model=OrderResponse)
async def admin_update_order_status(order_id: str, body: UpdateOrderStatusRequest) -> OrderResponse:
    command = UpdateOrderStatus(order_id=order_id, status=body.status, reason=body.reason)
    current_domain.process(command, asynchronous=False)
    return OrderResponse(**get_order(order_id))


# ---------------------------------------------------------------------------
# Webhook Router
# ---------------------------------------------------------------------------
webhook_router = APIRouter(prefix="/webhooks", tags=["webhooks"])

_SIGNATURE_HEADERS = {
    PaymentProvider.STRIPE.value: "stripe-signature",
    PaymentProvider.TABBY.value: "x-tabby-signature",
}


def _provider(provider: str) -> str:
    if provider not in _SIGNATURE_HEADERS:
        raise HTTPException(status_code=404, detail=f"Unknown payment provider {provider!r}")
    return provider


@webhook_router.post("/{provider}", response_model=StatusResponse)
async def payment_webhook(provider: str, request: Request) -> StatusResponse:
    """Receive a provider webhook and drive the order it refers to.

    Already-settled orders are acknowledged with `skipped` so the provider
    stops redelivering.
    """
    provider = _provider(provider)
    gateway = get_gateway(provider)
    payload = await request.body()

    if not gateway.verify_webhook_signature(payload, request.headers.get(_SIGNATURE_HEADERS[provider], "")):
        raise HTTPException(status_code=401, detail="Invalid webhook signature")

    notification = gateway.parse_webhook(payload)
    if notification is None:
        logger.info("webhook_ignored", payment_provider=provider)
        return StatusResponse(status="ignored")

    command = ProcessPaymentConfirmation(
        payment_provider=provider,
        payment_id=notification.payment_id,
        reference_id=notification.reference_id,
    )
    outcome = current_domain.process(command, asynchronous=False)
    return StatusResponse(status=outcome)


@webhook_router.post("/{provider}/simulate/{payment_id}", response_model=StatusResponse)
async def simulate_payment_status(provider: str, payment_id: str, status: str = Query()) -> StatusResponse:
    """Set what the fake gateway reports for a payment (non-production only)."""
    if os.environ.get("PROTEAN_ENV") == "production":
        raise HTTPException(status_code=403, detail="Payment simulation not available in production")

    gateway = get_gateway(_provider(provider))
    if not isinstance(gateway, FakeGateway):
        raise HTTPException(status_code=400, detail="Payment simulation only available for FakeGateway")

    try:
        payment_status = PaymentStatus(status)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Unknown payment status {status!r}") from None

    gateway.set_payment_status(payment_id, payment_status)
    return StatusResponse(status=payment_status.value)
