"""Pydantic request/response schemas for the Storefront API.

These are external contracts (anti-corruption layer), separate from the
internal Protean commands.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class StatusResponse(BaseModel):
    status: str = "ok"


# ---------------------------------------------------------------------------
# Sessions and account
# ---------------------------------------------------------------------------
class EnsureSessionRequest(BaseModel):
    session_id: str | None = None


class SessionResponse(BaseModel):
    session_id: str
    status: str
    user_id: str | None = None
    created_at: datetime
    last_active_at: datetime
    expires_at: datetime
    session_token: str | None = None  # Signed cookie value


class LoginRequest(BaseModel):
    user_id: str
    session_id: str | None = None


class LogoutRequest(BaseModel):
    session_id: str


class IdentityChangeResponse(BaseModel):
    session_id: str
    session_token: str


# ---------------------------------------------------------------------------
# Cart and wishlist
# ---------------------------------------------------------------------------
class AddCartItemRequest(BaseModel):
    product_id: str
    variant_item_ids: list[str] = Field(default_factory=list)
    quantity: int = Field(ge=1, default=1)
    unit_price: float | None = Field(default=None, ge=0)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "product_id": "prod-001",
                    "variant_item_ids": ["color-red", "size-m"],
                    "quantity": 2,
                }
            ]
        }
    }


class UpdateCartItemRequest(BaseModel):
    product_id: str
    variant_item_ids: list[str] = Field(default_factory=list)
    quantity: int = Field(ge=0)


class CartItemSchema(BaseModel):
    product_id: str
    variant_item_ids: list[str]
    quantity: int
    unit_price: float
    line_total: float


class BillingDetailsSchema(BaseModel):
    email: str
    first_name: str
    last_name: str
    country: str
    street_address_1: str
    street_address_2: str | None = None
    city: str
    state_or_county: str | None = None
    phone: str
    order_notes: str | None = None


class CartResponse(BaseModel):
    cart_id: str | None = None
    items: list[CartItemSchema]
    subtotal: float
    total_items: int
    billing_details: BillingDetailsSchema | None = None


class WishlistItemRequest(BaseModel):
    product_id: str
    variant_item_ids: list[str] = Field(default_factory=list)


class WishlistItemSchema(BaseModel):
    product_id: str
    variant_item_ids: list[str]
    added_at: datetime


class WishlistResponse(BaseModel):
    wishlist_id: str | None = None
    items: list[WishlistItemSchema]


# ---------------------------------------------------------------------------
# Recently viewed
# ---------------------------------------------------------------------------
class TrackViewRequest(BaseModel):
    product_id: str


class RecentProductSchema(BaseModel):
    product_id: str
    name: str
    image: str | None = None
    price: float
    viewed_at: datetime


class RecentProductsResponse(BaseModel):
    products: list[RecentProductSchema]


# ---------------------------------------------------------------------------
# Checkout and orders
# ---------------------------------------------------------------------------
class CheckoutRequest(BaseModel):
    payment_provider: str = Field(pattern="^(stripe|tabby)$")
    currency: str | None = Field(default=None, min_length=3, max_length=3)


class CheckoutResponse(BaseModel):
    order_id: str
    redirect_url: str
    payment_provider_session_id: str


class OrderItemSchema(BaseModel):
    product_id: str
    product_name: str
    product_image: str | None = None
    variant_name: str | None = None
    variant_item_ids: list[str]
    quantity: int
    unit_price: float


class OrderResponse(BaseModel):
    order_id: str
    session_id: str
    user_id: str | None = None
    status: str
    payment_provider: str
    payment_provider_session_id: str | None = None
    items: list[OrderItemSchema]
    total_amount: float
    currency: str
    billing_details: BillingDetailsSchema | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class PaginationSchema(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class OrderListResponse(BaseModel):
    orders: list[OrderResponse]
    pagination: PaginationSchema


class UpdateOrderStatusRequest(BaseModel):
    status: str
    reason: str | None = None
