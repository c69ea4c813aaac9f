from storefront.api.errors import register_error_handlers
from storefront.api.routes import (
    account_router,
    admin_order_router,
    cart_router,
    checkout_router,
    recently_viewed_router,
    session_router,
    webhook_router,
    wishlist_router,
)

routers = [
    session_router,
    account_router,
    cart_router,
    wishlist_router,
    recently_viewed_router,
    checkout_router,
    admin_order_router,
    webhook_router,
]

__all__ = ["register_error_handlers", "routers"]
