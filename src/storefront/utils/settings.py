"""Runtime settings, read from the environment (and a local .env file if present)."""

import os

from dotenv import load_dotenv

load_dotenv()

PROTEAN_ENV = os.getenv("PROTEAN_ENV", "development")

# Sessions
SESSION_TTL_DAYS = int(os.getenv("SESSION_TTL_DAYS", 30))
SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "storefront_session")
USER_SESSION_SECRET = os.getenv("USER_SESSION_SECRET", "dev-only-session-secret")

# Recently viewed products kept per shopper
RECENTLY_VIEWED_LIMIT = int(os.getenv("RECENTLY_VIEWED_LIMIT", 15))

# Catalogue service. Empty means the in-memory catalogue is used.
PRODUCT_SERVICE_URL = os.getenv("PRODUCT_SERVICE_URL", "")

# Public URL used to build provider redirect targets
STOREFRONT_BASE_URL = os.getenv("STOREFRONT_BASE_URL", "http://localhost:3000").rstrip("/")

# Payment providers. Empty keys keep the fake gateway in place.
STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY", "")
STRIPE_WEBHOOK_SECRET = os.getenv("STRIPE_WEBHOOK_SECRET", "")
TABBY_SECRET_KEY = os.getenv("TABBY_SECRET_KEY", "")
TABBY_MERCHANT_CODE = os.getenv("TABBY_MERCHANT_CODE", "")
TABBY_WEBHOOK_SECRET = os.getenv("TABBY_WEBHOOK_SECRET", "")
TABBY_API_URL = os.getenv("TABBY_API_URL", "https://api.tabby.ai").rstrip("/")

DEFAULT_CURRENCY = os.getenv("DEFAULT_CURRENCY", "AED")
