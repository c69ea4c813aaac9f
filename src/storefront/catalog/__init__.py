"""Product catalogue factory.

Provides get_catalog() / set_catalog() to swap implementations:
- InMemoryCatalog for development and testing
- HttpCatalog when PRODUCT_SERVICE_URL is configured
"""

from storefront.catalog.port import ProductCatalog
from storefront.utils import settings

_current_catalog: ProductCatalog | None = None


def get_catalog() -> ProductCatalog:
    """Return the current product catalogue."""
    # Adapters are imported here, not at module level: domain traversal may load
    # an adapter module before this package, which would make a circular import.
    from storefront.catalog.http_adapter import HttpCatalog
    from storefront.catalog.memory_adapter import InMemoryCatalog

    global _current_catalog
    if _current_catalog is None:
        if settings.PRODUCT_SERVICE_URL:
            _current_catalog = HttpCatalog(settings.PRODUCT_SERVICE_URL)
        else:
            _current_catalog = InMemoryCatalog()
    return _current_catalog


def set_catalog(catalog: ProductCatalog) -> None:
    """Override the active catalogue (useful for tests)."""
    global _current_catalog
    _current_catalog = catalog


def reset_catalog() -> None:
    """Reset to the default catalogue."""
    global _current_catalog
    _current_catalog = None
