"""Read side of recently viewed products, joined with the catalogue."""

from protean.utils.globals import current_domain

from storefront.catalog import get_catalog
from storefront.recently_viewed.product_view import ProductView
from storefront.shared.owner import Owner
from storefront.utils import settings


def get_recent(session_id=None, user_id=None, limit=None) -> list[dict]:
    """Most recently viewed products first, one entry per product.

    Products the catalogue no longer knows about are skipped silently.
    """
    limit = limit or settings.RECENTLY_VIEWED_LIMIT
    catalog = get_catalog()
    views = current_domain.repository_for(ProductView).views_of(Owner.resolve(session_id, user_id))

    recent, seen = [], set()
    for view in views:
        product_id = str(view.product_id)
        if product_id in seen:
            continue
        seen.add(product_id)

        product = catalog.get_product(product_id)
        if product is None:
            continue

        recent.append(
            {
                "product_id": product_id,
                "name": product.name,
                "image": product.image,
                "price": product.unit_price([]),
                "viewed_at": view.viewed_at,
            }
        )
        if len(recent) >= limit:
            break
    return recent
