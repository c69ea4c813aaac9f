"""Product catalogue backed by the remote catalogue service over HTTP."""

import requests

from storefront.catalog.port import Product, ProductCatalog, VariantItem
from storefront.domain import logger
from storefront.shared.errors import ErrorCode, NotFoundError, StockError
from storefront.utils.http import http_retry


def _product_from_payload(payload: dict) -> Product:
    variant_items = {
        str(item["id"]): VariantItem(
            id=str(item["id"]),
            name=item.get("name", ""),
            price_delta=float(item.get("price_delta") or 0),
            stock=item.get("stock"),
        )
        for item in payload.get("variant_items", [])
    }
    offer_price = payload.get("offer_price")
    return Product(
        id=str(payload["id"]),
        name=payload["name"],
        base_price=float(payload["base_price"]),
        offer_price=float(offer_price) if offer_price is not None else None,
        image=payload.get("image"),
        variant_items=variant_items,
    )


class HttpCatalog(ProductCatalog):
    def __init__(self, base_url: str, timeout: int = 2) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    @http_retry()
    def get_product(self, product_id: str) -> Product | None:
        url = f"{self.base_url}/products/{product_id}"
        logger.debug("catalogue_request", method="GET", url=url)

        resp = requests.get(url, timeout=self.timeout)
        if resp.status_code == 404:
            return None
        resp.raise_for_status()
        return _product_from_payload(resp.json())

    def has_stock(self, product_id: str, variant_item_ids: list[str], quantity: int) -> bool:
        product = self.get_product(product_id)
        if product is None:
            return False
        return all(
            product.variant_items[i].stock is None or product.variant_items[i].stock >= quantity
            for i in variant_item_ids
            if i in product.variant_items
        )

    @http_retry()
    def reduce_variant_stock(self, product_id: str, variant_item_ids: list[str], quantity: int) -> None:
        url = f"{self.base_url}/products/{product_id}/stock/reductions"
        logger.debug("catalogue_request", method="POST", url=url, quantity=quantity)

        resp = requests.post(
            url,
            json={"variant_item_ids": variant_item_ids, "quantity": quantity},
            timeout=self.timeout,
        )
        if resp.status_code == 404:
            raise NotFoundError(ErrorCode.PRODUCT_NOT_FOUND, product_id=str(product_id))
        if resp.status_code == 409:
            raise StockError(
                ErrorCode.INSUFFICIENT_STOCK,
                f"Insufficient stock for product {product_id}",
                product_id=str(product_id),
            )
        resp.raise_for_status()
