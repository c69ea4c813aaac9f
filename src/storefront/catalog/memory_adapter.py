"""In-memory product catalogue for development and testing."""

from dataclasses import replace

from storefront.catalog.port import Product, ProductCatalog
from storefront.domain import logger
from storefront.shared.errors import ErrorCode, NotFoundError, StockError


class InMemoryCatalog(ProductCatalog):
    """Product catalogue held in a dict, with a record of stock reductions."""

    def __init__(self, products: list[Product] | None = None) -> None:
        self.products: dict[str, Product] = {}
        self.stock_reductions: list[dict] = []
        self.failing_products: set[str] = set()
        for product in products or []:
            self.add_product(product)

    def add_product(self, product: Product) -> None:
        self.products[str(product.id)] = product

    def remove_product(self, product_id: str) -> None:
        self.products.pop(str(product_id), None)

    def fail_stock_updates_for(self, product_id: str) -> None:
        """Make stock reduction for this product raise, to simulate an outage."""
        self.failing_products.add(str(product_id))

    def stock_of(self, product_id: str, variant_item_id: str) -> int | None:
        return self.products[str(product_id)].variant_items[variant_item_id].stock

    def get_product(self, product_id: str) -> Product | None:
        return self.products.get(str(product_id))

    def has_stock(self, product_id: str, variant_item_ids: list[str], quantity: int) -> bool:
        product = self.get_product(product_id)
        if product is None:
            return False
        for item_id in variant_item_ids:
            variant_item = product.variant_items.get(item_id)
            if variant_item is not None and variant_item.stock is not None and variant_item.stock < quantity:
                return False
        return True

    def reduce_variant_stock(self, product_id: str, variant_item_ids: list[str], quantity: int) -> None:
        if str(product_id) in self.failing_products:
            raise ConnectionError(f"Catalogue unavailable for product {product_id}")

        product = self.get_product(product_id)
        if product is None:
            raise NotFoundError(ErrorCode.PRODUCT_NOT_FOUND, product_id=str(product_id))

        if not self.has_stock(product_id, variant_item_ids, quantity):
            raise StockError(
                ErrorCode.INSUFFICIENT_STOCK,
                f"Insufficient stock for product {product_id}",
                product_id=str(product_id),
            )

        variant_items = dict(product.variant_items)
        for item_id in variant_item_ids:
            variant_item = variant_items.get(item_id)
            if variant_item is None or variant_item.stock is None:
                logger.warning("stock_not_tracked", product_id=str(product_id), variant_item_id=item_id)
                continue
            variant_items[item_id] = replace(variant_item, stock=variant_item.stock - quantity)

        self.products[str(product_id)] = replace(product, variant_items=variant_items)
        self.stock_reductions.append(
            {"product_id": str(product_id), "variant_item_ids": list(variant_item_ids), "quantity": quantity}
        )
