"""Product catalogue port (abstract interface).

The storefront does not own products. It reads display data, prices and
variant stock through this contract and asks the catalogue to decrement stock
when an order is paid.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass(frozen=True)
class VariantItem:
    """One selectable option of a product variant (e.g. "Red" or "XL")."""

    id: str
    name: str
    price_delta: float = 0.0
    stock: int | None = None  # None means stock is not tracked


@dataclass(frozen=True)
class Product:
    id: str
    name: str
    base_price: float
    offer_price: float | None = None
    image: str | None = None
    variant_items: dict[str, VariantItem] = field(default_factory=dict)

    def unit_price(self, variant_item_ids: list[str]) -> float:
        """Offer price (or base price) plus the deltas of the selected variant items."""
        price = self.offer_price if self.offer_price is not None else self.base_price
        for item_id in variant_item_ids:
            variant_item = self.variant_items.get(item_id)
            if variant_item is not None:
                price += variant_item.price_delta
        return round(price, 2)

    def variant_name(self, variant_item_ids: list[str]) -> str | None:
        names = [self.variant_items[i].name for i in variant_item_ids if i in self.variant_items]
        return " / ".join(names) if names else None


class ProductCatalog(ABC):
    """Abstract product catalogue interface."""

    @abstractmethod
    def get_product(self, product_id: str) -> Product | None:
        """Return the product, or None when it no longer exists."""
        ...

    @abstractmethod
    def has_stock(self, product_id: str, variant_item_ids: list[str], quantity: int) -> bool:
        """Whether every selected variant item can supply `quantity` units."""
        ...

    @abstractmethod
    def reduce_variant_stock(self, product_id: str, variant_item_ids: list[str], quantity: int) -> None:
        """Atomically decrement stock for the selected variant items.

        Raises NotFoundError(PRODUCT_NOT_FOUND) or StockError(INSUFFICIENT_STOCK).
        Untracked variant items are left alone.
        """
        ...
