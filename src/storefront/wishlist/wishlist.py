"""Wishlist aggregate — products a shopper wants to remember.

Same ownership rules as the cart, but items carry no quantity or price: the
wishlist is a set keyed by product and selected variant items.
"""

import json
from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, String, Text

from storefront.domain import storefront
from storefront.shared.errors import ErrorCode, NotFoundError
from storefront.shared.owner import Owner, OwnerKind, combination_key, normalize_variant_item_ids
from storefront.wishlist.events import (
    GuestWishlistMerged,
    WishlistCleared,
    WishlistItemAdded,
    WishlistItemRemoved,
)


@storefront.entity(part_of="Wishlist")
class WishlistItem:
    product_id = Identifier(required=True)
    variant_item_ids = Text()  # JSON array, normalized
    variant_key = String(required=True, max_length=500)
    added_at = DateTime()

    def matches(self, product_id, variant_key) -> bool:
        return str(self.product_id) == str(product_id) and self.variant_key == variant_key


@storefront.aggregate
class Wishlist:
    owner_kind = String(required=True, choices=OwnerKind)
    owner_key = String(required=True, max_length=255)
    items = HasMany(WishlistItem)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def no_duplicate_items(self):
        keys = [(str(i.product_id), i.variant_key) for i in self.items]
        if len(keys) != len(set(keys)):
            raise ValidationError({"items": ["A product combination can only appear once in a wishlist"]})

    @classmethod
    def create(cls, owner: Owner):
        now = datetime.now(UTC)
        return cls(owner_kind=owner.kind.value, owner_key=owner.key, created_at=now, updated_at=now)

    @property
    def owner(self) -> Owner:
        return Owner.of(self)

    def contains(self, product_id, variant_item_ids) -> bool:
        key = combination_key(variant_item_ids)
        return any(i.matches(product_id, key) for i in self.items)

    def add_item(self, product_id, variant_item_ids, added_at=None) -> bool:
        """Add a product combination. Returns False when it was already there."""
        normalized = normalize_variant_item_ids(variant_item_ids)
        key = combination_key(normalized)
        if any(i.matches(product_id, key) for i in self.items):
            return False

        now = datetime.now(UTC)
        self.add_items(
            WishlistItem(
                product_id=product_id,
                variant_item_ids=json.dumps(normalized),
                variant_key=key,
                added_at=added_at or now,
            )
        )
        self.updated_at = now
        self.raise_(WishlistItemAdded(wishlist_id=str(self.id), product_id=str(product_id), variant_key=key))
        return True

    def remove_item(self, product_id, variant_item_ids):
        key = combination_key(variant_item_ids)
        item = next((i for i in self.items if i.matches(product_id, key)), None)
        if item is None:
            raise NotFoundError(ErrorCode.ITEM_NOT_FOUND, "Item not found in wishlist", product_id=str(product_id))

        self.remove_items(item)
        self.updated_at = datetime.now(UTC)
        self.raise_(WishlistItemRemoved(wishlist_id=str(self.id), product_id=str(product_id), variant_key=key))

    def clear(self):
        removed = len(self.items)
        for item in list(self.items):
            self.remove_items(item)
        self.updated_at = datetime.now(UTC)
        self.raise_(WishlistCleared(wishlist_id=str(self.id), items_removed=removed))

    def adopt_by(self, user_id):
        if self.owner.is_user:
            raise ValidationError({"owner": ["Wishlist already belongs to a user"]})

        self.owner_kind = OwnerKind.USER.value
        self.owner_key = str(user_id)
        self.updated_at = datetime.now(UTC)
        self.raise_(
            GuestWishlistMerged(wishlist_id=str(self.id), user_id=str(user_id), items_added=len(self.items))
        )

    def absorb(self, guest_wishlist: "Wishlist"):
        """Set union with a guest wishlist. Existing entries keep their added_at."""
        if not self.owner.is_user:
            raise ValidationError({"owner": ["Only a user wishlist can absorb a guest wishlist"]})

        added = 0
        now = datetime.now(UTC)
        for guest_item in guest_wishlist.items:
            if any(i.matches(guest_item.product_id, guest_item.variant_key) for i in self.items):
                continue
            self.add_items(
                WishlistItem(
                    product_id=guest_item.product_id,
                    variant_item_ids=guest_item.variant_item_ids,
                    variant_key=guest_item.variant_key,
                    added_at=guest_item.added_at or now,
                )
            )
            added += 1

        self.updated_at = now
        self.raise_(
            GuestWishlistMerged(
                wishlist_id=str(self.id),
                guest_wishlist_id=str(guest_wishlist.id),
                user_id=self.owner_key,
                items_added=added,
            )
        )

    def summary(self):
        return {
            "wishlist_id": str(self.id),
            "items": [
                {
                    "product_id": str(i.product_id),
                    "variant_item_ids": json.loads(i.variant_item_ids) if i.variant_item_ids else [],
                    "added_at": i.added_at,
                }
                for i in sorted(self.items, key=lambda i: i.added_at, reverse=True)
            ],
        }


@storefront.repository(part_of=Wishlist)
class WishlistRepository:
    def find_for(self, owner: Owner) -> Wishlist | None:
        results = self._dao.query.filter(**owner.as_filter()).all().items
        return results[0] if results else None

    def discard(self, wishlist: Wishlist) -> None:
        self._dao.delete(wishlist)
