"""Cart aggregate (CQRS) — the shopper's basket, owned by a session or a user.

The cart is created lazily on the first add. Lines are identified by the
product and the normalized set of selected variant items, so adding a
combination that is already present increases its quantity instead of
duplicating the line. At login a guest cart is either adopted by the user or
folded into the user's existing cart.
"""

import json
from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, Text, ValueObject

from storefront.cart.events import (
    BillingDetailsAttached,
    CartAdopted,
    CartCleared,
    CartItemAdded,
    CartItemQuantityUpdated,
    CartItemRemoved,
    GuestCartMerged,
)
from storefront.domain import storefront
from storefront.shared.billing import BillingDetails
from storefront.shared.errors import ErrorCode, NotFoundError
from storefront.shared.owner import Owner, OwnerKind, combination_key, normalize_variant_item_ids


@storefront.entity(part_of="Cart")
class CartItem:
    product_id = Identifier(required=True)
    variant_item_ids = Text()  # JSON array, normalized (unique, sorted)
    variant_key = String(required=True, max_length=500)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    added_at = DateTime()

    @property
    def selected_variant_item_ids(self) -> list[str]:
        return json.loads(self.variant_item_ids) if self.variant_item_ids else []

    @property
    def line_total(self) -> float:
        return round(self.quantity * self.unit_price, 2)

    def matches(self, product_id, variant_key) -> bool:
        return str(self.product_id) == str(product_id) and self.variant_key == variant_key

    def summary(self):
        return {
            "product_id": str(self.product_id),
            "variant_item_ids": self.selected_variant_item_ids,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
            "line_total": self.line_total,
        }


def _positive_quantity(quantity):
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise ValidationError({"quantity": ["Quantity must be a positive integer"]})


@storefront.aggregate
class Cart:
    owner_kind = String(required=True, choices=OwnerKind)
    owner_key = String(required=True, max_length=255)
    items = HasMany(CartItem)
    billing_details = ValueObject(BillingDetails)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def one_line_per_product_combination(self):
        keys = [(str(i.product_id), i.variant_key) for i in self.items]
        if len(keys) != len(set(keys)):
            raise ValidationError({"items": ["A product combination can only appear once in a cart"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, owner: Owner):
        now = datetime.now(UTC)
        return cls(
            owner_kind=owner.kind.value,
            owner_key=owner.key,
            created_at=now,
            updated_at=now,
        )

    @property
    def owner(self) -> Owner:
        return Owner.of(self)

    # -------------------------------------------------------------------
    # Totals
    # -------------------------------------------------------------------
    @property
    def subtotal(self) -> float:
        return round(sum(item.line_total for item in self.items), 2)

    @property
    def total_items(self) -> int:
        return sum(item.quantity for item in self.items)

    def find_item(self, product_id, variant_item_ids):
        key = combination_key(variant_item_ids)
        return next((i for i in self.items if i.matches(product_id, key)), None)

    # -------------------------------------------------------------------
    # Item management
    # -------------------------------------------------------------------
    def add_item(self, product_id, variant_item_ids, quantity, unit_price):
        """Add a product combination, or increase its quantity if already present.

        The unit price is refreshed to the latest snapshot either way.
        """
        _positive_quantity(quantity)
        if unit_price is None or unit_price < 0:
            raise ValidationError({"unit_price": ["Unit price must be zero or more"]})

        normalized = normalize_variant_item_ids(variant_item_ids)
        key = combination_key(normalized)
        now = datetime.now(UTC)

        existing = next((i for i in self.items if i.matches(product_id, key)), None)
        if existing:
            existing.quantity += quantity
            existing.unit_price = unit_price
            new_quantity = existing.quantity
        else:
            self.add_items(
                CartItem(
                    product_id=product_id,
                    variant_item_ids=json.dumps(normalized),
                    variant_key=key,
                    quantity=quantity,
                    unit_price=unit_price,
                    added_at=now,
                )
            )
            new_quantity = quantity

        self.updated_at = now
        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                product_id=str(product_id),
                variant_key=key,
                quantity=quantity,
                new_quantity=new_quantity,
                unit_price=unit_price,
            )
        )

    def update_item_quantity(self, product_id, variant_item_ids, quantity):
        """Set the quantity of a line. Zero removes the line."""
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 0:
            raise ValidationError({"quantity": ["Quantity must be zero or a positive integer"]})

        item = self._require_item(product_id, variant_item_ids)
        if quantity == 0:
            self._remove(item)
            return

        previous_quantity = item.quantity
        item.quantity = quantity
        self.updated_at = datetime.now(UTC)
        self.raise_(
            CartItemQuantityUpdated(
                cart_id=str(self.id),
                product_id=str(product_id),
                variant_key=item.variant_key,
                previous_quantity=previous_quantity,
                new_quantity=quantity,
            )
        )

    def remove_item(self, product_id, variant_item_ids):
        self._remove(self._require_item(product_id, variant_item_ids))

    def clear(self):
        removed = len(self.items)
        for item in list(self.items):
            self.remove_items(item)

        now = datetime.now(UTC)
        self.updated_at = now
        self.raise_(CartCleared(cart_id=str(self.id), items_removed=removed, cleared_at=now))

    def _require_item(self, product_id, variant_item_ids):
        item = self.find_item(product_id, variant_item_ids)
        if item is None:
            raise NotFoundError(
                ErrorCode.ITEM_NOT_FOUND,
                "Item not found in cart",
                product_id=str(product_id),
            )
        return item

    def _remove(self, item):
        self.remove_items(item)
        self.updated_at = datetime.now(UTC)
        self.raise_(
            CartItemRemoved(
                cart_id=str(self.id),
                product_id=str(item.product_id),
                variant_key=item.variant_key,
            )
        )

    # -------------------------------------------------------------------
    # Checkout details
    # -------------------------------------------------------------------
    def attach_billing_details(self, billing_details: BillingDetails):
        self.billing_details = billing_details
        self.updated_at = datetime.now(UTC)
        self.raise_(
            BillingDetailsAttached(
                cart_id=str(self.id),
                billing_details=json.dumps(billing_details.to_dict()),
            )
        )

    # -------------------------------------------------------------------
    # Guest → user
    # -------------------------------------------------------------------
    def adopt_by(self, user_id):
        """Hand this guest cart over to a user who has no cart yet.

        The session linkage is dropped: the cart is no longer reachable by
        session id once it belongs to a user.
        """
        if self.owner.is_user:
            raise ValidationError({"owner": ["Cart already belongs to a user"]})

        session_id = self.owner_key
        self.owner_kind = OwnerKind.USER.value
        self.owner_key = str(user_id)
        self.updated_at = datetime.now(UTC)
        self.raise_(CartAdopted(cart_id=str(self.id), session_id=session_id, user_id=str(user_id)))

    def absorb(self, guest_cart: "Cart"):
        """Fold a guest cart's lines into this user cart.

        Matching combinations sum quantities and take the guest's (more recent)
        price snapshot; other lines are appended. Billing details are carried
        over only when this cart has none.
        """
        if not self.owner.is_user:
            raise ValidationError({"owner": ["Only a user cart can absorb a guest cart"]})

        now = datetime.now(UTC)
        for guest_item in guest_cart.items:
            existing = next((i for i in self.items if i.matches(guest_item.product_id, guest_item.variant_key)), None)
            if existing:
                existing.quantity += guest_item.quantity
                existing.unit_price = guest_item.unit_price
            else:
                self.add_items(
                    CartItem(
                        product_id=guest_item.product_id,
                        variant_item_ids=guest_item.variant_item_ids,
                        variant_key=guest_item.variant_key,
                        quantity=guest_item.quantity,
                        unit_price=guest_item.unit_price,
                        added_at=guest_item.added_at or now,
                    )
                )

        if self.billing_details is None and guest_cart.billing_details is not None:
            self.billing_details = guest_cart.billing_details

        self.updated_at = now
        self.raise_(
            GuestCartMerged(
                cart_id=str(self.id),
                guest_cart_id=str(guest_cart.id),
                user_id=self.owner_key,
                lines_merged=len(guest_cart.items),
            )
        )

    def summary(self):
        return {
            "cart_id": str(self.id),
            "items": [item.summary() for item in self.items],
            "subtotal": self.subtotal,
            "total_items": self.total_items,
            "billing_details": self.billing_details.to_dict() if self.billing_details else None,
        }


def empty_cart_dict() -> dict:
    return {"cart_id": None, "items": [], "subtotal": 0.0, "total_items": 0, "billing_details": None}


@storefront.repository(part_of=Cart)
class CartRepository:
    def find_for(self, owner: Owner) -> Cart | None:
        """The cart owned by `owner`, or None."""
        results = self._dao.query.filter(**owner.as_filter()).all().items
        return results[0] if results else None

    def discard(self, cart: Cart) -> None:
        """Delete a cart whose contents now live elsewhere."""
        self._dao.delete(cart)
