"""Application tests for merging guest collections into a user at login."""

import json

from protean import current_domain
from storefront.cart.cart import Cart
from storefront.cart.items import AddCartItem
from storefront.cart.management import AttachBillingDetails, MergeGuestCart
from storefront.cart.queries import get_cart
from storefront.shared.owner import Owner
from storefront.wishlist.management import AddWishlistItem, MergeGuestWishlist
from storefront.wishlist.queries import get_wishlist
from storefront.wishlist.wishlist import Wishlist

GUEST = "b2" * 16
USER = "user-001"


def _add(product_id, variants=(), quantity=1, user_id=None, unit_price=None):
    current_domain.process(
        AddCartItem(
            session_id=GUEST,
            user_id=user_id,
            product_id=product_id,
            variant_item_ids=json.dumps(list(variants)),
            quantity=quantity,
            unit_price=unit_price,
        ),
        asynchronous=False,
    )


def _merge_cart():
    return current_domain.process(MergeGuestCart(session_id=GUEST, user_id=USER), asynchronous=False)


def _wish(product_id, user_id=None):
    current_domain.process(
        AddWishlistItem(session_id=GUEST, user_id=user_id, product_id=product_id),
        asynchronous=False,
    )


class TestMergeGuestCart:
    def test_guest_cart_adopted_when_user_has_none(self):
        _add("prod-tee", ["size-m"], 2)
        guest_cart_id = get_cart(GUEST)["cart_id"]

        assert _merge_cart() == guest_cart_id

        user_cart = get_cart(user_id=USER)
        assert user_cart["cart_id"] == guest_cart_id
        assert user_cart["total_items"] == 2

    def test_adopted_cart_no_longer_reachable_by_session(self):
        _add("prod-tee")
        _merge_cart()
        assert get_cart(GUEST)["cart_id"] is None

    def test_quantities_sum_for_matching_lines(self):
        _add("prod-tee", ["size-m"], 1, user_id=USER)
        _add("prod-tee", ["size-m"], 2)

        _merge_cart()

        items = get_cart(user_id=USER)["items"]
        assert len(items) == 1
        assert items[0]["quantity"] == 3

    def test_other_lines_are_appended(self):
        _add("prod-tee", user_id=USER)
        _add("prod-mug", quantity=2)

        _merge_cart()

        cart = get_cart(user_id=USER)
        assert sorted(i["product_id"] for i in cart["items"]) == ["prod-mug", "prod-tee"]
        assert cart["total_items"] == 3

    def test_guest_price_snapshot_wins(self):
        _add("prod-tee", user_id=USER, unit_price=120.0)
        _add("prod-tee", unit_price=100.0)

        _merge_cart()

        assert get_cart(user_id=USER)["items"][0]["unit_price"] == 100.0

    def test_guest_cart_deleted_after_merge(self):
        _add("prod-tee", user_id=USER)
        _add("prod-mug")

        _merge_cart()

        repo = current_domain.repository_for(Cart)
        assert repo.find_for(Owner.session(GUEST)) is None

    def test_billing_details_carried_over(self):
        _add("prod-tee", user_id=USER)
        _add("prod-mug")
        current_domain.process(
            AttachBillingDetails(
                session_id=GUEST,
                email="guest@example.com",
                first_name="Guest",
                last_name="Shopper",
                country="AE",
                street_address_1="1 Creek Rd",
                city="Dubai",
                phone="+971500000001",
            ),
            asynchronous=False,
        )

        _merge_cart()

        assert get_cart(user_id=USER)["billing_details"]["email"] == "guest@example.com"

    def test_no_guest_cart_leaves_user_cart_alone(self):
        _add("prod-tee", user_id=USER)
        user_cart_id = get_cart(user_id=USER)["cart_id"]

        assert _merge_cart() == user_cart_id
        assert get_cart(user_id=USER)["total_items"] == 1

    def test_nothing_to_merge(self):
        assert _merge_cart() is None


class TestMergeGuestWishlist:
    def test_adopted_when_user_has_none(self):
        _wish("prod-tee")
        current_domain.process(MergeGuestWishlist(session_id=GUEST, user_id=USER), asynchronous=False)
        assert [i["product_id"] for i in get_wishlist(user_id=USER)["items"]] == ["prod-tee"]
        assert get_wishlist(GUEST)["wishlist_id"] is None

    def test_union_without_duplicates(self):
        _wish("prod-tee", user_id=USER)
        _wish("prod-mug", user_id=USER)
        _wish("prod-mug")
        _wish("prod-cap")

        current_domain.process(MergeGuestWishlist(session_id=GUEST, user_id=USER), asynchronous=False)

        product_ids = sorted(i["product_id"] for i in get_wishlist(user_id=USER)["items"])
        assert product_ids == ["prod-cap", "prod-mug", "prod-tee"]
        assert get_wishlist(GUEST)["wishlist_id"] is None

    def test_guest_wishlist_deleted_after_merge(self):
        _wish("prod-tee", user_id=USER)
        _wish("prod-mug")

        current_domain.process(MergeGuestWishlist(session_id=GUEST, user_id=USER), asynchronous=False)

        assert current_domain.repository_for(Wishlist).find_for(Owner.session(GUEST)) is None


class TestRepositoryDiscard:
    def test_discarded_cart_is_gone(self):
        _add("prod-mug")
        repo = current_domain.repository_for(Cart)

        repo.discard(repo.find_for(Owner.session(GUEST)))

        assert repo.find_for(Owner.session(GUEST)) is None

    def test_discarded_wishlist_is_gone(self):
        _wish("prod-mug")
        repo = current_domain.repository_for(Wishlist)

        repo.discard(repo.find_for(Owner.session(GUEST)))

        assert get_wishlist(GUEST)["wishlist_id"] is None
