"""Tests for collection ownership and variant combination keys."""

import pytest
from storefront.shared.owner import (
    Owner,
    OwnerKind,
    combination_key,
    normalize_variant_item_ids,
)


class TestOwner:
    def test_user_wins_over_session(self):
        owner = Owner.resolve(session_id="sess-1", user_id="user-1")
        assert owner == Owner(OwnerKind.USER, "user-1")
        assert owner.is_user

    def test_session_when_anonymous(self):
        owner = Owner.resolve(session_id="sess-1")
        assert owner.kind == OwnerKind.SESSION
        assert not owner.is_user

    def test_identity_is_required(self):
        with pytest.raises(ValueError):
            Owner.resolve()

    def test_empty_key_rejected(self):
        with pytest.raises(ValueError):
            Owner.session("")

    def test_as_filter(self):
        assert Owner.user("user-1").as_filter() == {"owner_kind": "User", "owner_key": "user-1"}


class TestVariantNormalization:
    def test_sorted_and_unique(self):
        assert normalize_variant_item_ids(["size-m", "color-red", "size-m"]) == ["color-red", "size-m"]

    def test_accepts_json(self):
        assert normalize_variant_item_ids('["b", "a"]') == ["a", "b"]

    def test_empty_selection(self):
        assert normalize_variant_item_ids(None) == []
        assert normalize_variant_item_ids("") == []
        assert normalize_variant_item_ids([]) == []

    def test_order_does_not_change_key(self):
        assert combination_key(["b", "a"]) == combination_key(["a", "b"]) == "a+b"

    def test_default_key(self):
        assert combination_key([]) == "default"
