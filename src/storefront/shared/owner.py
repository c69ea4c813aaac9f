"""Ownership of shopper collections (cart, wishlist, recently viewed).

A collection belongs either to an anonymous session or to an authenticated
user, never both. `Owner` is that tagged variant; aggregates persist it as the
`owner_kind`/`owner_key` pair.
"""

import json
from dataclasses import dataclass
from enum import Enum

DEFAULT_COMBINATION = "default"


class OwnerKind(Enum):
    SESSION = "Session"
    USER = "User"


@dataclass(frozen=True)
class Owner:
    kind: OwnerKind
    key: str

    def __post_init__(self):
        if not self.key:
            raise ValueError(f"{self.kind.value} owner requires a non-empty key")

    @classmethod
    def session(cls, session_id: str) -> "Owner":
        return cls(OwnerKind.SESSION, str(session_id))

    @classmethod
    def user(cls, user_id: str) -> "Owner":
        return cls(OwnerKind.USER, str(user_id))

    @classmethod
    def resolve(cls, session_id: str | None = None, user_id: str | None = None) -> "Owner":
        """The user when authenticated, the session otherwise."""
        if user_id:
            return cls.user(user_id)
        if session_id:
            return cls.session(session_id)
        raise ValueError("Either a session id or a user id is required")

    @classmethod
    def of(cls, record) -> "Owner":
        """Rebuild the owner of a persisted aggregate."""
        return cls(OwnerKind(record.owner_kind), str(record.owner_key))

    @property
    def is_user(self) -> bool:
        return self.kind == OwnerKind.USER

    def as_filter(self) -> dict:
        return {"owner_kind": self.kind.value, "owner_key": self.key}


def normalize_variant_item_ids(variant_item_ids) -> list[str]:
    """De-duplicate and sort selected variant item ids.

    Accepts a list, a JSON-encoded list, or None.
    """
    if variant_item_ids is None or variant_item_ids == "":
        return []
    if isinstance(variant_item_ids, str):
        variant_item_ids = json.loads(variant_item_ids)
    return sorted({str(item_id) for item_id in variant_item_ids if item_id})


def combination_key(variant_item_ids) -> str:
    """Stable key for a variant selection: sorted ids joined by '+'."""
    normalized = normalize_variant_item_ids(variant_item_ids)
    return "+".join(normalized) if normalized else DEFAULT_COMBINATION
