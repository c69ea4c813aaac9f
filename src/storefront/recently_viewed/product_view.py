"""Recently viewed products — one document per (owner, product).

Repeat views overwrite `viewed_at` rather than adding entries, so an owner has
at most one view per product. A logged-in shopper's views are owned by the
user, whichever session they arrive through.
"""

from datetime import UTC, datetime

from protean.fields import DateTime, Identifier, String

from storefront.domain import storefront
from storefront.recently_viewed.events import ProductViewed, ProductViewReassigned
from storefront.shared.owner import Owner, OwnerKind


@storefront.aggregate
class ProductView:
    owner_kind = String(required=True, choices=OwnerKind)
    owner_key = String(required=True, max_length=255)
    product_id = Identifier(required=True)
    session_id = String(max_length=64)  # Session the latest view came through
    viewed_at = DateTime(required=True)

    @classmethod
    def record(cls, owner: Owner, product_id, session_id=None, viewed_at=None):
        view = cls(
            owner_kind=owner.kind.value,
            owner_key=owner.key,
            product_id=product_id,
            session_id=session_id,
            viewed_at=viewed_at or datetime.now(UTC),
        )
        view._announce()
        return view

    @property
    def owner(self) -> Owner:
        return Owner.of(self)

    def seen_again(self, session_id=None, viewed_at=None):
        self.viewed_at = viewed_at or datetime.now(UTC)
        if session_id:
            self.session_id = session_id
        self._announce()

    def keep_latest(self, other_viewed_at):
        """Adopt a colliding view's timestamp when it is more recent."""
        if other_viewed_at and _aware(other_viewed_at) > _aware(self.viewed_at):
            self.viewed_at = other_viewed_at

    def reassign_to(self, user_id):
        session_id = self.owner_key
        self.owner_kind = OwnerKind.USER.value
        self.owner_key = str(user_id)
        self.raise_(
            ProductViewReassigned(
                view_id=str(self.id),
                session_id=session_id,
                user_id=str(user_id),
                product_id=str(self.product_id),
            )
        )

    def _announce(self):
        self.raise_(
            ProductViewed(
                view_id=str(self.id),
                owner_kind=self.owner_kind,
                owner_key=self.owner_key,
                product_id=str(self.product_id),
                viewed_at=self.viewed_at,
            )
        )


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=UTC)


def most_recent_first(views):
    return sorted(views, key=lambda v: _aware(v.viewed_at), reverse=True)


@storefront.repository(part_of=ProductView)
class ProductViewRepository:
    def find_view(self, owner: Owner, product_id) -> ProductView | None:
        results = self._dao.query.filter(product_id=str(product_id), **owner.as_filter()).all().items
        if not results:
            return None
        return most_recent_first(results)[0]

    def views_of(self, owner: Owner) -> list[ProductView]:
        """All views of an owner, most recent first."""
        return most_recent_first(self._dao.query.filter(**owner.as_filter()).all().items)

    def discard(self, view: ProductView) -> None:
        self._dao.delete(view)
