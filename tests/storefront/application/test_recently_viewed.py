"""Application tests for tracking, merging and reading recently viewed products."""

from datetime import UTC, datetime, timedelta

from protean import current_domain
from storefront.catalog.port import Product
from storefront.recently_viewed.product_view import ProductView
from storefront.recently_viewed.queries import get_recent
from storefront.recently_viewed.tracking import MergeGuestViews, TrackProductView
from storefront.shared.owner import Owner

GUEST = "d4" * 16
USER = "user-001"
NOW = datetime.now(UTC)


def _track(product_id, minutes_ago=0, session_id=GUEST, user_id=None):
    return current_domain.process(
        TrackProductView(
            session_id=session_id,
            user_id=user_id,
            product_id=product_id,
            viewed_at=NOW - timedelta(minutes=minutes_ago),
        ),
        asynchronous=False,
    )


def _views(owner):
    return current_domain.repository_for(ProductView).views_of(owner)


def _seed_products(catalog, count):
    for n in range(count):
        catalog.add_product(Product(id=f"prod-{n:02d}", name=f"Product {n}", base_price=10.0 + n))


class TestTrackProductView:
    def test_records_view(self):
        _track("prod-tee")
        assert [str(v.product_id) for v in _views(Owner.session(GUEST))] == ["prod-tee"]

    def test_repeat_view_updates_timestamp_instead_of_duplicating(self):
        _track("prod-tee", minutes_ago=10)
        _track("prod-mug", minutes_ago=5)
        _track("prod-tee", minutes_ago=0)

        views = _views(Owner.session(GUEST))
        assert [str(v.product_id) for v in views] == ["prod-tee", "prod-mug"]

    def test_keeps_only_latest_fifteen(self, catalog):
        _seed_products(catalog, 20)
        for n in range(20):
            _track(f"prod-{n:02d}", minutes_ago=20 - n)

        views = _views(Owner.session(GUEST))
        assert len(views) == 15
        assert str(views[0].product_id) == "prod-19"
        assert "prod-04" not in {str(v.product_id) for v in views}

    def test_logged_in_views_belong_to_user(self):
        _track("prod-tee", user_id=USER)
        assert len(_views(Owner.user(USER))) == 1
        assert _views(Owner.session(GUEST)) == []

    def test_same_user_on_two_sessions_keeps_one_entry(self):
        first_session, second_session = "e1" * 16, "e2" * 16
        _track("prod-tee", minutes_ago=30, session_id=first_session, user_id=USER)
        _track("prod-tee", minutes_ago=2, session_id=second_session, user_id=USER)

        recent = get_recent(second_session, USER)

        assert [r["product_id"] for r in recent] == ["prod-tee"]
        assert recent[0]["viewed_at"] == NOW - timedelta(minutes=2)

    def test_guest_view_merged_then_viewed_again_from_new_session(self):
        _track("prod-tee", minutes_ago=30)
        current_domain.process(MergeGuestViews(session_id=GUEST, user_id=USER), asynchronous=False)

        _track("prod-tee", minutes_ago=1, session_id="e3" * 16, user_id=USER)

        recent = get_recent("e3" * 16, USER)
        assert len(recent) == 1
        assert recent[0]["viewed_at"] == NOW - timedelta(minutes=1)


class TestMergeGuestViews:
    def test_guest_views_move_to_user(self):
        _track("prod-tee")
        current_domain.process(MergeGuestViews(session_id=GUEST, user_id=USER), asynchronous=False)

        assert [str(v.product_id) for v in _views(Owner.user(USER))] == ["prod-tee"]
        assert _views(Owner.session(GUEST)) == []

    def test_collision_keeps_latest_timestamp(self):
        _track("prod-tee", minutes_ago=30, user_id=USER)
        _track("prod-tee", minutes_ago=1)

        current_domain.process(MergeGuestViews(session_id=GUEST, user_id=USER), asynchronous=False)

        views = _views(Owner.user(USER))
        assert len(views) == 1
        assert views[0].viewed_at == NOW - timedelta(minutes=1)

    def test_collision_does_not_move_user_view_backwards(self):
        _track("prod-tee", minutes_ago=1, user_id=USER)
        _track("prod-tee", minutes_ago=30)

        current_domain.process(MergeGuestViews(session_id=GUEST, user_id=USER), asynchronous=False)

        assert _views(Owner.user(USER))[0].viewed_at == NOW - timedelta(minutes=1)

    def test_merged_history_is_capped(self, catalog):
        _seed_products(catalog, 20)
        for n in range(10):
            _track(f"prod-{n:02d}", minutes_ago=100 - n, user_id=USER)
        for n in range(10, 20):
            _track(f"prod-{n:02d}", minutes_ago=20 - n)

        current_domain.process(MergeGuestViews(session_id=GUEST, user_id=USER), asynchronous=False)

        views = _views(Owner.user(USER))
        assert len(views) == 15
        assert str(views[0].product_id) == "prod-19"


class TestGetRecent:
    def test_joins_catalogue_data(self):
        _track("prod-tee")
        recent = get_recent(GUEST)
        assert recent == [
            {
                "product_id": "prod-tee",
                "name": "Linen Tee",
                "image": "https://cdn.example.test/tee.jpg",
                "price": 100.0,
                "viewed_at": NOW,
            }
        ]

    def test_most_recent_first(self):
        _track("prod-tee", minutes_ago=5)
        _track("prod-mug", minutes_ago=1)
        assert [r["product_id"] for r in get_recent(GUEST)] == ["prod-mug", "prod-tee"]

    def test_missing_products_are_skipped(self, catalog):
        _track("prod-tee")
        _track("prod-mug")
        catalog.remove_product("prod-mug")
        assert [r["product_id"] for r in get_recent(GUEST)] == ["prod-tee"]

    def test_limit(self):
        _track("prod-tee", minutes_ago=3)
        _track("prod-mug", minutes_ago=2)
        _track("prod-cap", minutes_ago=1)
        assert [r["product_id"] for r in get_recent(GUEST, limit=2)] == ["prod-cap", "prod-mug"]
