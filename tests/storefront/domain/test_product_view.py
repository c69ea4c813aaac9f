"""Tests for the ProductView aggregate."""

from datetime import UTC, datetime, timedelta

from storefront.recently_viewed.events import ProductViewed, ProductViewReassigned
from storefront.recently_viewed.product_view import ProductView, most_recent_first
from storefront.shared.owner import Owner


class TestProductView:
    def test_record(self):
        view = ProductView.record(Owner.session("sess-1"), "prod-tee", session_id="sess-1")
        assert view.owner == Owner.session("sess-1")
        assert isinstance(view._events[-1], ProductViewed)

    def test_seen_again_moves_timestamp(self):
        earlier = datetime.now(UTC) - timedelta(hours=1)
        view = ProductView.record(Owner.session("sess-1"), "prod-tee", viewed_at=earlier)
        view.seen_again(viewed_at=earlier + timedelta(minutes=30))
        assert view.viewed_at == earlier + timedelta(minutes=30)

    def test_keep_latest_only_moves_forward(self):
        now = datetime.now(UTC)
        view = ProductView.record(Owner.user("user-1"), "prod-tee", viewed_at=now)
        view.keep_latest(now - timedelta(days=1))
        assert view.viewed_at == now
        view.keep_latest(now + timedelta(seconds=5))
        assert view.viewed_at == now + timedelta(seconds=5)

    def test_reassign_to_user(self):
        view = ProductView.record(Owner.session("sess-1"), "prod-tee")
        view.reassign_to("user-1")
        assert view.owner == Owner.user("user-1")
        assert isinstance(view._events[-1], ProductViewReassigned)

    def test_most_recent_first(self):
        now = datetime.now(UTC)
        old = ProductView.record(Owner.session("s"), "prod-a", viewed_at=now - timedelta(minutes=5))
        new = ProductView.record(Owner.session("s"), "prod-b", viewed_at=now)
        assert most_recent_first([old, new]) == [new, old]
