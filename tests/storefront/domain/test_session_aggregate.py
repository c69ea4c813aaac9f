"""Tests for the StorefrontSession aggregate — issue, expiry, renewal, binding and revocation."""

from datetime import UTC, datetime, timedelta

import pytest
from storefront.session.events import SessionBound, SessionRevoked, SessionStarted, SessionUnbound
from storefront.session.session import (
    ClientMetadata,
    SessionStatus,
    StorefrontSession,
    hash_ip,
    is_well_formed,
)
from storefront.shared.errors import ErrorCode, SessionError


def _expired_session():
    started = datetime.now(UTC) - timedelta(days=40)
    session = StorefrontSession.start(now=started)
    session._events.clear()
    return session


class TestSessionStart:
    def test_issues_well_formed_token(self):
        session = StorefrontSession.start()
        assert is_well_formed(str(session.id))
        assert len(str(session.id)) == 32

    def test_tokens_are_unique(self):
        assert StorefrontSession.start().id != StorefrontSession.start().id

    def test_starts_active_and_unbound(self):
        session = StorefrontSession.start()
        assert session.status == SessionStatus.ACTIVE.value
        assert session.bound_user_id is None

    def test_expires_after_default_ttl(self):
        now = datetime.now(UTC)
        session = StorefrontSession.start(now=now)
        assert session.expires_at == now + timedelta(days=30)

    def test_raises_session_started(self):
        session = StorefrontSession.start()
        assert len(session._events) == 1
        assert isinstance(session._events[0], SessionStarted)
        assert session._events[0].renewed_from is None

    def test_keeps_presented_id(self):
        session = StorefrontSession.start(session_id="ab" * 16)
        assert str(session.id) == "ab" * 16


class TestTokenFormat:
    @pytest.mark.parametrize("value", ["0123456789abcdef0123456789abcdef", "f" * 32])
    def test_well_formed(self, value):
        assert is_well_formed(value)

    @pytest.mark.parametrize("value", [None, "", "short", "G" * 32, "0123456789ABCDEF0123456789ABCDEF", "a" * 33])
    def test_malformed(self, value):
        assert not is_well_formed(value)


class TestClientMetadata:
    def test_ip_is_hashed(self):
        client = ClientMetadata.capture(user_agent="Firefox", ip_address="10.0.0.1")
        assert client.ip_hash == hash_ip("10.0.0.1")
        assert "10.0.0.1" not in client.ip_hash

    def test_merge_keeps_known_values(self):
        original = ClientMetadata.capture(user_agent="Firefox", ip_address="10.0.0.1")
        merged = original.merged_with(ClientMetadata.capture(ip_address="10.0.0.2"))
        assert merged.user_agent == "Firefox"
        assert merged.ip_hash == hash_ip("10.0.0.2")


class TestSessionExpiry:
    def test_not_expired_within_ttl(self):
        assert not StorefrontSession.start().is_expired()

    def test_expired_after_ttl(self):
        assert _expired_session().is_expired()

    def test_expired_session_is_not_usable(self):
        with pytest.raises(SessionError) as exc:
            _expired_session().check_usable()
        assert exc.value.code == ErrorCode.SESSION_EXPIRED

    def test_touch_slides_expiry(self):
        now = datetime.now(UTC)
        session = StorefrontSession.start(now=now - timedelta(days=10))
        session.touch(now=now)
        assert session.expires_at == now + timedelta(days=30)
        assert session.last_active_at == now

    def test_touch_rejects_expired_session(self):
        with pytest.raises(SessionError):
            _expired_session().touch()

    def test_renew_keeps_token(self):
        session = _expired_session()
        session_id = str(session.id)
        session.renew()
        assert str(session.id) == session_id
        assert not session.is_expired()

    def test_renew_drops_binding(self):
        session = StorefrontSession.start(now=datetime.now(UTC) - timedelta(days=40))
        session.bound_user_id = "user-001"
        session.renew()
        assert session.bound_user_id is None

    def test_renew_raises_session_started(self):
        session = _expired_session()
        session.renew()
        assert isinstance(session._events[-1], SessionStarted)
        assert session._events[-1].renewed_from == "expired"


class TestSessionBinding:
    def test_bind_sets_user(self):
        session = StorefrontSession.start()
        session.bind("user-001")
        assert session.bound_user_id == "user-001"
        assert isinstance(session._events[-1], SessionBound)

    def test_bind_same_user_is_idempotent(self):
        session = StorefrontSession.start()
        session.bind("user-001")
        session._events.clear()
        session.bind("user-001")
        assert session._events == []

    def test_unbind(self):
        session = StorefrontSession.start()
        session.bind("user-001")
        session.unbind()
        assert session.bound_user_id is None
        assert isinstance(session._events[-1], SessionUnbound)

    def test_unbind_unbound_session_does_nothing(self):
        session = StorefrontSession.start()
        session._events.clear()
        session.unbind()
        assert session._events == []


class TestSessionRevocation:
    def test_revoke(self):
        session = StorefrontSession.start()
        session.revoke()
        assert session.is_revoked
        assert isinstance(session._events[-1], SessionRevoked)

    def test_revoke_twice_raises_one_event(self):
        session = StorefrontSession.start()
        session._events.clear()
        session.revoke()
        session.revoke()
        assert len(session._events) == 1

    def test_revoked_session_is_not_usable(self):
        session = StorefrontSession.start()
        session.revoke()
        with pytest.raises(SessionError) as exc:
            session.check_usable()
        assert exc.value.code == ErrorCode.SESSION_REVOKED

    def test_revoked_session_cannot_be_renewed(self):
        session = _expired_session()
        session.revoke()
        with pytest.raises(SessionError):
            session.renew()

    def test_revoked_session_cannot_be_bound(self):
        session = StorefrontSession.start()
        session.revoke()
        with pytest.raises(SessionError):
            session.bind("user-001")
