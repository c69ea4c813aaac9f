"""Storefront session aggregate.

A session is an opaque random token handed to every browser. Anonymous
shoppers are identified by it until they log in, at which point the session is
bound to their user id. Sessions expire passively after a TTL and are revoked
on logout; a revoked token is never reused.
"""

import hashlib
import re
import secrets
from datetime import UTC, datetime, timedelta
from enum import Enum

from protean.exceptions import ObjectNotFoundError
from protean.fields import DateTime, Identifier, String, ValueObject

from storefront.domain import storefront
from storefront.session.events import SessionBound, SessionRevoked, SessionStarted, SessionUnbound
from storefront.shared.errors import ErrorCode, NotFoundError, SessionError
from storefront.utils import settings

_TOKEN_PATTERN = re.compile(r"^[0-9a-f]{32}$")


class SessionStatus(Enum):
    ACTIVE = "active"
    REVOKED = "revoked"


def generate_session_id() -> str:
    return secrets.token_hex(16)


def is_well_formed(session_id: str | None) -> bool:
    return bool(session_id) and bool(_TOKEN_PATTERN.match(session_id))


def hash_ip(ip_address: str | None) -> str | None:
    if not ip_address:
        return None
    return hashlib.sha256(ip_address.encode("utf-8")).hexdigest()


@storefront.value_object(part_of="StorefrontSession")
class ClientMetadata:
    """What we know about the browser behind a session. The IP is only kept hashed."""

    user_agent = String(max_length=512)
    ip_hash = String(max_length=64)
    last_seen_at = DateTime()

    @classmethod
    def capture(cls, user_agent=None, ip_address=None, seen_at=None):
        return cls(
            user_agent=user_agent,
            ip_hash=hash_ip(ip_address),
            last_seen_at=seen_at or datetime.now(UTC),
        )

    def merged_with(self, newer):
        """Newer values win; fields the newer capture lacks are kept."""
        if newer is None:
            return self
        return ClientMetadata(
            user_agent=newer.user_agent or self.user_agent,
            ip_hash=newer.ip_hash or self.ip_hash,
            last_seen_at=newer.last_seen_at or self.last_seen_at,
        )


@storefront.aggregate
class StorefrontSession:
    id = Identifier(identifier=True)
    status = String(choices=SessionStatus, default=SessionStatus.ACTIVE.value)
    bound_user_id = Identifier()
    client = ValueObject(ClientMetadata)
    created_at = DateTime(required=True)
    updated_at = DateTime(required=True)
    last_active_at = DateTime(required=True)
    expires_at = DateTime(required=True)

    @classmethod
    def start(cls, session_id=None, client=None, now=None, ttl_days=None):
        now = now or datetime.now(UTC)
        ttl = timedelta(days=ttl_days or settings.SESSION_TTL_DAYS)
        session = cls(
            id=session_id or generate_session_id(),
            status=SessionStatus.ACTIVE.value,
            client=client,
            created_at=now,
            updated_at=now,
            last_active_at=now,
            expires_at=now + ttl,
        )
        session.raise_(
            SessionStarted(
                session_id=str(session.id),
                expires_at=session.expires_at,
                started_at=now,
            )
        )
        return session

    # -------------------------------------------------------------------
    # State queries
    # -------------------------------------------------------------------
    @property
    def is_revoked(self) -> bool:
        return self.status == SessionStatus.REVOKED.value

    def is_expired(self, now=None) -> bool:
        now = now or datetime.now(UTC)
        return _aware(self.expires_at) <= now

    def check_usable(self, now=None) -> None:
        """Raise if the session can no longer identify a shopper."""
        if self.is_revoked:
            raise SessionError(ErrorCode.SESSION_REVOKED, "Session has been revoked", session_id=str(self.id))
        if self.is_expired(now):
            raise SessionError(ErrorCode.SESSION_EXPIRED, "Session has expired", session_id=str(self.id))

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    def touch(self, client=None, now=None, ttl_days=None):
        """Record activity: slide the expiry window and merge client metadata."""
        self.check_usable(now)
        now = now or datetime.now(UTC)
        ttl = timedelta(days=ttl_days or settings.SESSION_TTL_DAYS)

        self.client = self.client.merged_with(client) if self.client else client
        self.last_active_at = now
        self.expires_at = now + ttl
        self.updated_at = now

    def renew(self, client=None, now=None, ttl_days=None):
        """Restart an expired session under the same token."""
        if self.is_revoked:
            raise SessionError(ErrorCode.SESSION_REVOKED, "Revoked sessions cannot be renewed", session_id=str(self.id))

        now = now or datetime.now(UTC)
        ttl = timedelta(days=ttl_days or settings.SESSION_TTL_DAYS)

        self.bound_user_id = None
        self.client = client
        self.created_at = now
        self.last_active_at = now
        self.expires_at = now + ttl
        self.updated_at = now

        self.raise_(
            SessionStarted(
                session_id=str(self.id),
                expires_at=self.expires_at,
                started_at=now,
                renewed_from="expired",
            )
        )

    def bind(self, user_id):
        self.check_usable()
        if self.bound_user_id and str(self.bound_user_id) == str(user_id):
            return

        now = datetime.now(UTC)
        self.bound_user_id = user_id
        self.updated_at = now
        self.raise_(SessionBound(session_id=str(self.id), user_id=str(user_id), bound_at=now))

    def unbind(self):
        if not self.bound_user_id:
            return

        previous_user_id = str(self.bound_user_id)
        self.bound_user_id = None
        self.updated_at = datetime.now(UTC)
        self.raise_(SessionUnbound(session_id=str(self.id), user_id=previous_user_id))

    def revoke(self):
        if self.is_revoked:
            return

        now = datetime.now(UTC)
        self.status = SessionStatus.REVOKED.value
        self.updated_at = now
        self.raise_(SessionRevoked(session_id=str(self.id), revoked_at=now))

    def summary(self):
        return {
            "session_id": str(self.id),
            "status": self.status,
            "user_id": str(self.bound_user_id) if self.bound_user_id else None,
            "created_at": self.created_at,
            "last_active_at": self.last_active_at,
            "expires_at": self.expires_at,
        }


def _aware(value: datetime) -> datetime:
    # SQL providers may hand back naive UTC timestamps
    return value if value.tzinfo else value.replace(tzinfo=UTC)


@storefront.repository(part_of=StorefrontSession)
class SessionRepository:
    def lookup(self, session_id) -> StorefrontSession | None:
        if not session_id:
            return None
        try:
            return self.get(session_id)
        except ObjectNotFoundError:
            return None

    def get_usable(self, session_id, now=None) -> StorefrontSession:
        """Load a session that can still identify a shopper.

        Missing, revoked and expired sessions raise distinct error codes.
        """
        session = self.lookup(session_id)
        if session is None:
            raise NotFoundError(ErrorCode.SESSION_NOT_FOUND, "Session not found", session_id=str(session_id))
        session.check_usable(now)
        return session
