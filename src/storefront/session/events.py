"""Domain events for the StorefrontSession aggregate."""

from protean.fields import DateTime, Identifier, String

from storefront.domain import storefront


@storefront.event(part_of="StorefrontSession")
class SessionStarted:
    """A new session was issued, or an expired one was renewed under the same token."""

    __version__ = 1

    session_id = Identifier(required=True)
    expires_at = DateTime(required=True)
    started_at = DateTime(required=True)
    renewed_from = String(max_length=20)  # "expired" when reusing the token


@storefront.event(part_of="StorefrontSession")
class SessionBound:
    __version__ = 1

    session_id = Identifier(required=True)
    user_id = Identifier(required=True)
    bound_at = DateTime(required=True)


@storefront.event(part_of="StorefrontSession")
class SessionUnbound:
    __version__ = 1

    session_id = Identifier(required=True)
    user_id = Identifier(required=True)


@storefront.event(part_of="StorefrontSession")
class SessionRevoked:
    __version__ = 1

    session_id = Identifier(required=True)
    revoked_at = DateTime(required=True)
