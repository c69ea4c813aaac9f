"""Signed session cookie tokens.

A token is `base64url("<session_id>:<expires_epoch>:<signature>")` where the
signature is an HMAC-SHA256 of `<session_id>:<expires_epoch>` keyed by
USER_SESSION_SECRET. Reading a token never consults the store; callers still
have to load the session to know whether it was revoked.
"""

import base64
import binascii
import hashlib
import hmac
import time

from storefront.utils import settings


def _signature(payload: str, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), payload.encode("utf-8"), hashlib.sha256).hexdigest()


def sign_session_token(session_id: str, expires_at, secret: str | None = None) -> str:
    secret = secret or settings.USER_SESSION_SECRET
    payload = f"{session_id}:{int(expires_at.timestamp())}"
    raw = f"{payload}:{_signature(payload, secret)}"
    return base64.urlsafe_b64encode(raw.encode("utf-8")).decode("ascii")


def read_session_token(token: str | None, secret: str | None = None, now: float | None = None) -> str | None:
    """Return the session id carried by a valid token, or None.

    Tampered, malformed and expired tokens all read as None.
    """
    if not token:
        return None
    secret = secret or settings.USER_SESSION_SECRET

    try:
        raw = base64.urlsafe_b64decode(token.encode("ascii")).decode("utf-8")
        session_id, expires, signature = raw.split(":")
        expires_epoch = int(expires)
    except (ValueError, UnicodeError, binascii.Error):
        return None

    expected = _signature(f"{session_id}:{expires}", secret)
    if not hmac.compare_digest(expected, signature):
        return None
    if expires_epoch <= (now if now is not None else time.time()):
        return None
    return session_id
