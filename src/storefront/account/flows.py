"""Login and logout — the points where a shopper's identity changes.

Login folds everything the guest session collected into the user's identity,
one collection at a time, and then binds the session to the user. Each step is
its own command (and unit of work); the merges are deterministic, so a retried
login after a partial failure picks up where the last one stopped. Logout
revokes the session outright and issues a fresh anonymous one, so nothing the
user owned stays reachable through the old token.
"""

from protean.utils.globals import current_domain

from storefront.cart.management import MergeGuestCart
from storefront.domain import logger
from storefront.recently_viewed.tracking import MergeGuestViews
from storefront.session.lifecycle import BindSession, EnsureSession, RevokeSession
from storefront.wishlist.management import MergeGuestWishlist


def login(user_id: str, session_id: str | None = None, user_agent=None, ip_address=None) -> str:
    """Merge guest state into `user_id` and bind the session. Returns the session id."""
    session_id = current_domain.process(
        EnsureSession(session_id=session_id, user_agent=user_agent, ip_address=ip_address),
        asynchronous=False,
    )

    for merge in (MergeGuestCart, MergeGuestWishlist, MergeGuestViews):
        current_domain.process(merge(session_id=session_id, user_id=user_id), asynchronous=False)

    current_domain.process(BindSession(session_id=session_id, user_id=user_id), asynchronous=False)
    logger.info("shopper_logged_in", session_id=session_id, user_id=str(user_id))
    return session_id


def logout(session_id: str, user_agent=None, ip_address=None) -> str:
    """Revoke the session and return a brand-new anonymous session id."""
    current_domain.process(RevokeSession(session_id=session_id), asynchronous=False)
    new_session_id = current_domain.process(
        EnsureSession(user_agent=user_agent, ip_address=ip_address),
        asynchronous=False,
    )
    logger.info("shopper_logged_out", revoked_session_id=session_id, session_id=new_session_id)
    return new_session_id
