"""Session lifecycle — commands and handler.

EnsureSession is the entry point for every storefront request: it touches the
session behind a known token, renews an expired one under the same token, and
issues a fresh token for anything unknown, malformed or revoked.
"""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import logger, storefront
from storefront.session.session import ClientMetadata, StorefrontSession, is_well_formed


@storefront.command(part_of="StorefrontSession")
class EnsureSession:
    session_id = String(max_length=64)  # Token presented by the browser, if any
    user_agent = String(max_length=512)
    ip_address = String(max_length=64)


@storefront.command(part_of="StorefrontSession")
class BindSession:
    session_id = Identifier(required=True)
    user_id = Identifier(required=True)


@storefront.command(part_of="StorefrontSession")
class UnbindSession:
    session_id = Identifier(required=True)


@storefront.command(part_of="StorefrontSession")
class RevokeSession:
    session_id = Identifier(required=True)


@storefront.command_handler(part_of=StorefrontSession)
class ManageSessionHandler:
    @handle(EnsureSession)
    def ensure_session(self, command):
        repo = current_domain.repository_for(StorefrontSession)
        client = ClientMetadata.capture(user_agent=command.user_agent, ip_address=command.ip_address)

        session = repo.lookup(command.session_id) if is_well_formed(command.session_id) else None

        if session is None:
            # Unknown tokens are reissued as-is so the browser cookie stays valid
            reuse = command.session_id if is_well_formed(command.session_id) else None
            session = StorefrontSession.start(session_id=reuse, client=client)
            logger.info("session_started", session_id=str(session.id), reused_token=reuse is not None)
        elif session.is_revoked:
            session = StorefrontSession.start(client=client)
            logger.info("session_reissued", revoked_session_id=command.session_id, session_id=str(session.id))
        elif session.is_expired():
            session.renew(client=client)
            logger.info("session_renewed", session_id=str(session.id))
        else:
            session.touch(client=client)

        repo.add(session)
        return str(session.id)

    @handle(BindSession)
    def bind_session(self, command):
        repo = current_domain.repository_for(StorefrontSession)
        session = repo.get_usable(command.session_id)
        session.bind(command.user_id)
        repo.add(session)

    @handle(UnbindSession)
    def unbind_session(self, command):
        repo = current_domain.repository_for(StorefrontSession)
        session = repo.get_usable(command.session_id)
        session.unbind()
        repo.add(session)

    @handle(RevokeSession)
    def revoke_session(self, command):
        repo = current_domain.repository_for(StorefrontSession)
        session = repo.lookup(command.session_id)
        if session is None:
            logger.info("revoke_unknown_session", session_id=command.session_id)
            return
        session.revoke()
        repo.add(session)
