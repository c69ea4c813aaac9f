"""Tracking and merging of recently viewed products — commands and handler."""

from protean import handle
from protean.fields import DateTime, Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import logger, storefront
from storefront.recently_viewed.product_view import ProductView, most_recent_first
from storefront.shared.owner import Owner
from storefront.utils import settings


@storefront.command(part_of="ProductView")
class TrackProductView:
    session_id = String(max_length=64)
    user_id = Identifier()
    product_id = Identifier(required=True)
    viewed_at = DateTime()  # Defaults to now


@storefront.command(part_of="ProductView")
class MergeGuestViews:
    session_id = String(required=True, max_length=64)
    user_id = Identifier(required=True)


def _trim(repo, owner: Owner, keep: int, pending=()) -> int:
    # `pending` are views saved in this unit of work that a query may not see yet
    views = {str(v.id): v for v in repo.views_of(owner)}
    views.update({str(v.id): v for v in pending})
    stale = most_recent_first(views.values())[keep:]
    for view in stale:
        repo.discard(view)
    return len(stale)


@storefront.command_handler(part_of=ProductView)
class TrackProductViewsHandler:
    @handle(TrackProductView)
    def track_product_view(self, command):
        owner = Owner.resolve(command.session_id, command.user_id)
        repo = current_domain.repository_for(ProductView)

        view = repo.find_view(owner, command.product_id)
        if view is None:
            view = ProductView.record(
                owner,
                command.product_id,
                session_id=command.session_id,
                viewed_at=command.viewed_at,
            )
        else:
            view.seen_again(session_id=command.session_id, viewed_at=command.viewed_at)
        repo.add(view)

        _trim(repo, owner, settings.RECENTLY_VIEWED_LIMIT, pending=[view])
        return str(view.id)

    @handle(MergeGuestViews)
    def merge_guest_views(self, command):
        """Hand a guest session's views over to the user.

        Where the user already viewed the same product, the user's entry keeps
        the later timestamp and the guest entry is dropped.
        """
        repo = current_domain.repository_for(ProductView)
        user = Owner.user(command.user_id)

        guest_views = repo.views_of(Owner.session(command.session_id))
        user_views = {str(v.product_id): v for v in repo.views_of(user)}

        collapsed = 0
        for guest_view in guest_views:
            existing = user_views.get(str(guest_view.product_id))
            if existing is not None:
                existing.keep_latest(guest_view.viewed_at)
                repo.add(existing)
                repo.discard(guest_view)
                collapsed += 1
            else:
                guest_view.reassign_to(command.user_id)
                repo.add(guest_view)
                user_views[str(guest_view.product_id)] = guest_view

        trimmed = _trim(repo, user, settings.RECENTLY_VIEWED_LIMIT, pending=user_views.values())
        logger.info(
            "guest_views_merged",
            user_id=str(command.user_id),
            guest_views=len(guest_views),
            collapsed=collapsed,
            trimmed=trimmed,
        )
