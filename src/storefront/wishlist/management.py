"""Wishlist management — commands and handler."""

from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from storefront.domain import logger, storefront
from storefront.shared.errors import ErrorCode, NotFoundError
from storefront.shared.owner import Owner
from storefront.wishlist.wishlist import Wishlist


@storefront.command(part_of="Wishlist")
class AddWishlistItem:
    session_id = String(max_length=64)
    user_id = Identifier()
    product_id = Identifier(required=True)
    variant_item_ids = Text()  # JSON array


@storefront.command(part_of="Wishlist")
class RemoveWishlistItem:
    session_id = String(max_length=64)
    user_id = Identifier()
    product_id = Identifier(required=True)
    variant_item_ids = Text()


@storefront.command(part_of="Wishlist")
class ClearWishlist:
    session_id = String(max_length=64)
    user_id = Identifier()


@storefront.command(part_of="Wishlist")
class MergeGuestWishlist:
    session_id = String(required=True, max_length=64)
    user_id = Identifier(required=True)


@storefront.command_handler(part_of=Wishlist)
class ManageWishlistHandler:
    @handle(AddWishlistItem)
    def add_wishlist_item(self, command):
        owner = Owner.resolve(command.session_id, command.user_id)
        repo = current_domain.repository_for(Wishlist)
        wishlist = repo.find_for(owner) or Wishlist.create(owner)
        if wishlist.add_item(command.product_id, command.variant_item_ids):
            repo.add(wishlist)
        return str(wishlist.id)

    @handle(RemoveWishlistItem)
    def remove_wishlist_item(self, command):
        owner = Owner.resolve(command.session_id, command.user_id)
        repo = current_domain.repository_for(Wishlist)
        wishlist = repo.find_for(owner)
        if wishlist is None:
            raise NotFoundError(ErrorCode.WISHLIST_NOT_FOUND, "No wishlist for this shopper", owner=owner.key)
        wishlist.remove_item(command.product_id, command.variant_item_ids)
        repo.add(wishlist)

    @handle(ClearWishlist)
    def clear_wishlist(self, command):
        repo = current_domain.repository_for(Wishlist)
        wishlist = repo.find_for(Owner.resolve(command.session_id, command.user_id))
        if wishlist is None:
            return
        wishlist.clear()
        repo.add(wishlist)

    @handle(MergeGuestWishlist)
    def merge_guest_wishlist(self, command):
        repo = current_domain.repository_for(Wishlist)
        guest = repo.find_for(Owner.session(command.session_id))
        user_wishlist = repo.find_for(Owner.user(command.user_id))

        if guest is None:
            return str(user_wishlist.id) if user_wishlist else None

        if user_wishlist is None:
            guest.adopt_by(command.user_id)
            repo.add(guest)
            return str(guest.id)

        user_wishlist.absorb(guest)
        repo.add(user_wishlist)
        repo.discard(guest)
        logger.info("guest_wishlist_merged", wishlist_id=str(user_wishlist.id), user_id=str(command.user_id))
        return str(user_wishlist.id)
