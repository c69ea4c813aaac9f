"""Cart item management — commands and handler.

Carts are addressed by the shopper's identity rather than by cart id: the
user id when authenticated, the session id otherwise.
"""

from protean import handle
from protean.fields import Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from storefront.cart.cart import Cart
from storefront.catalog import get_catalog
from storefront.domain import storefront
from storefront.shared.errors import ErrorCode, NotFoundError
from storefront.shared.owner import Owner, normalize_variant_item_ids


@storefront.command(part_of="Cart")
class AddCartItem:
    session_id = String(max_length=64)
    user_id = Identifier()
    product_id = Identifier(required=True)
    variant_item_ids = Text()  # JSON array of selected variant item ids
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(min_value=0.0)  # Resolved from the catalogue when omitted


@storefront.command(part_of="Cart")
class UpdateCartItemQuantity:
    session_id = String(max_length=64)
    user_id = Identifier()
    product_id = Identifier(required=True)
    variant_item_ids = Text()
    quantity = Integer(required=True, min_value=0)  # 0 removes the line


@storefront.command(part_of="Cart")
class RemoveCartItem:
    session_id = String(max_length=64)
    user_id = Identifier()
    product_id = Identifier(required=True)
    variant_item_ids = Text()


def _existing_cart(repo, owner) -> Cart:
    cart = repo.find_for(owner)
    if cart is None:
        raise NotFoundError(ErrorCode.CART_NOT_FOUND, "No cart for this shopper", owner=owner.key)
    return cart


def resolve_unit_price(product_id, variant_item_ids) -> float:
    product = get_catalog().get_product(str(product_id))
    if product is None:
        raise NotFoundError(ErrorCode.PRODUCT_NOT_FOUND, "Product not found", product_id=str(product_id))
    return product.unit_price(variant_item_ids)


@storefront.command_handler(part_of=Cart)
class ManageCartItemsHandler:
    @handle(AddCartItem)
    def add_cart_item(self, command):
        owner = Owner.resolve(command.session_id, command.user_id)
        variant_item_ids = normalize_variant_item_ids(command.variant_item_ids)

        unit_price = command.unit_price
        if unit_price is None:
            unit_price = resolve_unit_price(command.product_id, variant_item_ids)

        repo = current_domain.repository_for(Cart)
        cart = repo.find_for(owner) or Cart.create(owner)
        cart.add_item(
            product_id=command.product_id,
            variant_item_ids=variant_item_ids,
            quantity=command.quantity,
            unit_price=unit_price,
        )
        repo.add(cart)
        return str(cart.id)

    @handle(UpdateCartItemQuantity)
    def update_cart_item_quantity(self, command):
        repo = current_domain.repository_for(Cart)
        cart = _existing_cart(repo, Owner.resolve(command.session_id, command.user_id))
        cart.update_item_quantity(
            product_id=command.product_id,
            variant_item_ids=command.variant_item_ids,
            quantity=command.quantity,
        )
        repo.add(cart)

    @handle(RemoveCartItem)
    def remove_cart_item(self, command):
        repo = current_domain.repository_for(Cart)
        cart = _existing_cart(repo, Owner.resolve(command.session_id, command.user_id))
        cart.remove_item(
            product_id=command.product_id,
            variant_item_ids=command.variant_item_ids,
        )
        repo.add(cart)
