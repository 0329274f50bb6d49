"""Cart item commands: add, update, remove and clear."""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, Integer
from protean.utils.globals import current_domain

from marketplace.cart.cart import ShoppingCart
from marketplace.domain import marketplace
from marketplace.exceptions import NotFoundError
from marketplace.inventory.product import Product
from marketplace.utils.repository import find_one, load


@marketplace.command(part_of="ShoppingCart")
class AddCartItem:
    customer_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@marketplace.command(part_of="ShoppingCart")
class UpdateCartItemQuantity:
    customer_id = Identifier(required=True)
    item_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@marketplace.command(part_of="ShoppingCart")
class RemoveCartItem:
    customer_id = Identifier(required=True)
    item_id = Identifier(required=True)


@marketplace.command(part_of="ShoppingCart")
class ClearCart:
    customer_id = Identifier(required=True)


def _cart_for(customer_id):
    cart = find_one(ShoppingCart, customer_id=str(customer_id))
    if cart is None:
        raise NotFoundError({"cart": [f"No cart found for customer {customer_id}"]})
    return cart


def _check_purchasable(product, quantity):
    if not product.is_active:
        raise ValidationError({"product_id": ["Product is not available"]})
    if not product.has_stock_for(quantity):
        raise ValidationError({"quantity": [f"Only {product.quantity} units of {product.name} in stock"]})


@marketplace.command_handler(part_of=ShoppingCart)
class CartItemsHandler:
    @handle(AddCartItem)
    def add_cart_item(self, command):
        product = load(Product, command.product_id)
        repo = current_domain.repository_for(ShoppingCart)
        cart = find_one(ShoppingCart, customer_id=str(command.customer_id))
        if cart is None:
            cart = ShoppingCart.create(customer_id=command.customer_id)

        existing = cart.item_for(command.product_id)
        _check_purchasable(product, command.quantity + (existing.quantity if existing else 0))

        item_id = cart.add_item(command.product_id, command.quantity)
        repo.add(cart)
        return item_id

    @handle(UpdateCartItemQuantity)
    def update_cart_item_quantity(self, command):
        cart = _cart_for(command.customer_id)
        item = cart.find_item(command.item_id)
        _check_purchasable(load(Product, item.product_id), command.quantity)
        cart.update_item_quantity(command.item_id, command.quantity)
        current_domain.repository_for(ShoppingCart).add(cart)

    @handle(RemoveCartItem)
    def remove_cart_item(self, command):
        cart = _cart_for(command.customer_id)
        cart.remove_item(command.item_id)
        current_domain.repository_for(ShoppingCart).add(cart)

    @handle(ClearCart)
    def clear_cart(self, command):
        cart = _cart_for(command.customer_id)
        cart.clear()
        current_domain.repository_for(ShoppingCart).add(cart)
