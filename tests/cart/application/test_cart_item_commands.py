"""Application tests for cart item commands."""

import pytest
from marketplace.cart.cart import ShoppingCart
from marketplace.cart.items import AddCartItem, ClearCart, RemoveCartItem, UpdateCartItemQuantity
from marketplace.exceptions import NotFoundError
from marketplace.utils.repository import find_one
from protean import current_domain
from protean.exceptions import ValidationError


def _add(customer_id, product_id, quantity):
    return current_domain.process(
        AddCartItem(customer_id=customer_id, product_id=product_id, quantity=quantity),
        asynchronous=False,
    )


def test_first_add_creates_cart(make_product):
    product_id = make_product(quantity=5)
    _add("cust-ci-001", product_id, 2)
    cart = find_one(ShoppingCart, customer_id="cust-ci-001")
    assert cart is not None
    assert cart.items[0].quantity == 2


def test_one_cart_per_customer(make_product):
    product_id = make_product(quantity=5)
    _add("cust-ci-002", product_id, 1)
    _add("cust-ci-002", product_id, 1)
    carts = current_domain.repository_for(ShoppingCart)._dao.query.filter(customer_id="cust-ci-002").all()
    assert carts.total == 1
    assert carts.first.items[0].quantity == 2


def test_cannot_add_more_than_stock(make_product):
    product_id = make_product(quantity=3)
    _add("cust-ci-003", product_id, 2)
    with pytest.raises(ValidationError):
        _add("cust-ci-003", product_id, 2)


def test_cannot_add_inactive_product(make_product):
    product_id = make_product(status="inactive")
    with pytest.raises(ValidationError):
        _add("cust-ci-004", product_id, 1)


def test_unknown_product(make_product):
    with pytest.raises(NotFoundError):
        _add("cust-ci-005", "no-such-product", 1)


def test_update_quantity(make_product):
    product_id = make_product(quantity=10)
    item_id = _add("cust-ci-006", product_id, 1)
    current_domain.process(
        UpdateCartItemQuantity(customer_id="cust-ci-006", item_id=item_id, quantity=6),
        asynchronous=False,
    )
    assert find_one(ShoppingCart, customer_id="cust-ci-006").items[0].quantity == 6


def test_update_beyond_stock_rejected(make_product):
    product_id = make_product(quantity=2)
    item_id = _add("cust-ci-007", product_id, 1)
    with pytest.raises(ValidationError):
        current_domain.process(
            UpdateCartItemQuantity(customer_id="cust-ci-007", item_id=item_id, quantity=3),
            asynchronous=False,
        )


def test_remove_item(make_product):
    product_id = make_product()
    item_id = _add("cust-ci-008", product_id, 1)
    current_domain.process(RemoveCartItem(customer_id="cust-ci-008", item_id=item_id), asynchronous=False)
    assert find_one(ShoppingCart, customer_id="cust-ci-008").is_empty


def test_clear_cart(make_product):
    _add("cust-ci-009", make_product(), 1)
    _add("cust-ci-009", make_product(name="Other"), 1)
    current_domain.process(ClearCart(customer_id="cust-ci-009"), asynchronous=False)
    assert find_one(ShoppingCart, customer_id="cust-ci-009").is_empty


def test_clear_missing_cart():
    with pytest.raises(NotFoundError):
        current_domain.process(ClearCart(customer_id="cust-without-cart"), asynchronous=False)
