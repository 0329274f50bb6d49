"""Domain tests for the ShoppingCart aggregate."""

import pytest
from marketplace.cart.cart import ShoppingCart
from marketplace.cart.events import CartCleared, CartItemAdded, CartItemRemoved, CartQuantityUpdated
from protean.exceptions import ValidationError


@pytest.fixture
def cart():
    return ShoppingCart.create(customer_id="cust-cart-001")


class TestAddItem:
    def test_adds_new_line(self, cart):
        cart.add_item("prod-1", 2)
        assert len(cart.items) == 1
        assert cart.items[0].quantity == 2

    def test_same_product_merges(self, cart):
        cart.add_item("prod-1", 2)
        cart.add_item("prod-1", 3)
        assert len(cart.items) == 1
        assert cart.items[0].quantity == 5

    def test_raises_item_added_event(self, cart):
        cart.add_item("prod-1", 1)
        assert isinstance(cart._events[-1], CartItemAdded)

    def test_zero_quantity_rejected(self, cart):
        with pytest.raises(ValidationError):
            cart.add_item("prod-1", 0)


class TestUpdateAndRemove:
    def test_update_quantity(self, cart):
        item_id = cart.add_item("prod-1", 1)
        cart.update_item_quantity(item_id, 4)
        assert cart.items[0].quantity == 4
        assert isinstance(cart._events[-1], CartQuantityUpdated)

    def test_update_unknown_item(self, cart):
        with pytest.raises(ValidationError):
            cart.update_item_quantity("nope", 2)

    def test_remove_item(self, cart):
        item_id = cart.add_item("prod-1", 1)
        cart.remove_item(item_id)
        assert cart.is_empty
        assert isinstance(cart._events[-1], CartItemRemoved)


class TestClear:
    def test_clear_removes_everything(self, cart):
        cart.add_item("prod-1", 1)
        cart.add_item("prod-2", 2)
        cart.clear()
        assert cart.is_empty
        event = cart._events[-1]
        assert isinstance(event, CartCleared)
        assert event.item_count == 2

    def test_clearing_empty_cart_raises_no_event(self, cart):
        cart.clear()
        assert not any(isinstance(e, CartCleared) for e in cart._events)
