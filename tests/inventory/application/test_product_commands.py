"""Application tests for product registration, stock receipt and version checks."""

import pytest
from marketplace.exceptions import NotFoundError
from marketplace.inventory.management import ReceiveStock, RegisterProduct
from marketplace.inventory.product import Product
from protean import current_domain
from protean.exceptions import ExpectedVersionError


def test_register_product_persists(make_product):
    product_id = make_product(name="Kettle", price=25.0, quantity=7)
    product = current_domain.repository_for(Product).get(product_id)
    assert product.name == "Kettle"
    assert product.quantity == 7
    assert product.status == "active"


def test_register_product_returns_id():
    product_id = current_domain.process(RegisterProduct(name="Mug", price=8.0), asynchronous=False)
    assert current_domain.repository_for(Product).get(product_id).quantity == 0


def test_receive_stock_adds_quantity(make_product):
    product_id = make_product(quantity=2)
    current_domain.process(ReceiveStock(product_id=product_id, quantity=3), asynchronous=False)
    assert current_domain.repository_for(Product).get(product_id).quantity == 5


def test_receive_stock_for_unknown_product():
    with pytest.raises(NotFoundError):
        current_domain.process(ReceiveStock(product_id="missing-product", quantity=1), asynchronous=False)


def test_stale_product_write_is_rejected(make_product):
    product_id = make_product(quantity=5)
    repo = current_domain.repository_for(Product)
    first = repo.get(product_id)
    second = repo.get(product_id)

    first.decrement_stock(2)
    repo.add(first)

    second.decrement_stock(4)
    with pytest.raises(ExpectedVersionError):
        repo.add(second)

    assert repo.get(product_id).quantity == 3
