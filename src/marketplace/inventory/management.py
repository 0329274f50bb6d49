"""Commands for registering products and receiving stock."""

import structlog
from protean import handle
from protean.fields import Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.inventory.product import Product, ProductStatus
from marketplace.utils.repository import load

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="Product")
class RegisterProduct:
    name = String(required=True, max_length=255)
    description = Text()
    price = Float(required=True, min_value=0.0)
    sale_price = Float(min_value=0.0)
    quantity = Integer(default=0, min_value=0)
    status = String(choices=ProductStatus, default=ProductStatus.ACTIVE.value)


@marketplace.command(part_of="Product")
class ReceiveStock:
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@marketplace.command_handler(part_of=Product)
class ProductCommandHandler:
    @handle(RegisterProduct)
    def register_product(self, command: RegisterProduct):
        product = Product.create(
            name=command.name,
            description=command.description,
            price=command.price,
            sale_price=command.sale_price,
            quantity=command.quantity,
            status=command.status,
        )
        current_domain.repository_for(Product).add(product)
        logger.info("Product registered", product_id=str(product.id), quantity=product.quantity)
        return str(product.id)

    @handle(ReceiveStock)
    def receive_stock(self, command: ReceiveStock):
        product = load(Product, command.product_id)
        product.restore_stock(command.quantity)
        current_domain.repository_for(Product).add(product)
        logger.info("Stock received", product_id=str(product.id), quantity=product.quantity)
        return product.quantity
