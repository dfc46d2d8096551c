"""Product creation: command and handler."""

import json

from protean import handle
from protean.fields import Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from orderease.domain import orderease
from orderease.product.product import Product
from orderease.shop.shop import Shop
from orderease.utils.logging import get_logger

logger = get_logger(__name__)


@orderease.command(part_of="Product")
class CreateProduct:
    shop_id: Identifier(required=True)
    name: String(required=True, max_length=255)
    price: Float(required=True)
    stock: Integer(default=0)
    description: Text()
    image_url: String(max_length=500)
    option_categories: Text()  # JSON: list of category dicts with nested "options"


@orderease.command_handler(part_of=Product)
class CreateProductHandler:
    @handle(CreateProduct)
    def create_product(self, command):
        current_domain.repository_for(Shop).get_writable(command.shop_id)

        categories = (
            json.loads(command.option_categories)
            if isinstance(command.option_categories, str)
            else command.option_categories
        )

        product = Product.create(
            shop_id=command.shop_id,
            name=command.name,
            price=command.price,
            stock=command.stock if command.stock is not None else 0,
            description=command.description,
            image_url=command.image_url,
            option_categories=categories,
        )
        current_domain.repository_for(Product).add(product)
        logger.info("product_created", shop_id=command.shop_id, product_id=product.id)
        return str(product.id)
