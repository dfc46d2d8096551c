"""Product updates: partial field changes, option graph replacement, status."""

import json

from protean import handle
from protean.fields import Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from orderease.domain import orderease
from orderease.product.product import Product
from orderease.shop.shop import Shop


@orderease.command(part_of="Product")
class UpdateProduct:
    """Change any mutable field; absent fields keep their value.

    A new ``status`` goes through the product state machine, and a new
    ``option_categories`` list replaces the whole option graph.
    """

    shop_id: Identifier(required=True)
    product_id: Identifier(required=True)
    name: String(max_length=255)
    price: Float()
    stock: Integer()
    description: Text()
    image_url: String(max_length=500)
    status: String(max_length=20)
    option_categories: Text()  # JSON


@orderease.command_handler(part_of=Product)
class UpdateProductHandler:
    @handle(UpdateProduct)
    def update_product(self, command):
        current_domain.repository_for(Shop).get_writable(command.shop_id)

        repo = current_domain.repository_for(Product)
        product = repo.get_for_shop(command.product_id, command.shop_id)

        product.update_details(
            name=command.name,
            description=command.description,
            price=command.price,
            stock=command.stock,
            image_url=command.image_url,
        )

        if command.option_categories is not None:
            categories = (
                json.loads(command.option_categories)
                if isinstance(command.option_categories, str)
                else command.option_categories
            )
            product.replace_option_graph(categories)

        # An unchanged status is not an edge of the graph either
        if command.status:
            product.transition(command.status)

        repo.add(product)
