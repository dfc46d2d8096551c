"""Product deletion, refused while order history references the product."""

from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from orderease.domain import orderease
from orderease.order.order import Order
from orderease.product.product import Product
from orderease.shared.errors import ReferencedByOrder
from orderease.shop.shop import Shop
from orderease.tag.tag import ProductTag
from orderease.utils.logging import get_logger

logger = get_logger(__name__)


@orderease.command(part_of="Product")
class DeleteProduct:
    shop_id: Identifier(required=True)
    product_id: Identifier(required=True)


@orderease.command_handler(part_of=Product)
class DeleteProductHandler:
    @handle(DeleteProduct)
    def delete_product(self, command):
        current_domain.repository_for(Shop).get_writable(command.shop_id)

        repo = current_domain.repository_for(Product)
        product = repo.get_for_shop(command.product_id, command.shop_id)

        if current_domain.repository_for(Order).count_items_for_product(product.id):
            raise ReferencedByOrder(
                "Product has order history and cannot be deleted; set it offline instead",
                field="product_id",
            )

        current_domain.repository_for(ProductTag).unbind_product(command.shop_id, product.id)
        repo.delete_with_options(product)
        logger.info("product_deleted", shop_id=command.shop_id, product_id=product.id)
