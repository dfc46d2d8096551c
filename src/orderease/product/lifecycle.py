"""Product lifecycle: status transitions and stock decrements."""

from protean import handle
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from orderease.domain import orderease
from orderease.product.product import Product
from orderease.shop.shop import Shop
from orderease.utils.logging import get_logger

logger = get_logger(__name__)


@orderease.command(part_of="Product")
class SetProductStatus:
    shop_id: Identifier(required=True)
    product_id: Identifier(required=True)
    status: String(required=True, max_length=20)


@orderease.command(part_of="Product")
class DecreaseStock:
    shop_id: Identifier(required=True)
    product_id: Identifier(required=True)
    quantity: Integer(required=True, min_value=1)


@orderease.command_handler(part_of=Product)
class ManageLifecycleHandler:
    @handle(SetProductStatus)
    def set_status(self, command):
        current_domain.repository_for(Shop).get_writable(command.shop_id)

        repo = current_domain.repository_for(Product)
        product = repo.get_for_shop(command.product_id, command.shop_id)
        previous = product.status
        product.transition(command.status)
        repo.add(product)
        logger.info(
            "product_status_changed",
            shop_id=command.shop_id,
            product_id=product.id,
            previous_status=previous,
            new_status=product.status,
        )

    @handle(DecreaseStock)
    def decrease_stock(self, command):
        current_domain.repository_for(Shop).get_writable(command.shop_id)

        repo = current_domain.repository_for(Product)
        product = repo.get_for_shop(command.product_id, command.shop_id)
        product.decrease_stock(command.quantity)
        repo.add(product)
        return product.stock
