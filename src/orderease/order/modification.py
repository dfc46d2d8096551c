"""Order changes outside the status machine: remark edits and deletion."""

from protean import handle
from protean.fields import Identifier, Text
from protean.utils.globals import current_domain

from orderease.domain import orderease
from orderease.order.order import Order
from orderease.shop.shop import Shop
from orderease.utils.logging import get_logger

logger = get_logger(__name__)


@orderease.command(part_of="Order")
class UpdateOrderRemark:
    """Items and totals are frozen after creation; only the remark may change."""

    shop_id: Identifier(required=True)
    order_id: Identifier(required=True)
    remark: Text()


@orderease.command(part_of="Order")
class DeleteOrder:
    shop_id: Identifier(required=True)
    order_id: Identifier(required=True)


@orderease.command_handler(part_of=Order)
class ModifyOrderHandler:
    @handle(UpdateOrderRemark)
    def update_remark(self, command):
        current_domain.repository_for(Shop).get_writable(command.shop_id)

        repo = current_domain.repository_for(Order)
        order = repo.get_for_shop(command.order_id, command.shop_id)
        order.update_remark(command.remark)
        repo.add(order)

    @handle(DeleteOrder)
    def delete_order(self, command):
        current_domain.repository_for(Shop).get_writable(command.shop_id)

        repo = current_domain.repository_for(Order)
        order = repo.get_for_shop(command.order_id, command.shop_id)
        repo.delete_with_children(order)
        logger.info("order_deleted", shop_id=command.shop_id, order_id=order.id)
