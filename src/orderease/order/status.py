"""Order status machine driven by the shop's configured flow."""

from protean import handle
from protean.exceptions import ExpectedVersionError, ObjectNotFoundError
from protean.fields import Identifier, Integer
from protean.utils.globals import current_domain

from orderease.domain import orderease
from orderease.order.order import Order
from orderease.product.product import Product
from orderease.shop.shop import Shop
from orderease.utils.logging import get_logger

logger = get_logger(__name__)

# A concurrent writer bumps the order version; reload and re-check once
_MAX_ATTEMPTS = 2


@orderease.command(part_of="Order")
class TransitionOrderStatus:
    shop_id: Identifier(required=True)
    order_id: Identifier(required=True)
    next_status: Integer(required=True)


@orderease.command_handler(part_of=Order)
class TransitionOrderStatusHandler:
    @handle(TransitionOrderStatus)
    def transition_status(self, command):
        shop = current_domain.repository_for(Shop).get_writable(command.shop_id)
        flow = shop.status_flow
        repo = current_domain.repository_for(Order)

        for attempt in range(1, _MAX_ATTEMPTS + 1):
            order = repo.get_for_shop(command.order_id, shop.id)
            previous = order.status
            target = flow.check_transition(order.status, command.next_status)
            order.change_status(target.value)

            try:
                repo.add(order)
            except ExpectedVersionError:
                if attempt == _MAX_ATTEMPTS:
                    raise
                logger.warning("order_status_conflict_retry", shop_id=shop.id, order_id=order.id)
                continue

            if target.restock:
                _restock(order)

            logger.info(
                "order_status_changed",
                shop_id=shop.id,
                order_id=order.id,
                old_status=previous,
                new_status=order.status,
            )
            return order.status


def _restock(order):
    """Return item quantities to products that still exist."""
    product_repo = current_domain.repository_for(Product)
    for product_id, quantity in order.quantities_by_product().items():
        try:
            product = product_repo.get_for_shop(product_id, order.shop_id)
        except ObjectNotFoundError:
            logger.info("restock_skipped_missing_product", order_id=order.id, product_id=product_id)
            continue
        product.restore_stock(quantity)
        product_repo.add(product)
