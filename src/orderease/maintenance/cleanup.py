"""Daily housekeeping.

Phase one deletes completed orders untouched for three months. Phase two
deletes offline products that no order item references. Each phase runs in
its own unit of work. The three-month horizon keeps phase one away from
orders that live traffic can still touch.
"""

from datetime import timedelta

from protean.core.unit_of_work import UnitOfWork
from protean.utils.globals import current_domain

from orderease.order.order import Order
from orderease.product.product import Product
from orderease.shop.shop import utc_now
from orderease.shop.status_flow import COMPLETED
from orderease.tag.tag import ProductTag
from orderease.utils.logging import get_logger

logger = get_logger(__name__)

ORDER_RETENTION = timedelta(days=90)


def purge_completed_orders(now=None) -> int:
    cutoff = (now or utc_now()) - ORDER_RETENTION
    with UnitOfWork():
        repo = current_domain.repository_for(Order)
        orders = repo.find_in_status_updated_before(COMPLETED, cutoff)
        for order in orders:
            repo.delete_with_children(order)

    logger.info("completed_orders_purged", count=len(orders), cutoff=cutoff.isoformat())
    return len(orders)


def purge_unreferenced_offline_products() -> int:
    deleted = 0
    with UnitOfWork():
        product_repo = current_domain.repository_for(Product)
        order_repo = current_domain.repository_for(Order)
        product_tag_repo = current_domain.repository_for(ProductTag)
        for product in product_repo.find_offline():
            if order_repo.count_items_for_product(product.id):
                continue
            product_tag_repo.unbind_product(product.shop_id, product.id)
            product_repo.delete_with_options(product)
            deleted += 1

    logger.info("offline_products_purged", count=deleted)
    return deleted


def run_cleanup(now=None) -> dict:
    return {
        "orders": purge_completed_orders(now),
        "products": purge_unreferenced_offline_products(),
    }
