"""Repository for the Order aggregate.

Every query takes the shop id and filters on it.
"""

from protean.utils.globals import current_domain

from orderease.domain import orderease
from orderease.order.order import Order, OrderItem, OrderItemOption, OrderStatusLog
from orderease.shared.errors import NotFound
from orderease.shared.pagination import Page, fetch_all, paginate


@orderease.repository(part_of=Order)
class OrderRepository:
    def get_for_shop(self, order_id, shop_id) -> Order:
        """Load an order of ``shop_id``; orders of other shops are reported missing."""
        order = self._dao.query.filter(id=str(order_id), shop_id=str(shop_id)).all().first
        if order is None:
            raise NotFound(f"Order {order_id} does not exist", field="order_id")
        return order

    def find_by_shop(self, shop_id, page=1, page_size=10) -> Page:
        return paginate(self._dao.query.filter(shop_id=str(shop_id)).order_by("-id"), page, page_size)

    def find_by_user(self, shop_id, user_id, page=1, page_size=10) -> Page:
        query = self._dao.query.filter(shop_id=str(shop_id), user_id=str(user_id))
        return paginate(query.order_by("-id"), page, page_size)

    def search(
        self,
        shop_id,
        user_id=None,
        statuses=None,
        start_time=None,
        end_time=None,
        page=1,
        page_size=10,
    ) -> Page:
        query = self._dao.query.filter(shop_id=str(shop_id))
        if user_id:
            query = query.filter(user_id=str(user_id))
        if statuses:
            query = query.filter(status__in=[int(s) for s in statuses])
        if start_time:
            query = query.filter(created_at__gte=start_time)
        if end_time:
            query = query.filter(created_at__lte=end_time)
        return paginate(query.order_by("-id"), page, page_size)

    def find_unfinished(self, shop_id, flow, page=1, page_size=10) -> Page:
        """Orders whose status is not final in ``flow``."""
        query = self._dao.query.filter(shop_id=str(shop_id), status__in=flow.unfinished_values())
        return paginate(query.order_by("-id"), page, page_size)

    def find_in_status_updated_before(self, status, cutoff) -> list[Order]:
        return fetch_all(self._dao.query.filter(status=status, updated_at__lt=cutoff).order_by("id"))

    def count_for_shop(self, shop_id) -> int:
        return self._dao.query.filter(shop_id=str(shop_id)).all().total

    def count_outside(self, shop_id, values) -> int:
        """Orders of ``shop_id`` whose status is not one of ``values``."""
        return self._dao.query.filter(shop_id=str(shop_id)).exclude(status__in=list(values)).all().total

    def count_items_for_product(self, product_id) -> int:
        """Number of order items, in any shop, that reference the product."""
        item_dao = current_domain.repository_for(OrderItem)._dao
        return item_dao.query.filter(product_id=str(product_id)).all().total

    def delete_with_children(self, order):
        """Delete an order with its items, item options and status journal."""
        for entity_cls, children in (
            (OrderItemOption, order.item_options),
            (OrderItem, order.items),
            (OrderStatusLog, order.status_logs),
        ):
            dao = current_domain.repository_for(entity_cls)._dao
            for child in list(children):
                dao.delete(child)

        self._dao.delete(order)
