"""Order creation: validate, price, snapshot, reserve stock, initialize status.

All five steps run inside the command handler's unit of work. Stock is
checked for every product before any product is touched, and any failure
raises out of the handler so nothing is persisted.
"""

from protean import handle
from protean.fields import Identifier, Text
from protean.utils.globals import current_domain

from orderease.domain import orderease
from orderease.order.order import Order
from orderease.order.pricing import parse_items, price_item
from orderease.product.product import Product
from orderease.shared.errors import InsufficientStock, ValidationFailed
from orderease.shop.shop import Shop
from orderease.user.user import User
from orderease.utils.logging import get_logger

logger = get_logger(__name__)


@orderease.command(part_of="Order")
class CreateOrder:
    shop_id: Identifier(required=True)
    user_id: Identifier(required=True)
    items: Text(required=True)  # JSON: [{"product_id", "quantity", "options": [{"category_id", "option_id"}]}]
    remark: Text()


@orderease.command_handler(part_of=Order)
class CreateOrderHandler:
    @handle(CreateOrder)
    def create_order(self, command):
        shop = current_domain.repository_for(Shop).get_writable(command.shop_id)
        current_domain.repository_for(User).get_for_shop(command.user_id, shop.id)

        selections = parse_items(command.items)

        product_repo = current_domain.repository_for(Product)
        products = {}
        for selection in selections:
            if selection.product_id not in products:
                product = product_repo.get_for_shop(selection.product_id, shop.id)
                if not product.is_online:
                    raise ValidationFailed(f"Product '{product.name}' is not available", field="items")
                products[selection.product_id] = product

        priced_items = [price_item(products[s.product_id], s) for s in selections]

        requested: dict[str, int] = {}
        for selection in selections:
            requested[selection.product_id] = requested.get(selection.product_id, 0) + selection.quantity
        for product_id, quantity in requested.items():
            product = products[product_id]
            if product.stock < quantity:
                raise InsufficientStock(
                    f"Insufficient stock for '{product.name}': {product.stock} available, {quantity} requested",
                    field="stock",
                )

        order = Order.place(
            shop_id=shop.id,
            user_id=command.user_id,
            priced_items=priced_items,
            initial_status=shop.status_flow.initial_status(),
            remark=command.remark,
        )

        for product_id, quantity in requested.items():
            product = products[product_id]
            product.decrease_stock(quantity)
            product_repo.add(product)

        current_domain.repository_for(Order).add(order)
        logger.info(
            "order_created",
            shop_id=shop.id,
            order_id=order.id,
            user_id=command.user_id,
            total_price=order.total_price,
            items=len(priced_items),
        )
        return str(order.id)
