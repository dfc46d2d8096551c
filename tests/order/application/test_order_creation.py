"""Application tests for order creation."""

import json
from datetime import UTC, datetime, timedelta

import pytest
from orderease.order.creation import CreateOrder
from orderease.order.order import Order, OrderItem
from orderease.product.details import UpdateProduct
from orderease.product.lifecycle import SetProductStatus
from orderease.product.product import Product
from orderease.shared.errors import InsufficientStock, NotFound, ShopExpired, ValidationFailed
from orderease.shop.management import ExtendShopValidity, UpdateOrderStatusFlow
from orderease.user.management import CreateUser
from protean.utils.globals import current_domain


def _process(command):
    return current_domain.process(command, asynchronous=False)


def _place(shop_id, user_id, items, remark=None):
    return _process(CreateOrder(shop_id=shop_id, user_id=user_id, items=json.dumps(items), remark=remark))


def _stock(product_id):
    return current_domain.repository_for(Product).get(product_id).stock


def _order_count():
    return current_domain.repository_for(Order)._dao.query.all().total


class TestHappyPath:
    def test_order_is_priced_snapshotted_and_reserved(self, shop_id, user_id, menu):
        order_id = _place(
            shop_id,
            user_id,
            [{"product_id": menu["product_id"], "quantity": 2, "options": [{"category_id": menu["size_id"], "option_id": menu["large"]}]}],
        )

        order = current_domain.repository_for(Order).get(order_id)
        assert order.total_price == 23.0
        (item,) = order.items
        assert item.price == 10.0
        assert item.total_price == 23.0
        assert item.product_name == "Latte"
        assert item.product_image_url == "https://img.example/latte.png"
        (option,) = order.options_for(item.id)
        assert option.price_adjustment == 1.5
        assert option.category_name == "Size"

        assert _stock(menu["product_id"]) == 3
        assert order.status == 1
        assert [(log.old_status, log.new_status) for log in order.status_logs] == [(None, 1)]

    def test_pricing_law_over_several_items(self, shop_id, user_id, menu):
        order_id = _place(
            shop_id,
            user_id,
            [
                {"product_id": menu["product_id"], "quantity": 1, "options": [menu["regular"]]},
                {"product_id": menu["product_id"], "quantity": 3, "options": [menu["large"], menu["syrup"], menu["cream"]]},
            ],
        )

        order = current_domain.repository_for(Order).get(order_id)
        for item in order.items:
            adjustments = sum(o.price_adjustment for o in order.options_for(item.id))
            assert item.total_price == round((item.price + adjustments) * item.quantity, 2)
        assert order.total_price == round(sum(i.total_price for i in order.items), 2) == 46.75
        assert _stock(menu["product_id"]) == 1

    def test_creation_is_not_idempotent(self, shop_id, user_id, menu):
        items = [{"product_id": menu["product_id"], "quantity": 1, "options": [menu["regular"]]}]
        assert _place(shop_id, user_id, items) != _place(shop_id, user_id, items)

    def test_custom_flow_sets_initial_status(self, shop_id, user_id, menu):
        flow = {
            "statuses": [
                {"value": 5, "label": "queued", "actions": [{"name": "serve", "nextStatus": 6}]},
                {"value": 6, "label": "served", "isFinal": True},
            ]
        }
        _process(UpdateOrderStatusFlow(shop_id=shop_id, order_status_flow=json.dumps(flow)))

        order_id = _place(shop_id, user_id, [{"product_id": menu["product_id"], "quantity": 1, "options": [menu["regular"]]}])
        assert current_domain.repository_for(Order).get(order_id).status == 5


class TestRejections:
    def test_insufficient_stock_persists_nothing(self, shop_id, user_id, menu):
        with pytest.raises(InsufficientStock):
            _place(shop_id, user_id, [{"product_id": menu["product_id"], "quantity": 6, "options": [menu["regular"]]}])

        assert _stock(menu["product_id"]) == 5
        assert _order_count() == 0
        assert current_domain.repository_for(OrderItem)._dao.query.all().total == 0

    def test_stock_is_checked_across_items_of_same_product(self, shop_id, user_id, menu):
        items = [
            {"product_id": menu["product_id"], "quantity": 3, "options": [menu["regular"]]},
            {"product_id": menu["product_id"], "quantity": 3, "options": [menu["large"]]},
        ]
        with pytest.raises(InsufficientStock):
            _place(shop_id, user_id, items)
        assert _stock(menu["product_id"]) == 5

    def test_required_category_omitted(self, shop_id, user_id, menu):
        with pytest.raises(ValidationFailed, match="required category Size"):
            _place(shop_id, user_id, [{"product_id": menu["product_id"], "quantity": 1, "options": []}])

        assert _stock(menu["product_id"]) == 5
        assert _order_count() == 0

    def test_offline_product_cannot_be_ordered(self, shop_id, user_id, menu):
        _process(SetProductStatus(shop_id=shop_id, product_id=menu["product_id"], status="offline"))
        with pytest.raises(ValidationFailed):
            _place(shop_id, user_id, [{"product_id": menu["product_id"], "quantity": 1, "options": [menu["regular"]]}])

    def test_empty_items(self, shop_id, user_id):
        with pytest.raises(ValidationFailed):
            _place(shop_id, user_id, [])

    def test_user_of_other_shop(self, shop_id, other_shop_id, menu):
        stranger = _process(CreateUser(shop_id=other_shop_id, name="mallory"))
        with pytest.raises(NotFound):
            _place(shop_id, stranger, [{"product_id": menu["product_id"], "quantity": 1, "options": [menu["regular"]]}])

    def test_product_of_other_shop(self, other_shop_id, menu):
        stranger = _process(CreateUser(shop_id=other_shop_id, name="mallory"))
        with pytest.raises(NotFound):
            _place(other_shop_id, stranger, [{"product_id": menu["product_id"], "quantity": 1, "options": [menu["regular"]]}])
        assert _stock(menu["product_id"]) == 5

    def test_expired_shop(self, shop_id, user_id, menu):
        _process(ExtendShopValidity(shop_id=shop_id, valid_until=datetime.now(UTC) - timedelta(days=1)))
        with pytest.raises(ShopExpired):
            _place(shop_id, user_id, [{"product_id": menu["product_id"], "quantity": 1, "options": [menu["regular"]]}])


class TestSnapshotStability:
    def test_product_edits_do_not_touch_history(self, shop_id, user_id, menu):
        order_id = _place(
            shop_id, user_id, [{"product_id": menu["product_id"], "quantity": 2, "options": [menu["large"]]}]
        )

        categories = [{"name": "Size", "is_required": True, "options": [{"name": "Huge", "price_adjustment": 5}]}]
        _process(
            UpdateProduct(
                shop_id=shop_id,
                product_id=menu["product_id"],
                name="Super Latte",
                price=99.99,
                description="Changed",
                image_url="https://img.example/new.png",
                option_categories=json.dumps(categories),
            )
        )

        order = current_domain.repository_for(Order).get(order_id)
        (item,) = order.items
        assert item.price == 10.0
        assert item.product_name == "Latte"
        assert item.product_description == "Espresso with steamed milk"
        assert item.product_image_url == "https://img.example/latte.png"
        assert order.total_price == 23.0
        (option,) = order.options_for(item.id)
        assert option.option_name == "Large"
        assert option.price_adjustment == 1.5
