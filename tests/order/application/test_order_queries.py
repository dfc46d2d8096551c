"""Application tests for order modification and order queries."""

import json
from datetime import UTC, datetime, timedelta

import pytest
from orderease.order.creation import CreateOrder
from orderease.order.modification import DeleteOrder, UpdateOrderRemark
from orderease.order.order import Order, OrderItem, OrderItemOption, OrderStatusLog
from orderease.order.status import TransitionOrderStatus
from orderease.shared.errors import NotFound
from orderease.shop.shop import Shop
from orderease.shop.status_flow import ACCEPTED, CANCELED
from orderease.user.management import CreateUser
from protean.utils.globals import current_domain


def _process(command):
    return current_domain.process(command, asynchronous=False)


def _place(shop_id, user_id, menu, quantity=1):
    items = [{"product_id": menu["product_id"], "quantity": quantity, "options": [menu["large"]]}]
    return _process(CreateOrder(shop_id=shop_id, user_id=user_id, items=json.dumps(items), remark="no sugar"))


class TestModification:
    def test_update_remark(self, shop_id, user_id, menu):
        order_id = _place(shop_id, user_id, menu)
        _process(UpdateOrderRemark(shop_id=shop_id, order_id=order_id, remark="extra hot"))

        order = current_domain.repository_for(Order).get(order_id)
        assert order.remark == "extra hot"
        assert order.total_price == 11.5

    def test_delete_order_removes_children(self, shop_id, user_id, menu):
        order_id = _place(shop_id, user_id, menu)
        _process(DeleteOrder(shop_id=shop_id, order_id=order_id))

        with pytest.raises(NotFound):
            current_domain.repository_for(Order).get_for_shop(order_id, shop_id)
        for entity_cls in (OrderItem, OrderItemOption, OrderStatusLog):
            assert current_domain.repository_for(entity_cls)._dao.query.all().total == 0

    def test_other_shop_cannot_modify(self, shop_id, other_shop_id, user_id, menu):
        order_id = _place(shop_id, user_id, menu)
        with pytest.raises(NotFound):
            _process(UpdateOrderRemark(shop_id=other_shop_id, order_id=order_id, remark="mine"))
        with pytest.raises(NotFound):
            _process(DeleteOrder(shop_id=other_shop_id, order_id=order_id))


class TestQueries:
    @pytest.fixture()
    def orders(self, shop_id, user_id, menu):
        other_user = _process(CreateUser(shop_id=shop_id, name="bob"))
        first = _place(shop_id, user_id, menu)
        second = _place(shop_id, other_user, menu)
        third = _place(shop_id, user_id, menu)
        _process(TransitionOrderStatus(shop_id=shop_id, order_id=second, next_status=ACCEPTED))
        _process(TransitionOrderStatus(shop_id=shop_id, order_id=third, next_status=CANCELED))
        return {"first": first, "second": second, "third": third, "bob": other_user}

    def test_get_for_shop_is_tenant_scoped(self, shop_id, other_shop_id, orders):
        repo = current_domain.repository_for(Order)
        assert str(repo.get_for_shop(orders["first"], shop_id).id) == orders["first"]
        with pytest.raises(NotFound):
            repo.get_for_shop(orders["first"], other_shop_id)

    def test_find_by_shop_newest_first(self, shop_id, other_shop_id, orders):
        repo = current_domain.repository_for(Order)
        page = repo.find_by_shop(shop_id)
        assert [str(o.id) for o in page.items] == [orders["third"], orders["second"], orders["first"]]
        assert repo.find_by_shop(other_shop_id).total == 0

    def test_find_by_user(self, shop_id, user_id, orders):
        page = current_domain.repository_for(Order).find_by_user(shop_id, user_id)
        assert [str(o.id) for o in page.items] == [orders["third"], orders["first"]]

    def test_search_by_status(self, shop_id, orders):
        page = current_domain.repository_for(Order).search(shop_id, statuses=[ACCEPTED, CANCELED])
        assert {str(o.id) for o in page.items} == {orders["second"], orders["third"]}

    def test_search_by_user_and_time(self, shop_id, user_id, orders):
        repo = current_domain.repository_for(Order)
        now = datetime.now(UTC)

        recent = repo.search(shop_id, user_id=user_id, start_time=now - timedelta(hours=1), end_time=now + timedelta(hours=1))
        assert recent.total == 2
        assert repo.search(shop_id, start_time=now + timedelta(hours=1)).total == 0

    def test_find_unfinished(self, shop_id, orders):
        flow = current_domain.repository_for(Shop).get_shop(shop_id).status_flow
        page = current_domain.repository_for(Order).find_unfinished(shop_id, flow)
        assert {str(o.id) for o in page.items} == {orders["first"], orders["second"]}

    def test_status_always_matches_last_log(self, shop_id, orders):
        for order in current_domain.repository_for(Order).find_by_shop(shop_id).items:
            assert order.latest_log().new_status == order.status
