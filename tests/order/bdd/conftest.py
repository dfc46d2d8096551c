"""Shared BDD fixtures and step definitions for ordering."""

import json
from datetime import UTC, datetime, timedelta

import pytest
from orderease.order.creation import CreateOrder
from orderease.order.order import Order
from orderease.order.status import TransitionOrderStatus
from orderease.product.product import Product
from orderease.shared.errors import DomainError
from orderease.shop.management import ExtendShopValidity, UpdateOrderStatusFlow
from protean.utils.globals import current_domain
from pytest_bdd import given, parsers, then, when


def _process(command):
    return current_domain.process(command, asynchronous=False)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def error():
    """Container for a captured domain error."""
    return {"exc": None}


@pytest.fixture()
def placed():
    """Id of the most recently placed order."""
    return {"order_id": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given("a shop selling lattes priced 10.00 with 5 in stock", target_fixture="latte")
def latte_shop(menu):
    return menu


@given("a registered customer", target_fixture="customer_id")
def registered_customer(user_id):
    return user_id


@given("the shop's subscription has expired")
def subscription_expired(shop_id):
    _process(ExtendShopValidity(shop_id=shop_id, valid_until=datetime.now(UTC) - timedelta(days=1)))


@given("the shop restocks canceled orders")
def restocking_flow(shop_id):
    flow = {
        "statuses": [
            {
                "value": 1,
                "label": "pending",
                "actions": [
                    {"name": "accept", "nextStatus": 2, "nextStatusLabel": "accepted"},
                    {"name": "cancel", "nextStatus": -1, "nextStatusLabel": "canceled"},
                ],
            },
            {"value": 2, "label": "accepted", "actions": [{"name": "complete", "nextStatus": 10}]},
            {"value": 10, "label": "completed", "isFinal": True},
            {"value": -1, "label": "canceled", "isFinal": True, "restock": True},
        ]
    }
    _process(UpdateOrderStatusFlow(shop_id=shop_id, order_status_flow=json.dumps(flow)))


# ---------------------------------------------------------------------------
# When steps (shared)
# ---------------------------------------------------------------------------
@given(parsers.cfparse("the customer has ordered {quantity:d} {size} lattes"))
@when(parsers.cfparse("the customer orders {quantity:d} {size} lattes"))
@when(parsers.cfparse("the customer orders {quantity:d} {size} latte"))
def customer_orders(shop_id, customer_id, latte, placed, error, quantity, size):
    options = [] if size == "unsized" else [latte[size]]
    items = [{"product_id": latte["product_id"], "quantity": quantity, "options": options}]
    try:
        placed["order_id"] = _process(CreateOrder(shop_id=shop_id, user_id=customer_id, items=json.dumps(items)))
    except DomainError as exc:
        error["exc"] = exc


# ---------------------------------------------------------------------------
# Then steps (shared)
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the request fails with "{code}"'))
def request_fails(error, code):
    assert error["exc"] is not None, "Expected a domain error but none was raised"
    assert error["exc"].code == code


@then(parsers.cfparse("the latte stock is {stock:d}"))
def latte_stock_is(latte, stock):
    assert current_domain.repository_for(Product).get(latte["product_id"]).stock == stock


@then(parsers.cfparse("the order status is {status:d}"))
def order_status_is(placed, status):
    assert current_domain.repository_for(Order).get(placed["order_id"]).status == status


@given("the order has been completed")
def order_completed(shop_id, placed):
    for status in (2, 4, 10):
        _process(TransitionOrderStatus(shop_id=shop_id, order_id=placed["order_id"], next_status=status))
