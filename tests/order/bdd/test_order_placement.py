"""BDD tests for order placement."""

from orderease.order.order import Order
from protean.utils.globals import current_domain
from pytest_bdd import parsers, scenarios, then

scenarios("features/order_placement.feature")


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse("the order total is {amount:f}"))
def _(placed, amount):
    assert current_domain.repository_for(Order).get(placed["order_id"]).total_price == amount


@then(parsers.cfparse("the order has {count:d} item totalling {amount:f}"))
def _(placed, count, amount):
    order = current_domain.repository_for(Order).get(placed["order_id"])
    assert len(order.items) == count
    assert order.items[0].price == 10.0
    assert order.items[0].total_price == amount


@then(parsers.cfparse("the order history starts at status {status:d}"))
def _(placed, status):
    logs = current_domain.repository_for(Order).get(placed["order_id"]).sorted_logs()
    assert [(log.old_status, log.new_status) for log in logs] == [(None, status)]


@then("no order was placed")
def _(placed):
    assert placed["order_id"] is None
    assert current_domain.repository_for(Order)._dao.query.all().total == 0
