"""BDD tests for order status transitions."""

from orderease.order.order import Order
from orderease.order.status import TransitionOrderStatus
from orderease.shared.errors import DomainError
from protean.utils.globals import current_domain
from pytest_bdd import parsers, scenarios, then, when

scenarios("features/order_status.feature")


def _transition(shop_id, order_id, status):
    return current_domain.process(
        TransitionOrderStatus(shop_id=shop_id, order_id=order_id, next_status=status), asynchronous=False
    )


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse("the order moves to status {status:d}"))
def _(shop_id, placed, error, status):
    try:
        _transition(shop_id, placed["order_id"], status)
    except DomainError as exc:
        error["exc"] = exc


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse("the order history is {statuses}"))
def _(placed, statuses):
    expected = [int(s) for s in statuses.split(",")]
    logs = current_domain.repository_for(Order).get(placed["order_id"]).sorted_logs()
    assert [log.new_status for log in logs] == expected
