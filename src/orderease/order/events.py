"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, Text

from orderease.domain import orderease


@orderease.event(part_of="Order")
class OrderCreated:
    """An order was priced, stock was reserved and the initial status journaled."""

    __version__ = 1

    order_id: Identifier(required=True)
    shop_id: Identifier(required=True)
    user_id: Identifier(required=True)
    total_price: Float(required=True)
    status: Integer(required=True)
    item_count: Integer(required=True)
    created_at: DateTime(required=True)


@orderease.event(part_of="Order")
class OrderStatusChanged:
    __version__ = 1

    order_id: Identifier(required=True)
    shop_id: Identifier(required=True)
    old_status: Integer()
    new_status: Integer(required=True)
    changed_at: DateTime(required=True)


@orderease.event(part_of="Order")
class OrderRemarkUpdated:
    __version__ = 1

    order_id: Identifier(required=True)
    shop_id: Identifier(required=True)
    remark: Text()
