"""Order aggregate: priced line items, option snapshots and the status journal.

Everything an order shows is copied from the catalogue when the order is
placed. Product and option ids are kept only as weak references, so later
catalogue edits or deletions never change an existing order.

The status is an opaque integer from the owning shop's flow. It changes only
through ``change_status``, which appends to ``status_logs`` in the same
write, so the last log entry always matches ``status``.
"""

from datetime import UTC, datetime

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, Text

from orderease.domain import orderease
from orderease.order.pricing import PricedItem, order_total
from orderease.shared.identity import new_id
from orderease.shared.price import round2
from orderease.shared.sanitize import sanitize


def utc_now():
    return datetime.now(UTC)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@orderease.entity(part_of="Order")
class OrderItem:
    """A line item with the product snapshot taken at order time."""

    id: Identifier(identifier=True, default=new_id)
    product_id: Identifier(required=True)
    quantity: Integer(required=True, min_value=1)
    price: Float(required=True, min_value=0.0)
    total_price: Float(required=True, min_value=0.0)
    product_name: String(required=True, max_length=255)
    product_description: Text()
    product_image_url: String(max_length=500)


@orderease.entity(part_of="Order")
class OrderItemOption:
    """An option chosen for a line item, with name and adjustment snapshots."""

    id: Identifier(identifier=True, default=new_id)
    order_item_id: Identifier(required=True)
    category_id: Identifier(required=True)
    option_id: Identifier(required=True)
    option_name: String(required=True, max_length=100)
    category_name: String(required=True, max_length=100)
    price_adjustment: Float(default=0.0)


@orderease.entity(part_of="Order")
class OrderStatusLog:
    id: Identifier(identifier=True, default=new_id)
    old_status: Integer()
    new_status: Integer(required=True)
    changed_time: DateTime(required=True)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@orderease.aggregate
class Order:
    id: Identifier(identifier=True, default=new_id)
    shop_id: Identifier(required=True)
    user_id: Identifier(required=True)
    total_price: Float(default=0.0, min_value=0.0)
    status: Integer(required=True)
    remark: Text()
    items: HasMany(OrderItem)
    item_options: HasMany(OrderItemOption)
    status_logs: HasMany(OrderStatusLog)
    created_at: DateTime(default=utc_now)
    updated_at: DateTime(default=utc_now)

    @invariant.post
    def total_must_match_items(self):
        if not self.items:
            return
        expected = round2(sum(round2(item.total_price) for item in self.items))
        if round2(self.total_price) != expected:
            raise ValidationError(
                {"total_price": [f"Order total {self.total_price:.2f} does not match items total {expected:.2f}"]}
            )

    @invariant.post
    def options_must_belong_to_items(self):
        item_ids = {item.id for item in self.items}
        for option in self.item_options:
            if option.order_item_id not in item_ids:
                raise ValidationError({"item_options": [f"Option '{option.option_name}' references an unknown item"]})

    @invariant.post
    def last_log_must_match_status(self):
        if not self.status_logs:
            return
        if self.latest_log().new_status != self.status:
            raise ValidationError({"status_logs": ["Status journal is out of step with the order status"]})

    @classmethod
    def place(cls, shop_id, user_id, priced_items: list[PricedItem], initial_status: int, remark=None):
        """Build an order from priced items and journal its initial status."""
        from orderease.order.events import OrderCreated

        if not priced_items:
            raise ValidationError({"items": ["An order needs at least one item"]})

        now = utc_now()
        order = cls(
            shop_id=shop_id,
            user_id=user_id,
            status=initial_status,
            remark=sanitize(remark),
            created_at=now,
            updated_at=now,
        )

        with atomic_change(order):
            for priced in priced_items:
                item = OrderItem(
                    product_id=priced.product_id,
                    quantity=priced.quantity,
                    price=priced.unit_price,
                    total_price=priced.total_price,
                    product_name=priced.product_name,
                    product_description=priced.product_description,
                    product_image_url=priced.product_image_url,
                )
                order.add_items(item)
                for option in priced.options:
                    order.add_item_options(
                        OrderItemOption(
                            order_item_id=item.id,
                            category_id=option.category_id,
                            option_id=option.option_id,
                            option_name=option.option_name,
                            category_name=option.category_name,
                            price_adjustment=option.price_adjustment,
                        )
                    )

            order.total_price = order_total(priced_items)
            order.add_status_logs(OrderStatusLog(old_status=None, new_status=initial_status, changed_time=now))

        order.raise_(
            OrderCreated(
                order_id=order.id,
                shop_id=shop_id,
                user_id=user_id,
                total_price=order.total_price,
                status=initial_status,
                item_count=len(priced_items),
                created_at=now,
            )
        )
        return order

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def options_for(self, item_id) -> list[OrderItemOption]:
        return [o for o in self.item_options if str(o.order_item_id) == str(item_id)]

    def sorted_logs(self) -> list[OrderStatusLog]:
        # Snowflake ids grow with creation time
        return sorted(self.status_logs, key=lambda log: int(log.id))

    def latest_log(self) -> OrderStatusLog | None:
        logs = self.sorted_logs()
        return logs[-1] if logs else None

    def quantities_by_product(self) -> dict[str, int]:
        totals: dict[str, int] = {}
        for item in self.items:
            totals[item.product_id] = totals.get(item.product_id, 0) + item.quantity
        return totals

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def change_status(self, new_status: int):
        """Record a status change; the caller has already checked the edge against the flow."""
        from orderease.order.events import OrderStatusChanged

        previous = self.status
        now = utc_now()
        with atomic_change(self):
            self.status = new_status
            self.updated_at = now
            self.add_status_logs(OrderStatusLog(old_status=previous, new_status=new_status, changed_time=now))

        self.raise_(
            OrderStatusChanged(
                order_id=self.id,
                shop_id=self.shop_id,
                old_status=previous,
                new_status=new_status,
                changed_at=now,
            )
        )

    def update_remark(self, remark):
        from orderease.order.events import OrderRemarkUpdated

        self.remark = sanitize(remark)
        self.updated_at = utc_now()
        self.raise_(OrderRemarkUpdated(order_id=self.id, shop_id=self.shop_id, remark=self.remark))
