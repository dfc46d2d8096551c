"""Domain events for the Shop aggregate."""

from protean.fields import DateTime, Identifier, String, Text

from orderease.domain import orderease


@orderease.event(part_of="Shop")
class ShopCreated:
    """A new tenant was provisioned with its owner account."""

    __version__ = 1

    shop_id: Identifier(required=True)
    name: String(required=True)
    owner_username: String(required=True)
    valid_until: DateTime(required=True)
    created_at: DateTime(required=True)


@orderease.event(part_of="Shop")
class ShopDetailsUpdated:
    __version__ = 1

    shop_id: Identifier(required=True)
    name: String(required=True)
    owner_username: String(required=True)


@orderease.event(part_of="Shop")
class ShopValidityExtended:
    __version__ = 1

    shop_id: Identifier(required=True)
    valid_until: DateTime(required=True)


@orderease.event(part_of="Shop")
class OrderStatusFlowUpdated:
    """The shop replaced its order status flow."""

    __version__ = 1

    shop_id: Identifier(required=True)
    order_status_flow: Text(required=True)


@orderease.event(part_of="Shop")
class OwnerPasswordChanged:
    __version__ = 1

    shop_id: Identifier(required=True)
    changed_at: DateTime(required=True)
