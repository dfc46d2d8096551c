"""Domain events for the User aggregate."""

from protean.fields import DateTime, Identifier, String

from orderease.domain import orderease


@orderease.event(part_of="User")
class UserRegistered:
    __version__ = 1

    user_id: Identifier(required=True)
    shop_id: Identifier(required=True)
    name: String(required=True)
    registered_at: DateTime(required=True)

