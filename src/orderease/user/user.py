"""User aggregate: a customer of one shop."""

import re
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, String

from orderease.domain import orderease
from orderease.shared import passwords
from orderease.shared.identity import new_id
from orderease.shared.sanitize import sanitize

_PHONE_PATTERN = re.compile(r"^\+?[0-9][0-9 -]{4,19}$")


class DeliveryType(Enum):
    DELIVERY = "delivery"
    PICKUP = "pickup"


def utc_now():
    return datetime.now(UTC)


@orderease.aggregate
class User:
    id: Identifier(identifier=True, default=new_id)
    shop_id: Identifier(required=True)
    name: String(required=True, max_length=100)
    password: String(max_length=255)
    phone: String(max_length=20)
    address: String(max_length=255)
    delivery_type: String(choices=DeliveryType, default=DeliveryType.DELIVERY.value)
    created_at: DateTime(default=utc_now)
    updated_at: DateTime(default=utc_now)

    @invariant.post
    def phone_must_be_well_formed(self):
        if self.phone and not _PHONE_PATTERN.match(self.phone):
            raise ValidationError({"phone": [f"Invalid phone number: {self.phone}"]})

    @classmethod
    def register(cls, shop_id, name, password=None, phone=None, address=None, delivery_type=None):
        from orderease.user.events import UserRegistered

        if password is not None and not passwords.is_hashed(password):
            passwords.validate_password(password)

        now = utc_now()
        user = cls(
            shop_id=shop_id,
            name=sanitize(name),
            password=passwords.hash_password(password) if password else None,
            phone=phone,
            address=sanitize(address),
            delivery_type=delivery_type or DeliveryType.DELIVERY.value,
            created_at=now,
            updated_at=now,
        )
        user.raise_(UserRegistered(user_id=user.id, shop_id=shop_id, name=user.name, registered_at=now))
        return user

    def update_profile(self, name=None, phone=None, address=None, delivery_type=None):
        if name is not None:
            self.name = sanitize(name)
        if phone is not None:
            self.phone = phone
        if address is not None:
            self.address = sanitize(address)
        if delivery_type is not None:
            self.delivery_type = delivery_type
        self.updated_at = utc_now()

    def change_password(self, raw):
        passwords.validate_password(raw)
        self.password = passwords.hash_password(raw)
        self.updated_at = utc_now()

    def check_password(self, raw) -> bool:
        return passwords.check_password(self.password, raw)
