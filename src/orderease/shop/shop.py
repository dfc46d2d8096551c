"""Shop aggregate: the tenant root.

Every product, tag, user and order belongs to exactly one shop. A shop past
its ``valid_until`` stays readable but refuses writes.
"""

import json
from datetime import UTC, datetime, timedelta

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, String, Text

from orderease.domain import orderease
from orderease.shared.errors import ShopExpired, ValidationFailed
from orderease.shared.identity import new_id
from orderease.shared import passwords
from orderease.shop.status_flow import OrderStatusFlow

DEFAULT_VALIDITY = timedelta(days=365)


def utc_now() -> datetime:
    return datetime.now(UTC)


def as_utc(value: datetime | None) -> datetime | None:
    """Stored timestamps without tzinfo are UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)


@orderease.aggregate
class Shop:
    id: Identifier(identifier=True, default=new_id)
    name: String(required=True, max_length=100)
    owner_username: String(required=True, max_length=50)
    owner_password: String(required=True, max_length=255)
    contact_phone: String(max_length=20)
    contact_email: String(max_length=100)
    address: String(max_length=255)
    image_url: String(max_length=500)
    description: Text()
    valid_until: DateTime(required=True)
    settings: Text()
    order_status_flow: Text()
    created_at: DateTime(default=utc_now)
    updated_at: DateTime(default=utc_now)

    @invariant.post
    def settings_must_be_json_object(self):
        if not self.settings:
            return
        try:
            data = json.loads(self.settings)
        except (json.JSONDecodeError, TypeError):
            raise ValidationError({"settings": ["Settings must be valid JSON"]}) from None
        if not isinstance(data, dict):
            raise ValidationError({"settings": ["Settings must be a JSON object"]})

    @invariant.post
    def order_status_flow_must_be_valid(self):
        if self.order_status_flow:
            OrderStatusFlow.from_json(self.order_status_flow).validate()

    @classmethod
    def create(
        cls,
        name,
        owner_username,
        owner_password,
        valid_until=None,
        contact_phone=None,
        contact_email=None,
        address=None,
        image_url=None,
        description=None,
        settings=None,
        order_status_flow=None,
    ):
        from orderease.shop.events import ShopCreated

        if not passwords.is_hashed(owner_password):
            passwords.validate_password(owner_password, field="owner_password")
        flow = OrderStatusFlow.from_json(order_status_flow).validate()
        now = utc_now()

        shop = cls(
            name=name,
            owner_username=owner_username,
            owner_password=passwords.hash_password(owner_password),
            contact_phone=contact_phone,
            contact_email=contact_email,
            address=address,
            image_url=image_url,
            description=description,
            valid_until=valid_until or now + DEFAULT_VALIDITY,
            settings=_settings_json(settings),
            order_status_flow=flow.to_json(),
            created_at=now,
            updated_at=now,
        )
        shop.raise_(
            ShopCreated(
                shop_id=shop.id,
                name=name,
                owner_username=owner_username,
                valid_until=shop.valid_until,
                created_at=now,
            )
        )
        return shop

    # ------------------------------------------------------------------
    # Tenant boundary
    # ------------------------------------------------------------------
    def is_expired(self, now: datetime | None = None) -> bool:
        return (now or utc_now()) > as_utc(self.valid_until)

    def remaining_days(self, now: datetime | None = None) -> int:
        remaining = as_utc(self.valid_until) - (now or utc_now())
        return max(remaining.days, 0)

    def ensure_writable(self, now: datetime | None = None) -> None:
        if self.is_expired(now):
            raise ShopExpired(f"Shop {self.id} expired on {as_utc(self.valid_until).date().isoformat()}")

    # ------------------------------------------------------------------
    # Credentials
    # ------------------------------------------------------------------
    def check_password(self, raw: str) -> bool:
        return passwords.check_password(self.owner_password, raw)

    def change_password(self, raw: str) -> None:
        if not passwords.is_hashed(raw):
            passwords.validate_password(raw, field="owner_password")
        self.owner_password = passwords.hash_password(raw)
        self.updated_at = utc_now()

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def update_details(
        self,
        name=None,
        owner_username=None,
        contact_phone=None,
        contact_email=None,
        address=None,
        image_url=None,
        description=None,
        settings=None,
    ):
        from orderease.shop.events import ShopDetailsUpdated

        if name is not None:
            self.name = name
        if owner_username is not None:
            self.owner_username = owner_username
        if contact_phone is not None:
            self.contact_phone = contact_phone
        if contact_email is not None:
            self.contact_email = contact_email
        if address is not None:
            self.address = address
        if image_url is not None:
            self.image_url = image_url
        if description is not None:
            self.description = description
        if settings is not None:
            self.settings = _settings_json(settings)

        self.updated_at = utc_now()
        self.raise_(ShopDetailsUpdated(shop_id=self.id, name=self.name, owner_username=self.owner_username))

    def extend_validity(self, valid_until: datetime) -> None:
        from orderease.shop.events import ShopValidityExtended

        if valid_until is None:
            raise ValidationFailed("Validity date is required", field="valid_until")
        self.valid_until = valid_until
        self.updated_at = utc_now()
        self.raise_(ShopValidityExtended(shop_id=self.id, valid_until=valid_until))

    @property
    def status_flow(self) -> OrderStatusFlow:
        return OrderStatusFlow.from_json(self.order_status_flow)

    def replace_status_flow(self, flow: OrderStatusFlow) -> None:
        from orderease.shop.events import OrderStatusFlowUpdated

        flow.validate()
        self.order_status_flow = flow.to_json()
        self.updated_at = utc_now()
        self.raise_(OrderStatusFlowUpdated(shop_id=self.id, order_status_flow=self.order_status_flow))


def _settings_json(settings):
    if settings is None or isinstance(settings, str):
        return settings
    return json.dumps(settings)
