"""Tests for the Shop aggregate."""

import json
from datetime import UTC, datetime, timedelta

import pytest
from orderease.shared.errors import ShopExpired, ValidationFailed
from orderease.shop.events import ShopCreated, ShopValidityExtended
from orderease.shop.shop import Shop
from orderease.shop.status_flow import OrderStatusFlow
from protean.exceptions import ValidationError


def _shop(**overrides):
    defaults = {"name": "Corner Cafe", "owner_username": "cafe-owner", "owner_password": "secret123"}
    defaults.update(overrides)
    return Shop.create(**defaults)


class TestCreate:
    def test_password_is_hashed(self):
        shop = _shop()
        assert shop.owner_password.startswith("$2a$")
        assert shop.check_password("secret123")
        assert not shop.check_password("wrong-one")

    def test_prehashed_password_is_kept(self, owner_password_hash):
        shop = _shop(owner_password=owner_password_hash)
        assert shop.owner_password == owner_password_hash

    def test_short_password_is_rejected(self):
        with pytest.raises(ValidationFailed):
            _shop(owner_password="123")

    def test_default_validity_is_one_year(self):
        shop = _shop()
        assert 364 <= shop.remaining_days() <= 365

    def test_default_flow_is_stored(self):
        shop = _shop()
        assert shop.status_flow == OrderStatusFlow.default()

    def test_invalid_flow_is_rejected(self):
        with pytest.raises(ValidationFailed):
            _shop(order_status_flow=json.dumps({"statuses": []}))

    def test_settings_must_be_an_object(self):
        with pytest.raises(ValidationError):
            _shop(settings="[1, 2]")

    def test_raises_shop_created(self):
        shop = _shop()
        assert isinstance(shop._events[-1], ShopCreated)


class TestExpiry:
    def test_live_shop_is_writable(self):
        _shop().ensure_writable()

    def test_expired_shop_refuses_writes(self):
        shop = _shop(valid_until=datetime.now(UTC) - timedelta(days=1))
        assert shop.is_expired()
        assert shop.remaining_days() == 0
        with pytest.raises(ShopExpired):
            shop.ensure_writable()

    def test_naive_timestamps_are_utc(self):
        shop = _shop(valid_until=datetime(2030, 1, 1))
        assert not shop.is_expired(now=datetime(2029, 12, 31, tzinfo=UTC))
        assert shop.is_expired(now=datetime(2030, 1, 2, tzinfo=UTC))

    def test_extend_validity(self):
        shop = _shop(valid_until=datetime.now(UTC) - timedelta(days=1))
        shop.extend_validity(datetime.now(UTC) + timedelta(days=30))

        assert not shop.is_expired()
        assert isinstance(shop._events[-1], ShopValidityExtended)


class TestMutations:
    def test_change_password(self):
        shop = _shop()
        shop.change_password("another-secret")
        assert shop.check_password("another-secret")

    def test_update_details_is_partial(self):
        shop = _shop(contact_phone="555-0100")
        shop.update_details(description="Open late", settings={"currency": "EUR"})

        assert shop.contact_phone == "555-0100"
        assert shop.description == "Open late"
        assert json.loads(shop.settings) == {"currency": "EUR"}

    def test_replace_status_flow(self):
        shop = _shop()
        flow = OrderStatusFlow.from_dict(
            {
                "statuses": [
                    {"value": 1, "label": "new", "actions": [{"name": "serve", "nextStatus": 2}]},
                    {"value": 2, "label": "served", "isFinal": True},
                ]
            }
        )
        shop.replace_status_flow(flow)
        assert shop.status_flow.edges() == {(1, 2)}
