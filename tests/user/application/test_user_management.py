"""Application tests for user management handlers."""

import json

import pytest
from orderease.order.creation import CreateOrder
from orderease.shared.errors import Conflict, NotFound, ReferencedByOrder, Unauthorized
from orderease.user.management import CreateUser, DeleteUser, RegisterUser, UpdateUser, authenticate_user
from orderease.user.user import User
from protean.utils.globals import current_domain


def _process(command):
    return current_domain.process(command, asynchronous=False)


class TestCreateUser:
    def test_create_user(self, shop_id):
        user_id = _process(CreateUser(shop_id=shop_id, name="alice", delivery_type="pickup"))

        user = current_domain.repository_for(User).get(user_id)
        assert user.shop_id == shop_id
        assert user.delivery_type == "pickup"

    def test_names_are_unique_per_shop(self, shop_id, other_shop_id):
        _process(CreateUser(shop_id=shop_id, name="alice"))
        with pytest.raises(Conflict):
            _process(CreateUser(shop_id=shop_id, name="alice"))

        # Another shop may reuse the name
        assert _process(CreateUser(shop_id=other_shop_id, name="alice"))

    def test_unknown_shop(self):
        with pytest.raises(NotFound):
            _process(CreateUser(shop_id="12345", name="alice"))


class TestRegisterAndLogin:
    def test_register_then_authenticate(self, shop_id):
        user_id = _process(RegisterUser(shop_id=shop_id, name="bob", password="secret123"))

        assert str(authenticate_user(shop_id, "bob", "secret123").id) == user_id

    def test_wrong_password(self, shop_id):
        _process(RegisterUser(shop_id=shop_id, name="bob", password="secret123"))
        with pytest.raises(Unauthorized):
            authenticate_user(shop_id, "bob", "wrong-password")

    def test_login_is_scoped_to_shop(self, shop_id, other_shop_id):
        _process(RegisterUser(shop_id=shop_id, name="bob", password="secret123"))
        with pytest.raises(Unauthorized):
            authenticate_user(other_shop_id, "bob", "secret123")


class TestUpdateUser:
    def test_update_profile_and_password(self, shop_id, user_id):
        _process(UpdateUser(shop_id=shop_id, user_id=user_id, address="3 Quay Rd", password="new-secret"))

        user = current_domain.repository_for(User).get(user_id)
        assert user.address == "3 Quay Rd"
        assert user.check_password("new-secret")

    def test_other_shop_cannot_update(self, user_id, other_shop_id):
        with pytest.raises(NotFound):
            _process(UpdateUser(shop_id=other_shop_id, user_id=user_id, address="elsewhere"))


class TestDeleteUser:
    def test_delete_user_without_orders(self, shop_id, user_id):
        _process(DeleteUser(shop_id=shop_id, user_id=user_id))
        with pytest.raises(NotFound):
            current_domain.repository_for(User).get_for_shop(user_id, shop_id)

    def test_user_with_orders_cannot_be_deleted(self, shop_id, user_id, menu):
        items = [{"product_id": menu["product_id"], "quantity": 1, "options": [menu["regular"]]}]
        _process(CreateOrder(shop_id=shop_id, user_id=user_id, items=json.dumps(items)))

        with pytest.raises(ReferencedByOrder):
            _process(DeleteUser(shop_id=shop_id, user_id=user_id))


class TestQueries:
    def test_find_by_shop_with_search(self, shop_id, other_shop_id):
        _process(CreateUser(shop_id=shop_id, name="alice"))
        _process(CreateUser(shop_id=shop_id, name="alfred"))
        _process(CreateUser(shop_id=shop_id, name="bob"))
        _process(CreateUser(shop_id=other_shop_id, name="alan"))

        page = current_domain.repository_for(User).find_by_shop(shop_id, search="al")
        assert page.total == 2
        assert {u.name for u in page.items} == {"alice", "alfred"}
