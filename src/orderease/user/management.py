"""Customer management: commands, handler and authentication."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from orderease.domain import orderease
from orderease.shared.errors import Conflict, ReferencedByOrder, Unauthorized
from orderease.shared.sanitize import sanitize
from orderease.shop.shop import Shop
from orderease.user.user import User
from orderease.utils.logging import get_logger

logger = get_logger(__name__)


@orderease.command(part_of="User")
class CreateUser:
    """Shop owner adds a customer."""

    shop_id: Identifier(required=True)
    name: String(required=True, max_length=100)
    password: String(max_length=255)
    phone: String(max_length=20)
    address: String(max_length=255)
    delivery_type: String(max_length=20)


@orderease.command(part_of="User")
class RegisterUser:
    """Customer self-registration; a password is mandatory."""

    shop_id: Identifier(required=True)
    name: String(required=True, max_length=100)
    password: String(required=True, max_length=255)
    phone: String(max_length=20)
    address: String(max_length=255)


@orderease.command(part_of="User")
class UpdateUser:
    shop_id: Identifier(required=True)
    user_id: Identifier(required=True)
    name: String(max_length=100)
    password: String(max_length=255)
    phone: String(max_length=20)
    address: String(max_length=255)
    delivery_type: String(max_length=20)


@orderease.command(part_of="User")
class DeleteUser:
    shop_id: Identifier(required=True)
    user_id: Identifier(required=True)


@orderease.command_handler(part_of=User)
class ManageUserHandler:
    def _register(self, command, delivery_type=None):
        current_domain.repository_for(Shop).get_writable(command.shop_id)

        repo = current_domain.repository_for(User)
        if repo.name_exists(command.shop_id, sanitize(command.name)):
            raise Conflict(f"User name '{command.name}' is already taken", field="name")

        user = User.register(
            shop_id=command.shop_id,
            name=command.name,
            password=command.password,
            phone=command.phone,
            address=command.address,
            delivery_type=delivery_type,
        )
        repo.add(user)
        logger.info("user_registered", shop_id=command.shop_id, user_id=user.id)
        return str(user.id)

    @handle(CreateUser)
    def create_user(self, command):
        return self._register(command, delivery_type=command.delivery_type)

    @handle(RegisterUser)
    def register_user(self, command):
        return self._register(command)

    @handle(UpdateUser)
    def update_user(self, command):
        current_domain.repository_for(Shop).get_writable(command.shop_id)

        repo = current_domain.repository_for(User)
        user = repo.get_for_shop(command.user_id, command.shop_id)

        if command.name and repo.name_exists(command.shop_id, sanitize(command.name), exclude_id=user.id):
            raise Conflict(f"User name '{command.name}' is already taken", field="name")

        user.update_profile(
            name=command.name,
            phone=command.phone,
            address=command.address,
            delivery_type=command.delivery_type,
        )
        if command.password:
            user.change_password(command.password)
        repo.add(user)

    @handle(DeleteUser)
    def delete_user(self, command):
        from orderease.order.order import Order

        repo = current_domain.repository_for(User)
        user = repo.get_for_shop(command.user_id, command.shop_id)

        if current_domain.repository_for(Order).find_by_user(command.shop_id, user.id, page=1, page_size=1).total:
            raise ReferencedByOrder("User has orders and cannot be deleted", field="user_id")

        repo._dao.delete(user)
        logger.info("user_deleted", shop_id=command.shop_id, user_id=user.id)


def authenticate_user(shop_id, name: str, password: str) -> User:
    user = current_domain.repository_for(User).find_by_name(shop_id, sanitize(name))
    if user is None or not user.check_password(password):
        raise Unauthorized("Invalid username or password")
    return user
