"""Shop management: commands, handler and owner authentication."""

from protean import handle
from protean.fields import DateTime, Identifier, String, Text
from protean.utils.globals import current_domain

from orderease.domain import orderease
from orderease.shared.errors import Conflict, Unauthorized
from orderease.shop.shop import Shop, utc_now
from orderease.shop.status_flow import OrderStatusFlow
from orderease.utils.logging import get_logger

logger = get_logger(__name__)


@orderease.command(part_of="Shop")
class CreateShop:
    name: String(required=True, max_length=100)
    owner_username: String(required=True, max_length=50)
    owner_password: String(required=True, max_length=255)
    contact_phone: String(max_length=20)
    contact_email: String(max_length=100)
    address: String(max_length=255)
    image_url: String(max_length=500)
    description: Text()
    valid_until: DateTime()
    settings: Text()  # JSON object
    order_status_flow: Text()  # JSON: {"statuses": [...]}


@orderease.command(part_of="Shop")
class UpdateShop:
    shop_id: Identifier(required=True)
    name: String(max_length=100)
    owner_username: String(max_length=50)
    contact_phone: String(max_length=20)
    contact_email: String(max_length=100)
    address: String(max_length=255)
    image_url: String(max_length=500)
    description: Text()
    settings: Text()


@orderease.command(part_of="Shop")
class UpdateOrderStatusFlow:
    shop_id: Identifier(required=True)
    order_status_flow: Text(required=True)


@orderease.command(part_of="Shop")
class ExtendShopValidity:
    shop_id: Identifier(required=True)
    valid_until: DateTime(required=True)


@orderease.command(part_of="Shop")
class ChangeOwnerPassword:
    shop_id: Identifier(required=True)
    new_password: String(required=True, max_length=255)


@orderease.command(part_of="Shop")
class DeleteShop:
    shop_id: Identifier(required=True)


@orderease.command_handler(part_of=Shop)
class ManageShopHandler:
    @handle(CreateShop)
    def create_shop(self, command):
        repo = current_domain.repository_for(Shop)
        if repo.username_exists(command.owner_username):
            raise Conflict(f"Owner username '{command.owner_username}' is already taken", field="owner_username")
        if repo.name_exists(command.name):
            raise Conflict(f"Shop name '{command.name}' is already taken", field="name")

        shop = Shop.create(
            name=command.name,
            owner_username=command.owner_username,
            owner_password=command.owner_password,
            valid_until=command.valid_until,
            contact_phone=command.contact_phone,
            contact_email=command.contact_email,
            address=command.address,
            image_url=command.image_url,
            description=command.description,
            settings=command.settings,
            order_status_flow=command.order_status_flow,
        )
        repo.add(shop)
        logger.info("shop_created", shop_id=shop.id, owner_username=shop.owner_username)
        return str(shop.id)

    @handle(UpdateShop)
    def update_shop(self, command):
        repo = current_domain.repository_for(Shop)
        shop = repo.get_shop(command.shop_id)

        if command.owner_username and repo.username_exists(command.owner_username, exclude_id=shop.id):
            raise Conflict(f"Owner username '{command.owner_username}' is already taken", field="owner_username")
        if command.name and repo.name_exists(command.name, exclude_id=shop.id):
            raise Conflict(f"Shop name '{command.name}' is already taken", field="name")

        shop.update_details(
            name=command.name,
            owner_username=command.owner_username,
            contact_phone=command.contact_phone,
            contact_email=command.contact_email,
            address=command.address,
            image_url=command.image_url,
            description=command.description,
            settings=command.settings,
        )
        repo.add(shop)

    @handle(UpdateOrderStatusFlow)
    def update_order_status_flow(self, command):
        from orderease.order.order import Order

        repo = current_domain.repository_for(Shop)
        shop = repo.get_writable(command.shop_id)
        flow = OrderStatusFlow.from_json(command.order_status_flow).validate()

        # Every existing order must keep a status the new flow knows
        stranded = current_domain.repository_for(Order).count_outside(shop.id, flow.values())
        if stranded:
            raise Conflict(
                f"{stranded} order(s) are in a status the new flow drops; keep those statuses",
                field="order_status_flow",
            )

        shop.replace_status_flow(flow)
        repo.add(shop)
        logger.info("order_status_flow_updated", shop_id=shop.id, statuses=len(shop.status_flow.statuses))

    @handle(ExtendShopValidity)
    def extend_validity(self, command):
        repo = current_domain.repository_for(Shop)
        shop = repo.get_shop(command.shop_id)
        shop.extend_validity(command.valid_until)
        repo.add(shop)
        logger.info("shop_validity_extended", shop_id=shop.id, valid_until=str(command.valid_until))

    @handle(ChangeOwnerPassword)
    def change_owner_password(self, command):
        from orderease.shop.events import OwnerPasswordChanged

        repo = current_domain.repository_for(Shop)
        shop = repo.get_shop(command.shop_id)
        shop.change_password(command.new_password)
        shop.raise_(OwnerPasswordChanged(shop_id=shop.id, changed_at=utc_now()))
        repo.add(shop)

    @handle(DeleteShop)
    def delete_shop(self, command):
        from orderease.order.order import Order
        from orderease.product.product import Product

        repo = current_domain.repository_for(Shop)
        shop = repo.get_shop(command.shop_id)

        if current_domain.repository_for(Product).count_for_shop(shop.id):
            raise Conflict("Shop still has products; delete them first", field="shop_id")
        if current_domain.repository_for(Order).count_for_shop(shop.id):
            raise Conflict("Shop still has orders; delete them first", field="shop_id")

        repo._dao.delete(shop)
        logger.info("shop_deleted", shop_id=shop.id)


def authenticate_owner(owner_username: str, password: str) -> Shop:
    """Return the shop whose owner matches the credentials."""
    shop = current_domain.repository_for(Shop).find_by_username(owner_username)
    if shop is None or not shop.check_password(password):
        raise Unauthorized("Invalid username or password")
    return shop


def status_flow_labels(shop_id) -> list[dict]:
    """The shop's status table as clients render it."""
    flow = current_domain.repository_for(Shop).get_shop(shop_id).status_flow
    return flow.to_dict()["statuses"]
