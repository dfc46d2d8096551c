"""Tag catalogue: create, update and delete tags."""

from protean import handle
from protean.fields import Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from orderease.domain import orderease
from orderease.shared.errors import Conflict
from orderease.shared.sanitize import sanitize
from orderease.shop.shop import Shop
from orderease.tag.tag import ProductTag, Tag
from orderease.utils.logging import get_logger

logger = get_logger(__name__)


@orderease.command(part_of="Tag")
class CreateTag:
    shop_id: Identifier(required=True)
    name: String(required=True, max_length=50)
    description: Text()


@orderease.command(part_of="Tag")
class UpdateTag:
    shop_id: Identifier(required=True)
    tag_id: Integer(required=True)
    name: String(max_length=50)
    description: Text()


@orderease.command(part_of="Tag")
class DeleteTag:
    shop_id: Identifier(required=True)
    tag_id: Integer(required=True)


@orderease.command_handler(part_of=Tag)
class ManageTagHandler:
    @handle(CreateTag)
    def create_tag(self, command):
        current_domain.repository_for(Shop).get_writable(command.shop_id)

        repo = current_domain.repository_for(Tag)
        if repo.name_exists(command.shop_id, sanitize(command.name)):
            raise Conflict(f"Tag '{command.name}' already exists", field="name")

        tag = Tag.create(
            tag_id=repo.next_id(),
            shop_id=command.shop_id,
            name=command.name,
            description=command.description,
        )
        repo.add(tag)
        logger.info("tag_created", shop_id=command.shop_id, tag_id=tag.id)
        return tag.id

    @handle(UpdateTag)
    def update_tag(self, command):
        current_domain.repository_for(Shop).get_writable(command.shop_id)

        repo = current_domain.repository_for(Tag)
        tag = repo.get_for_shop(command.tag_id, command.shop_id)
        if command.name and repo.name_exists(command.shop_id, sanitize(command.name), exclude_id=tag.id):
            raise Conflict(f"Tag '{command.name}' already exists", field="name")

        tag.update_details(name=command.name, description=command.description)
        repo.add(tag)

    @handle(DeleteTag)
    def delete_tag(self, command):
        current_domain.repository_for(Shop).get_writable(command.shop_id)

        repo = current_domain.repository_for(Tag)
        tag = repo.get_for_shop(command.tag_id, command.shop_id)

        bound = current_domain.repository_for(ProductTag).count_for_tag(command.shop_id, tag.id)
        if bound:
            raise Conflict(f"Tag is still bound to {bound} product(s); untag them first", field="tag_id")

        repo._dao.delete(tag)
        logger.info("tag_deleted", shop_id=command.shop_id, tag_id=tag.id)
