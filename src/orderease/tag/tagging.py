"""Product-tag associations.

Every binding is checked against the shop: the tag and every product must
belong to the shop named in the command, otherwise the whole batch fails
with ``NotFound`` before anything is written.
"""

import json

from protean import handle
from protean.fields import Identifier, Integer, Text
from protean.utils.globals import current_domain

from orderease.domain import orderease
from orderease.product.product import Product, ProductStatus
from orderease.shared.errors import NotFound, ValidationFailed
from orderease.shared.identity import parse_id
from orderease.shared.pagination import Page, paginate, validate_paging
from orderease.shop.shop import Shop
from orderease.tag.tag import ProductTag, Tag
from orderease.utils.logging import get_logger

logger = get_logger(__name__)


@orderease.command(part_of="ProductTag")
class BatchTagProducts:
    shop_id: Identifier(required=True)
    tag_id: Integer(required=True)
    product_ids: Text(required=True)  # JSON list of product ids


@orderease.command(part_of="ProductTag")
class BatchUntagProducts:
    shop_id: Identifier(required=True)
    tag_id: Integer(required=True)
    product_ids: Text(required=True)  # JSON list of product ids


@orderease.command(part_of="ProductTag")
class SetProductTags:
    """Make a product's tags exactly ``tag_ids``."""

    shop_id: Identifier(required=True)
    product_id: Identifier(required=True)
    tag_ids: Text(required=True)  # JSON list of tag ids


def _id_list(raw, field):
    values = json.loads(raw) if isinstance(raw, str) else raw
    if not isinstance(values, list):
        raise ValidationFailed(f"{field} must be a list", field=field)
    try:
        ids = [str(parse_id(v)) for v in values]
    except ValidationFailed:
        raise ValidationFailed(f"{field} must hold decimal ids", field=field) from None
    # Keep first-seen order, drop duplicates
    return list(dict.fromkeys(ids))


def _load_products(shop_id, product_ids):
    products = current_domain.repository_for(Product).find_by_ids(shop_id, product_ids)
    found = {p.id for p in products}
    missing = [pid for pid in product_ids if pid not in found]
    if missing:
        raise NotFound(f"Products not found in this shop: {', '.join(missing)}", field="product_ids")
    return products


def tag_diff(current_tag_ids, new_tag_ids) -> tuple[list[int], list[int]]:
    """Split the symmetric difference of two tag sets into (to_add, to_remove)."""
    current = set(current_tag_ids)
    new = list(dict.fromkeys(new_tag_ids))
    to_add = [tag_id for tag_id in new if tag_id not in current]
    to_remove = sorted(current - set(new))
    return to_add, to_remove


@orderease.command_handler(part_of=ProductTag)
class TaggingHandler:
    @handle(BatchTagProducts)
    def batch_tag(self, command):
        current_domain.repository_for(Shop).get_writable(command.shop_id)
        tag = current_domain.repository_for(Tag).get_for_shop(command.tag_id, command.shop_id)
        product_ids = _id_list(command.product_ids, "product_ids")
        _load_products(command.shop_id, product_ids)

        repo = current_domain.repository_for(ProductTag)
        current = set(repo.product_ids_for_tag(command.shop_id, tag.id))
        added = 0
        for product_id in product_ids:
            if product_id not in current:
                repo.bind(command.shop_id, product_id, tag.id)
                added += 1

        logger.info("products_tagged", shop_id=command.shop_id, tag_id=tag.id, added=added)
        return {"added": added, "deleted": 0}

    @handle(BatchUntagProducts)
    def batch_untag(self, command):
        current_domain.repository_for(Shop).get_writable(command.shop_id)
        tag = current_domain.repository_for(Tag).get_for_shop(command.tag_id, command.shop_id)
        product_ids = _id_list(command.product_ids, "product_ids")

        repo = current_domain.repository_for(ProductTag)
        current = set(repo.product_ids_for_tag(command.shop_id, tag.id))
        deleted = 0
        for product_id in product_ids:
            if product_id in current:
                repo.unbind(product_id, tag.id)
                deleted += 1

        logger.info("products_untagged", shop_id=command.shop_id, tag_id=tag.id, deleted=deleted)
        return {"added": 0, "deleted": deleted}

    @handle(SetProductTags)
    def set_product_tags(self, command):
        current_domain.repository_for(Shop).get_writable(command.shop_id)
        product = current_domain.repository_for(Product).get_for_shop(command.product_id, command.shop_id)

        new_tag_ids = [int(tag_id) for tag_id in _id_list(command.tag_ids, "tag_ids")]

        tags = current_domain.repository_for(Tag).find_by_ids(command.shop_id, new_tag_ids)
        missing = sorted(set(new_tag_ids) - {t.id for t in tags})
        if missing:
            raise NotFound(f"Tags not found in this shop: {missing}", field="tag_ids")

        repo = current_domain.repository_for(ProductTag)
        to_add, to_remove = tag_diff(repo.tag_ids_for_product(command.shop_id, product.id), new_tag_ids)
        for tag_id in to_add:
            repo.bind(command.shop_id, product.id, tag_id)
        for tag_id in to_remove:
            repo.unbind(product.id, tag_id)

        logger.info(
            "product_tags_updated", shop_id=command.shop_id, product_id=product.id, added=len(to_add), deleted=len(to_remove)
        )
        return {"added": len(to_add), "deleted": len(to_remove)}


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------
def tags_for_product(shop_id, product_id) -> list[Tag]:
    current_domain.repository_for(Product).get_for_shop(product_id, shop_id)
    tag_ids = current_domain.repository_for(ProductTag).tag_ids_for_product(shop_id, product_id)
    return current_domain.repository_for(Tag).find_by_ids(shop_id, tag_ids)


def unbound_tags_for_product(shop_id, product_id) -> list[Tag]:
    """Tags of the shop not yet attached to the product."""
    bound = {t.id for t in tags_for_product(shop_id, product_id)}
    return [t for t in current_domain.repository_for(Tag).find_by_shop(shop_id) if t.id not in bound]


def unused_tags(shop_id) -> list[Tag]:
    """Tags of the shop with no product at all."""
    used = current_domain.repository_for(ProductTag).used_tag_ids(shop_id)
    return [t for t in current_domain.repository_for(Tag).find_by_shop(shop_id) if t.id not in used]


def products_for_tag(shop_id, tag_id, page=1, page_size=10, online_only=False) -> Page:
    current_domain.repository_for(Tag).get_for_shop(tag_id, shop_id)
    product_ids = current_domain.repository_for(ProductTag).product_ids_for_tag(shop_id, tag_id)
    if not product_ids:
        validate_paging(page, page_size)
        return Page(items=[], total=0, page=page, page_size=page_size)

    query = current_domain.repository_for(Product)._dao.query.filter(shop_id=str(shop_id), id__in=product_ids)
    if online_only:
        query = query.filter(status=ProductStatus.ONLINE.value)
    return paginate(query.order_by("-id"), page, page_size)


def online_products_for_tag(shop_id, tag_id, page=1, page_size=10) -> Page:
    return products_for_tag(shop_id, tag_id, page=page, page_size=page_size, online_only=True)


def untagged_products(shop_id, page=1, page_size=10) -> Page:
    """Products of the shop that carry no tag."""
    tagged = current_domain.repository_for(ProductTag).tagged_product_ids(shop_id)
    query = current_domain.repository_for(Product)._dao.query.filter(shop_id=str(shop_id))
    if tagged:
        query = query.exclude(id__in=list(tagged))
    return paginate(query.order_by("-id"), page, page_size)
