"""Tag aggregate and the product-tag relation.

Tags use small integer ids so shops can list them in a friendly order.
``ProductTag`` rows join a product and a tag of the same shop; the relation
id is ``"<product_id>:<tag_id>"`` so each pair exists at most once.
"""

from datetime import UTC, datetime

from protean.fields import DateTime, Identifier, Integer, String, Text

from orderease.domain import orderease
from orderease.shared.sanitize import sanitize


def utc_now():
    return datetime.now(UTC)


@orderease.aggregate
class Tag:
    id: Integer(identifier=True)
    shop_id: Identifier(required=True)
    name: String(required=True, max_length=50)
    description: Text()
    created_at: DateTime(default=utc_now)
    updated_at: DateTime(default=utc_now)

    @classmethod
    def create(cls, tag_id, shop_id, name, description=None):
        now = utc_now()
        return cls(
            id=tag_id,
            shop_id=shop_id,
            name=sanitize(name),
            description=sanitize(description),
            created_at=now,
            updated_at=now,
        )

    def update_details(self, name=None, description=None):
        if name is not None:
            self.name = sanitize(name)
        if description is not None:
            self.description = sanitize(description)
        self.updated_at = utc_now()


@orderease.aggregate
class ProductTag:
    id: String(identifier=True, max_length=64)
    shop_id: Identifier(required=True)
    product_id: Identifier(required=True)
    tag_id: Integer(required=True)
    created_at: DateTime(default=utc_now)

    @classmethod
    def bind(cls, shop_id, product_id, tag_id):
        return cls(
            id=relation_id(product_id, tag_id),
            shop_id=shop_id,
            product_id=product_id,
            tag_id=tag_id,
        )


def relation_id(product_id, tag_id) -> str:
    return f"{product_id}:{tag_id}"
