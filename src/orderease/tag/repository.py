"""Repositories for tags and product-tag relations."""

from protean.exceptions import ObjectNotFoundError

from orderease.domain import orderease
from orderease.shared.errors import NotFound
from orderease.shared.pagination import fetch_all
from orderease.tag.tag import ProductTag, Tag, relation_id


@orderease.repository(part_of=Tag)
class TagRepository:
    def get_for_shop(self, tag_id, shop_id) -> Tag:
        tag = self._dao.query.filter(id=int(tag_id), shop_id=str(shop_id)).all().first
        if tag is None:
            raise NotFound(f"Tag {tag_id} does not exist", field="tag_id")
        return tag

    def next_id(self) -> int:
        """One more than the highest tag id of any shop.

        Two creators running at once can read the same maximum. On SQL
        providers the primary key then fails the later insert and its request
        gets an error; the memory provider has no such check, so run a single
        writer against it.
        """
        last = self._dao.query.order_by("-id").limit(1).all().first
        return (last.id if last else 0) + 1

    def name_exists(self, shop_id, name, exclude_id=None) -> bool:
        query = self._dao.query.filter(shop_id=str(shop_id), name=name)
        if exclude_id is not None:
            query = query.exclude(id=int(exclude_id))
        return query.all().total > 0

    def find_by_shop(self, shop_id) -> list[Tag]:
        return fetch_all(self._dao.query.filter(shop_id=str(shop_id)).order_by("id"))

    def find_by_ids(self, shop_id, tag_ids) -> list[Tag]:
        ids = [int(tid) for tid in tag_ids]
        if not ids:
            return []
        return fetch_all(self._dao.query.filter(shop_id=str(shop_id), id__in=ids).order_by("id"))


@orderease.repository(part_of=ProductTag)
class ProductTagRepository:
    def tag_ids_for_product(self, shop_id, product_id) -> list[int]:
        rows = fetch_all(self._dao.query.filter(shop_id=str(shop_id), product_id=str(product_id)))
        return sorted(row.tag_id for row in rows)

    def product_ids_for_tag(self, shop_id, tag_id) -> list[str]:
        rows = fetch_all(self._dao.query.filter(shop_id=str(shop_id), tag_id=int(tag_id)))
        return [row.product_id for row in rows]

    def tagged_product_ids(self, shop_id) -> set[str]:
        return {row.product_id for row in fetch_all(self._dao.query.filter(shop_id=str(shop_id)))}

    def used_tag_ids(self, shop_id) -> set[int]:
        return {row.tag_id for row in fetch_all(self._dao.query.filter(shop_id=str(shop_id)))}

    def count_for_tag(self, shop_id, tag_id) -> int:
        return self._dao.query.filter(shop_id=str(shop_id), tag_id=int(tag_id)).all().total

    def bind(self, shop_id, product_id, tag_id) -> bool:
        """Create the relation unless it exists; return whether a row was added."""
        if self.is_bound(product_id, tag_id):
            return False
        self.add(ProductTag.bind(shop_id, product_id, tag_id))
        return True

    def unbind(self, product_id, tag_id) -> bool:
        try:
            relation = self.get(relation_id(product_id, tag_id))
        except ObjectNotFoundError:
            return False
        self._dao.delete(relation)
        return True

    def is_bound(self, product_id, tag_id) -> bool:
        return self._dao.query.filter(id=relation_id(product_id, tag_id)).all().total > 0

    def unbind_product(self, shop_id, product_id) -> int:
        rows = fetch_all(self._dao.query.filter(shop_id=str(shop_id), product_id=str(product_id)))
        for row in rows:
            self._dao.delete(row)
        return len(rows)
