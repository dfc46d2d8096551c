"""Repository for the Product aggregate."""

from protean.utils.globals import current_domain

from orderease.domain import orderease
from orderease.product.product import Product, ProductOption, ProductOptionCategory, ProductStatus
from orderease.shared.errors import NotFound
from orderease.shared.pagination import Page, fetch_all, paginate


@orderease.repository(part_of=Product)
class ProductRepository:
    def get_for_shop(self, product_id, shop_id) -> Product:
        """Load a product of ``shop_id``; products of other shops are reported missing."""
        product = self._dao.query.filter(id=str(product_id), shop_id=str(shop_id)).all().first
        if product is None:
            raise NotFound(f"Product {product_id} does not exist", field="product_id")
        return product

    def find_by_shop(
        self, shop_id, page=1, page_size=10, search=None, exclude_offline=False, online_only=False
    ) -> Page:
        query = self._dao.query.filter(shop_id=str(shop_id))
        if search:
            query = query.filter(name__contains=search)
        if online_only:
            query = query.filter(status=ProductStatus.ONLINE.value)
        elif exclude_offline:
            query = query.exclude(status=ProductStatus.OFFLINE.value)
        return paginate(query.order_by("-id"), page, page_size)

    def find_by_ids(self, shop_id, product_ids) -> list[Product]:
        ids = [str(pid) for pid in product_ids]
        if not ids:
            return []
        return fetch_all(self._dao.query.filter(shop_id=str(shop_id), id__in=ids).order_by("-id"))

    def find_offline(self) -> list[Product]:
        return fetch_all(self._dao.query.filter(status=ProductStatus.OFFLINE.value).order_by("-id"))

    def count_for_shop(self, shop_id) -> int:
        return self._dao.query.filter(shop_id=str(shop_id)).all().total

    def delete_with_options(self, product):
        """Delete a product together with its option categories and options."""
        option_dao = current_domain.repository_for(ProductOption)._dao
        for option in list(product.options):
            option_dao.delete(option)

        category_dao = current_domain.repository_for(ProductOptionCategory)._dao
        for category in list(product.option_categories):
            category_dao.delete(category)

        self._dao.delete(product)
