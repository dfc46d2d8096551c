"""Repository for the Shop aggregate."""

from orderease.domain import orderease
from orderease.shared import passwords
from orderease.shared.errors import NotFound
from orderease.shared.pagination import Page, paginate
from orderease.shop.shop import Shop, utc_now


@orderease.repository(part_of=Shop)
class ShopRepository:
    def add(self, shop):
        # Plain-text passwords assigned directly to the field get hashed here
        if not passwords.is_hashed(shop.owner_password):
            shop.owner_password = passwords.hash_password(shop.owner_password)
        shop.updated_at = utc_now()
        return super().add(shop)

    def get_shop(self, shop_id) -> Shop:
        shop = self._dao.query.filter(id=str(shop_id)).all().first
        if shop is None:
            raise NotFound(f"Shop {shop_id} does not exist", field="shop_id")
        return shop

    def get_writable(self, shop_id, now=None) -> Shop:
        """Load a shop for a write; expired shops raise ``ShopExpired``."""
        shop = self.get_shop(shop_id)
        shop.ensure_writable(now)
        return shop

    def find_by_username(self, owner_username) -> Shop | None:
        return self._dao.query.filter(owner_username=owner_username).all().first

    def name_exists(self, name, exclude_id=None) -> bool:
        query = self._dao.query.filter(name=name)
        if exclude_id:
            query = query.exclude(id=str(exclude_id))
        return query.all().total > 0

    def username_exists(self, owner_username, exclude_id=None) -> bool:
        query = self._dao.query.filter(owner_username=owner_username)
        if exclude_id:
            query = query.exclude(id=str(exclude_id))
        return query.all().total > 0

    def list_shops(self, page=1, page_size=10, search=None) -> Page:
        query = self._dao.query
        if search:
            query = query.filter(name__contains=search)
        return paginate(query.order_by("-id"), page, page_size)
