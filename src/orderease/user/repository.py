"""Repository for the User aggregate."""

from orderease.domain import orderease
from orderease.shared.errors import NotFound
from orderease.shared.pagination import Page, paginate
from orderease.user.user import User


@orderease.repository(part_of=User)
class UserRepository:
    def get_for_shop(self, user_id, shop_id) -> User:
        """Load a user of ``shop_id``; users of other shops are reported missing."""
        user = self._dao.query.filter(id=str(user_id), shop_id=str(shop_id)).all().first
        if user is None:
            raise NotFound(f"User {user_id} does not exist", field="user_id")
        return user

    def find_by_name(self, shop_id, name) -> User | None:
        return self._dao.query.filter(shop_id=str(shop_id), name=name).all().first

    def name_exists(self, shop_id, name, exclude_id=None) -> bool:
        query = self._dao.query.filter(shop_id=str(shop_id), name=name)
        if exclude_id:
            query = query.exclude(id=str(exclude_id))
        return query.all().total > 0

    def find_by_shop(self, shop_id, page=1, page_size=10, search=None) -> Page:
        query = self._dao.query.filter(shop_id=str(shop_id))
        if search:
            query = query.filter(name__contains=search)
        return paginate(query.order_by("-id"), page, page_size)
