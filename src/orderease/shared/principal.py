"""Caller identity and tenant scope.

Authentication happens upstream; by the time a request reaches the domain the
caller is one of three principals. ``resolve_shop_scope`` turns a principal
and the shop a request targets into the one shop the operation may touch.
"""

from dataclasses import dataclass
from enum import Enum

from orderease.shared.errors import Unauthorized


class Role(Enum):
    ADMINISTRATOR = "administrator"
    SHOP_OWNER = "shop_owner"
    CUSTOMER = "customer"


@dataclass(frozen=True)
class Principal:
    role: Role
    shop_id: str | None = None
    user_id: str | None = None

    @classmethod
    def administrator(cls) -> "Principal":
        return cls(role=Role.ADMINISTRATOR)

    @classmethod
    def shop_owner(cls, shop_id) -> "Principal":
        return cls(role=Role.SHOP_OWNER, shop_id=str(shop_id))

    @classmethod
    def customer(cls, user_id, shop_id) -> "Principal":
        return cls(role=Role.CUSTOMER, shop_id=str(shop_id), user_id=str(user_id))

    @property
    def is_administrator(self) -> bool:
        return self.role is Role.ADMINISTRATOR

    @property
    def is_shop_owner(self) -> bool:
        return self.role is Role.SHOP_OWNER

    @property
    def is_customer(self) -> bool:
        return self.role is Role.CUSTOMER


def resolve_shop_scope(principal: Principal, requested_shop_id=None) -> str:
    """Return the shop id an operation is confined to.

    Administrators must name a shop. Shop owners and customers are pinned to
    their own shop and may not ask for another one.
    """
    requested = str(requested_shop_id) if requested_shop_id not in (None, "", 0, "0") else None

    if principal.is_administrator:
        if requested is None:
            raise Unauthorized("A shop must be specified", field="shop_id")
        return requested

    if requested is not None and requested != principal.shop_id:
        raise Unauthorized("Access to this shop is not allowed", field="shop_id")
    return principal.shop_id


def require_role(principal: Principal, *roles: Role) -> None:
    if principal.role not in roles:
        raise Unauthorized("Operation not permitted for this account")
