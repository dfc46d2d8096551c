"""Request-scoped dependencies.

Token verification happens in the gateway in front of this service; it
forwards the caller's identity as headers, which are turned into a
``Principal`` here.
"""

from fastapi import Header

from orderease.shared.errors import Unauthorized
from orderease.shared.principal import Principal, Role


def get_principal(
    x_principal_role: str | None = Header(default=None),
    x_shop_id: str | None = Header(default=None),
    x_user_id: str | None = Header(default=None),
) -> Principal:
    try:
        role = Role(x_principal_role)
    except ValueError:
        raise Unauthorized("Missing or unknown principal role") from None

    if role is Role.ADMINISTRATOR:
        return Principal.administrator()
    if not x_shop_id:
        raise Unauthorized("Missing shop scope")
    if role is Role.SHOP_OWNER:
        return Principal.shop_owner(x_shop_id)
    if not x_user_id:
        raise Unauthorized("Missing user identity")
    return Principal.customer(x_user_id, x_shop_id)
