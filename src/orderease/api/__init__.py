"""Ordering API package."""

from orderease.api.errors import register_exception_handlers
from orderease.api.routes import order_router, product_router, shop_router, tag_router, user_router

ROUTERS = [shop_router, user_router, product_router, tag_router, order_router]

__all__ = [
    "ROUTERS",
    "order_router",
    "product_router",
    "register_exception_handlers",
    "shop_router",
    "tag_router",
    "user_router",
]
