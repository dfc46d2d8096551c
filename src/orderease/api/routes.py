"""FastAPI endpoints for shops, users, products, tags and orders.

Routes resolve the caller's tenant scope, translate request bodies into
commands and project aggregates into response schemas. Business rules live
in the command handlers.
"""

import json
from datetime import datetime

from fastapi import APIRouter, Depends, Query
from protean.utils.globals import current_domain

from orderease.api.dependencies import get_principal
from orderease.api.schemas import (
    BatchProductsRequest,
    ChangePasswordRequest,
    CreateOrderRequest,
    CreateProductRequest,
    CreateShopRequest,
    CreateTagRequest,
    CreateUserRequest,
    ExistsResponse,
    ExtendValidityRequest,
    IdResponse,
    LoginRequest,
    OrderPage,
    OrderResponse,
    OrderStatusFlowSchema,
    OwnerLoginResponse,
    ProductPage,
    ProductResponse,
    RegisterUserRequest,
    SetProductStatusRequest,
    SetProductTagsRequest,
    ShopPage,
    ShopResponse,
    StatusConfigSchema,
    StatusResponse,
    TagIdResponse,
    TaggingResult,
    TagResponse,
    TransitionRequest,
    UpdateProductRequest,
    UpdateRemarkRequest,
    UpdateShopRequest,
    UpdateTagRequest,
    UpdateUserRequest,
    UserLoginRequest,
    UserLoginResponse,
    UserPage,
    UserResponse,
)
from orderease.order.creation import CreateOrder
from orderease.order.modification import DeleteOrder, UpdateOrderRemark
from orderease.order.order import Order
from orderease.order.status import TransitionOrderStatus
from orderease.product.creation import CreateProduct
from orderease.product.details import UpdateProduct
from orderease.product.lifecycle import SetProductStatus
from orderease.product.product import Product, ProductStatus
from orderease.product.removal import DeleteProduct
from orderease.shared.errors import NotFound, ValidationFailed
from orderease.shared.price import Price
from orderease.shared.principal import Principal, Role, require_role, resolve_shop_scope
from orderease.shop.management import (
    ChangeOwnerPassword,
    CreateShop,
    DeleteShop,
    ExtendShopValidity,
    UpdateOrderStatusFlow,
    UpdateShop,
    authenticate_owner,
    status_flow_labels,
)
from orderease.shop.shop import Shop
from orderease.tag import tagging
from orderease.tag.management import CreateTag, DeleteTag, UpdateTag
from orderease.tag.tag import Tag
from orderease.tag.tagging import BatchTagProducts, BatchUntagProducts, SetProductTags
from orderease.user.management import CreateUser, DeleteUser, RegisterUser, UpdateUser, authenticate_user
from orderease.user.user import User

shop_router = APIRouter(prefix="/shops", tags=["shops"])
user_router = APIRouter(prefix="/users", tags=["users"])
product_router = APIRouter(prefix="/products", tags=["products"])
tag_router = APIRouter(prefix="/tags", tags=["tags"])
order_router = APIRouter(prefix="/orders", tags=["orders"])

_MANAGERS = (Role.ADMINISTRATOR, Role.SHOP_OWNER)


def _process(command):
    return current_domain.process(command, asynchronous=False)


# ---------------------------------------------------------------------------
# Projections
# ---------------------------------------------------------------------------
def _shop_response(shop: Shop) -> ShopResponse:
    return ShopResponse(
        id=str(shop.id),
        name=shop.name,
        owner_username=shop.owner_username,
        contact_phone=shop.contact_phone,
        contact_email=shop.contact_email,
        address=shop.address,
        image_url=shop.image_url,
        description=shop.description,
        valid_until=shop.valid_until,
        remaining_days=shop.remaining_days(),
        settings=json.loads(shop.settings) if shop.settings else None,
        order_status_flow=OrderStatusFlowSchema(**shop.status_flow.to_dict()),
        created_at=shop.created_at,
        updated_at=shop.updated_at,
    )


def _user_response(user: User) -> UserResponse:
    return UserResponse(
        id=str(user.id),
        shop_id=str(user.shop_id),
        name=user.name,
        phone=user.phone,
        address=user.address,
        delivery_type=user.delivery_type,
        created_at=user.created_at,
    )


def _product_response(product: Product) -> ProductResponse:
    return ProductResponse(
        id=str(product.id),
        shop_id=str(product.shop_id),
        name=product.name,
        description=product.description,
        price=product.price,
        stock=product.stock,
        image_url=product.image_url,
        status=product.status,
        option_categories=[
            {
                "id": str(category.id),
                "name": category.name,
                "is_required": category.is_required,
                "is_multiple": category.is_multiple,
                "display_order": category.display_order,
                "options": [
                    {
                        "id": str(option.id),
                        "category_id": str(option.category_id),
                        "name": option.name,
                        "price_adjustment": option.price_adjustment,
                        "display_order": option.display_order,
                        "is_default": option.is_default,
                    }
                    for option in product.options_in(category.id)
                ],
            }
            for category in product.sorted_categories()
        ],
        created_at=product.created_at,
        updated_at=product.updated_at,
    )


def _tag_response(tag: Tag) -> TagResponse:
    return TagResponse(id=tag.id, shop_id=str(tag.shop_id), name=tag.name, description=tag.description)


def _order_response(order: Order) -> OrderResponse:
    return OrderResponse(
        id=str(order.id),
        shop_id=str(order.shop_id),
        user_id=str(order.user_id),
        total_price=order.total_price,
        status=order.status,
        remark=order.remark,
        items=[
            {
                "id": str(item.id),
                "product_id": str(item.product_id),
                "quantity": item.quantity,
                "price": item.price,
                "total_price": item.total_price,
                "product_name": item.product_name,
                "product_description": item.product_description,
                "product_image_url": item.product_image_url,
                "options": [
                    {
                        "id": str(option.id),
                        "category_id": str(option.category_id),
                        "option_id": str(option.option_id),
                        "category_name": option.category_name,
                        "option_name": option.option_name,
                        "price_adjustment": option.price_adjustment,
                    }
                    for option in order.options_for(item.id)
                ],
            }
            for item in sorted(order.items, key=lambda i: int(i.id))
        ],
        status_logs=[
            {"old_status": log.old_status, "new_status": log.new_status, "changed_time": log.changed_time}
            for log in order.sorted_logs()
        ],
        created_at=order.created_at,
        updated_at=order.updated_at,
    )


def _categories_json(categories):
    if categories is None:
        return None
    return json.dumps([category.model_dump(exclude_none=True) for category in categories])


def _price_value(raw):
    return None if raw is None else Price.parse(raw).amount


# ---------------------------------------------------------------------------
# Shops
# ---------------------------------------------------------------------------
@shop_router.post("", status_code=201, response_model=IdResponse)
async def create_shop(body: CreateShopRequest, principal: Principal = Depends(get_principal)) -> IdResponse:
    require_role(principal, Role.ADMINISTRATOR)
    command = CreateShop(
        name=body.name,
        owner_username=body.owner_username,
        owner_password=body.owner_password,
        contact_phone=body.contact_phone,
        contact_email=body.contact_email,
        address=body.address,
        image_url=body.image_url,
        description=body.description,
        valid_until=body.valid_until,
        settings=json.dumps(body.settings) if body.settings is not None else None,
        order_status_flow=body.order_status_flow.model_dump_json() if body.order_status_flow else None,
    )
    return IdResponse(id=_process(command))


@shop_router.get("", response_model=ShopPage)
async def list_shops(
    page: int = 1,
    page_size: int = 10,
    search: str | None = None,
    principal: Principal = Depends(get_principal),
) -> ShopPage:
    require_role(principal, Role.ADMINISTRATOR)
    result = current_domain.repository_for(Shop).list_shops(page=page, page_size=page_size, search=search)
    return ShopPage(
        items=[_shop_response(s) for s in result.items], total=result.total, page=page, page_size=page_size
    )


@shop_router.get("/check-name", response_model=ExistsResponse)
async def check_shop_name(name: str, principal: Principal = Depends(get_principal)) -> ExistsResponse:
    require_role(principal, Role.ADMINISTRATOR)
    return ExistsResponse(exists=current_domain.repository_for(Shop).name_exists(name))


@shop_router.post("/login", response_model=OwnerLoginResponse)
async def owner_login(body: LoginRequest) -> OwnerLoginResponse:
    shop = authenticate_owner(body.username, body.password)
    return OwnerLoginResponse(shop_id=str(shop.id), remaining_days=shop.remaining_days())


@shop_router.get("/{shop_id}", response_model=ShopResponse)
async def get_shop(shop_id: str, principal: Principal = Depends(get_principal)) -> ShopResponse:
    require_role(principal, *_MANAGERS)
    scope = resolve_shop_scope(principal, shop_id)
    return _shop_response(current_domain.repository_for(Shop).get_shop(scope))


@shop_router.put("/{shop_id}", response_model=StatusResponse)
async def update_shop(
    shop_id: str, body: UpdateShopRequest, principal: Principal = Depends(get_principal)
) -> StatusResponse:
    require_role(principal, *_MANAGERS)
    command = UpdateShop(
        shop_id=resolve_shop_scope(principal, shop_id),
        name=body.name,
        owner_username=body.owner_username,
        contact_phone=body.contact_phone,
        contact_email=body.contact_email,
        address=body.address,
        image_url=body.image_url,
        description=body.description,
        settings=json.dumps(body.settings) if body.settings is not None else None,
    )
    _process(command)
    return StatusResponse()


@shop_router.get("/{shop_id}/order-status-flow", response_model=list[StatusConfigSchema])
async def get_order_status_flow(shop_id: str, principal: Principal = Depends(get_principal)):
    return status_flow_labels(resolve_shop_scope(principal, shop_id))


@shop_router.put("/{shop_id}/order-status-flow", response_model=StatusResponse)
async def update_order_status_flow(
    shop_id: str, body: OrderStatusFlowSchema, principal: Principal = Depends(get_principal)
) -> StatusResponse:
    require_role(principal, *_MANAGERS)
    command = UpdateOrderStatusFlow(
        shop_id=resolve_shop_scope(principal, shop_id),
        order_status_flow=body.model_dump_json(),
    )
    _process(command)
    return StatusResponse()


@shop_router.put("/{shop_id}/validity", response_model=StatusResponse)
async def extend_validity(
    shop_id: str, body: ExtendValidityRequest, principal: Principal = Depends(get_principal)
) -> StatusResponse:
    require_role(principal, Role.ADMINISTRATOR)
    _process(ExtendShopValidity(shop_id=shop_id, valid_until=body.valid_until))
    return StatusResponse()


@shop_router.put("/{shop_id}/password", response_model=StatusResponse)
async def change_owner_password(
    shop_id: str, body: ChangePasswordRequest, principal: Principal = Depends(get_principal)
) -> StatusResponse:
    require_role(principal, *_MANAGERS)
    _process(ChangeOwnerPassword(shop_id=resolve_shop_scope(principal, shop_id), new_password=body.new_password))
    return StatusResponse()


@shop_router.delete("/{shop_id}", response_model=StatusResponse)
async def delete_shop(shop_id: str, principal: Principal = Depends(get_principal)) -> StatusResponse:
    require_role(principal, Role.ADMINISTRATOR)
    _process(DeleteShop(shop_id=shop_id))
    return StatusResponse()


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------
@user_router.post("/register", status_code=201, response_model=IdResponse)
async def register_user(body: RegisterUserRequest) -> IdResponse:
    command = RegisterUser(
        shop_id=body.shop_id,
        name=body.name,
        password=body.password,
        phone=body.phone,
        address=body.address,
    )
    return IdResponse(id=_process(command))


@user_router.post("/login", response_model=UserLoginResponse)
async def user_login(body: UserLoginRequest) -> UserLoginResponse:
    user = authenticate_user(body.shop_id, body.username, body.password)
    return UserLoginResponse(user_id=str(user.id), shop_id=str(user.shop_id))


@user_router.post("", status_code=201, response_model=IdResponse)
async def create_user(
    body: CreateUserRequest,
    shop_id: str | None = None,
    principal: Principal = Depends(get_principal),
) -> IdResponse:
    require_role(principal, *_MANAGERS)
    command = CreateUser(
        shop_id=resolve_shop_scope(principal, shop_id),
        name=body.name,
        password=body.password,
        phone=body.phone,
        address=body.address,
        delivery_type=body.delivery_type,
    )
    return IdResponse(id=_process(command))


@user_router.get("", response_model=UserPage)
async def list_users(
    shop_id: str | None = None,
    page: int = 1,
    page_size: int = 10,
    search: str | None = None,
    principal: Principal = Depends(get_principal),
) -> UserPage:
    require_role(principal, *_MANAGERS)
    scope = resolve_shop_scope(principal, shop_id)
    result = current_domain.repository_for(User).find_by_shop(scope, page=page, page_size=page_size, search=search)
    return UserPage(
        items=[_user_response(u) for u in result.items], total=result.total, page=page, page_size=page_size
    )


@user_router.get("/check-name", response_model=ExistsResponse)
async def check_user_name(
    name: str, shop_id: str | None = None, principal: Principal = Depends(get_principal)
) -> ExistsResponse:
    require_role(principal, *_MANAGERS)
    scope = resolve_shop_scope(principal, shop_id)
    return ExistsResponse(exists=current_domain.repository_for(User).name_exists(scope, name))


@user_router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str, shop_id: str | None = None, principal: Principal = Depends(get_principal)
) -> UserResponse:
    scope = resolve_shop_scope(principal, shop_id)
    if principal.is_customer and principal.user_id != user_id:
        raise NotFound(f"User {user_id} does not exist", field="user_id")
    return _user_response(current_domain.repository_for(User).get_for_shop(user_id, scope))


@user_router.put("/{user_id}", response_model=StatusResponse)
async def update_user(
    user_id: str,
    body: UpdateUserRequest,
    shop_id: str | None = None,
    principal: Principal = Depends(get_principal),
) -> StatusResponse:
    scope = resolve_shop_scope(principal, shop_id)
    if principal.is_customer and principal.user_id != user_id:
        raise NotFound(f"User {user_id} does not exist", field="user_id")
    command = UpdateUser(
        shop_id=scope,
        user_id=user_id,
        name=body.name,
        password=body.password,
        phone=body.phone,
        address=body.address,
        delivery_type=body.delivery_type,
    )
    _process(command)
    return StatusResponse()


@user_router.delete("/{user_id}", response_model=StatusResponse)
async def delete_user(
    user_id: str, shop_id: str | None = None, principal: Principal = Depends(get_principal)
) -> StatusResponse:
    require_role(principal, *_MANAGERS)
    _process(DeleteUser(shop_id=resolve_shop_scope(principal, shop_id), user_id=user_id))
    return StatusResponse()


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------
@product_router.post("", status_code=201, response_model=IdResponse)
async def create_product(
    body: CreateProductRequest,
    shop_id: str | None = None,
    principal: Principal = Depends(get_principal),
) -> IdResponse:
    require_role(principal, *_MANAGERS)
    command = CreateProduct(
        shop_id=resolve_shop_scope(principal, shop_id),
        name=body.name,
        price=_price_value(body.price),
        stock=body.stock,
        description=body.description,
        image_url=body.image_url,
        option_categories=_categories_json(body.option_categories),
    )
    return IdResponse(id=_process(command))


@product_router.get("", response_model=ProductPage)
async def list_products(
    shop_id: str | None = None,
    page: int = 1,
    page_size: int = 10,
    search: str | None = None,
    exclude_offline: bool = False,
    principal: Principal = Depends(get_principal),
) -> ProductPage:
    scope = resolve_shop_scope(principal, shop_id)
    result = current_domain.repository_for(Product).find_by_shop(
        scope,
        page=page,
        page_size=page_size,
        search=search,
        exclude_offline=exclude_offline,
        online_only=principal.is_customer,
    )
    return ProductPage(
        items=[_product_response(p) for p in result.items], total=result.total, page=page, page_size=page_size
    )


@product_router.get("/untagged", response_model=ProductPage)
async def list_untagged_products(
    shop_id: str | None = None,
    page: int = 1,
    page_size: int = 10,
    principal: Principal = Depends(get_principal),
) -> ProductPage:
    require_role(principal, *_MANAGERS)
    result = tagging.untagged_products(resolve_shop_scope(principal, shop_id), page=page, page_size=page_size)
    return ProductPage(
        items=[_product_response(p) for p in result.items], total=result.total, page=page, page_size=page_size
    )


@product_router.get("/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: str, shop_id: str | None = None, principal: Principal = Depends(get_principal)
) -> ProductResponse:
    scope = resolve_shop_scope(principal, shop_id)
    product = current_domain.repository_for(Product).get_for_shop(product_id, scope)
    if principal.is_customer and product.status != ProductStatus.ONLINE.value:
        raise NotFound(f"Product {product_id} does not exist", field="product_id")
    return _product_response(product)


@product_router.put("/{product_id}", response_model=StatusResponse)
async def update_product(
    product_id: str,
    body: UpdateProductRequest,
    shop_id: str | None = None,
    principal: Principal = Depends(get_principal),
) -> StatusResponse:
    require_role(principal, *_MANAGERS)
    command = UpdateProduct(
        shop_id=resolve_shop_scope(principal, shop_id),
        product_id=product_id,
        name=body.name,
        price=_price_value(body.price),
        stock=body.stock,
        description=body.description,
        image_url=body.image_url,
        status=body.status,
        option_categories=_categories_json(body.option_categories),
    )
    _process(command)
    return StatusResponse()


@product_router.put("/{product_id}/status", response_model=StatusResponse)
async def set_product_status(
    product_id: str,
    body: SetProductStatusRequest,
    shop_id: str | None = None,
    principal: Principal = Depends(get_principal),
) -> StatusResponse:
    require_role(principal, *_MANAGERS)
    _process(SetProductStatus(shop_id=resolve_shop_scope(principal, shop_id), product_id=product_id, status=body.status))
    return StatusResponse()


@product_router.delete("/{product_id}", response_model=StatusResponse)
async def delete_product(
    product_id: str, shop_id: str | None = None, principal: Principal = Depends(get_principal)
) -> StatusResponse:
    require_role(principal, *_MANAGERS)
    _process(DeleteProduct(shop_id=resolve_shop_scope(principal, shop_id), product_id=product_id))
    return StatusResponse()


@product_router.get("/{product_id}/tags", response_model=list[TagResponse])
async def get_product_tags(product_id: str, shop_id: str | None = None, principal: Principal = Depends(get_principal)):
    scope = resolve_shop_scope(principal, shop_id)
    return [_tag_response(t) for t in tagging.tags_for_product(scope, product_id)]


@product_router.get("/{product_id}/unbound-tags", response_model=list[TagResponse])
async def get_unbound_tags(product_id: str, shop_id: str | None = None, principal: Principal = Depends(get_principal)):
    require_role(principal, *_MANAGERS)
    scope = resolve_shop_scope(principal, shop_id)
    return [_tag_response(t) for t in tagging.unbound_tags_for_product(scope, product_id)]


@product_router.put("/{product_id}/tags", response_model=TaggingResult)
async def set_product_tags(
    product_id: str,
    body: SetProductTagsRequest,
    shop_id: str | None = None,
    principal: Principal = Depends(get_principal),
) -> TaggingResult:
    require_role(principal, *_MANAGERS)
    command = SetProductTags(
        shop_id=resolve_shop_scope(principal, shop_id),
        product_id=product_id,
        tag_ids=json.dumps(body.tag_ids),
    )
    return TaggingResult(**_process(command))


# ---------------------------------------------------------------------------
# Tags
# ---------------------------------------------------------------------------
@tag_router.post("", status_code=201, response_model=TagIdResponse)
async def create_tag(
    body: CreateTagRequest, shop_id: str | None = None, principal: Principal = Depends(get_principal)
) -> TagIdResponse:
    require_role(principal, *_MANAGERS)
    command = CreateTag(shop_id=resolve_shop_scope(principal, shop_id), name=body.name, description=body.description)
    return TagIdResponse(id=_process(command))


@tag_router.get("", response_model=list[TagResponse])
async def list_tags(shop_id: str | None = None, principal: Principal = Depends(get_principal)):
    scope = resolve_shop_scope(principal, shop_id)
    return [_tag_response(t) for t in current_domain.repository_for(Tag).find_by_shop(scope)]


@tag_router.get("/unused", response_model=list[TagResponse])
async def list_unused_tags(shop_id: str | None = None, principal: Principal = Depends(get_principal)):
    require_role(principal, *_MANAGERS)
    return [_tag_response(t) for t in tagging.unused_tags(resolve_shop_scope(principal, shop_id))]


@tag_router.get("/{tag_id}", response_model=TagResponse)
async def get_tag(tag_id: int, shop_id: str | None = None, principal: Principal = Depends(get_principal)):
    scope = resolve_shop_scope(principal, shop_id)
    return _tag_response(current_domain.repository_for(Tag).get_for_shop(tag_id, scope))


@tag_router.put("/{tag_id}", response_model=StatusResponse)
async def update_tag(
    tag_id: int, body: UpdateTagRequest, shop_id: str | None = None, principal: Principal = Depends(get_principal)
) -> StatusResponse:
    require_role(principal, *_MANAGERS)
    command = UpdateTag(
        shop_id=resolve_shop_scope(principal, shop_id), tag_id=tag_id, name=body.name, description=body.description
    )
    _process(command)
    return StatusResponse()


@tag_router.delete("/{tag_id}", response_model=StatusResponse)
async def delete_tag(tag_id: int, shop_id: str | None = None, principal: Principal = Depends(get_principal)):
    require_role(principal, *_MANAGERS)
    _process(DeleteTag(shop_id=resolve_shop_scope(principal, shop_id), tag_id=tag_id))
    return StatusResponse()


@tag_router.get("/{tag_id}/products", response_model=ProductPage)
async def list_tag_products(
    tag_id: int,
    shop_id: str | None = None,
    page: int = 1,
    page_size: int = 10,
    principal: Principal = Depends(get_principal),
) -> ProductPage:
    scope = resolve_shop_scope(principal, shop_id)
    result = tagging.products_for_tag(
        scope, tag_id, page=page, page_size=page_size, online_only=principal.is_customer
    )
    return ProductPage(
        items=[_product_response(p) for p in result.items], total=result.total, page=page, page_size=page_size
    )


@tag_router.get("/{tag_id}/online-products", response_model=ProductPage)
async def list_tag_online_products(
    tag_id: int,
    shop_id: str | None = None,
    page: int = 1,
    page_size: int = 10,
    principal: Principal = Depends(get_principal),
) -> ProductPage:
    scope = resolve_shop_scope(principal, shop_id)
    result = tagging.online_products_for_tag(scope, tag_id, page=page, page_size=page_size)
    return ProductPage(
        items=[_product_response(p) for p in result.items], total=result.total, page=page, page_size=page_size
    )


@tag_router.post("/{tag_id}/products", response_model=TaggingResult)
async def batch_tag_products(
    tag_id: int, body: BatchProductsRequest, shop_id: str | None = None, principal: Principal = Depends(get_principal)
) -> TaggingResult:
    require_role(principal, *_MANAGERS)
    command = BatchTagProducts(
        shop_id=resolve_shop_scope(principal, shop_id), tag_id=tag_id, product_ids=json.dumps(body.product_ids)
    )
    return TaggingResult(**_process(command))


@tag_router.post("/{tag_id}/products/remove", response_model=TaggingResult)
async def batch_untag_products(
    tag_id: int, body: BatchProductsRequest, shop_id: str | None = None, principal: Principal = Depends(get_principal)
) -> TaggingResult:
    require_role(principal, *_MANAGERS)
    command = BatchUntagProducts(
        shop_id=resolve_shop_scope(principal, shop_id), tag_id=tag_id, product_ids=json.dumps(body.product_ids)
    )
    return TaggingResult(**_process(command))


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
@order_router.post("", status_code=201, response_model=IdResponse)
async def create_order(
    body: CreateOrderRequest, shop_id: str | None = None, principal: Principal = Depends(get_principal)
) -> IdResponse:
    scope = resolve_shop_scope(principal, shop_id)
    if principal.is_customer:
        user_id = principal.user_id
    elif body.user_id:
        user_id = body.user_id
    else:
        raise ValidationFailed("user_id is required", field="user_id")

    command = CreateOrder(
        shop_id=scope,
        user_id=user_id,
        items=json.dumps([item.model_dump() for item in body.items]),
        remark=body.remark,
    )
    return IdResponse(id=_process(command))


@order_router.get("", response_model=OrderPage)
async def search_orders(
    shop_id: str | None = None,
    user_id: str | None = None,
    status: list[int] | None = Query(default=None),
    start_time: datetime | None = None,
    end_time: datetime | None = None,
    page: int = 1,
    page_size: int = 10,
    principal: Principal = Depends(get_principal),
) -> OrderPage:
    scope = resolve_shop_scope(principal, shop_id)
    if principal.is_customer:
        user_id = principal.user_id
    result = current_domain.repository_for(Order).search(
        scope,
        user_id=user_id,
        statuses=status,
        start_time=start_time,
        end_time=end_time,
        page=page,
        page_size=page_size,
    )
    return OrderPage(
        items=[_order_response(o) for o in result.items], total=result.total, page=page, page_size=page_size
    )


@order_router.get("/unfinished", response_model=OrderPage)
async def list_unfinished_orders(
    shop_id: str | None = None,
    page: int = 1,
    page_size: int = 10,
    principal: Principal = Depends(get_principal),
) -> OrderPage:
    require_role(principal, *_MANAGERS)
    scope = resolve_shop_scope(principal, shop_id)
    flow = current_domain.repository_for(Shop).get_shop(scope).status_flow
    result = current_domain.repository_for(Order).find_unfinished(scope, flow, page=page, page_size=page_size)
    return OrderPage(
        items=[_order_response(o) for o in result.items], total=result.total, page=page, page_size=page_size
    )


@order_router.get("/status-flow", response_model=list[StatusConfigSchema])
async def get_status_flow(shop_id: str | None = None, principal: Principal = Depends(get_principal)):
    return status_flow_labels(resolve_shop_scope(principal, shop_id))


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: str, shop_id: str | None = None, principal: Principal = Depends(get_principal)
) -> OrderResponse:
    scope = resolve_shop_scope(principal, shop_id)
    order = current_domain.repository_for(Order).get_for_shop(order_id, scope)
    if principal.is_customer and str(order.user_id) != principal.user_id:
        raise NotFound(f"Order {order_id} does not exist", field="order_id")
    return _order_response(order)


@order_router.put("/{order_id}/status", response_model=OrderResponse)
async def transition_order_status(
    order_id: str, body: TransitionRequest, shop_id: str | None = None, principal: Principal = Depends(get_principal)
) -> OrderResponse:
    require_role(principal, *_MANAGERS)
    scope = resolve_shop_scope(principal, shop_id)
    _process(TransitionOrderStatus(shop_id=scope, order_id=order_id, next_status=body.next_status))
    return _order_response(current_domain.repository_for(Order).get_for_shop(order_id, scope))


@order_router.put("/{order_id}/remark", response_model=StatusResponse)
async def update_order_remark(
    order_id: str, body: UpdateRemarkRequest, shop_id: str | None = None, principal: Principal = Depends(get_principal)
) -> StatusResponse:
    require_role(principal, *_MANAGERS)
    _process(UpdateOrderRemark(shop_id=resolve_shop_scope(principal, shop_id), order_id=order_id, remark=body.remark))
    return StatusResponse()


@order_router.delete("/{order_id}", response_model=StatusResponse)
async def delete_order(
    order_id: str, shop_id: str | None = None, principal: Principal = Depends(get_principal)
) -> StatusResponse:
    require_role(principal, *_MANAGERS)
    _process(DeleteOrder(shop_id=resolve_shop_scope(principal, shop_id), order_id=order_id))
    return StatusResponse()
