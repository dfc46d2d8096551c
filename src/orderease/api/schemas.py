"""Pydantic request/response schemas for the ordering API.

These are external contracts, kept separate from the Protean commands.
Ids go out as decimal strings and come in as strings or numbers; prices come
in as numbers or numeric strings.
"""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

IdIn = str | int
PriceIn = float | int | str


def _id_text(value):
    return None if value is None else str(value)


# ---------------------------------------------------------------------------
# Shared
# ---------------------------------------------------------------------------
class StatusResponse(BaseModel):
    status: str = "ok"


class IdResponse(BaseModel):
    id: str


class ErrorResponse(BaseModel):
    code: str
    message: str
    errors: dict[str, list[str]] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Shops
# ---------------------------------------------------------------------------
class TransitionSchema(BaseModel):
    name: str
    nextStatus: int
    nextStatusLabel: str = ""


class StatusConfigSchema(BaseModel):
    value: int
    label: str
    type: str = "default"
    isFinal: bool = False
    restock: bool = False
    actions: list[TransitionSchema] = Field(default_factory=list)


class OrderStatusFlowSchema(BaseModel):
    statuses: list[StatusConfigSchema]


class CreateShopRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    owner_username: str = Field(min_length=1, max_length=50)
    owner_password: str
    contact_phone: str | None = None
    contact_email: str | None = None
    address: str | None = None
    image_url: str | None = None
    description: str | None = None
    valid_until: datetime | None = None
    settings: dict | None = None
    order_status_flow: OrderStatusFlowSchema | None = None


class UpdateShopRequest(BaseModel):
    name: str | None = None
    owner_username: str | None = None
    contact_phone: str | None = None
    contact_email: str | None = None
    address: str | None = None
    image_url: str | None = None
    description: str | None = None
    settings: dict | None = None


class ExtendValidityRequest(BaseModel):
    valid_until: datetime


class ChangePasswordRequest(BaseModel):
    new_password: str


class LoginRequest(BaseModel):
    username: str
    password: str


class OwnerLoginResponse(BaseModel):
    shop_id: str
    remaining_days: int


class ShopResponse(BaseModel):
    id: str
    name: str
    owner_username: str
    contact_phone: str | None = None
    contact_email: str | None = None
    address: str | None = None
    image_url: str | None = None
    description: str | None = None
    valid_until: datetime
    remaining_days: int
    settings: dict | None = None
    order_status_flow: OrderStatusFlowSchema
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ShopPage(BaseModel):
    items: list[ShopResponse]
    total: int
    page: int
    page_size: int


class ExistsResponse(BaseModel):
    exists: bool


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------
class CreateUserRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    password: str | None = None
    phone: str | None = None
    address: str | None = None
    delivery_type: str | None = None


class RegisterUserRequest(BaseModel):
    shop_id: IdIn
    name: str = Field(min_length=1, max_length=100)
    password: str
    phone: str | None = None
    address: str | None = None

    @field_validator("shop_id", mode="after")
    @classmethod
    def shop_id_as_text(cls, value):
        return _id_text(value)


class UserLoginRequest(LoginRequest):
    shop_id: IdIn

    @field_validator("shop_id", mode="after")
    @classmethod
    def shop_id_as_text(cls, value):
        return _id_text(value)


class UserLoginResponse(BaseModel):
    user_id: str
    shop_id: str


class UpdateUserRequest(BaseModel):
    name: str | None = None
    password: str | None = None
    phone: str | None = None
    address: str | None = None
    delivery_type: str | None = None


class UserResponse(BaseModel):
    id: str
    shop_id: str
    name: str
    phone: str | None = None
    address: str | None = None
    delivery_type: str | None = None
    created_at: datetime | None = None


class UserPage(BaseModel):
    items: list[UserResponse]
    total: int
    page: int
    page_size: int


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------
class OptionInput(BaseModel):
    name: str
    price_adjustment: PriceIn = 0
    display_order: int | None = None
    is_default: bool = False


class OptionCategoryInput(BaseModel):
    name: str
    is_required: bool = False
    is_multiple: bool = False
    display_order: int | None = None
    options: list[OptionInput] = Field(default_factory=list)


class CreateProductRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    price: PriceIn
    stock: int = Field(ge=0, default=0)
    description: str | None = None
    image_url: str | None = None
    option_categories: list[OptionCategoryInput] = Field(default_factory=list)


class UpdateProductRequest(BaseModel):
    name: str | None = None
    price: PriceIn | None = None
    stock: int | None = Field(ge=0, default=None)
    description: str | None = None
    image_url: str | None = None
    status: str | None = None
    option_categories: list[OptionCategoryInput] | None = None


class SetProductStatusRequest(BaseModel):
    status: str


class OptionResponse(BaseModel):
    id: str
    category_id: str
    name: str
    price_adjustment: float
    display_order: int
    is_default: bool


class OptionCategoryResponse(BaseModel):
    id: str
    name: str
    is_required: bool
    is_multiple: bool
    display_order: int
    options: list[OptionResponse]


class ProductResponse(BaseModel):
    id: str
    shop_id: str
    name: str
    description: str | None = None
    price: float
    stock: int
    image_url: str | None = None
    status: str
    option_categories: list[OptionCategoryResponse]
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ProductPage(BaseModel):
    items: list[ProductResponse]
    total: int
    page: int
    page_size: int


class SetProductTagsRequest(BaseModel):
    tag_ids: list[int]


# ---------------------------------------------------------------------------
# Tags
# ---------------------------------------------------------------------------
class CreateTagRequest(BaseModel):
    name: str = Field(min_length=1, max_length=50)
    description: str | None = None


class UpdateTagRequest(BaseModel):
    name: str | None = None
    description: str | None = None


class TagResponse(BaseModel):
    id: int
    shop_id: str
    name: str
    description: str | None = None


class TagIdResponse(BaseModel):
    id: int


class BatchProductsRequest(BaseModel):
    product_ids: list[IdIn]

    @field_validator("product_ids", mode="after")
    @classmethod
    def ids_as_text(cls, values):
        return [_id_text(v) for v in values]


class TaggingResult(BaseModel):
    added: int
    deleted: int


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class OrderOptionInput(BaseModel):
    category_id: IdIn | None = None
    option_id: IdIn

    @field_validator("category_id", "option_id", mode="after")
    @classmethod
    def ids_as_text(cls, value):
        return _id_text(value)


class OrderItemInput(BaseModel):
    product_id: IdIn
    quantity: int = Field(ge=1)
    options: list[OrderOptionInput] = Field(default_factory=list)

    @field_validator("product_id", mode="after")
    @classmethod
    def product_id_as_text(cls, value):
        return _id_text(value)


class CreateOrderRequest(BaseModel):
    user_id: IdIn | None = None
    items: list[OrderItemInput] = Field(min_length=1)
    remark: str | None = None

    @field_validator("user_id", mode="after")
    @classmethod
    def user_id_as_text(cls, value):
        return _id_text(value)


class TransitionRequest(BaseModel):
    next_status: int


class UpdateRemarkRequest(BaseModel):
    remark: str | None = None


class OrderItemOptionResponse(BaseModel):
    id: str
    category_id: str
    option_id: str
    category_name: str
    option_name: str
    price_adjustment: float


class OrderItemResponse(BaseModel):
    id: str
    product_id: str
    quantity: int
    price: float
    total_price: float
    product_name: str
    product_description: str | None = None
    product_image_url: str | None = None
    options: list[OrderItemOptionResponse]


class StatusLogResponse(BaseModel):
    old_status: int | None = None
    new_status: int
    changed_time: datetime


class OrderResponse(BaseModel):
    id: str
    shop_id: str
    user_id: str
    total_price: float
    status: int
    remark: str | None = None
    items: list[OrderItemResponse]
    status_logs: list[StatusLogResponse]
    created_at: datetime | None = None
    updated_at: datetime | None = None


class OrderPage(BaseModel):
    items: list[OrderResponse]
    total: int
    page: int
    page_size: int
