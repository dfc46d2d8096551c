"""Product aggregate with its option categories and options.

Options hang off the product directly and name their category through
``category_id``, so the whole option graph loads, validates and persists
with the product.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, HasMany, Identifier, Integer, String, Text

from orderease.domain import orderease
from orderease.shared.errors import InsufficientStock, InvalidTransition, ValidationFailed
from orderease.shared.identity import new_id
from orderease.shared.price import Price, round2
from orderease.shared.sanitize import sanitize


class ProductStatus(Enum):
    PENDING = "pending"
    ONLINE = "online"
    OFFLINE = "offline"


# Status transition map for the product state machine
_VALID_TRANSITIONS = {
    ProductStatus.PENDING: {ProductStatus.ONLINE},
    ProductStatus.ONLINE: {ProductStatus.OFFLINE},
    ProductStatus.OFFLINE: {ProductStatus.ONLINE},
}


def utc_now():
    return datetime.now(UTC)


@orderease.entity(part_of="Product")
class ProductOptionCategory:
    """A group of options, e.g. size or sweetness."""

    id: Identifier(identifier=True, default=new_id)
    name: String(required=True, max_length=100)
    is_required: Boolean(default=False)
    is_multiple: Boolean(default=False)
    display_order: Integer(default=0)


@orderease.entity(part_of="Product")
class ProductOption:
    id: Identifier(identifier=True, default=new_id)
    category_id: Identifier(required=True)
    name: String(required=True, max_length=100)
    price_adjustment: Float(default=0.0)
    display_order: Integer(default=0)
    is_default: Boolean(default=False)


@orderease.aggregate
class Product:
    id: Identifier(identifier=True, default=new_id)
    shop_id: Identifier(required=True)
    name: String(required=True, max_length=255)
    description: Text()
    price: Float(required=True, min_value=0.0)
    stock: Integer(required=True, min_value=0)
    image_url: String(max_length=500)
    status: String(choices=ProductStatus, default=ProductStatus.PENDING.value)
    option_categories: HasMany(ProductOptionCategory)
    options: HasMany(ProductOption)
    created_at: DateTime(default=utc_now)
    updated_at: DateTime(default=utc_now)

    @invariant.post
    def options_must_belong_to_a_category(self):
        category_ids = {c.id for c in self.option_categories}
        for option in self.options:
            if option.category_id not in category_ids:
                raise ValidationError({"options": [f"Option '{option.name}' references an unknown category"]})

    @invariant.post
    def categories_must_offer_options(self):
        for category in self.option_categories:
            if not any(o.category_id == category.id for o in self.options):
                raise ValidationError({"option_categories": [f"Category '{category.name}' has no options"]})

    @classmethod
    def create(cls, shop_id, name, price, stock=0, description=None, image_url=None, option_categories=None):
        from orderease.product.events import ProductCreated

        if stock is None or stock < 0:
            raise ValidationFailed("Stock cannot be negative", field="stock")

        now = utc_now()
        product = cls(
            shop_id=shop_id,
            name=sanitize(name),
            description=sanitize(description),
            price=Price.parse(price).amount,
            stock=stock,
            image_url=image_url,
            status=ProductStatus.PENDING.value,
            created_at=now,
            updated_at=now,
        )
        if option_categories:
            product._build_option_graph(_normalize_option_graph(option_categories))

        product.raise_(
            ProductCreated(
                product_id=product.id,
                shop_id=shop_id,
                name=product.name,
                price=product.price,
                stock=product.stock,
                status=product.status,
                created_at=now,
            )
        )
        return product

    # ------------------------------------------------------------------
    # Option graph
    # ------------------------------------------------------------------
    def _build_option_graph(self, categories):
        """Add categories and options from normalized dicts (see ``_normalize_option_graph``)."""
        with atomic_change(self):
            for category_data in categories:
                category = ProductOptionCategory(
                    name=category_data["name"],
                    is_required=category_data["is_required"],
                    is_multiple=category_data["is_multiple"],
                    display_order=category_data["display_order"],
                )
                self.add_option_categories(category)
                for option_data in category_data["options"]:
                    self.add_options(ProductOption(category_id=category.id, **option_data))

    def replace_option_graph(self, categories_data):
        """Swap the whole option graph; existing orders keep their snapshots."""
        from orderease.product.events import ProductOptionsReplaced

        categories = _normalize_option_graph(categories_data or [])

        with atomic_change(self):
            for option in list(self.options):
                self.remove_options(option)
            for category in list(self.option_categories):
                self.remove_option_categories(category)
            self._build_option_graph(categories)

        self.updated_at = utc_now()
        self.raise_(ProductOptionsReplaced(product_id=self.id, shop_id=self.shop_id, categories=len(self.option_categories)))

    def category(self, category_id) -> ProductOptionCategory | None:
        return next((c for c in self.option_categories if str(c.id) == str(category_id)), None)

    def option(self, option_id) -> ProductOption | None:
        return next((o for o in self.options if str(o.id) == str(option_id)), None)

    def options_in(self, category_id) -> list[ProductOption]:
        return sorted(
            (o for o in self.options if str(o.category_id) == str(category_id)),
            key=lambda o: o.display_order,
        )

    def sorted_categories(self) -> list[ProductOptionCategory]:
        return sorted(self.option_categories, key=lambda c: c.display_order)

    # ------------------------------------------------------------------
    # Details
    # ------------------------------------------------------------------
    def update_details(self, name=None, description=None, price=None, stock=None, image_url=None):
        from orderease.product.events import ProductDetailsUpdated

        if name is not None:
            self.name = sanitize(name)
        if description is not None:
            self.description = sanitize(description)
        if price is not None:
            self.price = Price.parse(price).amount
        if stock is not None:
            if stock < 0:
                raise ValidationFailed("Stock cannot be negative", field="stock")
            self.stock = stock
        if image_url is not None:
            self.image_url = image_url

        self.updated_at = utc_now()
        self.raise_(
            ProductDetailsUpdated(
                product_id=self.id,
                shop_id=self.shop_id,
                name=self.name,
                price=self.price,
                stock=self.stock,
            )
        )

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------
    @property
    def is_online(self) -> bool:
        return self.status == ProductStatus.ONLINE.value

    def transition(self, new_status):
        from orderease.product.events import ProductStatusChanged

        try:
            target = ProductStatus(new_status)
        except ValueError:
            raise ValidationFailed(f"Unknown product status '{new_status}'", field="status") from None

        current = ProductStatus(self.status)
        if target not in _VALID_TRANSITIONS.get(current, set()):
            raise InvalidTransition(
                f"Cannot move product from '{current.value}' to '{target.value}'", field="status"
            )

        self.status = target.value
        now = utc_now()
        self.updated_at = now
        self.raise_(
            ProductStatusChanged(
                product_id=self.id,
                shop_id=self.shop_id,
                previous_status=current.value,
                new_status=target.value,
                changed_at=now,
            )
        )

    # ------------------------------------------------------------------
    # Stock
    # ------------------------------------------------------------------
    def decrease_stock(self, quantity: int):
        from orderease.product.events import StockDecreased

        if quantity is None or quantity < 1:
            raise ValidationFailed("Quantity must be at least 1", field="quantity")
        if self.stock < quantity:
            raise InsufficientStock(
                f"Insufficient stock for '{self.name}': {self.stock} available, {quantity} requested",
                field="stock",
            )

        self.stock -= quantity
        self.updated_at = utc_now()
        self.raise_(StockDecreased(product_id=self.id, shop_id=self.shop_id, quantity=quantity, remaining=self.stock))

    def restore_stock(self, quantity: int):
        from orderease.product.events import StockRestored

        if quantity is None or quantity < 1:
            raise ValidationFailed("Quantity must be at least 1", field="quantity")

        self.stock += quantity
        self.updated_at = utc_now()
        self.raise_(StockRestored(product_id=self.id, shop_id=self.shop_id, quantity=quantity, remaining=self.stock))


def _normalize_option_graph(categories_data) -> list[dict]:
    """Validate and sanitize raw option graph input.

    Each category dict holds ``name``, ``is_required``, ``is_multiple``,
    ``display_order`` and an ``options`` list whose dicts hold ``name``,
    ``price_adjustment``, ``display_order`` and ``is_default``.
    """
    if not isinstance(categories_data, list):
        raise ValidationFailed("Option categories must be a list", field="option_categories")

    categories = []
    for index, data in enumerate(categories_data):
        if not isinstance(data, dict) or not data.get("name"):
            raise ValidationFailed(f"Option category #{index + 1} needs a name", field="option_categories")

        options_data = data.get("options") or []
        if not isinstance(options_data, list) or not options_data:
            raise ValidationFailed(f"Category '{data['name']}' needs at least one option", field="options")

        options = []
        for position, option_data in enumerate(options_data):
            if not isinstance(option_data, dict) or not option_data.get("name"):
                raise ValidationFailed(f"Option #{position + 1} of '{data['name']}' needs a name", field="options")
            options.append(
                {
                    "name": sanitize(option_data["name"]),
                    "price_adjustment": round2(option_data.get("price_adjustment") or 0),
                    "display_order": int(option_data.get("display_order", position)),
                    "is_default": bool(option_data.get("is_default", False)),
                }
            )

        categories.append(
            {
                "name": sanitize(data["name"]),
                "is_required": bool(data.get("is_required", False)),
                "is_multiple": bool(data.get("is_multiple", False)),
                "display_order": int(data.get("display_order", index)),
                "options": options,
            }
        )
    return categories
