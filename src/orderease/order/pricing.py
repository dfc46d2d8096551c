"""Turn a customer's selection into priced, snapshotted line items.

Pricing law, per item::

    total = round2((unit_price + sum(option adjustments)) * quantity)

and the order total is ``round2`` of the sum of item totals. Computation
runs on ``Decimal`` and is rounded half-up to cents.
"""

import json
from dataclasses import dataclass, field

from orderease.shared.errors import ValidationFailed
from orderease.shared.price import Price, round2, to_decimal


@dataclass(frozen=True)
class OptionChoice:
    option_id: str
    category_id: str | None = None


@dataclass(frozen=True)
class ItemSelection:
    product_id: str
    quantity: int
    choices: tuple[OptionChoice, ...] = ()


@dataclass(frozen=True)
class PricedOption:
    category_id: str
    option_id: str
    category_name: str
    option_name: str
    price_adjustment: float


@dataclass(frozen=True)
class PricedItem:
    product_id: str
    quantity: int
    unit_price: float
    total_price: float
    product_name: str
    product_description: str | None = None
    product_image_url: str | None = None
    options: tuple[PricedOption, ...] = field(default_factory=tuple)


# ---------------------------------------------------------------------------
# Input decoding
# ---------------------------------------------------------------------------
def _choice(raw) -> OptionChoice:
    if isinstance(raw, dict):
        option_id = raw.get("option_id")
        if option_id in (None, ""):
            raise ValidationFailed("Each chosen option needs an option_id", field="items")
        category_id = raw.get("category_id")
        return OptionChoice(option_id=str(option_id), category_id=str(category_id) if category_id else None)
    if isinstance(raw, int | str) and not isinstance(raw, bool) and str(raw):
        return OptionChoice(option_id=str(raw))
    raise ValidationFailed(f"Invalid option choice: {raw!r}", field="items")


def parse_items(raw) -> list[ItemSelection]:
    """Decode order items from JSON or a list of dicts.

    Each item is ``{"product_id", "quantity", "options"}`` where ``options``
    lists ``{"category_id", "option_id"}`` dicts or bare option ids.
    """
    data = json.loads(raw) if isinstance(raw, str) else raw
    if not isinstance(data, list) or not data:
        raise ValidationFailed("An order needs at least one item", field="items")

    selections = []
    for index, entry in enumerate(data, start=1):
        if not isinstance(entry, dict) or entry.get("product_id") in (None, ""):
            raise ValidationFailed(f"Item #{index} needs a product_id", field="items")

        quantity = entry.get("quantity")
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise ValidationFailed(f"Item #{index} quantity must be a positive integer", field="items")

        options = entry.get("options") or []
        if not isinstance(options, list):
            raise ValidationFailed(f"Item #{index} options must be a list", field="items")

        selections.append(
            ItemSelection(
                product_id=str(entry["product_id"]),
                quantity=quantity,
                choices=tuple(_choice(option) for option in options),
            )
        )
    return selections


# ---------------------------------------------------------------------------
# Validation and pricing
# ---------------------------------------------------------------------------
def resolve_options(product, choices) -> list[PricedOption]:
    """Check a choice set against the product's categories and snapshot it.

    Every chosen option must exist on the product and, when the client names
    a category, belong to it. A non-multiple category takes at most one
    choice, a required category at least one.
    """
    chosen_by_category: dict[str, list] = {}
    seen = set()
    for choice in choices:
        option = product.option(choice.option_id)
        if option is None:
            raise ValidationFailed(
                f"Option {choice.option_id} is not offered by product '{product.name}'", field="options"
            )
        if choice.category_id is not None and str(option.category_id) != choice.category_id:
            raise ValidationFailed(
                f"Option '{option.name}' does not belong to category {choice.category_id}", field="options"
            )
        if option.id in seen:
            raise ValidationFailed(f"Option '{option.name}' was chosen twice", field="options")
        seen.add(option.id)
        chosen_by_category.setdefault(str(option.category_id), []).append(option)

    priced = []
    for category in product.sorted_categories():
        chosen = chosen_by_category.get(str(category.id), [])
        if category.is_required and not chosen:
            raise ValidationFailed(f"Missing choice for required category {category.name}", field="options")
        if not category.is_multiple and len(chosen) > 1:
            raise ValidationFailed(f"Category {category.name} allows only one choice", field="options")

        for option in sorted(chosen, key=lambda o: o.display_order):
            priced.append(
                PricedOption(
                    category_id=str(category.id),
                    option_id=str(option.id),
                    category_name=category.name,
                    option_name=option.name,
                    price_adjustment=round2(option.price_adjustment or 0),
                )
            )
    return priced


def item_total(unit_price, adjustments, quantity, name="the item") -> float:
    line = to_decimal(unit_price) + sum((to_decimal(a) for a in adjustments), to_decimal(0))
    if line < 0:
        raise ValidationFailed(f"Options bring the price of '{name}' below zero", field="options")
    return Price.of(line).multiply(quantity).amount


def price_item(product, selection: ItemSelection) -> PricedItem:
    options = resolve_options(product, selection.choices)
    unit_price = round2(product.price)
    total = item_total(unit_price, [o.price_adjustment for o in options], selection.quantity, name=product.name)

    return PricedItem(
        product_id=str(product.id),
        quantity=selection.quantity,
        unit_price=unit_price,
        total_price=total,
        product_name=product.name,
        product_description=product.description,
        product_image_url=product.image_url,
        options=tuple(options),
    )


def order_total(items) -> float:
    total = Price.of(0)
    for item in items:
        total = total.add(item.total_price)
    return total.amount
