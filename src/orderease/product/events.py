"""Domain events for the Product aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from orderease.domain import orderease


@orderease.event(part_of="Product")
class ProductCreated:
    """A product was added to a shop's catalogue in pending status."""

    __version__ = 1

    product_id: Identifier(required=True)
    shop_id: Identifier(required=True)
    name: String(required=True)
    price: Float(required=True)
    stock: Integer(required=True)
    status: String(required=True)
    created_at: DateTime(required=True)


@orderease.event(part_of="Product")
class ProductDetailsUpdated:
    __version__ = 1

    product_id: Identifier(required=True)
    shop_id: Identifier(required=True)
    name: String(required=True)
    price: Float(required=True)
    stock: Integer(required=True)


@orderease.event(part_of="Product")
class ProductOptionsReplaced:
    """The option categories and options of a product were rebuilt."""

    __version__ = 1

    product_id: Identifier(required=True)
    shop_id: Identifier(required=True)
    categories: Integer(required=True)


@orderease.event(part_of="Product")
class ProductStatusChanged:
    __version__ = 1

    product_id: Identifier(required=True)
    shop_id: Identifier(required=True)
    previous_status: String(required=True)
    new_status: String(required=True)
    changed_at: DateTime(required=True)


@orderease.event(part_of="Product")
class StockDecreased:
    """Stock was reserved by an order."""

    __version__ = 1

    product_id: Identifier(required=True)
    shop_id: Identifier(required=True)
    quantity: Integer(required=True)
    remaining: Integer(required=True)


@orderease.event(part_of="Product")
class StockRestored:
    """Stock came back from an order that entered a restocking status."""

    __version__ = 1

    product_id: Identifier(required=True)
    shop_id: Identifier(required=True)
    quantity: Integer(required=True)
    remaining: Integer(required=True)
