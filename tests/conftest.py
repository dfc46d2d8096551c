import os
from pathlib import Path

import pytest


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = str(Path(item.fspath))

        if "/domain/" in test_path:
            item.add_marker(pytest.mark.domain)
        elif "/application/" in test_path:
            item.add_marker(pytest.mark.application)
        elif "/bdd/" in test_path:
            item.add_marker(pytest.mark.bdd)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)
            # Integration tests are often slower
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


@pytest.fixture(scope="session")
def _orderease_domain(request):
    """Initialize the orderease domain once per session."""
    os.environ["PROTEAN_ENV"] = request.config.option.env

    from orderease.domain import orderease

    orderease.init()
    return orderease


@pytest.fixture(scope="session", autouse=True)
def setup_db(_orderease_domain):
    from orderease.utils.db import drop_db, setup_db

    setup_db(_orderease_domain)

    yield

    drop_db(_orderease_domain)


@pytest.fixture(autouse=True)
def run_around_tests(_orderease_domain):
    """Push domain context before each test, cleanup after."""
    ctx = _orderease_domain.domain_context()
    ctx.push()

    yield

    from protean import current_domain

    for _, provider in current_domain.providers.items():
        provider._data_reset()

    current_domain.event_store.store._data_reset()
    ctx.pop()


# ---------------------------------------------------------------------------
# Shared tenant fixtures
# ---------------------------------------------------------------------------
@pytest.fixture(scope="session")
def owner_password_hash():
    """A pre-hashed owner password; cheap rounds keep the suite fast."""
    import bcrypt

    return bcrypt.hashpw(b"secret123", bcrypt.gensalt(rounds=4, prefix=b"2a")).decode("ascii")


def _create_shop(name, owner_username, password_hash, **extra):
    from orderease.shop.management import CreateShop
    from protean.utils.globals import current_domain

    command = CreateShop(name=name, owner_username=owner_username, owner_password=password_hash, **extra)
    return current_domain.process(command, asynchronous=False)


@pytest.fixture()
def shop_id(owner_password_hash):
    return _create_shop("Corner Cafe", "cafe-owner", owner_password_hash)


@pytest.fixture()
def other_shop_id(owner_password_hash):
    return _create_shop("Harbour Bakery", "bakery-owner", owner_password_hash)


@pytest.fixture()
def user_id(shop_id):
    from orderease.user.management import CreateUser
    from protean.utils.globals import current_domain

    return current_domain.process(CreateUser(shop_id=shop_id, name="alice", phone="555-0101"), asynchronous=False)


@pytest.fixture()
def menu(shop_id):
    """An online latte priced 10.00 with five in stock.

    Its required single-choice "Size" category offers Large (+1.50) and
    Regular (+0.00); the optional multi-choice "Extras" category offers
    Syrup (+0.50) and Cream (+0.25).
    """
    import json

    from orderease.product.creation import CreateProduct
    from orderease.product.lifecycle import SetProductStatus
    from orderease.product.product import Product
    from protean.utils.globals import current_domain

    categories = [
        {
            "name": "Size",
            "is_required": True,
            "is_multiple": False,
            "options": [
                {"name": "Large", "price_adjustment": 1.5},
                {"name": "Regular", "price_adjustment": 0},
            ],
        },
        {
            "name": "Extras",
            "is_required": False,
            "is_multiple": True,
            "options": [
                {"name": "Syrup", "price_adjustment": "0.50"},
                {"name": "Cream", "price_adjustment": 0.25},
            ],
        },
    ]
    product_id = current_domain.process(
        CreateProduct(
            shop_id=shop_id,
            name="Latte",
            price=10.00,
            stock=5,
            description="Espresso with steamed milk",
            image_url="https://img.example/latte.png",
            option_categories=json.dumps(categories),
        ),
        asynchronous=False,
    )
    current_domain.process(SetProductStatus(shop_id=shop_id, product_id=product_id, status="online"), asynchronous=False)

    product = current_domain.repository_for(Product).get(product_id)
    options = {o.name: str(o.id) for o in product.options}
    size = next(c for c in product.option_categories if c.name == "Size")
    extras = next(c for c in product.option_categories if c.name == "Extras")
    return {
        "product_id": product_id,
        "size_id": str(size.id),
        "extras_id": str(extras.id),
        **{name.lower(): option_id for name, option_id in options.items()},
    }
