from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from catalogue.product.product import ProductCatalog
from identity.user.user import UserDirectory, UserRole
from notifications.channel import reset_channels, set_channel
from notifications.channel.fake_email import FakeEmailAdapter
from notifications.notification.notification import NotificationChannel
from ordering.cart.store import CartStore
from ordering.order.engine import OrderLifecycleEngine
from ordering.order.hooks import OrderHooks
from ordering.order.store import OrderStore
from payments.gateway import GatewayRegistry
from payments.gateway.fake_adapter import FakeGateway
from protean.integrations.pytest import DomainFixture
from shared.config import Settings
from shared.db import build_engine, build_session_factory, drop_db, reset_db, setup_db


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = Path(item.fspath)

        if "/bdd/" in str(test_path):
            item.add_marker(pytest.mark.bdd)
        elif "/domain/" in str(test_path):
            item.add_marker(pytest.mark.domain)
        elif "/application/" in str(test_path):
            item.add_marker(pytest.mark.application)
        elif "/integration/" in str(test_path):
            item.add_marker(pytest.mark.integration)
            # Integration tests are often slower
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


# ---------------------------------------------------------------------------
# Infrastructure
# ---------------------------------------------------------------------------
@pytest.fixture(scope="session")
def settings():
    return Settings(
        _env_file=None,
        env="test",
        database_url="sqlite://",
        default_payment_method="fake",
        app_origin="http://shop.test",
    )


@pytest.fixture(scope="session")
def db_engine(tmp_path_factory):
    engine = build_engine(f"sqlite:///{tmp_path_factory.mktemp('db') / 'storefront.db'}")
    setup_db(engine)
    yield engine
    drop_db(engine)
    engine.dispose()


@pytest.fixture()
def session_factory(db_engine):
    yield build_session_factory(db_engine)
    reset_db(db_engine)


@pytest.fixture()
def session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture(scope="session")
def notifications_bed():
    from notifications.domain import notifications

    bed = DomainFixture(notifications)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _notifications_ctx(notifications_bed):
    """Run every test inside the Notifications domain and clear its stores after."""
    with notifications_bed.domain_context():
        yield

        from protean import current_domain

        for _, provider in current_domain.providers.items():
            provider._data_reset()
        current_domain.event_store.store._data_reset()


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------
@pytest.fixture()
def gateway():
    return FakeGateway()


@pytest.fixture()
def gateways(gateway):
    return GatewayRegistry({"fake": gateway})


@pytest.fixture()
def email():
    adapter = FakeEmailAdapter()
    set_channel(NotificationChannel.EMAIL.value, adapter)
    yield adapter
    reset_channels()


@pytest.fixture()
def catalog(session):
    return ProductCatalog(session)


@pytest.fixture()
def users(session):
    return UserDirectory(session)


@pytest.fixture()
def carts(session, catalog):
    return CartStore(session, catalog)


@pytest.fixture()
def orders(session):
    return OrderStore(session)


@pytest.fixture()
def hooks(email):
    return OrderHooks(currency="NGN")


@pytest.fixture()
def engine(orders, carts, catalog, users, gateways, hooks):
    return OrderLifecycleEngine(
        orders=orders,
        carts=carts,
        catalog=catalog,
        users=users,
        gateways=gateways,
        hooks=hooks,
        default_payment_method="fake",
    )


# ---------------------------------------------------------------------------
# Seed data
# ---------------------------------------------------------------------------
@pytest.fixture()
def customer(users):
    return users.register(email="ada@example.com", name="Ada Obi")


@pytest.fixture()
def other_customer(users):
    return users.register(email="tunde@example.com", name="Tunde Bello")


@pytest.fixture()
def admin(users):
    return users.register(email="admin@example.com", name="Admin", role=UserRole.ADMIN)


@pytest.fixture()
def products(catalog):
    return {
        "shirt": catalog.add(name="Ankara Print Shirt", price=15000.0),
        "sandals": catalog.add(name="Leather Sandals", price=22000.0),
        "tote": catalog.add(name="Woven Tote Bag", price=12000.0, out_of_stock=True),
    }


@pytest.fixture()
def shipping_address():
    return {
        "first_name": "Ada",
        "last_name": "Obi",
        "address": "12 Marina Road",
        "city": "Lagos",
        "state": "Lagos",
        "country": "Nigeria",
        "zip_code": "101001",
        "phone": "+2348012345678",
    }


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------
@pytest.fixture()
def app(settings, session_factory, gateways, email):
    from app import create_app

    return create_app(settings=settings, session_factory=session_factory, gateways=gateways, email=email)


@pytest.fixture()
def client(app):
    with TestClient(app) as client:
        yield client
