import pytest
from fastapi.testclient import TestClient

from cart_service.core.config import Settings
from cart_service.dependencies import build_services
from cart_service.main import create_app
from tests.fakes import FakeAdmin, FakeCatalog, FakeStorefront


@pytest.fixture()
def settings():
    return Settings(
        _env_file=None,
        availability_max_attempts=2,
        availability_delay_seconds=0.0,
    )


@pytest.fixture()
def admin():
    return FakeAdmin()


@pytest.fixture()
def storefront():
    return FakeStorefront()


@pytest.fixture()
def catalog():
    return FakeCatalog()


@pytest.fixture()
def services(settings, admin, storefront, catalog):
    return build_services(settings, admin=admin, storefront=storefront, catalog=catalog)


@pytest.fixture()
def client(settings, services):
    return TestClient(create_app(settings, services))
