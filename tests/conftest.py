from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from modules.accounts.models import Profile, Role
from modules.errands.models import ErrandCategory, ErrandSubcategory
from modules.stores.models import Product, Store, StoreCategory

User = get_user_model()

# Inside the Georgetown service zone, a short ride from ``store``.
GEORGETOWN = (6.8045, -58.1553)
# Region 3, outside every zone.
REGION_THREE = (6.40, -58.60)


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


def _make_user(username: str, role: str, full_name: str, phone: str = "", **extra):
    user = User.objects.create_user(username=username, password="testpass123", **extra)
    Profile.objects.create(user=user, full_name=full_name, phone=phone, role=role)
    return user


@pytest.fixture()
def customer():
    return _make_user("keisha", Role.CUSTOMER, "Keisha Williams", "592-600-1234")


@pytest.fixture()
def other_customer():
    return _make_user("marcus", Role.CUSTOMER, "Marcus Singh")


@pytest.fixture()
def driver():
    return _make_user("devon", Role.DRIVER, "Devon Persaud")


@pytest.fixture()
def other_driver():
    return _make_user("ravi", Role.DRIVER, "Ravi Ramdin")


@pytest.fixture()
def admin_user():
    return _make_user("ops", Role.ADMIN, "Ops Admin", is_staff=True)


@pytest.fixture()
def client_for():
    """Factory: ``client_for(user)`` returns an authenticated APIClient."""

    def _client(user):
        client = APIClient()
        client.force_authenticate(user=user)
        return client

    return _client


@pytest.fixture()
def store():
    return Store.objects.create(
        name="Demerara Kitchen",
        category=StoreCategory.RESTAURANT,
        address="Middle Street, Georgetown",
        latitude=6.8090,
        longitude=-58.1600,
        is_open=True,
    )


@pytest.fixture()
def product(store):
    return Product.objects.create(
        store=store,
        name="Chicken Curry",
        category="Mains",
        price=Decimal("1500.00"),
        is_available=True,
    )


@pytest.fixture()
def drink(store):
    return Product.objects.create(
        store=store,
        name="Coca Cola",
        category="Drinks",
        price=Decimal("300.00"),
        is_available=True,
    )


@pytest.fixture()
def errand_category():
    return ErrandCategory.objects.create(name="Medical", icon="💊")


@pytest.fixture()
def errand_subcategory(errand_category):
    return ErrandSubcategory.objects.create(
        category=errand_category,
        name="Prescription Pickup",
        base_price=Decimal("1500.00"),
    )
