import pytest

from rest_framework.test import APIClient


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture(autouse=True)
def _fresh_stores():
    """Each test starts with an empty order repository and an empty cache."""
    from django.core.cache import cache

    from modules.orders.repositories import get_order_repository

    get_order_repository.cache_clear()
    cache.clear()
    yield
    get_order_repository.cache_clear()
    cache.clear()


@pytest.fixture()
def order_repository():
    from modules.orders.repositories import get_order_repository

    return get_order_repository()


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def customer(django_user_model):
    return django_user_model.objects.create_user(username="uid-alice", password="testpass123")


@pytest.fixture()
def auth_client(customer):
    """APIClient force-authenticated as ``uid-alice``."""
    client = APIClient()
    client.force_authenticate(user=customer)
    return client


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid
