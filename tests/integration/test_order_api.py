"""Integration tests for the Order API endpoints.

Covers:
- Grouped overview via GET /api/v1/orders/.
- Detail via GET /api/v1/orders/{id}/ with the ownership check.
- Cached fallback and 503 when the order store is unreachable.
- Authentication enforcement (401 without token).
"""

from __future__ import annotations

import pytest

from modules.orders.exceptions import OrderRepositoryError

pytestmark = pytest.mark.integration

ORDERS_URL = "/api/v1/orders/"


def detail_url(order_id: str) -> str:
    return f"{ORDERS_URL}{order_id}/"


@pytest.fixture()
def alice_orders(order_repository):
    return {
        "processing": order_repository.create(
            {"userId": "uid-alice", "status": "processing", "productTitle": "VIP Cabin", "total": "₦154,000"}
        ),
        "delivered": order_repository.create(
            {"userId": "uid-alice", "status": "delivered", "price": 98000}
        ),
        "cancelled": order_repository.create(
            {"userId": "uid-alice", "status": "cancelled_by_admin"}
        ),
        "rental": order_repository.create(
            {"userId": "uid-alice", "status": "waiting_admin_price", "type": "rent", "rentalStartDate": "2026-12-20"}
        ),
    }


class TestListOrders:
    def test_requires_authentication(self, api_client):
        response = api_client.get(ORDERS_URL)
        assert response.status_code == 401

    def test_groups_and_badge(self, auth_client, alice_orders, order_repository):
        order_repository.create({"userId": "uid-bob", "status": "processing"})

        response = auth_client.get(ORDERS_URL)

        assert response.status_code == 200
        data = response.json()
        assert {o["id"] for o in data["groups"]["active"]} == {
            alice_orders["processing"],
            alice_orders["rental"],
        }
        assert [o["id"] for o in data["groups"]["past"]] == [alice_orders["delivered"]]
        assert [o["id"] for o in data["groups"]["cancelled"]] == [alice_orders["cancelled"]]
        assert data["badge_count"] == 2
        assert data["stale"] is False

    def test_render_fields(self, auth_client, alice_orders):
        data = auth_client.get(ORDERS_URL).json()
        by_id = {o["id"]: o for o in data["groups"]["active"]}

        cabin = by_id[alice_orders["processing"]]
        assert cabin["label"] == "VIP Cabin"
        assert cabin["total_display"] == "NGN 154,000"
        assert cabin["stage_label"] == "Processing"

        rental = by_id[alice_orders["rental"]]
        assert rental["label"] == "Order"
        assert rental["total_display"] == "Amount unknown"
        assert rental["awaiting_price"] is True
        assert rental["rental"] == {"start": "2026-12-20", "end": "—"}

    def test_serves_stale_cache_when_store_is_down(self, auth_client, alice_orders, order_repository, monkeypatch):
        auth_client.get(ORDERS_URL)

        def offline(owner_id):
            raise OrderRepositoryError("unreachable")

        monkeypatch.setattr(order_repository, "list_by_owner", offline)
        response = auth_client.get(ORDERS_URL)

        assert response.status_code == 200
        assert response.json()["stale"] is True
        assert response.json()["badge_count"] == 2

    def test_store_down_without_cache_is_503(self, auth_client, order_repository, monkeypatch):
        def offline(owner_id):
            raise OrderRepositoryError("unreachable")

        monkeypatch.setattr(order_repository, "list_by_owner", offline)
        response = auth_client.get(ORDERS_URL)
        assert response.status_code == 503


class TestRetrieveOrder:
    def test_owner_sees_the_order(self, auth_client, alice_orders):
        response = auth_client.get(detail_url(alice_orders["delivered"]))
        assert response.status_code == 200
        data = response.json()
        assert data["bucket"] == "past"
        assert data["stage"] == 3
        assert data["is_paid"] is True
        assert data["total_display"] == "NGN 98,000"

    def test_missing_order_is_404(self, auth_client):
        assert auth_client.get(detail_url("nope")).status_code == 404

    def test_other_users_order_is_403_without_fields(self, auth_client, order_repository):
        order_id = order_repository.create(
            {"userId": "uid-bob", "status": "paid", "productTitle": "Secret Cabin"}
        )

        response = auth_client.get(detail_url(order_id))

        assert response.status_code == 403
        assert response.json() == {"detail": "You do not have access to this order."}

    def test_order_without_owner_is_403(self, auth_client, order_repository):
        order_id = order_repository.create({"status": "paid"})
        assert auth_client.get(detail_url(order_id)).status_code == 403


class TestJwtIdentity:
    def test_token_username_is_the_order_owner(self, api_client, customer, alice_orders):
        token = api_client.post(
            "/api/v1/auth/token/",
            {"username": "uid-alice", "password": "testpass123"},
            format="json",
        ).json()["access"]

        api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
        response = api_client.get(ORDERS_URL)

        assert response.status_code == 200
        assert response.json()["badge_count"] == 2
