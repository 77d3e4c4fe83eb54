"""Unit tests for the admin, menu and health endpoints."""
import pytest

from cafe_ordering.api import auth
from cafe_ordering.db.models import OrderStatus
from cafe_ordering.services.agent.state import OrderState
from cafe_ordering.services.ordering.models import OrderLine, PreparationArea
from cafe_ordering.services.persistence.orders import OrderDraft, OrderPersistenceService


@pytest.fixture
async def stored_order(test_db):
    """One finalized order in the test database."""
    state = OrderState(
        call_id="CA600",
        caller_phone="+5215550006666",
        customer_name="Sofía",
        items=[OrderLine(name="Brownie", unit_price=2.75, preparation_area=PreparationArea.BAR)],
    )
    return await OrderPersistenceService(test_db).write_order(OrderDraft.from_state(state))


class TestAdminAuth:
    """Test the X-API-Key check."""

    def test_valid_key(self):
        assert auth.is_valid_admin_key("test-admin-key") is True

    def test_invalid_or_missing_key(self):
        assert auth.is_valid_admin_key("wrong") is False
        assert auth.is_valid_admin_key(None) is False
        assert auth.is_valid_admin_key("") is False

    def test_no_configured_key_rejects_everything(self, monkeypatch):
        monkeypatch.setattr(auth.settings, "admin_api_key", "")
        assert auth.is_valid_admin_key("test-admin-key") is False


class TestOrdersApi:
    """Test order admin endpoints."""

    def test_active_orders(self, test_client, stored_order):
        response = test_client.get("/api/orders/active")

        assert response.status_code == 200
        orders = response.json()
        assert len(orders) == 1
        assert orders[0]["id"] == stored_order.id
        assert orders[0]["status"] == OrderStatus.RECEIVED
        assert orders[0]["items"][0]["item_name"] == "Brownie"

    def test_update_status_requires_key(self, test_client, stored_order):
        response = test_client.put(
            f"/api/orders/{stored_order.id}/status", json={"status": OrderStatus.READY_TO_SERVE}
        )
        assert response.status_code == 401

        response = test_client.put(
            f"/api/orders/{stored_order.id}/status",
            json={"status": OrderStatus.READY_TO_SERVE},
            headers={"X-API-Key": "wrong"},
        )
        assert response.status_code == 401

    def test_update_status(self, test_client, stored_order, admin_headers):
        response = test_client.put(
            f"/api/orders/{stored_order.id}/status",
            json={"status": OrderStatus.READY_TO_SERVE},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json()["status"] == OrderStatus.READY_TO_SERVE

    def test_update_status_invalid(self, test_client, stored_order, admin_headers):
        response = test_client.put(
            f"/api/orders/{stored_order.id}/status", json={"status": "lost"}, headers=admin_headers
        )
        assert response.status_code == 400

    def test_update_status_unknown_order(self, test_client, admin_headers):
        response = test_client.put(
            "/api/orders/9999/status", json={"status": OrderStatus.COMPLETED}, headers=admin_headers
        )
        assert response.status_code == 404

    def test_advance_until_completed(self, test_client, stored_order, admin_headers):
        url = f"/api/orders/{stored_order.id}/advance"

        statuses = [test_client.post(url, headers=admin_headers).json()["status"] for _ in range(3)]

        assert statuses == [OrderStatus.IN_PREPARATION, OrderStatus.READY_TO_SERVE, OrderStatus.COMPLETED]
        assert test_client.get("/api/orders/active").json() == []

    def test_reset(self, test_client, stored_order, admin_headers):
        assert test_client.post("/api/orders/reset").status_code == 401

        response = test_client.post("/api/orders/reset", headers=admin_headers)

        assert response.status_code == 200
        assert response.json() == {"orders_deleted": 1}


class TestMenuAndHealth:
    """Test public read endpoints."""

    def test_get_menu(self, test_client):
        response = test_client.get("/api/menu")

        assert response.status_code == 200
        items = response.json()["items"]
        assert len(items) == 6
        latte = next(item for item in items if item["name"] == "Latte")
        assert latte["price"] == 3.75
        assert latte["preparation_area"] == "bar"

    def test_health(self, test_client):
        test_client.post("/webhooks/voice/conversation", data={"CallSid": "CA700", "Caller": "+1"})

        response = test_client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "active_calls": 1}
