import pytest


class TestHealthCheck:
    def test_health_check_returns_200(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "timestamp" in data
        assert "services" in data

    @pytest.mark.parametrize("service", ["database", "cache", "order_store"])
    def test_health_check_reports_service_status(self, client, service):
        data = client.get("/health").json()
        assert data["services"][service]["status"] == "up"
        assert "response_time_ms" in data["services"][service]

    def test_unreachable_order_store_is_unhealthy(self, client, order_repository, monkeypatch):
        def offline(order_id):
            raise ConnectionError("firestore unreachable")

        monkeypatch.setattr(order_repository, "get_by_id", offline)
        response = client.get("/health")

        assert response.status_code == 503
        assert response.json()["services"]["order_store"] == {"status": "down"}

    def test_middleware_stack_works_without_sessions(self, settings, client):
        if "django.contrib.auth.middleware.AuthenticationMiddleware" in settings.MIDDLEWARE:
            assert "django.contrib.sessions.middleware.SessionMiddleware" in settings.MIDDLEWARE
        assert client.get("/health").status_code == 200
