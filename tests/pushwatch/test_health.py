"""Tests for ping and health endpoints."""

from unittest.mock import patch

from fastapi.testclient import TestClient


class TestPing:
    def test_ping(self, client: TestClient):
        response = client.get("/ping")

        assert response.status_code == 200
        assert response.json() == {"message": "pong"}

    def test_ping_sets_request_id(self, client: TestClient):
        response = client.get("/ping", headers={"X-Request-ID": "abc-123"})

        assert response.headers["X-Request-ID"] == "abc-123"

    def test_request_id_generated_when_absent(self, client: TestClient):
        response = client.get("/ping")

        assert response.headers["X-Request-ID"]


class TestHealth:
    def test_health_success(self, client: TestClient):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["db"] == {"ok": True, "details": "ok"}

    def test_health_degraded_when_db_down(self, client: TestClient):
        with patch(
            "services.pushwatch.app.api.v1.routers.health.check_database_health",
            return_value={"ok": False, "details": "connection refused"},
        ):
            response = client.get("/health")

        assert response.status_code == 503
        assert response.json()["status"] == "degraded"
        assert response.json()["db"]["details"] == "connection refused"


class TestMetrics:
    def test_metrics_exposed(self, client: TestClient):
        client.get("/ping")

        response = client.get("/metrics")

        assert response.status_code == 200
        assert "pushwatch_webhook_deliveries_total" in response.text


class TestErrorShape:
    def test_unknown_route_uses_error_field(self, client: TestClient):
        response = client.get("/nope")

        assert response.status_code == 404
        assert response.json() == {"error": "Not Found"}
