from datetime import datetime

import pytest
from fastapi import status
from fastapi.testclient import TestClient

API = "/api/v1"


class TestHealth:
    def test_health(self, client):
        response = client.get(f"{API}/health")
        assert response.status_code == status.HTTP_200_OK
        assert response.headers["content-type"].startswith("application/json")
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "API is healthy"
        assert body["data"]["version"] == "1.0.0"
        datetime.fromisoformat(body["data"]["timestamp"])


class TestErrorEnvelope:
    @pytest.mark.parametrize("method, path", [
        ("get", f"{API}/nonexistent"),
        ("get", "/api/v2/health"),
        ("get", f"{API}/auth/register"),
        ("put", f"{API}/posts/1"),
    ])
    def test_route_not_found(self, client, method, path):
        response = getattr(client, method)(path)
        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json() == {"success": False, "message": "Route not found"}

    def test_unhandled_error_is_hidden(self, app):
        def explode():
            raise RuntimeError("database password is hunter2")

        app.add_api_route(f"{API}/explode", explode)
        with TestClient(app) as client:
            response = client.get(f"{API}/explode")
        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.json() == {"success": False, "message": "Internal server error"}
        assert "hunter2" not in response.text

    def test_cors_headers(self, client):
        response = client.get(f"{API}/health", headers={"Origin": "http://localhost:5173"})
        assert response.headers["access-control-allow-origin"] == "*"
