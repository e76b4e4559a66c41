# tests/test_routing.py
"""
Tests for request routing, origin enforcement and CORS handling.
"""
import pytest
from unittest.mock import patch, AsyncMock, MagicMock
from fastapi.testclient import TestClient

from app.api.routing import ROUTES, route_name_from_path
from app.main import app

client = TestClient(app)

ALLOWED = "https://app.centrifuge.io"
DISALLOWED = "https://evil.example.com"


class TestRouteNameFromPath:
    """Test route name extraction."""

    def test_last_segment(self):
        assert route_name_from_path("/api/pinning/pinFile") == "pinFile"

    def test_trailing_slash_ignored(self):
        assert route_name_from_path("/api/pinning/pinJson/") == "pinJson"

    def test_empty_path(self):
        assert route_name_from_path("/") is None
        assert route_name_from_path("") is None

    def test_route_table(self):
        assert set(ROUTES) == {"pinFile", "pinJson"}


class TestPreflight:
    """OPTIONS requests are never blocked."""

    def test_allowed_origin(self):
        response = client.options("/api/pinning/pinFile", headers={"Origin": ALLOWED})

        assert response.status_code == 204
        assert response.headers["access-control-allow-origin"] == ALLOWED
        assert response.headers["access-control-allow-methods"] == "GET, POST, OPTIONS"
        assert response.headers["access-control-allow-headers"] == "Content-Type"
        assert response.headers["access-control-max-age"] == "3600"

    def test_disallowed_origin_bare_204(self):
        response = client.options("/api/pinning/pinFile", headers={"Origin": DISALLOWED})

        assert response.status_code == 204
        assert "access-control-allow-origin" not in response.headers

    def test_missing_origin(self):
        response = client.options("/api/pinning/pinJson")

        assert response.status_code == 204
        assert "access-control-allow-origin" not in response.headers

    @pytest.mark.parametrize("path", ["/", "/unknown", "/api/pinning/pinFile"])
    def test_any_path(self, path):
        response = client.options(path, headers={"Origin": DISALLOWED})
        assert response.status_code == 204


class TestOriginEnforcement:
    """Non-preflight requests from disallowed origins get 405."""

    @pytest.mark.parametrize("path", ["/api/pinning/pinFile", "/api/pinning/pinJson", "/unknown", "/"])
    def test_disallowed_origin(self, path):
        response = client.post(path, json={"json": {"a": 1}}, headers={"Origin": DISALLOWED})

        assert response.status_code == 405
        assert response.text == "Not allowed"
        assert "access-control-allow-origin" not in response.headers

    def test_missing_origin(self):
        response = client.post("/api/pinning/pinJson", json={"json": {"a": 1}})

        assert response.status_code == 405

    def test_get_from_disallowed_origin(self):
        response = client.get("/api/pinning/pinFile", headers={"Origin": DISALLOWED})

        assert response.status_code == 405

    @patch("app.api.endpoints.pinning.get_pinning_client")
    def test_disallowed_origin_never_reaches_controller(self, mock_get_client):
        client.post("/api/pinning/pinJson", json={"json": {"a": 1}}, headers={"Origin": DISALLOWED})

        mock_get_client.assert_not_called()


class TestRouting:
    """Route matching for allowed origins."""

    def test_unknown_route(self):
        response = client.post("/api/pinning/unpin", json={}, headers={"Origin": ALLOWED})

        assert response.status_code == 404
        assert response.text == "Route not found"
        assert response.headers["access-control-allow-origin"] == ALLOWED

    def test_route_match_is_case_sensitive(self):
        response = client.post("/api/pinning/pinfile", json={}, headers={"Origin": ALLOWED})

        assert response.status_code == 404

    def test_empty_path(self):
        response = client.post("/", json={}, headers={"Origin": ALLOWED})

        assert response.status_code == 400
        assert response.text == "Bad request"
        assert response.headers["access-control-allow-origin"] == ALLOWED

    @patch("app.api.endpoints.pinning.get_pinning_client")
    def test_controller_response_gets_cors_headers(self, mock_get_client):
        pinning_client = MagicMock()
        pinning_client.pin_json.return_value = "QmTest1234567890"
        mock_get_client.return_value = pinning_client

        response = client.post("/api/pinning/pinJson", json={"json": {"a": 1}}, headers={"Origin": ALLOWED})

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == ALLOWED
        assert response.headers["access-control-allow-methods"] == "GET, POST, OPTIONS"
        assert response.headers["access-control-allow-headers"] == "Content-Type"
        assert "access-control-max-age" not in response.headers

    def test_uncaught_exception(self):
        """Errors escaping a controller become a generic 500."""
        failing = AsyncMock(side_effect=RuntimeError("secret detail"))
        with patch.dict(ROUTES, {"pinFile": failing}):
            response = client.post("/api/pinning/pinFile", json={}, headers={"Origin": ALLOWED})

        assert response.status_code == 500
        assert response.text == "An error occurred"
        assert "secret detail" not in response.text
        assert response.headers["access-control-allow-origin"] == ALLOWED
