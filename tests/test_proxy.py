"""
Tests for the forwarding proxy.
"""

import json

import httpx
from fastapi.testclient import TestClient

from config.settings import Settings
from main import create_app


def _proxy_client(tmp_path, handler, **overrides) -> TestClient:
    values = dict(
        _env_file=None,
        data_dir=str(tmp_path),
        frontend_dir=str(tmp_path / "no-frontend"),
        backend_url="https://backend.test/",
        backend_secret="shh",
    )
    values.update(overrides)
    app = create_app(Settings(**values))
    app.state.proxy_transport = httpx.MockTransport(handler)
    return TestClient(app)


class TestProxy:
    def test_forwards_with_secret_headers(self, tmp_path):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["url"] = str(request.url)
            captured["headers"] = request.headers
            captured["body"] = json.loads(request.content)
            return httpx.Response(201, json={"explanation": "ok", "mode": "explain"})

        client = _proxy_client(tmp_path, handler)
        response = client.post("/api/proxy", json={"code": "x = 1"})

        assert response.status_code == 201
        assert response.json() == {"explanation": "ok", "mode": "explain"}
        assert response.headers["content-type"].startswith("application/json")
        assert captured["url"] == "https://backend.test/explain"
        assert captured["headers"]["authorization"] == "Bearer shh"
        assert captured["headers"]["x-api-key"] == "shh"
        assert captured["body"] == {"code": "x = 1"}

    def test_no_secret_no_auth_headers(self, tmp_path):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["headers"] = request.headers
            return httpx.Response(200, json={})

        client = _proxy_client(tmp_path, handler, backend_secret="")
        client.post("/api/proxy", json={})
        assert "authorization" not in captured["headers"]
        assert "x-api-key" not in captured["headers"]

    def test_relays_backend_errors(self, tmp_path):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(403, json={"error": "Unauthorized"})

        response = _proxy_client(tmp_path, handler).post("/api/proxy", json={"code": "x"})
        assert response.status_code == 403
        assert response.json() == {"error": "Unauthorized"}

    def test_connection_failure(self, tmp_path):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        response = _proxy_client(tmp_path, handler).post("/api/proxy", json={"code": "x"})
        assert response.status_code == 500
        assert response.json()["error"] == "proxy_error"
        assert "refused" in response.json()["details"]

    def test_invalid_json_body(self, tmp_path):
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("backend must not be called")

        response = _proxy_client(tmp_path, handler).post(
            "/api/proxy", content=b"{not json", headers={"content-type": "application/json"}
        )
        assert response.status_code == 500
        assert response.json()["error"] == "proxy_error"

    def test_only_post_allowed(self, tmp_path):
        client = _proxy_client(tmp_path, lambda request: httpx.Response(200))
        response = client.get("/api/proxy")
        assert response.status_code == 405
        assert "error" in response.json()
