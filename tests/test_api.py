"""Tests for the RepoDeck HTTP API."""

import asyncio
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from src.api import create_app
from src.errors.exceptions import AuthRejected
from src.github.provider import ProviderError
from src.settings import Settings

from conftest import MASTER_KEY, OTHER_TOKEN, VALID_TOKEN, StubProviderFactory, make_pages


def _settings(**overrides) -> Settings:
    values = {
        "database_url": "sqlite://",
        "encryption_key": MASTER_KEY,
        "cache_sweep_interval_seconds": 60,
    }
    values.update(overrides)
    return Settings(**values)


class TestHealth:

    @pytest.fixture
    def client(self):
        app = create_app(settings=_settings(), provider_factory=StubProviderFactory(make_pages(1)))
        with TestClient(app) as client:
            yield client

    def test_health_endpoint(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "ok"
        assert data["components"] == {"database": "ok", "cache": "ok"}

    def test_database_check_runs_off_the_event_loop(self, client):
        calls = []
        real_to_thread = asyncio.to_thread

        async def spy(func, *args, **kwargs):
            calls.append(func.__name__)
            return await real_to_thread(func, *args, **kwargs)

        with patch("src.api.app.asyncio.to_thread", side_effect=spy):
            resp = client.get("/health")
        assert resp.status_code == 200
        assert "_component_status" in calls

    def test_database_failure_is_degraded(self, client):
        with patch("src.api.app.text", side_effect=RuntimeError("down")):
            data = client.get("/health").json()
        assert data["status"] == "degraded"
        assert data["components"]["database"] == "error: RuntimeError"

    def test_request_id_is_echoed(self, client):
        resp = client.get("/health", headers={"X-Request-ID": "req-123"})
        assert resp.headers["X-Request-ID"] == "req-123"
        assert resp.headers["X-Correlation-ID"] == "req-123"

    def test_request_id_is_generated(self, client):
        resp = client.get("/health")
        assert resp.headers.get("X-Request-ID")


class TestCredentialRoutes:

    @pytest.fixture
    def client(self):
        app = create_app(settings=_settings(), provider_factory=StubProviderFactory(make_pages(1)))
        with TestClient(app) as client:
            yield client

    def test_status_without_credentials(self, client):
        resp = client.get("/api/credentials")
        assert resp.status_code == 200
        assert resp.json() == {"exists": False, "message": "No credentials found"}

    def test_save_and_status(self, client):
        resp = client.post("/api/credentials", json={"token": VALID_TOKEN})
        assert resp.status_code == 200
        assert resp.json() == {"success": True, "message": "Credentials saved successfully"}

        resp = client.get("/api/credentials")
        assert resp.json() == {"exists": True, "message": "Credentials configured"}
        assert VALID_TOKEN not in resp.text

    def test_missing_token(self, client):
        resp = client.post("/api/credentials", json={})
        assert resp.status_code == 400
        error = resp.json()["error"]
        assert error["code"] == "MISSING_REQUIRED_FIELD"
        assert error["message"] == "Token is required"

    def test_invalid_token_format(self, client):
        resp = client.post("/api/credentials", json={"token": "ghp_tooShort"})
        assert resp.status_code == 400
        error = resp.json()["error"]
        assert error["code"] == "INVALID_TOKEN_FORMAT"
        assert error["details"] == [{"field": "token", "issue": error["message"]}]
        assert client.get("/api/credentials").json()["exists"] is False

    def test_overwrite(self, client):
        client.post("/api/credentials", json={"token": VALID_TOKEN})
        resp = client.post("/api/credentials", json={"token": OTHER_TOKEN})
        assert resp.status_code == 200
        store = client.app.state.container.store
        assert store.count("default") == 1
        assert store.get("default") == OTHER_TOKEN

    def test_delete_is_idempotent(self, client):
        client.post("/api/credentials", json={"token": VALID_TOKEN})
        for _ in range(2):
            resp = client.delete("/api/credentials")
            assert resp.status_code == 200
            assert resp.json()["message"] == "Credentials deleted successfully"
        assert client.get("/api/credentials").json()["exists"] is False


class TestRepositoryRoutes:

    def _client(self, script):
        self.factory = StubProviderFactory(script)
        app = create_app(settings=_settings(), provider_factory=self.factory)
        return TestClient(app)

    def test_requires_credentials(self):
        with self._client(make_pages(1)) as client:
            resp = client.get("/api/repositories")
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "NO_CREDENTIALS"

    def test_fetch_cache_and_refresh(self):
        with self._client(make_pages(100, 40)) as client:
            client.post("/api/credentials", json={"token": VALID_TOKEN})

            first = client.get("/api/repositories")
            assert first.status_code == 200
            body = first.json()
            assert body["success"] is True
            assert body["count"] == 140
            assert len(body["repositories"]) == 140
            assert body["cached"] is False
            assert body["cached_at"] is None
            assert body["truncated"] is False
            assert first.headers["Cache-Control"] == "private, max-age=300"
            assert body["repositories"][0]["full_name"] == "octocat/repo-0"

            second = client.get("/api/repositories")
            assert second.json()["cached"] is True
            assert second.json()["cached_at"] is not None
            assert second.json()["repositories"] == body["repositories"]
            assert self.factory.request_count == 2

            third = client.get("/api/repositories?refresh=true")
            assert third.json()["cached"] is False
            assert self.factory.request_count == 4

    def test_bad_credentials(self):
        with self._client([ProviderError("HTTP 401", status=401, messages=["Bad credentials"])]) as client:
            client.post("/api/credentials", json={"token": VALID_TOKEN})
            resp = client.get("/api/repositories")
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "BAD_CREDENTIALS"
        assert resp.json()["error"]["message"] == AuthRejected().message

    def test_rate_limited(self):
        error = ProviderError("x", error_types=["RATE_LIMITED"])
        with self._client([error]) as client:
            client.post("/api/credentials", json={"token": VALID_TOKEN})
            resp = client.get("/api/repositories")
        assert resp.status_code == 429
        assert resp.headers["Retry-After"] == "3600"
        assert resp.json()["error"]["retry_after"] == 3600

    def test_unknown_upstream_failure(self):
        with self._client([ProviderError("teapot", status=418)]) as client:
            client.post("/api/credentials", json={"token": VALID_TOKEN})
            resp = client.get("/api/repositories")
        assert resp.status_code == 502
        assert resp.json()["error"]["code"] == "FETCH_ERROR"

    def test_error_body_never_contains_token(self):
        with self._client([ProviderError("x", status=500)]) as client:
            client.post("/api/credentials", json={"token": VALID_TOKEN})
            resp = client.get("/api/repositories")
        assert VALID_TOKEN not in resp.text


class TestLifecycle:

    def test_shutdown_destroys_cache(self):
        app = create_app(settings=_settings(), provider_factory=StubProviderFactory(make_pages(1)))
        with TestClient(app):
            cache = app.state.container.cache
            assert cache.destroyed is False
        assert cache.destroyed is True
