"""Tests for the application surface: general routes, tracing, metrics and error rendering."""

from __future__ import annotations

import pytest
from fastapi import APIRouter
from fastapi.testclient import TestClient

from vinylmatch import __version__
from vinylmatch.app import create_app
from vinylmatch.core.matching import ComponentNotFound, InvalidComponentCombination


@pytest.fixture
def client() -> TestClient:
    """Create test client."""
    app = create_app()

    # Routes that raise engine errors, to exercise the exception handler
    router = APIRouter(prefix="/test-errors")

    @router.get("/not-found")
    async def not_found() -> None:
        raise ComponentNotFound("Cartridge", "abc")

    @router.get("/combination")
    async def combination() -> None:
        raise InvalidComponentCombination("Bad pair")

    app.include_router(router)
    return TestClient(app)


def test_root_endpoint(client: TestClient) -> None:
    """Test root endpoint returns the service banner."""
    response = client.get("/api/")

    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "vinylmatch component matcher"
    assert data["version"] == __version__
    assert data["status"] == "ok"


def test_health_endpoint(client: TestClient) -> None:
    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


class TestTracing:
    """X-Trace-ID handling by TracingMiddleware."""

    def test_generated_trace_id_matches_body(self, client: TestClient) -> None:
        response = client.get("/api/")

        trace_id = response.headers["X-Trace-ID"]
        assert len(trace_id) == 32
        assert response.json()["trace_id"] == trace_id

    def test_incoming_trace_id_is_kept(self, client: TestClient) -> None:
        response = client.get("/api/health", headers={"X-Trace-ID": "caller-supplied-id"})

        assert response.headers["X-Trace-ID"] == "caller-supplied-id"
        assert response.json()["trace_id"] == "caller-supplied-id"

    def test_each_request_gets_its_own_trace_id(self, client: TestClient) -> None:
        first = client.get("/api/").headers["X-Trace-ID"]
        second = client.get("/api/").headers["X-Trace-ID"]

        assert first != second


class TestMatchingErrorHandler:
    """Rendering of MatchingError subclasses."""

    def test_not_found_is_404(self, client: TestClient) -> None:
        response = client.get("/test-errors/not-found", headers={"X-Trace-ID": "err-trace"})

        assert response.status_code == 404
        data = response.json()
        assert data["error"] == "COMPONENT_NOT_FOUND"
        assert data["detail"] == "Cartridge not found: abc"
        assert data["suggestion"] == "Check that the cartridge id is correct"
        assert data["details"] == {"component": "Cartridge", "id": "abc"}
        assert data["trace_id"] == "err-trace"

    def test_combination_is_400_without_details(self, client: TestClient) -> None:
        response = client.get("/test-errors/combination")

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "INVALID_COMBINATION"
        assert "details" not in data
        assert "suggestion" not in data


def test_metrics_endpoint(client: TestClient) -> None:
    """Test Prometheus metrics endpoint exists and reports requests."""
    client.get("/api/")

    response = client.get("/metrics")

    assert response.status_code == 200
    assert "text/plain" in response.headers["content-type"]
    assert "http_requests_total" in response.text or "http_request_duration" in response.text
    assert 'handler="/api/"' in response.text


def test_metrics_not_mounted_under_base_url(isolated_data_dir, monkeypatch) -> None:
    """Test the mounted app leaves /metrics to the root app."""
    from vinylmatch.core.config import reload_settings

    monkeypatch.setenv("VINYLMATCH_HOST_BASE_URL", "/vinylmatch")
    reload_settings()

    client = TestClient(create_app())

    assert client.get("/metrics").status_code == 404
    assert client.get("/api/health").status_code == 200


def test_mount_under_base_url(monkeypatch) -> None:
    """Test the API moves under the base URL while /health and /metrics stay at the root."""
    from vinylmatch.app import mount_under_base_url
    from vinylmatch.core.config import reload_settings

    monkeypatch.setenv("VINYLMATCH_HOST_BASE_URL", "/vinylmatch")
    reload_settings()

    client = TestClient(mount_under_base_url(create_app(), "/vinylmatch"))

    assert client.get("/health").json()["status"] == "healthy"
    assert client.get("/vinylmatch/api/health").status_code == 200
    assert client.get("/api/health").status_code == 404
    assert client.get("/metrics").status_code == 200
