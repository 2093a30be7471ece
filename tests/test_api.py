"""Tests for the resource lookup and probe endpoints."""

import asyncio

import pytest
from fastapi.testclient import TestClient

from orchestrated_service import (
    BaseProcessor,
    EchoProcessor,
    FaultInjector,
    ServiceResponse,
    Settings,
    create_app,
)


def make_client(processor: BaseProcessor | None = None, **client_kwargs) -> TestClient:
    app = create_app(processor or EchoProcessor(), settings=Settings(_env_file=None))
    return TestClient(app, **client_kwargs)


def assert_no_cache(response):
    assert response.headers["cache-control"] == "no-cache"
    assert response.headers["pragma"] == "no-cache"
    assert response.headers["expires"] == "-1"
    assert response.headers["content-language"] == "en"
    assert "charset=utf-8" in response.headers["content-type"]


class BrokenProcessor(BaseProcessor):
    """Processor whose lookup fails with an unexpected error."""

    @property
    def name(self) -> str:
        return "broken-test"

    def perform_request(self, resource_id: str) -> ServiceResponse:
        raise RuntimeError("disk on fire")


class SyncProcessor(BaseProcessor):
    """Processor with a synchronous lookup."""

    @property
    def name(self) -> str:
        return "sync-test"

    def perform_request(self, resource_id: str) -> ServiceResponse:
        return ServiceResponse.ok(resource_id, "sync")


def test_lookup_success_body():
    """GET /42 returns the canned response with compact JSON."""
    client = make_client()

    response = client.get("/42")

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/json;charset=utf-8"
    assert response.content == b'{"ID":"42","Message":"Service running!","Status":"OK"}'
    assert_no_cache(response)


def test_lookup_echoes_percent_decoded_id():
    client = make_client()

    response = client.get("/hello%20world")

    assert response.status_code == 200
    assert response.json()["ID"] == "hello world"


def test_lookup_with_sync_processor():
    client = make_client(SyncProcessor())

    response = client.get("/abc")

    assert response.status_code == 200
    assert response.json() == {"ID": "abc", "Message": "sync", "Status": "OK"}


def test_liveness_probe():
    """GET /live returns 200 with an empty body, not the lookup response."""
    client = make_client()

    response = client.get("/live")

    assert response.status_code == 200
    assert response.content == b""
    assert response.headers["content-type"] == "application/json;charset=utf-8"
    assert_no_cache(response)


def test_readiness_probe():
    client = make_client()

    response = client.get("/ready")

    assert response.status_code == 200
    assert response.content == b""
    assert_no_cache(response)


def test_readiness_probe_fails_while_draining():
    client = make_client()
    client.app.state.accepting = False

    response = client.get("/ready")

    assert response.status_code == 503
    assert response.content == b""
    assert_no_cache(response)


def test_simulated_failure_returns_problem_document():
    """A fired fault yields an RFC 7807 body with a distinct content type."""
    client = make_client(EchoProcessor(fault_injector=FaultInjector(1.0)))

    response = client.get("/42")

    assert response.status_code == 500
    assert response.headers["content-type"] == "application/problem+json;charset=utf-8"
    data = response.json()
    assert set(data) == {"type", "title", "status", "detail", "instance"}
    assert data["status"] == 500
    assert data["title"] == "Service temporarily unavailable"
    assert data["instance"] == "/42"
    assert "42" in data["detail"]
    assert_no_cache(response)


def test_failing_dependency_affects_lookup_and_readiness():
    processor = EchoProcessor()
    processor.add_dependency_check("database", lambda: False)
    client = make_client(processor)

    ready = client.get("/ready")
    lookup = client.get("/42")

    assert ready.status_code == 503
    assert lookup.status_code == 500
    assert "database" in lookup.json()["detail"]


def test_async_dependency_check_passing():
    async def cache_check():
        await asyncio.sleep(0)
        return True

    processor = EchoProcessor()
    processor.add_dependency_check("cache", cache_check)
    client = make_client(processor)

    assert client.get("/ready").status_code == 200
    assert client.get("/1").status_code == 200


def test_unknown_route_still_carries_standard_headers():
    client = make_client()

    response = client.get("/a/b")

    assert response.status_code == 404
    assert response.headers["content-type"] == "application/json;charset=utf-8"
    assert_no_cache(response)


@pytest.mark.parametrize("path", ["/live", "/ready"])
@pytest.mark.parametrize("method", ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"])
def test_probes_answer_any_method(path, method):
    """Probes return 200 with an empty body whatever verb the orchestrator uses."""
    client = make_client()

    response = client.request(method, path)

    assert response.status_code == 200
    assert response.content == b""
    assert_no_cache(response)


def test_wrong_method_on_lookup():
    client = make_client()

    response = client.post("/42")

    assert response.status_code == 405
    assert_no_cache(response)


def test_unexpected_error_returns_problem_document_with_standard_headers():
    client = make_client(BrokenProcessor(), raise_server_exceptions=False)

    response = client.get("/42")

    assert response.status_code == 500
    assert response.headers["content-type"] == "application/problem+json;charset=utf-8"
    data = response.json()
    assert data["status"] == 500
    assert data["instance"] == "/42"
    assert "disk on fire" not in data["detail"]
    assert_no_cache(response)
