from __future__ import annotations

import httpx
import pytest

from pagegen.app.dependencies import reset_engine_cache
from pagegen.app.main import app

pytestmark = pytest.mark.anyio


def get_client() -> httpx.AsyncClient:
    reset_engine_cache()
    transport = httpx.ASGITransport(app=app)
    return httpx.AsyncClient(transport=transport, base_url="http://test")


async def test_health_endpoint() -> None:
    async with get_client() as client:
        response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


async def test_generate_page_without_providers() -> None:
    async with get_client() as client:
        response = await client.post(
            "/generate",
            json={
                "query": "remodeling a bathroom",
                "discovery_results": [
                    {"title": "Vanity buying guide", "url": "https://example.com/v", "category": "guides"}
                ],
                "session_id": "visitor-1",
            },
        )
    assert response.status_code == 200
    payload = response.json()
    assert payload["success"] is True
    assert payload["content"]["template"] == "commercial"
    assert "bathroom" in payload["content"]["metadata"]["title"]
    assert set(payload["components"]) == {"hero", "cta"}
    assert payload["components"]["hero"]["fallback_content"]["headline"]
    assert payload["request_id"]
    assert isinstance(payload["meets_confidence_threshold"], bool)


async def test_generate_rejects_empty_query() -> None:
    async with get_client() as client:
        response = await client.post("/generate", json={"query": "  "})
    assert response.status_code == 400


async def test_single_component_endpoint() -> None:
    async with get_client() as client:
        response = await client.post("/components/hero", json={"query": "bathroom tiles"})
        missing = await client.post("/components/carousel", json={"query": "bathroom tiles"})
    assert response.status_code == 200
    payload = response.json()
    assert payload["component_type"] == "hero"
    assert payload["success"] is False
    assert payload["fallback_content"]["headline"]
    assert missing.status_code == 404


async def test_providers_and_stats_endpoints() -> None:
    async with get_client() as client:
        await client.post("/generate", json={"query": "bathroom tiles"})
        providers = await client.get("/providers")
        usage = await client.get("/stats/usage")
        generation = await client.get("/stats/generation")
    assert providers.status_code == 200
    assert providers.json()["available"] == []
    assert usage.status_code == 200
    assert usage.json() == {"providers": {}, "monthly_cost": {}}
    assert generation.status_code == 200
    pages = generation.json()["pages"]
    assert len(pages) == 1
    assert pages[0]["search_query"] == "bathroom tiles"


async def test_clear_cache_endpoint() -> None:
    async with get_client() as client:
        response = await client.delete("/cache")
    assert response.status_code == 200
    assert response.json() == {"cleared": 0}


async def test_request_id_is_echoed() -> None:
    async with get_client() as client:
        response = await client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"


async def test_api_key_is_enforced(monkeypatch) -> None:
    monkeypatch.setenv("SPB_API_KEYS", "secret-key")
    async with get_client() as client:
        denied = await client.get("/providers")
        allowed = await client.get("/providers", headers={"X-API-Key": "secret-key"})
        bearer = await client.get("/providers", headers={"Authorization": "Bearer secret-key"})
    assert denied.status_code == 401
    assert allowed.status_code == 200
    assert bearer.status_code == 200


async def test_metrics_endpoint() -> None:
    async with get_client() as client:
        await client.get("/health")
        response = await client.get("/metrics")
    assert response.status_code == 200
    assert "http_requests_total" in response.text
