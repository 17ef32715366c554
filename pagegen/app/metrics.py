from __future__ import annotations

import time

from fastapi import Request
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.responses import Response

from pagegen.app.settings import settings

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
)
COMPONENT_COUNT = Counter(
    "page_components_total",
    "Generated page components by outcome",
    ["component_type", "outcome"],
)
COMPONENT_LATENCY = Histogram(
    "page_component_duration_seconds",
    "Component generation duration in seconds",
    ["component_type"],
)
PROVIDER_TOKENS = Counter(
    "provider_tokens_total",
    "Tokens consumed by AI provider calls",
    ["provider", "model"],
)
PAGE_CONFIDENCE = Histogram(
    "page_confidence",
    "Overall confidence of generated pages",
    ["template"],
    buckets=(0.1, 0.2, 0.3, 0.4, 0.5, 0.6, 0.7, 0.8, 0.9, 1.0),
)


def observe_component(component_type: str, outcome: str, duration: float) -> None:
    """Count a component outcome (success, fallback or cache)."""
    if not settings.metrics_enabled:
        return
    COMPONENT_COUNT.labels(component_type, outcome).inc()
    if outcome != "cache":
        COMPONENT_LATENCY.labels(component_type).observe(duration)


def observe_tokens(provider: str, model: str, tokens: int) -> None:
    if not settings.metrics_enabled or tokens <= 0:
        return
    PROVIDER_TOKENS.labels(provider, model).inc(tokens)


def observe_page(template: str, confidence: float) -> None:
    if not settings.metrics_enabled:
        return
    PAGE_CONFIDENCE.labels(template).observe(confidence)


def _route_path(request: Request) -> str:
    """Route template, so path parameters do not become label values."""
    route = request.scope.get("route")
    return getattr(route, "path", None) or request.url.path


async def metrics_middleware(request: Request, call_next):
    if not settings.metrics_enabled:
        return await call_next(request)
    if request.url.path == "/metrics":
        return await call_next(request)
    start = time.monotonic()
    status = 500
    try:
        response = await call_next(request)
        status = response.status_code
        return response
    finally:
        duration = time.monotonic() - start
        path = _route_path(request)
        REQUEST_COUNT.labels(request.method, path, str(status)).inc()
        REQUEST_LATENCY.labels(request.method, path).observe(duration)


def metrics_response() -> Response:
    if not settings.metrics_enabled:
        return Response(status_code=404)
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
