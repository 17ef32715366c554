from __future__ import annotations

"""FastAPI application entrypoint for the search page generator."""

from datetime import datetime, timezone
import hashlib
import logging
import uuid

from fastapi import Depends, FastAPI, HTTPException, Request

from pagegen.app.dependencies import get_component_cache, get_engine, get_registry, get_usage_tracker
from pagegen.app.metrics import metrics_middleware, metrics_response
from pagegen.app.schemas import (
    CacheClearResponse,
    ComponentResponse,
    GenerateRequest,
    GenerateResponse,
    GenerationStatsResponse,
    ProvidersResponse,
    ProviderStatus,
    UsageStatsResponse,
)
from pagegen.app.security import AuthContext, require_api_key
from pagegen.app.settings import settings
from pagegen.generation.errors import InvalidInputError, UnknownComponentError

logger = logging.getLogger(__name__)

app = FastAPI(title="Search Page Generator", version="0.1.0")


def _configure_logging() -> None:
    """Configure root logging using environment settings."""
    level_name = settings.log_level.strip().upper()
    level = getattr(logging, level_name, logging.INFO)
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        logging.basicConfig(
            level=level,
            format="%(asctime)s %(levelname)s %(name)s %(message)s",
        )
    logger.setLevel(level)


_configure_logging()


def _request_id(http_request: Request) -> str:
    return getattr(http_request.state, "request_id", None) or str(uuid.uuid4())


def _query_hash(query: str) -> str:
    return hashlib.sha256(query.encode("utf-8")).hexdigest()[:12]


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    """Attach or create a request ID for traceability."""
    request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
    request.state.request_id = request_id
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


@app.middleware("http")
async def record_metrics(request: Request, call_next):
    """Capture request metrics before returning the response."""
    return await metrics_middleware(request, call_next)


@app.get("/metrics")
async def metrics():
    """Expose Prometheus-style metrics."""
    return metrics_response()


@app.get("/health")
async def health() -> dict[str, str]:
    """Simple health check for uptime monitoring."""
    return {"status": "ok"}


@app.post("/generate", response_model=GenerateResponse)
async def generate(
    request: GenerateRequest,
    http_request: Request,
    auth: AuthContext = Depends(require_api_key),
) -> GenerateResponse:
    """Generate a personalized page for a search query."""
    request_id = _request_id(http_request)
    logger.info(
        "generate_received",
        extra={
            "request_id": request_id,
            "query_length": len(request.query),
            "query_hash": _query_hash(request.query),
            "discovery_results": len(request.discovery_results),
            "actor": auth.actor,
        },
    )
    engine = get_engine()
    try:
        result = await engine.generate_page_content(
            request.query,
            request.discovery_payload(),
            request.session_id,
            request.user_context,
        )
    except InvalidInputError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    payload = result.to_dict()
    logger.info(
        "generate_completed",
        extra={
            "request_id": request_id,
            "template": payload["content"]["template"],
            "confidence": result.quality_metrics.overall_confidence,
            "fallback_used": result.fallback_used,
        },
    )
    return GenerateResponse(
        **payload,
        meets_confidence_threshold=engine.meets_confidence_threshold(result),
        request_id=request_id,
    )


@app.post("/components/{component_type}", response_model=ComponentResponse)
async def generate_component(
    component_type: str,
    request: GenerateRequest,
    http_request: Request,
    auth: AuthContext = Depends(require_api_key),
) -> ComponentResponse:
    """Generate a single component type for a query."""
    request_id = _request_id(http_request)
    engine = get_engine()
    try:
        result = await engine.generate_component(
            component_type,
            request.query,
            request.discovery_payload(),
            request.session_id,
            request.user_context,
        )
    except UnknownComponentError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except InvalidInputError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    logger.info(
        "component_request_completed",
        extra={
            "request_id": request_id,
            "component_type": component_type,
            "success": result.success,
            "from_cache": result.from_cache,
            "actor": auth.actor,
        },
    )
    return ComponentResponse(
        component_type=component_type,
        request_id=request_id,
        **result.to_dict(),
    )


@app.get("/providers", response_model=ProvidersResponse)
async def providers(auth: AuthContext = Depends(require_api_key)) -> ProvidersResponse:
    """List registered providers with configuration and capacity status."""
    registry = get_registry()
    return ProvidersResponse(
        providers=[ProviderStatus(**entry) for entry in registry.describe()],
        available=registry.get_available_providers(),
    )


@app.get("/stats/usage", response_model=UsageStatsResponse)
async def usage_stats(auth: AuthContext = Depends(require_api_key)) -> UsageStatsResponse:
    """Return token and cost rollups per provider."""
    tracker = get_usage_tracker()
    usage = tracker.get_usage_stats()
    month = datetime.now(timezone.utc).strftime("%Y-%m")
    return UsageStatsResponse(
        providers=usage,
        monthly_cost={provider_id: tracker.get_monthly_cost(provider_id, month) for provider_id in usage},
    )


@app.get("/stats/generation", response_model=GenerationStatsResponse)
async def generation_stats(auth: AuthContext = Depends(require_api_key)) -> GenerationStatsResponse:
    """Return the in-memory page and component generation logs."""
    engine = get_engine()
    return GenerationStatsResponse(
        pages=[stat.to_dict() for stat in engine.get_page_stats()],
        components=[stat.to_dict() for stat in engine.get_component_stats()],
    )


@app.delete("/cache", response_model=CacheClearResponse)
async def clear_cache(
    http_request: Request,
    auth: AuthContext = Depends(require_api_key),
) -> CacheClearResponse:
    """Drop every cached component."""
    removed = get_component_cache().invalidate("manual")
    logger.info(
        "cache_clear_requested",
        extra={"request_id": _request_id(http_request), "removed": removed, "actor": auth.actor},
    )
    return CacheClearResponse(cleared=removed)
