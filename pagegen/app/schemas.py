from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class DiscoveryItem(BaseModel):
    title: str = ""
    url: str = ""
    excerpt: str = ""
    category: str = ""
    relevance_score: float | None = Field(default=None, ge=0.0, le=1.0)
    tags: list[str] = Field(default_factory=list)


class GenerateRequest(BaseModel):
    query: str = Field(max_length=500)
    discovery_results: list[DiscoveryItem] = Field(default_factory=list)
    session_id: str | None = None
    user_context: dict[str, Any] = Field(default_factory=dict)

    def discovery_payload(self) -> list[dict[str, Any]]:
        return [item.model_dump() for item in self.discovery_results]


class GenerateResponse(BaseModel):
    success: bool
    content: dict[str, Any]
    components: dict[str, dict[str, Any]]
    quality_metrics: dict[str, Any]
    generation_time: float
    intent: dict[str, Any] | None = None
    fallback_used: bool = False
    error: str | None = None
    meets_confidence_threshold: bool
    request_id: str


class ComponentResponse(BaseModel):
    component_type: str
    success: bool
    confidence: float
    metadata: dict[str, Any] = Field(default_factory=dict)
    content: dict[str, Any] | None = None
    fallback_content: dict[str, Any] | None = None
    error: str | None = None
    from_cache: bool = False
    request_id: str


class ProviderStatus(BaseModel):
    provider_id: str
    name: str
    model: str
    priority: int
    cost_per_1k_tokens: float
    requests_per_minute: int
    requests_per_day: int
    configured: bool
    available: bool


class ProvidersResponse(BaseModel):
    providers: list[ProviderStatus]
    available: list[str]


class UsageStatsResponse(BaseModel):
    providers: dict[str, Any]
    monthly_cost: dict[str, Any]


class GenerationStatsResponse(BaseModel):
    pages: list[dict[str, Any]]
    components: list[dict[str, Any]]


class CacheClearResponse(BaseModel):
    cleared: int
