from __future__ import annotations

from functools import lru_cache

from pagegen.app.settings import settings
from pagegen.generation.article import build_article_generator
from pagegen.generation.cache import ComponentCache
from pagegen.generation.config import GenerationConfig
from pagegen.generation.cta import build_cta_generator
from pagegen.generation.engine import PageGenerationEngine
from pagegen.generation.hero import build_hero_generator
from pagegen.generation.interests import InMemoryInterestSource
from pagegen.metadata.stats_store import PageStatsStore
from pagegen.metadata.usage_store import UsageStore
from pagegen.providers.registry import ProviderRegistry, build_registry
from pagegen.providers.usage import UsageTracker


def build_generation_config() -> GenerationConfig:
    return GenerationConfig(
        cache_ttl_seconds=settings.cache_ttl_seconds,
        interest_cache_ttl_seconds=settings.interest_cache_ttl_seconds,
        max_tokens_by_component=settings.max_tokens_by_component,
        temperature_by_intent=settings.temperature_by_intent,
        provider_preference=settings.provider_preference,
        confidence_threshold=settings.confidence_threshold,
        cache_key_discovery_limit=settings.cache_key_discovery_limit,
        request_timeout=settings.request_timeout,
        parallel_components=settings.parallel_components,
    )


@lru_cache
def get_usage_store() -> UsageStore | None:
    if not settings.usage_db_uri:
        return None
    return UsageStore(settings.usage_db_uri)


@lru_cache
def get_stats_store() -> PageStatsStore | None:
    if not settings.usage_db_uri:
        return None
    return PageStatsStore(settings.usage_db_uri)


@lru_cache
def get_usage_tracker() -> UsageTracker:
    return UsageTracker(sink=get_usage_store())


@lru_cache
def get_component_cache() -> ComponentCache:
    return ComponentCache(settings.cache_ttl_seconds)


@lru_cache
def get_registry() -> ProviderRegistry:
    registry = build_registry(
        usage=get_usage_tracker(),
        openai_api_key=settings.openai_api_key,
        openai_base_url=settings.openai_base_url,
        openai_model=settings.openai_chat_model,
        openai_timeout=settings.openai_timeout,
        anthropic_api_key=settings.anthropic_api_key,
        anthropic_base_url=settings.anthropic_base_url,
        anthropic_model=settings.anthropic_model,
        anthropic_timeout=settings.anthropic_timeout,
        gemini_api_key=settings.gemini_api_key,
        gemini_model=settings.gemini_chat_model,
        gemini_timeout=settings.gemini_timeout,
        ollama_enabled=settings.ollama_enabled,
        ollama_base_url=settings.ollama_base_url,
        ollama_model=settings.ollama_model,
        ollama_timeout=settings.ollama_timeout,
        rate_limit_per_minute=settings.rate_limit_per_minute,
    )
    cache = get_component_cache()
    registry.add_change_listener(lambda _provider_id: cache.invalidate("provider_configured"))
    return registry


@lru_cache
def get_engine() -> PageGenerationEngine:
    config = build_generation_config()
    registry = get_registry()
    cache = get_component_cache()
    engine = PageGenerationEngine(
        config=config,
        interest_source=InMemoryInterestSource(config.interest_cache_ttl_seconds),
        stats_sink=get_stats_store(),
    )
    engine.register_generator(build_hero_generator(registry, cache, config))
    engine.register_generator(build_article_generator(registry, cache, config))
    engine.register_generator(build_cta_generator(registry, cache, config))
    return engine


def reset_engine_cache() -> None:
    get_engine.cache_clear()
    get_registry.cache_clear()
    get_component_cache.cache_clear()
    get_usage_tracker.cache_clear()
    get_usage_store.cache_clear()
    get_stats_store.cache_clear()
