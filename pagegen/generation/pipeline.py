from __future__ import annotations

"""Fixed component generation pipeline driven by per-type strategy records."""

from dataclasses import dataclass
from datetime import datetime, timezone
import logging
import threading
import time
from typing import Any, Callable, Mapping, Sequence

from pagegen.app.metrics import observe_component
from pagegen.generation.cache import ComponentCache, build_cache_key
from pagegen.generation.config import GenerationConfig
from pagegen.generation.errors import GenerationFailedError, InvalidInputError
from pagegen.generation.quality import PersonalizationScorer, constant_personalization, score_component
from pagegen.generation.types import (
    ComponentResult,
    DiscoveryResult,
    GenerationContext,
    GenerationStat,
    Intent,
    IntentContext,
    PersonalizationContext,
    coerce_discovery_results,
)
from pagegen.providers.base import (
    GenerationOptions,
    ProviderError,
    ProviderNotConfiguredError,
    ProviderResponse,
    system_message_for,
)
from pagegen.providers.registry import DEFAULT_PREFERENCES, ProviderRegistry

logger = logging.getLogger(__name__)

DEFAULT_MAX_TOKENS = 500
MAX_STATS_ENTRIES = 1000

BuildContext = Callable[[PersonalizationContext, Sequence[DiscoveryResult]], GenerationContext]
BuildPrompt = Callable[[GenerationContext], str]
ParseResponse = Callable[[str, GenerationContext], dict[str, Any]]
Personalize = Callable[[dict[str, Any], GenerationContext, PersonalizationContext], dict[str, Any]]
FallbackContent = Callable[[str, Intent], dict[str, Any]]
ProviderPreferences = Callable[[PersonalizationContext], Sequence[str]]


def default_preferences(context: PersonalizationContext) -> Sequence[str]:
    return DEFAULT_PREFERENCES


def keep_content(
    content: dict[str, Any], context: GenerationContext, personalization: PersonalizationContext
) -> dict[str, Any]:
    return content


def generation_context(
    personalization: PersonalizationContext, discovery: Sequence[DiscoveryResult]
) -> GenerationContext:
    return GenerationContext(
        search_query=personalization.search_query.strip(),
        intent=personalization.intent,
        user_interests=dict(personalization.user_interests),
        tone_preference=personalization.tone_preference,
        complexity_level=personalization.complexity_level,
    )


def base_prompt(component_type: str, context: GenerationContext, requirements: str = "") -> str:
    """Shared prompt preamble used by every component type."""
    interests = ", ".join(
        name for name, _score in sorted(context.user_interests.items(), key=lambda item: -item[1])
    )
    requirements = requirements or (
        "- Be directly relevant to the search query\n"
        "- Match the user's intent and interests\n"
        "- Keep the copy concise and scannable\n"
        "- Respond with a JSON object only"
    )
    return (
        f"Generate a {component_type} component for a search-triggered page.\n\n"
        f"Search Query: {context.search_query}\n"
        f"Intent: {context.intent.value}\n"
        f"User Interests: {interests or 'none'}\n\n"
        f"Requirements:\n{requirements}"
    )


@dataclass(frozen=True)
class ComponentStrategy:
    """Strategy functions that specialize the pipeline for one component type."""
    component_type: str
    required_fields: tuple[str, ...]
    parse_response: ParseResponse
    fallback_content: FallbackContent
    build_context: BuildContext = generation_context
    build_prompt: BuildPrompt | None = None
    personalize: Personalize = keep_content
    provider_preferences: ProviderPreferences = default_preferences
    personalization_score: PersonalizationScorer = constant_personalization
    max_tokens: int = DEFAULT_MAX_TOKENS


@dataclass(frozen=True)
class _ValidatedInput:
    context: PersonalizationContext
    discovery: tuple[DiscoveryResult, ...]


class ComponentGenerator:
    """Run the generation pipeline for one component type."""
    def __init__(
        self,
        strategy: ComponentStrategy,
        registry: ProviderRegistry,
        cache: ComponentCache,
        config: GenerationConfig | None = None,
    ) -> None:
        self.strategy = strategy
        self._registry = registry
        self._cache = cache
        self._config = config or GenerationConfig()
        self._stats: list[GenerationStat] = []
        self._stats_lock = threading.Lock()

    @property
    def component_type(self) -> str:
        return self.strategy.component_type

    async def generate_component(
        self,
        personalization_context: PersonalizationContext | Mapping[str, Any],
        discovery_results: Sequence[DiscoveryResult | Mapping[str, Any]] = (),
    ) -> ComponentResult:
        """Generate a component; failures return deterministic fallback content."""
        start = time.perf_counter()
        try:
            cache_key = build_cache_key(
                self.component_type,
                personalization_context,
                discovery_results,
                self._config.cache_key_discovery_limit,
            )
            cached = self._cache.get(cache_key)
            if cached is not None:
                logger.info(
                    "component_cache_hit",
                    extra={"component_type": self.component_type, "cache_key": cache_key},
                )
                observe_component(self.component_type, "cache", time.perf_counter() - start)
                return cached
            validated = self.validate_input(personalization_context, discovery_results)
            context = validated.context
            generation_context = self.strategy.build_context(context, validated.discovery)
            provider_id = self._select_provider(context)
            prompt = self._build_prompt(generation_context)
            options = self._build_options(context)
            response = await self._call_provider(provider_id, prompt, options)
            content = self.strategy.parse_response(response.content, generation_context)
            content = self.strategy.personalize(content, generation_context, context)
            metrics = score_component(
                content,
                context,
                self.strategy.required_fields,
                self.strategy.personalization_score,
            )
            generation_time = time.perf_counter() - start
            result = ComponentResult(
                component_type=self.component_type,
                success=True,
                content=content,
                confidence=metrics.overall_confidence,
                metadata={
                    "component_type": self.component_type,
                    "ai_provider": response.provider_id,
                    "model": response.model,
                    "generation_time": generation_time,
                    "quality_metrics": metrics.to_dict(),
                    "cache_key": cache_key,
                    "generated_at": datetime.now(timezone.utc).isoformat(),
                },
            )
            self._cache.set(cache_key, result, self._config.cache_ttl_seconds)
            self._record_stat(result, context.search_query)
            logger.info(
                "component_generated",
                extra={
                    "component_type": self.component_type,
                    "provider": response.provider_id,
                    "confidence": result.confidence,
                    "generation_time": generation_time,
                },
            )
            observe_component(self.component_type, "success", generation_time)
            return result
        except Exception as exc:
            return self._fallback_result(personalization_context, exc, start)

    def validate_input(
        self,
        personalization_context: PersonalizationContext | Mapping[str, Any],
        discovery_results: object,
    ) -> _ValidatedInput:
        """Check required context fields, query length and discovery shape."""
        if isinstance(personalization_context, PersonalizationContext):
            context = personalization_context
        elif isinstance(personalization_context, Mapping):
            context = PersonalizationContext.from_mapping(personalization_context)
        else:
            raise InvalidInputError("Personalization context is required")
        if not isinstance(context.search_query, str) or len(context.search_query.strip()) < 2:
            raise InvalidInputError("Search query must be at least 2 characters")
        if not isinstance(context.user_interests, Mapping):
            raise InvalidInputError("user_interests must be a mapping")
        if not isinstance(context.intent_context, IntentContext):
            raise InvalidInputError("Intent context is required")
        return _ValidatedInput(context=context, discovery=coerce_discovery_results(discovery_results))

    def _select_provider(self, context: PersonalizationContext) -> str:
        preferences = self._config.preferences_for(self.component_type)
        if preferences is None:
            preferences = list(self.strategy.provider_preferences(context))
        provider_id = self._registry.select_provider(preferences)
        if provider_id is None:
            raise ProviderNotConfiguredError("No AI provider is configured")
        self._registry.acquire(provider_id)
        return provider_id

    def _build_prompt(self, context: GenerationContext) -> str:
        if self.strategy.build_prompt is not None:
            return self.strategy.build_prompt(context)
        return base_prompt(self.component_type, context)

    def _build_options(self, context: PersonalizationContext) -> GenerationOptions:
        return GenerationOptions(
            temperature=self._config.temperature_for(context.intent),
            max_tokens=self._config.max_tokens_for(self.component_type, self.strategy.max_tokens),
            top_p=self._config.top_p,
            system_message=system_message_for(self.component_type),
            content_type=self.component_type,
        )

    async def _call_provider(
        self, provider_id: str, prompt: str, options: GenerationOptions
    ) -> ProviderResponse:
        provider = self._registry.get_provider(provider_id)
        try:
            return await provider.generate(prompt, options)
        except ProviderError as exc:
            raise GenerationFailedError(f"{provider_id}: {exc}") from exc

    def fallback_result(
        self,
        personalization_context: PersonalizationContext | Mapping[str, Any],
        error: str,
        generation_time: float = 0.0,
    ) -> ComponentResult:
        """Build the non-AI fallback for this component type."""
        query, intent = _query_and_intent(personalization_context)
        content = self.strategy.fallback_content(query or "this topic", intent)
        context = PersonalizationContext(
            search_query=query,
            user_interests=_interests_of(personalization_context),
            intent_context=IntentContext(primary_intent=intent),
        )
        metrics = score_component(content, context, self.strategy.required_fields)
        return ComponentResult(
            component_type=self.component_type,
            success=False,
            content=content,
            confidence=metrics.overall_confidence,
            error=error,
            metadata={
                "component_type": self.component_type,
                "generation_time": generation_time,
                "error_occurred": True,
            },
        )

    def _fallback_result(
        self,
        personalization_context: PersonalizationContext | Mapping[str, Any],
        exc: Exception,
        start: float,
    ) -> ComponentResult:
        generation_time = time.perf_counter() - start
        query, _intent = _query_and_intent(personalization_context)
        logger.warning(
            "component_generation_failed",
            extra={
                "component_type": self.component_type,
                "query": query,
                "error": str(exc),
                "error_type": type(exc).__name__,
            },
        )
        observe_component(self.component_type, "fallback", generation_time)
        return self.fallback_result(
            personalization_context, str(exc) or type(exc).__name__, generation_time
        )

    def _record_stat(self, result: ComponentResult, query: str) -> None:
        stat = GenerationStat(
            component_type=self.component_type,
            generation_time=float(result.metadata.get("generation_time", 0.0)),
            confidence=result.confidence,
            provider=result.metadata.get("ai_provider"),
            query=query,
        )
        with self._stats_lock:
            self._stats.append(stat)
            if len(self._stats) > MAX_STATS_ENTRIES:
                del self._stats[: len(self._stats) - MAX_STATS_ENTRIES]

    def get_generation_stats(self) -> list[GenerationStat]:
        with self._stats_lock:
            return list(self._stats)

    def clear_generation_stats(self) -> None:
        with self._stats_lock:
            self._stats.clear()


def _query_and_intent(
    context: PersonalizationContext | Mapping[str, Any] | object,
) -> tuple[str, Intent]:
    if isinstance(context, PersonalizationContext):
        return context.search_query.strip(), context.intent
    if isinstance(context, Mapping):
        query = context.get("search_query")
        raw_intent = context.get("intent_context")
        if isinstance(raw_intent, IntentContext):
            intent = raw_intent.primary_intent
        elif isinstance(raw_intent, Mapping):
            intent = Intent.parse(raw_intent.get("primary_intent"))
        else:
            intent = Intent.parse(raw_intent)
        return (query.strip() if isinstance(query, str) else ""), intent
    return "", Intent.INFORMATIONAL


def _interests_of(context: PersonalizationContext | Mapping[str, Any] | object) -> dict[str, float]:
    if isinstance(context, PersonalizationContext):
        return dict(context.user_interests)
    if isinstance(context, Mapping):
        interests = context.get("user_interests")
        if isinstance(interests, Mapping):
            clean: dict[str, float] = {}
            for key, value in interests.items():
                try:
                    clean[str(key)] = max(0.0, min(1.0, float(value)))
                except (TypeError, ValueError):
                    continue
            return clean
    return {}
