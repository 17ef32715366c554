from __future__ import annotations

"""Page generation engine: context building, component fan-out and assembly.

One request moves through intent analysis, context building, fan-out to the
component generators, page assembly and quality scoring. Component failures
are contained by the generators; anything that escapes the engine's own steps
produces the fallback page instead of an exception. Only a missing query is
reported to the caller as `InvalidInputError`.
"""

import asyncio
import logging
import threading
import time
from typing import Any, Mapping, Protocol, Sequence

from pagegen.app.metrics import observe_page
from pagegen.generation.assembly import assemble_page, fallback_page
from pagegen.generation.cache import TTLCache
from pagegen.generation.config import GenerationConfig
from pagegen.generation.errors import InvalidInputError, UnknownComponentError
from pagegen.generation.intent import IntentAnalyzer
from pagegen.generation.interests import (
    InMemoryInterestSource,
    InterestSource,
    complexity_level,
    content_preferences,
    context_interests,
    extract_search_interests,
    merge_search_interests,
    tone_preference,
)
from pagegen.generation.pipeline import ComponentGenerator
from pagegen.generation.quality import PersonalizationScorer, constant_personalization, score_page
from pagegen.generation.text import stable_hash
from pagegen.generation.types import (
    ComponentResult,
    DiscoveryResult,
    GenerationStat,
    IntentContext,
    PageGenerationResult,
    PageStat,
    PersonalizationContext,
    QualityMetrics,
    coerce_discovery_results,
)

logger = logging.getLogger(__name__)

INTEREST_CACHE_PREFIX = "interest_vector_"
MAX_PAGE_STATS = 1000
DEADLINE_ERROR = "Generation deadline exceeded"


class PageStatsSink(Protocol):
    def record_page(self, stat: PageStat) -> None:
        ...


class PageGenerationEngine:
    """Orchestrate the registered component generators into one page."""
    def __init__(
        self,
        generators: Mapping[str, ComponentGenerator] | None = None,
        *,
        config: GenerationConfig | None = None,
        intent_analyzer: IntentAnalyzer | None = None,
        interest_source: InterestSource | None = None,
        interest_cache: TTLCache | None = None,
        stats_sink: PageStatsSink | None = None,
        personalization_scorer: PersonalizationScorer = constant_personalization,
    ) -> None:
        self._config = config or GenerationConfig()
        self._generators: dict[str, ComponentGenerator] = dict(generators or {})
        self._intent_analyzer = intent_analyzer or IntentAnalyzer()
        ttl = self._config.interest_cache_ttl_seconds
        self._interest_source = interest_source or InMemoryInterestSource(ttl)
        self._interest_cache = interest_cache or TTLCache(ttl)
        self._stats_sink = stats_sink
        self._personalization_scorer = personalization_scorer
        self._page_stats: list[PageStat] = []
        self._stats_lock = threading.Lock()

    @property
    def config(self) -> GenerationConfig:
        return self._config

    def register_generator(self, generator: ComponentGenerator, name: str | None = None) -> None:
        self._generators[name or generator.component_type] = generator

    def component_types(self) -> list[str]:
        return list(self._generators)

    def get_generator(self, component_type: str) -> ComponentGenerator:
        generator = self._generators.get(component_type)
        if generator is None:
            raise UnknownComponentError(f"Unknown component type: {component_type}")
        return generator

    async def generate_page_content(
        self,
        search_query: str,
        discovery_results: Sequence[DiscoveryResult | Mapping[str, Any]] = (),
        session_id: str | None = None,
        user_context: Mapping[str, Any] | None = None,
    ) -> PageGenerationResult:
        """Generate a complete page for a search query."""
        if not isinstance(search_query, str) or not search_query.strip():
            raise InvalidInputError("Search query is required")
        query = search_query.strip()
        start = time.perf_counter()
        deadline = asyncio.get_running_loop().time() + self._config.request_timeout
        try:
            discovery = coerce_discovery_results(discovery_results)
            context = self.build_personalization_context(query, discovery, session_id, user_context)
            components = await self._generate_components(context, discovery, deadline)
            content = assemble_page(components, context.intent_context, query)
            metrics = score_page(components, context, self._personalization_scorer)
        except Exception as exc:
            return self._fallback_page(query, discovery_results, exc, start)

        generation_time = time.perf_counter() - start
        result = PageGenerationResult(
            success=True,
            content=content,
            quality_metrics=metrics,
            generation_time=generation_time,
            components=components,
            intent=context.intent_context,
            personalization_context=context,
        )
        logger.info(
            "page_generated",
            extra={
                "query_hash": stable_hash(query)[:12],
                "template": content.template.value,
                "components": list(components),
                "confidence": metrics.overall_confidence,
                "generation_time": generation_time,
            },
        )
        observe_page(content.template.value, metrics.overall_confidence)
        self._record_page(result, query)
        return result

    async def generate_component(
        self,
        component_type: str,
        search_query: str,
        discovery_results: Sequence[DiscoveryResult | Mapping[str, Any]] = (),
        session_id: str | None = None,
        user_context: Mapping[str, Any] | None = None,
    ) -> ComponentResult:
        """Generate a single component with the same context a page would use."""
        generator = self.get_generator(component_type)
        if not isinstance(search_query, str) or not search_query.strip():
            raise InvalidInputError("Search query is required")
        discovery = coerce_discovery_results(discovery_results)
        context = self.build_personalization_context(
            search_query.strip(), discovery, session_id, user_context
        )
        return await generator.generate_component(context, discovery)

    def build_personalization_context(
        self,
        query: str,
        discovery: Sequence[DiscoveryResult],
        session_id: str | None = None,
        user_context: Mapping[str, Any] | None = None,
    ) -> PersonalizationContext:
        user_context = user_context or {}
        interests = self.get_user_interest_vector(session_id, query, user_context)
        intent = self._intent_analyzer.analyze(query, discovery)
        signals = user_context.get("personalization_signals")
        return PersonalizationContext(
            search_query=query,
            user_interests=interests,
            intent_context=intent,
            content_preferences=content_preferences(interests),
            tone_preference=tone_preference(intent.primary_intent, user_context),
            complexity_level=complexity_level(interests, user_context),
            available_content=tuple(discovery),
            personalization_signals=dict(signals) if isinstance(signals, Mapping) else {},
        )

    def get_user_interest_vector(
        self,
        session_id: str | None,
        query: str,
        user_context: Mapping[str, Any] | None = None,
    ) -> dict[str, float]:
        """Return the session's interests merged with signals from the query.

        Only the pre-merge vector is written back to the interest source.
        """
        base = context_interests(user_context or {})
        if not session_id:
            return merge_search_interests(base, extract_search_interests(query))
        key = f"{INTEREST_CACHE_PREFIX}{session_id}"
        cached = self._interest_cache.get(key)
        if cached is not None:
            return dict(cached)
        stored = self._interest_source.get_interests(session_id) or {}
        base = {**stored, **{name: max(score, stored.get(name, 0.0)) for name, score in base.items()}}
        vector = merge_search_interests(base, extract_search_interests(query))
        ttl = self._config.interest_cache_ttl_seconds
        self._interest_cache.set(key, dict(vector), ttl)
        self._interest_source.store_interests(session_id, base, ttl)
        return vector

    async def _generate_components(
        self,
        context: PersonalizationContext,
        discovery: Sequence[DiscoveryResult],
        deadline: float,
    ) -> dict[str, ComponentResult]:
        names = [
            name
            for name in context.intent_context.suggested_components
            if name in self._generators
        ]
        if not names:
            return {}
        if self._config.parallel_components:
            return await self._generate_parallel(names, context, discovery, deadline)
        return await self._generate_sequential(names, context, discovery, deadline)

    async def _generate_parallel(
        self,
        names: Sequence[str],
        context: PersonalizationContext,
        discovery: Sequence[DiscoveryResult],
        deadline: float,
    ) -> dict[str, ComponentResult]:
        loop = asyncio.get_running_loop()
        tasks = {
            name: asyncio.create_task(self._generators[name].generate_component(context, discovery))
            for name in names
        }
        remaining = max(0.0, deadline - loop.time())
        done, pending = await asyncio.wait(tasks.values(), timeout=remaining)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        results: dict[str, ComponentResult] = {}
        for name, task in tasks.items():
            if task in done and not task.cancelled() and task.exception() is None:
                results[name] = task.result()
            else:
                results[name] = self._deadline_fallback(name, context)
        return results

    async def _generate_sequential(
        self,
        names: Sequence[str],
        context: PersonalizationContext,
        discovery: Sequence[DiscoveryResult],
        deadline: float,
    ) -> dict[str, ComponentResult]:
        loop = asyncio.get_running_loop()
        results: dict[str, ComponentResult] = {}
        for name in names:
            remaining = deadline - loop.time()
            if remaining <= 0:
                results[name] = self._deadline_fallback(name, context)
                continue
            try:
                results[name] = await asyncio.wait_for(
                    self._generators[name].generate_component(context, discovery), remaining
                )
            except asyncio.TimeoutError:
                results[name] = self._deadline_fallback(name, context)
        return results

    def _deadline_fallback(self, name: str, context: PersonalizationContext) -> ComponentResult:
        logger.warning(
            "component_deadline_exceeded",
            extra={"component_type": name, "timeout": self._config.request_timeout},
        )
        return self._generators[name].fallback_result(context, DEADLINE_ERROR)

    def _fallback_page(
        self,
        query: str,
        discovery_results: object,
        exc: Exception,
        start: float,
    ) -> PageGenerationResult:
        logger.exception(
            "page_generation_failed",
            extra={"query_hash": stable_hash(query)[:12], "error_type": type(exc).__name__},
        )
        try:
            discovery = coerce_discovery_results(discovery_results)
        except InvalidInputError:
            discovery = ()
        content, components = fallback_page(query, discovery)
        scores = {name: result.confidence for name, result in components.items()}
        mean = sum(scores.values()) / len(scores)
        metrics = QualityMetrics(
            overall_confidence=mean,
            content_relevance=0.5,
            personalization_score=0.0,
            completeness_score=1.0,
            component_scores=scores,
        )
        result = PageGenerationResult(
            success=True,
            content=content,
            quality_metrics=metrics,
            generation_time=time.perf_counter() - start,
            components=components,
            intent=IntentContext.coerce(content.metadata.intent),
            fallback_used=True,
            error=str(exc) or type(exc).__name__,
        )
        observe_page(content.template.value, metrics.overall_confidence)
        self._record_page(result, query)
        return result

    def _record_page(self, result: PageGenerationResult, query: str) -> None:
        stat = PageStat(
            search_query=query,
            template=result.content.template.value,
            generation_time=result.generation_time,
            confidence=result.quality_metrics.overall_confidence,
            component_count=len(result.components),
            fallback_used=result.fallback_used,
        )
        with self._stats_lock:
            self._page_stats.append(stat)
            if len(self._page_stats) > MAX_PAGE_STATS:
                del self._page_stats[: len(self._page_stats) - MAX_PAGE_STATS]
        if self._stats_sink is None:
            return
        try:
            self._stats_sink.record_page(stat)
        except Exception:
            logger.exception("page_stats_sink_failed")

    def meets_confidence_threshold(self, result: PageGenerationResult) -> bool:
        return result.quality_metrics.overall_confidence >= self._config.confidence_threshold

    def get_page_stats(self) -> list[PageStat]:
        with self._stats_lock:
            return list(self._page_stats)

    def get_component_stats(self) -> list[GenerationStat]:
        stats: list[GenerationStat] = []
        for generator in self._generators.values():
            stats.extend(generator.get_generation_stats())
        return sorted(stats, key=lambda stat: stat.timestamp)

    def clear_generation_stats(self) -> None:
        with self._stats_lock:
            self._page_stats.clear()
        for generator in self._generators.values():
            generator.clear_generation_stats()
