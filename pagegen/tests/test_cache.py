from __future__ import annotations

from pagegen.generation.cache import CACHE_KEY_PREFIX, ComponentCache, TTLCache, build_cache_key
from pagegen.generation.types import (
    ComponentResult,
    DiscoveryResult,
    Intent,
    IntentContext,
    PersonalizationContext,
)


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def _context(query: str = "bathroom remodel", interests: dict[str, float] | None = None) -> PersonalizationContext:
    return PersonalizationContext(
        search_query=query,
        user_interests=interests or {"home_improvement": 0.8},
        intent_context=IntentContext(primary_intent=Intent.COMMERCIAL),
    )


def test_ttl_cache_expires_entries_at_ttl() -> None:
    clock = FakeClock()
    cache = TTLCache(10, clock=clock)
    cache.set("key", "value")
    clock.now += 9.9
    assert cache.get("key") == "value"
    clock.now += 0.1
    assert cache.get("key") is None
    assert len(cache) == 0


def test_ttl_cache_per_entry_ttl_and_clear() -> None:
    clock = FakeClock()
    cache = TTLCache(10, clock=clock)
    cache.set("short", 1, ttl=1)
    cache.set("long", 2)
    clock.now += 2
    assert cache.get("short") is None
    assert cache.get("long") == 2
    assert cache.clear() == 1
    assert cache.get("long") is None


def test_component_cache_marks_hits_and_isolates_content() -> None:
    cache = ComponentCache(60)
    result = ComponentResult(
        component_type="hero",
        success=True,
        content={"headline": "Bathroom Ideas", "keywords": ["bathroom"]},
        confidence=0.8,
        metadata={"component_type": "hero"},
    )
    cache.set("k", result)
    result.content["keywords"].append("mutated")

    first = cache.get("k")
    assert first is not None
    assert first.from_cache is True
    assert first.content == {"headline": "Bathroom Ideas", "keywords": ["bathroom"]}
    first.content["headline"] = "changed"
    second = cache.get("k")
    assert second is not None
    assert second.content["headline"] == "Bathroom Ideas"


def test_component_cache_isolates_metadata_from_the_stored_result() -> None:
    cache = ComponentCache(3600)
    original = ComponentResult(
        component_type="hero",
        success=True,
        content={"headline": "Bathroom Ideas"},
        confidence=0.8,
        metadata={"ai_provider": "openai", "quality_metrics": {"overall_confidence": 0.8}},
    )
    cache.set("k", original)

    original.metadata["ai_provider"] = "changed"
    original.metadata["quality_metrics"]["overall_confidence"] = 123
    hit = cache.get("k")

    assert hit is not None
    assert hit.metadata == {"ai_provider": "openai", "quality_metrics": {"overall_confidence": 0.8}}
    hit.metadata["quality_metrics"]["overall_confidence"] = 0.1
    again = cache.get("k")
    assert again is not None
    assert again.metadata["quality_metrics"]["overall_confidence"] == 0.8


def test_cache_key_is_stable_and_prefixed() -> None:
    discovery = [{"title": "Tile guide", "url": "https://example.com/tile", "category": "tiles"}]
    first = build_cache_key("hero", _context(), discovery)
    second = build_cache_key("hero", _context(), [DiscoveryResult.from_mapping(discovery[0])])
    assert first == second
    assert first.startswith(CACHE_KEY_PREFIX)


def test_cache_key_ignores_interest_order_but_not_values() -> None:
    a = build_cache_key("hero", _context(interests={"travel": 0.4, "photography": 0.9}), [])
    b = build_cache_key("hero", _context(interests={"photography": 0.9, "travel": 0.4}), [])
    c = build_cache_key("hero", _context(interests={"photography": 0.5, "travel": 0.4}), [])
    assert a == b
    assert a != c


def test_cache_key_only_hashes_leading_discovery_results() -> None:
    items = [{"title": f"Item {index}"} for index in range(6)]
    changed_tail = items[:5] + [{"title": "Something else"}]
    assert build_cache_key("article", _context(), items) == build_cache_key(
        "article", _context(), changed_tail
    )
    assert build_cache_key("article", _context(), items, discovery_limit=6) != build_cache_key(
        "article", _context(), changed_tail, discovery_limit=6
    )


def test_cache_key_differs_by_component_type() -> None:
    assert build_cache_key("hero", _context(), []) != build_cache_key("cta", _context(), [])
