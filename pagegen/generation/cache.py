from __future__ import annotations

"""In-memory TTL caches for generated components and interest vectors."""

import copy
import logging
import threading
import time
from dataclasses import dataclass, replace
from typing import Any, Callable, Mapping, Sequence

from pagegen.generation.text import stable_hash
from pagegen.generation.types import ComponentResult, DiscoveryResult, PersonalizationContext

logger = logging.getLogger(__name__)

CACHE_KEY_PREFIX = "spb_component_"


@dataclass
class _CacheEntry:
    value: Any
    generated_at: float
    ttl: float


class TTLCache:
    """Thread-safe key/value store where every entry expires after its TTL."""
    def __init__(self, default_ttl: float, clock: Callable[[], float] = time.time) -> None:
        self._default_ttl = default_ttl
        self._clock = clock
        self._entries: dict[str, _CacheEntry] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> Any | None:
        """Return the live value for `key`, or None when absent or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None
            if self._clock() - entry.generated_at >= entry.ttl:
                del self._entries[key]
                self._misses += 1
                return None
            self._hits += 1
            return entry.value

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        """Store a value, stamping its generation time. Last write wins."""
        entry = _CacheEntry(
            value=value,
            generated_at=self._clock(),
            ttl=self._default_ttl if ttl is None else ttl,
        )
        with self._lock:
            self._entries[key] = entry

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> int:
        """Drop every entry and return how many were removed."""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        return count

    def stats(self) -> dict[str, int]:
        with self._lock:
            return {"entries": len(self._entries), "hits": self._hits, "misses": self._misses}

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class ComponentCache(TTLCache):
    """Cache of component results; hits come back tagged `from_cache`."""
    def get(self, key: str) -> ComponentResult | None:
        value = super().get(key)
        if value is None:
            return None
        return replace(
            value,
            content=copy.deepcopy(value.content),
            metadata=copy.deepcopy(value.metadata),
            from_cache=True,
        )

    def set(self, key: str, value: ComponentResult, ttl: float | None = None) -> None:
        stored = replace(
            value,
            content=copy.deepcopy(value.content),
            metadata=copy.deepcopy(value.metadata),
        )
        super().set(key, stored, ttl)

    def invalidate(self, reason: str = "manual") -> int:
        removed = self.clear()
        logger.info("component_cache_cleared", extra={"reason": reason, "removed": removed})
        return removed


def build_cache_key(
    component_type: str,
    context: PersonalizationContext | Mapping[str, Any],
    discovery_results: Sequence[DiscoveryResult | Mapping[str, Any]],
    discovery_limit: int = 5,
) -> str:
    """Derive a stable cache key from the inputs that shape a component.

    Only the first `discovery_limit` discovery results take part in the key.
    """
    if isinstance(context, PersonalizationContext):
        query = context.search_query
        intent = context.intent.value
        interests = dict(context.user_interests)
    else:
        query = str(context.get("search_query") or "")
        raw_intent = context.get("intent_context")
        if isinstance(raw_intent, Mapping):
            raw_intent = raw_intent.get("primary_intent")
        intent = str(getattr(raw_intent, "value", raw_intent) or "")
        raw_interests = context.get("user_interests")
        interests = dict(raw_interests) if isinstance(raw_interests, Mapping) else {}
    discovery: list[dict[str, Any]] = []
    if isinstance(discovery_results, (list, tuple)):
        for item in discovery_results[: max(discovery_limit, 0)]:
            if isinstance(item, DiscoveryResult):
                discovery.append(item.to_dict())
            elif isinstance(item, Mapping):
                discovery.append(DiscoveryResult.from_mapping(item).to_dict())
    payload = {
        "component_type": component_type,
        "search_query": query,
        "intent": intent,
        "interests": stable_hash(interests),
        "discovery": stable_hash(discovery),
    }
    return CACHE_KEY_PREFIX + stable_hash(payload)
