from __future__ import annotations

"""Session interest vectors and query-derived interest signals."""

import re
from typing import Any, Mapping, Protocol

from pagegen.generation.cache import TTLCache
from pagegen.generation.types import ContentPreferences, Intent

SEARCH_INTEREST_TERMS: dict[str, tuple[str, ...]] = {
    "photography": ("photo", "camera", "lens", "portrait"),
    "web_design": ("design", "website", "ui", "ux", "css"),
    "travel": ("travel", "vacation", "trip", "destination"),
    "technology": ("tech", "software", "app", "digital"),
    "home_improvement": ("remodel", "renovat", "bathroom", "kitchen", "contractor", "plumbing"),
}
TERM_WEIGHT = 0.2
EXISTING_BOOST = 0.3
NEW_INTEREST_WEIGHT = 0.5

TECHNICAL_INTERESTS = ("technology", "programming", "science", "engineering")
VISUAL_INTERESTS = ("photography", "web_design", "travel", "creative")
TONES = ("professional", "casual", "friendly", "authoritative", "informative")
COMPLEXITY_LEVELS = ("low", "medium", "high")
INTENT_TONES = {
    Intent.COMMERCIAL: "professional",
    Intent.EDUCATIONAL: "friendly",
    Intent.NAVIGATIONAL: "professional",
    Intent.INFORMATIONAL: "informative",
}


class InterestSource(Protocol):
    """Session collaborator that owns long-lived interest vectors."""
    def get_interests(self, session_id: str) -> dict[str, float] | None:
        ...

    def store_interests(self, session_id: str, vector: dict[str, float], ttl: float) -> None:
        ...


class InMemoryInterestSource:
    """Interest vectors kept in process memory with a TTL."""
    def __init__(self, default_ttl: float = 300.0) -> None:
        self._cache = TTLCache(default_ttl)

    def get_interests(self, session_id: str) -> dict[str, float] | None:
        vector = self._cache.get(session_id)
        return dict(vector) if vector is not None else None

    def store_interests(self, session_id: str, vector: dict[str, float], ttl: float) -> None:
        self._cache.set(session_id, dict(vector), ttl)


def extract_search_interests(query: str) -> dict[str, float]:
    """Score interest categories by how many of their terms start a query word."""
    lowered = query.lower()
    interests: dict[str, float] = {}
    for category, terms in SEARCH_INTEREST_TERMS.items():
        hits = sum(1 for term in terms if re.search(rf"\b{re.escape(term)}", lowered))
        if hits:
            interests[category] = min(1.0, hits * TERM_WEIGHT)
    return interests


def merge_search_interests(
    existing: Mapping[str, float], search: Mapping[str, float]
) -> dict[str, float]:
    """Boost known interests and add new ones at half weight, capped at 1.0."""
    merged = {name: max(0.0, min(1.0, float(score))) for name, score in existing.items()}
    for name, score in search.items():
        if name in merged:
            merged[name] = min(1.0, merged[name] + score * EXISTING_BOOST)
        else:
            merged[name] = min(1.0, score * NEW_INTEREST_WEIGHT)
    return merged


def context_interests(user_context: Mapping[str, Any]) -> dict[str, float]:
    """Interests supplied directly by the caller, ignoring malformed scores."""
    raw = user_context.get("interests")
    if not isinstance(raw, Mapping):
        return {}
    interests: dict[str, float] = {}
    for name, score in raw.items():
        try:
            interests[str(name)] = max(0.0, min(1.0, float(score)))
        except (TypeError, ValueError):
            continue
    return interests


def content_preferences(interests: Mapping[str, float]) -> ContentPreferences:
    ranked = sorted(interests.items(), key=lambda item: (-item[1], item[0]))
    topics = tuple(name for name, score in ranked if score > 0)[:3]
    formats: tuple[str, ...] = ("text",)
    if any(interests.get(name, 0.0) > 0.5 for name in VISUAL_INTERESTS):
        formats = ("visual", "text")
    return ContentPreferences(preferred_topics=topics, preferred_formats=formats)


def tone_preference(intent: Intent, user_context: Mapping[str, Any]) -> str:
    requested = str(user_context.get("tone") or "").lower()
    if requested in TONES:
        return requested
    return INTENT_TONES.get(intent, "informative")


def complexity_level(interests: Mapping[str, float], user_context: Mapping[str, Any]) -> str:
    requested = str(user_context.get("complexity_level") or "").lower()
    if requested in COMPLEXITY_LEVELS:
        return requested
    if any(interests.get(name, 0.0) > 0.7 for name in TECHNICAL_INTERESTS):
        return "high"
    return "medium"
