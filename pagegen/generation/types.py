from __future__ import annotations

"""Core data types for page and component generation."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping

from pagegen.generation.errors import InvalidInputError


class Intent(str, Enum):
    """Primary intent detected for a search query."""
    INFORMATIONAL = "informational"
    COMMERCIAL = "commercial"
    NAVIGATIONAL = "navigational"
    EDUCATIONAL = "educational"

    @classmethod
    def parse(cls, value: object) -> Intent:
        """Return the matching intent, defaulting to informational."""
        if isinstance(value, Intent):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        return cls.INFORMATIONAL


class DifficultyLevel(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class Template(str, Enum):
    """Page templates selected by intent."""
    INFORMATIONAL = "informational"
    COMMERCIAL = "commercial"
    NAVIGATIONAL = "navigational"
    EDUCATIONAL = "educational"
    BASIC = "basic"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _clamp(value: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if number != number:
        return 0.0
    return max(0.0, min(1.0, number))


@dataclass(frozen=True)
class DiscoveryResult:
    """A content item found by the discovery collaborator."""
    title: str
    url: str = ""
    excerpt: str = ""
    category: str = ""
    relevance_score: float = 0.5
    tags: tuple[str, ...] = ()

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> DiscoveryResult:
        """Build a discovery result from the collaborator's dict shape."""
        raw_tags = data.get("tags") or ()
        if isinstance(raw_tags, str):
            raw_tags = [part for part in raw_tags.split(",")]
        tags = tuple(str(tag).strip() for tag in raw_tags if str(tag).strip())
        score = data.get("relevance_score")
        return cls(
            title=str(data.get("title") or "").strip(),
            url=str(data.get("url") or ""),
            excerpt=str(data.get("excerpt") or data.get("content") or ""),
            category=str(data.get("category") or ""),
            relevance_score=0.5 if score is None else _clamp(score),
            tags=tags,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "url": self.url,
            "excerpt": self.excerpt,
            "category": self.category,
            "relevance_score": self.relevance_score,
            "tags": list(self.tags),
        }


def coerce_discovery_results(items: object) -> tuple[DiscoveryResult, ...]:
    """Normalize a sequence of discovery items into immutable records."""
    if isinstance(items, (str, bytes)) or not isinstance(items, (list, tuple)):
        raise InvalidInputError("Discovery results must be a list")
    results: list[DiscoveryResult] = []
    for item in items:
        if isinstance(item, DiscoveryResult):
            results.append(item)
        elif isinstance(item, Mapping):
            results.append(DiscoveryResult.from_mapping(item))
        else:
            raise InvalidInputError("Discovery results must contain mappings")
    return tuple(results)


@dataclass(frozen=True)
class IntentContext:
    """Result of intent analysis for a query."""
    primary_intent: Intent
    confidence: float = 0.5
    keywords: tuple[str, ...] = ()
    suggested_components: tuple[str, ...] = ()
    content_depth: str = "basic"
    personalization_level: str = "low"

    @classmethod
    def coerce(cls, value: object) -> IntentContext:
        """Accept an intent record, a mapping or a bare intent name."""
        if isinstance(value, IntentContext):
            return value
        if isinstance(value, (str, Intent)):
            return cls(primary_intent=Intent.parse(value))
        if isinstance(value, Mapping):
            return cls(
                primary_intent=Intent.parse(value.get("primary_intent")),
                confidence=_clamp(value.get("confidence", 0.5)),
                keywords=tuple(value.get("keywords") or ()),
                suggested_components=tuple(value.get("suggested_components") or ()),
                content_depth=str(value.get("content_depth") or "basic"),
                personalization_level=str(value.get("personalization_level") or "low"),
            )
        raise InvalidInputError("Intent context is required")

    def to_dict(self) -> dict[str, Any]:
        return {
            "primary_intent": self.primary_intent.value,
            "confidence": self.confidence,
            "keywords": list(self.keywords),
            "suggested_components": list(self.suggested_components),
            "content_depth": self.content_depth,
            "personalization_level": self.personalization_level,
        }


@dataclass(frozen=True)
class SearchContext:
    """Immutable per-request view of the query and its intent."""
    query: str
    intent: IntentContext
    timestamp: datetime = field(default_factory=_utcnow)


@dataclass(frozen=True)
class ContentPreferences:
    preferred_topics: tuple[str, ...] = ()
    preferred_formats: tuple[str, ...] = ("text",)

    def to_dict(self) -> dict[str, Any]:
        return {
            "preferred_topics": list(self.preferred_topics),
            "preferred_formats": list(self.preferred_formats),
        }


_REQUIRED_CONTEXT_KEYS = ("search_query", "user_interests", "intent_context")


@dataclass(frozen=True)
class PersonalizationContext:
    """Everything a generator may know about the visitor and the query."""
    search_query: str
    user_interests: dict[str, float]
    intent_context: IntentContext
    content_preferences: ContentPreferences = field(default_factory=ContentPreferences)
    tone_preference: str = "informative"
    complexity_level: str = "medium"
    available_content: tuple[DiscoveryResult, ...] = ()
    personalization_signals: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=_utcnow)

    @property
    def intent(self) -> Intent:
        return self.intent_context.primary_intent

    def top_interests(self, limit: int = 3) -> list[tuple[str, float]]:
        """Return the strongest interests, highest score first."""
        ranked = sorted(self.user_interests.items(), key=lambda item: (-item[1], item[0]))
        return [(name, score) for name, score in ranked if score > 0][:limit]

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> PersonalizationContext:
        """Build a context from a plain mapping, validating required keys."""
        missing = [key for key in _REQUIRED_CONTEXT_KEYS if data.get(key) is None]
        if missing:
            raise InvalidInputError(f"Missing required field: {missing[0]}")
        interests = data["user_interests"]
        if not isinstance(interests, Mapping):
            raise InvalidInputError("user_interests must be a mapping")
        preferences = data.get("content_preferences")
        if isinstance(preferences, Mapping):
            preferences = ContentPreferences(
                preferred_topics=tuple(preferences.get("preferred_topics") or ()),
                preferred_formats=tuple(preferences.get("preferred_formats") or ("text",)),
            )
        elif not isinstance(preferences, ContentPreferences):
            preferences = ContentPreferences()
        return cls(
            search_query=str(data["search_query"]),
            user_interests={str(key): _clamp(value) for key, value in interests.items()},
            intent_context=IntentContext.coerce(data["intent_context"]),
            content_preferences=preferences,
            tone_preference=str(data.get("tone_preference") or "informative"),
            complexity_level=str(data.get("complexity_level") or "medium"),
            available_content=coerce_discovery_results(data.get("available_content") or []),
            personalization_signals=dict(data.get("personalization_signals") or {}),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "search_query": self.search_query,
            "user_interests": dict(self.user_interests),
            "intent_context": self.intent_context.to_dict(),
            "content_preferences": self.content_preferences.to_dict(),
            "tone_preference": self.tone_preference,
            "complexity_level": self.complexity_level,
            "available_content": len(self.available_content),
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class GenerationContext:
    """Per-component derived view; subclasses add type-specific fields."""
    search_query: str
    intent: Intent
    user_interests: dict[str, float] = field(default_factory=dict)
    tone_preference: str = "informative"
    complexity_level: str = "medium"


@dataclass(frozen=True)
class QualityMetrics:
    """Quality scores, each clamped to [0, 1]."""
    overall_confidence: float
    content_relevance: float
    personalization_score: float
    completeness_score: float
    component_scores: dict[str, float] = field(default_factory=dict)
    readability_score: float | None = None
    readability_level: str | None = None
    safety_score: float | None = None
    safety_flags: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        for name in (
            "overall_confidence",
            "content_relevance",
            "personalization_score",
            "completeness_score",
        ):
            object.__setattr__(self, name, _clamp(getattr(self, name)))
        object.__setattr__(
            self,
            "component_scores",
            {key: _clamp(value) for key, value in self.component_scores.items()},
        )
        for name in ("readability_score", "safety_score"):
            if getattr(self, name) is not None:
                object.__setattr__(self, name, _clamp(getattr(self, name)))
        object.__setattr__(self, "safety_flags", tuple(self.safety_flags))

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "overall_confidence": self.overall_confidence,
            "content_relevance": self.content_relevance,
            "personalization_score": self.personalization_score,
            "completeness_score": self.completeness_score,
        }
        if self.component_scores:
            payload["component_scores"] = dict(self.component_scores)
        if self.readability_score is not None:
            payload["readability_score"] = self.readability_score
            payload["readability_level"] = self.readability_level
        if self.safety_score is not None:
            payload["safety_score"] = self.safety_score
            payload["safety_flags"] = list(self.safety_flags)
        return payload


@dataclass(frozen=True)
class ComponentResult:
    """Outcome of one component generation, successful or fallback."""
    component_type: str
    success: bool
    content: dict[str, Any]
    confidence: float
    metadata: dict[str, Any] = field(default_factory=dict)
    error: str | None = None
    from_cache: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "confidence", _clamp(self.confidence))

    @property
    def fallback_content(self) -> dict[str, Any] | None:
        return None if self.success else self.content

    def to_dict(self) -> dict[str, Any]:
        if self.success:
            return {
                "success": True,
                "content": self.content,
                "metadata": self.metadata,
                "confidence": self.confidence,
                "from_cache": self.from_cache,
            }
        return {
            "success": False,
            "error": self.error,
            "fallback_content": self.content,
            "metadata": self.metadata,
            "confidence": self.confidence,
        }


@dataclass(frozen=True)
class PageSection:
    name: str
    components: list[ComponentResult] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "components": [
                {"type": component.component_type, **component.to_dict()}
                for component in self.components
            ],
        }


@dataclass(frozen=True)
class PageMetadata:
    title: str
    description: str
    keywords: tuple[str, ...] = ()
    intent: str = Intent.INFORMATIONAL.value

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "keywords": list(self.keywords),
            "intent": self.intent,
        }


@dataclass(frozen=True)
class PageContent:
    """Assembled page handed to the rendering collaborator."""
    template: Template
    sections: dict[str, PageSection]
    metadata: PageMetadata

    @property
    def title(self) -> str:
        return self.metadata.title

    def components(self) -> list[ComponentResult]:
        return [component for section in self.sections.values() for component in section.components]

    def to_dict(self) -> dict[str, Any]:
        return {
            "template": self.template.value,
            "sections": {name: section.to_dict() for name, section in self.sections.items()},
            "metadata": self.metadata.to_dict(),
        }


@dataclass(frozen=True)
class PageGenerationResult:
    """Response of the page generation engine."""
    success: bool
    content: PageContent
    quality_metrics: QualityMetrics
    generation_time: float
    components: dict[str, ComponentResult] = field(default_factory=dict)
    intent: IntentContext | None = None
    personalization_context: PersonalizationContext | None = None
    fallback_used: bool = False
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "content": self.content.to_dict(),
            "components": {name: result.to_dict() for name, result in self.components.items()},
            "quality_metrics": self.quality_metrics.to_dict(),
            "generation_time": self.generation_time,
            "intent": self.intent.to_dict() if self.intent else None,
            "fallback_used": self.fallback_used,
            "error": self.error,
        }


@dataclass(frozen=True)
class GenerationStat:
    """One entry of the in-memory generation stats log."""
    component_type: str
    generation_time: float
    confidence: float
    provider: str | None
    query: str
    timestamp: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "component_type": self.component_type,
            "generation_time": self.generation_time,
            "confidence_score": self.confidence,
            "ai_provider": self.provider,
            "search_query": self.query,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class PageStat:
    """One entry of the page generation log."""
    search_query: str
    template: str
    generation_time: float
    confidence: float
    component_count: int
    fallback_used: bool
    timestamp: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "search_query": self.search_query,
            "template": self.template,
            "generation_time": self.generation_time,
            "confidence_score": self.confidence,
            "component_count": self.component_count,
            "fallback_used": self.fallback_used,
            "timestamp": self.timestamp.isoformat(),
        }
