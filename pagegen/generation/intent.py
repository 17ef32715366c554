from __future__ import annotations

"""Rule-based search intent analysis."""

from dataclasses import dataclass, field
import re
from typing import Sequence

from pagegen.generation.types import DiscoveryResult, Intent, IntentContext

STOP_WORDS = frozenset(
    {
        "the", "a", "an", "and", "or", "but", "in", "on", "at", "to",
        "for", "of", "with", "by", "is", "are", "was", "were",
    }
)


@dataclass(frozen=True)
class IntentRule:
    """Keywords score +2 each (substring match); patterns score +3 each."""
    keywords: tuple[str, ...]
    patterns: tuple[re.Pattern[str], ...]


DEFAULT_INTENT_RULES: dict[Intent, IntentRule] = {
    Intent.EDUCATIONAL: IntentRule(
        keywords=("how to", "what is", "why", "when", "where", "tutorial", "guide", "learn", "explain"),
        patterns=(
            re.compile(r"^(how|what|why|when|where)\s+", re.IGNORECASE),
            re.compile(r"\b(tutorial|guide|learn|explain)\b", re.IGNORECASE),
        ),
    ),
    Intent.COMMERCIAL: IntentRule(
        keywords=(
            "buy", "purchase", "price", "cost", "sale", "discount", "deal", "shop", "order",
            "remodel", "renovat", "install", "quote", "estimate", "contractor",
        ),
        patterns=(
            re.compile(r"\b(buy|purchase|price|cost|sale|discount|deal|shop|order)\b", re.IGNORECASE),
            re.compile(r"\b(remodel|renovat|install|quote|estimate|contractor)\w*", re.IGNORECASE),
        ),
    ),
    Intent.INFORMATIONAL: IntentRule(
        keywords=("about", "information", "details", "facts", "overview", "summary"),
        patterns=(
            re.compile(r"\b(about|information|details|facts|overview|summary)\b", re.IGNORECASE),
        ),
    ),
    Intent.NAVIGATIONAL: IntentRule(
        keywords=("contact", "location", "address", "phone", "email", "hours", "directions"),
        patterns=(
            re.compile(r"\b(contact|location|address|phone|email|hours|directions)\b", re.IGNORECASE),
        ),
    ),
}

SUGGESTED_COMPONENTS: dict[Intent, tuple[str, ...]] = {
    Intent.INFORMATIONAL: ("hero", "article", "related_content"),
    Intent.COMMERCIAL: ("hero", "product_showcase", "cta", "testimonials"),
    Intent.NAVIGATIONAL: ("hero", "navigation_guide", "quick_links"),
    Intent.EDUCATIONAL: ("hero", "tutorial", "resources", "cta"),
}
DEFAULT_COMPONENTS = ("hero", "article", "cta")


def extract_context_keywords(query: str) -> list[str]:
    """Query words minus stop words and words of two characters or fewer."""
    words = re.split(r"\s+", query.lower().strip())
    return [word for word in words if word and word not in STOP_WORDS and len(word) > 2]


def content_depth(result_count: int) -> str:
    if result_count > 10:
        return "comprehensive"
    if result_count > 5:
        return "detailed"
    return "basic"


def content_variety(discovery: Sequence[DiscoveryResult]) -> float:
    """Share of distinct categories among results that have one."""
    categories = [item.category for item in discovery if item.category]
    if not categories:
        return 0.0
    return len(set(categories)) / len(categories)


def personalization_level(discovery: Sequence[DiscoveryResult]) -> str:
    variety = content_variety(discovery)
    if variety > 0.7:
        return "high"
    if variety > 0.4:
        return "medium"
    return "low"


@dataclass
class IntentAnalyzer:
    """Score each intent by keyword and pattern hits and pick the highest."""
    rules: dict[Intent, IntentRule] = field(default_factory=lambda: dict(DEFAULT_INTENT_RULES))
    suggestions: dict[Intent, tuple[str, ...]] = field(
        default_factory=lambda: dict(SUGGESTED_COMPONENTS)
    )

    def score(self, query: str) -> dict[Intent, int]:
        lowered = query.lower().strip()
        scores: dict[Intent, int] = {}
        for intent, rule in self.rules.items():
            value = sum(2 for keyword in rule.keywords if keyword in lowered)
            value += sum(3 for pattern in rule.patterns if pattern.search(lowered))
            scores[intent] = value
        return scores

    def detect_intent(self, query: str) -> Intent:
        """Return the best scoring intent; ties keep rule order."""
        scores = self.score(query)
        best = max(scores.values(), default=0)
        if best <= 0:
            return Intent.INFORMATIONAL
        for intent, value in scores.items():
            if value == best:
                return intent
        return Intent.INFORMATIONAL

    def confidence(self, intent: Intent, keywords: Sequence[str]) -> float:
        value = 0.5
        if intent is not Intent.INFORMATIONAL:
            value += 0.2
        if keywords:
            value += 0.1
        return min(1.0, value)

    def analyze(self, query: str, discovery: Sequence[DiscoveryResult] = ()) -> IntentContext:
        """Build the intent context for a query and its discovery results."""
        intent = self.detect_intent(query)
        keywords = extract_context_keywords(query)
        return IntentContext(
            primary_intent=intent,
            confidence=self.confidence(intent, keywords),
            keywords=tuple(keywords),
            suggested_components=self.suggestions.get(intent, DEFAULT_COMPONENTS),
            content_depth=content_depth(len(discovery)),
            personalization_level=personalization_level(discovery),
        )
