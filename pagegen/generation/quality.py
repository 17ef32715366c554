from __future__ import annotations

"""Quality scoring for generated components and assembled pages."""

import re
from collections import Counter
from typing import Any, Callable, Mapping, Sequence

from pagegen.generation.text import flatten_text
from pagegen.generation.types import ComponentResult, PersonalizationContext, QualityMetrics

DEFAULT_PERSONALIZATION_SCORE = 0.7

READABILITY_LEVELS = (
    (90.0, "Very Easy"),
    (80.0, "Easy"),
    (70.0, "Fairly Easy"),
    (60.0, "Standard"),
    (50.0, "Fairly Difficult"),
    (30.0, "Difficult"),
)
IDEAL_SENTENCE_LENGTH = 17.5
COMPLEX_WORD_CEILING = 0.3
PARAGRAPH_STRUCTURE_SCORE = 0.8

SPAM_PHRASES = (
    "click here",
    "100% free",
    "act now",
    "limited time only",
    "risk-free",
    "no obligation",
    "100% guaranteed",
    "$$$",
)
SAFETY_PENALTIES = {
    "spam_phrase": 0.3,
    "excessive_caps": 0.2,
    "excessive_punctuation": 0.2,
    "repeated_words": 0.2,
}

_SENTENCE_RE = re.compile(r"[.!?]+")
_WORD_RE = re.compile(r"[A-Za-z0-9']+")
_VOWEL_GROUP_RE = re.compile(r"[aeiouy]+")
_PUNCTUATION_RUN_RE = re.compile(r"[!?]{3,}")

PersonalizationScorer = Callable[[Mapping[str, Any], PersonalizationContext], float]


def clamp(value: float) -> float:
    return max(0.0, min(1.0, float(value)))


def content_relevance(content: Mapping[str, Any], query: str) -> float:
    """Fraction of query words literally present in the content text.

    Only words longer than two characters can match, but the denominator is the
    full query word count. Empty query or empty content scores a neutral 0.5.
    """
    words = query.lower().split()
    text = flatten_text(content)
    if not words or not text:
        return 0.5
    matches = sum(1 for word in words if len(word) > 2 and word in text)
    return clamp(matches / max(len(words), 1))


def is_filled(value: object) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, tuple, dict, set)):
        return bool(value)
    return True


def completeness_score(content: Mapping[str, Any], required_fields: Sequence[str]) -> float:
    """Fraction of required fields present and non-empty."""
    if not required_fields:
        return 1.0
    present = sum(1 for name in required_fields if is_filled(content.get(name)))
    return present / len(required_fields)


def constant_personalization(
    content: Mapping[str, Any], context: PersonalizationContext
) -> float:
    """Default personalization strategy: a fixed baseline score."""
    return DEFAULT_PERSONALIZATION_SCORE


def interest_alignment(content: Mapping[str, Any], context: PersonalizationContext) -> float:
    """Score how many of the visitor's top interests surface in the content."""
    top = context.top_interests(3)
    if not top:
        return DEFAULT_PERSONALIZATION_SCORE
    text = flatten_text(content)
    matched = 0
    for name, _score in top:
        label = name.lower()
        if label in text or label.replace("_", " ") in text:
            matched += 1
    return clamp(0.5 + 0.5 * matched / len(top))


def count_syllables(word: str) -> int:
    """Vowel-group count, never below one."""
    return max(1, len(_VOWEL_GROUP_RE.findall(word.lower())))


def _sentences(text: str) -> list[str]:
    return [part for part in _SENTENCE_RE.split(text) if part.strip()]


def flesch_reading_ease(text: str) -> float:
    words = _WORD_RE.findall(text)
    sentences = _sentences(text)
    if not words or not sentences:
        return 0.0
    syllables = sum(count_syllables(word) for word in words)
    return (
        206.835
        - 1.015 * (len(words) / len(sentences))
        - 84.6 * (syllables / len(words))
    )


def readability_level(flesch: float) -> str:
    for threshold, label in READABILITY_LEVELS:
        if flesch >= threshold:
            return label
    return "Very Difficult"


def readability_score(text: str) -> float:
    """Blend Flesch ease, sentence length and the share of complex words.

    Paragraph structure is not measured; it contributes a fixed score. Text
    without words scores a neutral 0.5.
    """
    words = _WORD_RE.findall(text)
    sentences = _sentences(text)
    if not words or not sentences:
        return 0.5
    flesch = clamp((flesch_reading_ease(text) + 100) / 200)
    average = len(words) / len(sentences)
    sentence_length = max(0.0, 1 - abs(average - IDEAL_SENTENCE_LENGTH) / IDEAL_SENTENCE_LENGTH)
    complex_share = sum(
        1 for word in words if len(word) > 6 or count_syllables(word) > 2
    ) / len(words)
    complex_words = 1 - min(1.0, complex_share / COMPLEX_WORD_CEILING)
    return clamp(
        0.4 * flesch
        + 0.3 * sentence_length
        + 0.2 * complex_words
        + 0.1 * PARAGRAPH_STRUCTURE_SCORE
    )


def safety_flags(text: str) -> tuple[str, ...]:
    """Spam patterns found in case-preserved content text."""
    flags: list[str] = []
    lowered = text.lower()
    if any(phrase in lowered for phrase in SPAM_PHRASES):
        flags.append("spam_phrase")
    letters = [char for char in text if char.isalpha()]
    if len(letters) >= 20 and sum(char.isupper() for char in letters) / len(letters) > 0.5:
        flags.append("excessive_caps")
    if _PUNCTUATION_RUN_RE.search(text):
        flags.append("excessive_punctuation")
    words = [word for word in _WORD_RE.findall(lowered) if len(word) > 3]
    if len(words) >= 10:
        _word, count = Counter(words).most_common(1)[0]
        if count / len(words) > 0.25:
            flags.append("repeated_words")
    return tuple(flags)


def safety_score(flags: Sequence[str]) -> float:
    return clamp(1.0 - sum(SAFETY_PENALTIES.get(flag, 0.0) for flag in flags))


def overall_confidence(relevance: float, personalization: float, completeness: float) -> float:
    return clamp(0.4 * relevance + 0.3 * personalization + 0.3 * completeness)


def score_component(
    content: Mapping[str, Any],
    context: PersonalizationContext,
    required_fields: Sequence[str],
    personalization_scorer: PersonalizationScorer = constant_personalization,
) -> QualityMetrics:
    """Compute the quality metrics of a single component.

    Readability and safety are reported alongside but do not feed the
    overall confidence.
    """
    relevance = content_relevance(content, context.search_query)
    personalization = clamp(personalization_scorer(content, context))
    completeness = completeness_score(content, required_fields)
    text = flatten_text(content, lowercase=False)
    flags = safety_flags(text)
    level = readability_level(flesch_reading_ease(text)) if _WORD_RE.search(text) else None
    return QualityMetrics(
        overall_confidence=overall_confidence(relevance, personalization, completeness),
        content_relevance=relevance,
        personalization_score=personalization,
        completeness_score=completeness,
        readability_score=readability_score(text),
        readability_level=level,
        safety_score=safety_score(flags),
        safety_flags=flags,
    )


def score_page(
    components: Mapping[str, ComponentResult],
    context: PersonalizationContext,
    personalization_scorer: PersonalizationScorer = constant_personalization,
) -> QualityMetrics:
    """Combine component confidences with page-level relevance signals."""
    component_scores = {name: result.confidence for name, result in components.items()}
    if component_scores:
        mean = sum(component_scores.values()) / len(component_scores)
    else:
        mean = 0.5
    page_text = {name: result.content for name, result in components.items()}
    relevance = content_relevance(page_text, context.search_query)
    personalization = clamp(personalization_scorer(page_text, context))
    completeness_values = [
        result.metadata.get("quality_metrics", {}).get("completeness_score", 1.0)
        for result in components.values()
    ]
    if completeness_values:
        completeness = sum(completeness_values) / len(completeness_values)
    else:
        completeness = 0.0
    overall = 0.4 * mean + 0.3 * relevance + 0.2 * personalization + 0.1 * completeness
    return QualityMetrics(
        overall_confidence=overall,
        content_relevance=relevance,
        personalization_score=personalization,
        completeness_score=completeness,
        component_scores=component_scores,
    )
