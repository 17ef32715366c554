from __future__ import annotations

"""Article component: long-form content grounded in discovery results."""

from dataclasses import dataclass
from typing import Any, Sequence

from pagegen.generation.cache import ComponentCache
from pagegen.generation.config import GenerationConfig
from pagegen.generation.pipeline import ComponentGenerator, ComponentStrategy
from pagegen.generation.quality import interest_alignment
from pagegen.generation.text import (
    clean_string_list,
    extract_json_object,
    merge_capped,
    query_words,
    split_sentences,
    strip_markup,
    title_case,
    truncate_text,
    unique,
)
from pagegen.generation.types import (
    DifficultyLevel,
    DiscoveryResult,
    GenerationContext,
    Intent,
    PersonalizationContext,
)
from pagegen.providers.registry import ProviderRegistry

ARTICLE_REQUIRED_FIELDS = ("title", "summary", "introduction", "main_content")
ARTICLE_MAX_TOKENS = 1200

TEXT_LIMITS = {
    "title": 80,
    "summary": 150,
    "introduction": 300,
    "main_content": 800,
}
LIST_LIMITS = {
    "key_points": 5,
    "related_topics": 5,
    "tags": 8,
}
CONTENT_TYPES = ("guide", "tutorial", "overview", "analysis")
TECHNICAL_INTERESTS = ("technology", "programming", "science", "engineering")
INTEREST_CONTENT_TYPES = {
    "technology": "tutorial",
    "business": "analysis",
    "education": "guide",
    "creative": "overview",
}
TARGET_LENGTHS = {
    Intent.EDUCATIONAL: "long",
    Intent.INFORMATIONAL: "medium",
    Intent.COMMERCIAL: "short",
    Intent.NAVIGATIONAL: "short",
}
FALLBACK_KEY_POINTS = [
    "Key concepts and definitions",
    "Practical applications",
    "Important considerations",
]


@dataclass(frozen=True)
class ArticleContext(GenerationContext):
    content_sources: tuple[DiscoveryResult, ...] = ()
    article_structure: str = "summary"
    key_topics: tuple[str, ...] = ()
    reading_level: str = DifficultyLevel.BEGINNER.value
    content_depth: str = "overview"
    target_length: str = "medium"


def article_preferences(context: PersonalizationContext) -> list[str]:
    if context.intent is Intent.EDUCATIONAL:
        return ["openai", "google", "anthropic"]
    if context.complexity_level == "high":
        return ["google", "openai", "anthropic"]
    return ["openai", "anthropic", "google"]


def build_article_context(
    personalization: PersonalizationContext, discovery: Sequence[DiscoveryResult]
) -> ArticleContext:
    """Derive the article view of the personalization context."""
    query = personalization.search_query.strip()
    intent = personalization.intent
    sources = sorted(
        (item for item in discovery if item.title),
        key=lambda item: item.relevance_score,
        reverse=True,
    )[:10]
    return ArticleContext(
        search_query=query,
        intent=intent,
        user_interests=dict(personalization.user_interests),
        tone_preference=personalization.tone_preference,
        complexity_level=personalization.complexity_level,
        content_sources=tuple(sources),
        article_structure=_article_structure(intent, len(sources)),
        key_topics=tuple(_key_topics(query, discovery)),
        reading_level=_reading_level(personalization),
        content_depth=_content_depth(len(discovery)),
        target_length=TARGET_LENGTHS.get(intent, "medium"),
    )


def _article_structure(intent: Intent, source_count: int) -> str:
    if intent is Intent.EDUCATIONAL:
        return "tutorial"
    if intent is Intent.COMMERCIAL:
        return "comparison"
    if source_count > 5:
        return "comprehensive"
    return "summary"


def _key_topics(query: str, discovery: Sequence[DiscoveryResult]) -> list[str]:
    topics = query_words(query, min_length=4)
    for item in discovery:
        if item.category:
            topics.append(item.category)
        topics.extend(item.tags)
    return unique(topics)[:8]


def _reading_level(personalization: PersonalizationContext) -> str:
    interests = personalization.user_interests
    if any(interests.get(name, 0.0) > 0.6 for name in TECHNICAL_INTERESTS):
        return DifficultyLevel.ADVANCED.value
    if personalization.intent is Intent.EDUCATIONAL:
        return DifficultyLevel.INTERMEDIATE.value
    return DifficultyLevel.BEGINNER.value


def _content_depth(result_count: int) -> str:
    if result_count > 10:
        return "comprehensive"
    if result_count > 5:
        return "detailed"
    return "overview"


def build_article_prompt(context: ArticleContext) -> str:
    """Build the article prompt with context, requirements and output format."""
    interests = [
        name
        for name, _score in sorted(context.user_interests.items(), key=lambda item: -item[1])
    ][:5]
    sources = "\n".join(
        f"- {source.title}: {strip_markup(source.excerpt)[:160]}"
        for source in context.content_sources[:5]
    )
    return (
        f'Create a {context.article_structure} article about "{context.search_query}" '
        "for a search-triggered page.\n\n"
        "CONTEXT:\n"
        f'- Search Query: "{context.search_query}"\n'
        f"- User Intent: {context.intent.value}\n"
        f"- Article Structure: {context.article_structure}\n"
        f"- Tone: {context.tone_preference}\n"
        f"- Reading Level: {context.reading_level}\n"
        f"- Target Length: {context.target_length}\n"
        f"- User Interests: {', '.join(interests) or 'none'}\n"
        f"- Key Topics: {', '.join(context.key_topics) or 'none'}\n"
        f"- Available Sources: {len(context.content_sources)}\n"
        f"{sources + chr(10) if sources else ''}\n"
        "REQUIREMENTS:\n"
        "1. Write an engaging title under 80 characters\n"
        "2. Provide a summary under 150 characters\n"
        "3. Write an introduction under 300 characters\n"
        "4. Keep the main content under 800 characters\n"
        "5. List up to 5 key points and up to 5 related topics\n"
        "6. Match the reading level and tone above\n\n"
        "OUTPUT FORMAT (JSON):\n"
        "{\n"
        '  "title": "Article title",\n'
        '  "summary": "Brief summary",\n'
        '  "introduction": "Opening paragraph",\n'
        '  "main_content": "Main article body",\n'
        '  "key_points": ["Point 1", "Point 2"],\n'
        '  "related_topics": ["Topic 1", "Topic 2"],\n'
        '  "reading_time": 3,\n'
        '  "difficulty_level": "beginner|intermediate|advanced",\n'
        '  "content_type": "guide|tutorial|overview|analysis",\n'
        '  "tags": ["tag1", "tag2"]\n'
        "}\n\n"
        "Respond with the JSON object only."
    )


def parse_article_response(raw: str, context: GenerationContext) -> dict[str, Any]:
    """Parse strict JSON first, then fall back to paragraph parsing."""
    data = extract_json_object(raw)
    if data is None:
        data = parse_article_text(raw, context.search_query)
    content = clean_article(data, context.search_query)
    sources = getattr(context, "content_sources", ())
    return enhance_with_sources(content, sources)


def parse_article_text(raw: str, query: str) -> dict[str, Any]:
    """Recover article fields from free text split into paragraphs."""
    paragraphs = [part.strip() for part in (raw or "").split("\n\n") if part.strip()]
    title = f"Understanding {title_case(query)}"
    if paragraphs and len(paragraphs[0]) < 100:
        title = paragraphs.pop(0).lstrip("#").strip() or title
    introduction = paragraphs.pop(0) if paragraphs else (
        f"Learn about {query} with this comprehensive guide."
    )
    key_points = [
        sentence
        for sentence in split_sentences(" ".join([introduction, *paragraphs]))
        if 20 <= len(sentence) <= 100
    ][:5]
    return {
        "title": title,
        "introduction": introduction,
        "main_content": "\n\n".join(paragraphs),
        "key_points": key_points,
    }


def _article_defaults(query: str) -> dict[str, Any]:
    return {
        "title": f"Understanding {title_case(query)}",
        "summary": f"A comprehensive guide to {query}",
        "introduction": f"Learn about {query} with this detailed overview.",
        "main_content": f"This guide covers the essential aspects of {query} that you need to know.",
        "reading_time": 3,
        "difficulty_level": DifficultyLevel.INTERMEDIATE.value,
        "content_type": "overview",
    }


def clean_article(data: dict[str, Any], query: str) -> dict[str, Any]:
    """Apply defaults, length budgets and enum checks to article fields."""
    defaults = _article_defaults(query)
    merged = {**defaults, **{key: value for key, value in data.items() if value is not None}}
    clean: dict[str, Any] = {}
    for name, limit in TEXT_LIMITS.items():
        text = truncate_text(merged.get(name), limit)
        clean[name] = text or truncate_text(defaults[name], limit)
    for name, limit in LIST_LIMITS.items():
        clean[name] = clean_string_list(merged.get(name), limit)
    clean["tags"] = merge_capped(query_words(query), clean["tags"], LIST_LIMITS["tags"])
    clean["reading_time"] = _reading_time(merged.get("reading_time"))
    difficulty = str(merged.get("difficulty_level") or "").lower()
    if difficulty not in {level.value for level in DifficultyLevel}:
        difficulty = DifficultyLevel.INTERMEDIATE.value
    clean["difficulty_level"] = difficulty
    content_type = str(merged.get("content_type") or "").lower()
    clean["content_type"] = content_type if content_type in CONTENT_TYPES else "overview"
    return clean


def _reading_time(value: object) -> int:
    try:
        minutes = int(float(str(value)))
    except (TypeError, ValueError):
        return 3
    return max(1, minutes)


def enhance_with_sources(
    content: dict[str, Any], sources: Sequence[DiscoveryResult]
) -> dict[str, Any]:
    """Attach source references and fold source categories into related topics."""
    if not sources:
        return content
    references = [
        {"title": source.title, "url": source.url, "relevance": source.relevance_score}
        for source in sources
        if source.title and source.url
    ][:5]
    if references:
        content["source_references"] = references
    categories = [source.category for source in sources if source.category]
    content["related_topics"] = unique(content.get("related_topics", []) + categories)[
        : LIST_LIMITS["related_topics"]
    ]
    return content


def personalize_article(
    content: dict[str, Any], context: GenerationContext, personalization: PersonalizationContext
) -> dict[str, Any]:
    """Inject top interests into tags and map tone onto difficulty."""
    result = dict(content)
    top = [name for name, _score in personalization.top_interests(3)]
    result["tags"] = merge_capped(top, list(result.get("tags", [])), LIST_LIMITS["tags"])
    for name in top:
        if name in INTEREST_CONTENT_TYPES:
            result["content_type"] = INTEREST_CONTENT_TYPES[name]
            break
    if personalization.complexity_level == "high":
        result["difficulty_level"] = DifficultyLevel.ADVANCED.value
    elif personalization.complexity_level == "low":
        result["difficulty_level"] = DifficultyLevel.BEGINNER.value
    return result


def fallback_article(query: str, intent: Intent) -> dict[str, Any]:
    """Deterministic article built only from the query and intent."""
    subject = title_case(query)
    title = f"Learn About {subject}"
    content_type = "overview"
    if intent is Intent.EDUCATIONAL:
        title = f"How to Learn {subject}"
        content_type = "tutorial"
    elif intent is Intent.COMMERCIAL:
        title = f"Complete Guide to {subject}"
        content_type = "guide"
    return {
        "title": truncate_text(title, TEXT_LIMITS["title"]),
        "summary": truncate_text(f"A comprehensive guide to {query}", TEXT_LIMITS["summary"]),
        "introduction": truncate_text(
            f"Learn about {query} with this detailed overview.", TEXT_LIMITS["introduction"]
        ),
        "main_content": truncate_text(
            f"This guide covers the essential aspects of {query} that you need to know.",
            TEXT_LIMITS["main_content"],
        ),
        "key_points": list(FALLBACK_KEY_POINTS),
        "related_topics": [],
        "reading_time": 3,
        "difficulty_level": DifficultyLevel.BEGINNER.value,
        "content_type": content_type,
        "tags": unique(query.lower().split())[: LIST_LIMITS["tags"]],
    }


ARTICLE_STRATEGY = ComponentStrategy(
    component_type="article",
    required_fields=ARTICLE_REQUIRED_FIELDS,
    build_context=build_article_context,
    build_prompt=build_article_prompt,
    parse_response=parse_article_response,
    personalize=personalize_article,
    fallback_content=fallback_article,
    provider_preferences=article_preferences,
    personalization_score=interest_alignment,
    max_tokens=ARTICLE_MAX_TOKENS,
)


def build_article_generator(
    registry: ProviderRegistry,
    cache: ComponentCache,
    config: GenerationConfig | None = None,
) -> ComponentGenerator:
    return ComponentGenerator(ARTICLE_STRATEGY, registry, cache, config)
