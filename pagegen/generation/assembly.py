from __future__ import annotations

"""Assemble generated components into a page and build the fallback page."""

from typing import Mapping, Sequence

from pagegen.generation.text import query_words, truncate_text, unique
from pagegen.generation.types import (
    ComponentResult,
    DiscoveryResult,
    Intent,
    IntentContext,
    PageContent,
    PageMetadata,
    PageSection,
    Template,
)

SECTION_ORDER = ("header", "main", "footer")
COMPONENT_SECTIONS = {"hero": "header", "cta": "footer"}
TITLE_FIELDS = ("headline", "title")
DESCRIPTION_FIELDS = ("summary", "subheadline", "description")
MAX_TITLE_CHARS = 70
MAX_DESCRIPTION_CHARS = 160
MAX_PAGE_KEYWORDS = 10
MAX_FALLBACK_ITEMS = 10

TEMPLATES = {
    Intent.INFORMATIONAL: Template.INFORMATIONAL,
    Intent.COMMERCIAL: Template.COMMERCIAL,
    Intent.NAVIGATIONAL: Template.NAVIGATIONAL,
    Intent.EDUCATIONAL: Template.EDUCATIONAL,
}


def select_template(intent: Intent) -> Template:
    return TEMPLATES.get(intent, Template.BASIC)


def organize_sections(components: Mapping[str, ComponentResult]) -> dict[str, PageSection]:
    """Place hero in the header, cta in the footer and everything else in main."""
    grouped: dict[str, list[ComponentResult]] = {name: [] for name in SECTION_ORDER}
    for name, result in components.items():
        grouped[COMPONENT_SECTIONS.get(name, "main")].append(result)
    return {name: PageSection(name=name, components=items) for name, items in grouped.items()}


def _ranked(components: Mapping[str, ComponentResult]) -> list[ComponentResult]:
    return sorted(components.values(), key=lambda result: -result.confidence)


def _first_text(components: Sequence[ComponentResult], fields: Sequence[str]) -> str:
    for result in components:
        for name in fields:
            value = result.content.get(name)
            if isinstance(value, str) and value.strip():
                return value.strip()
    return ""


def mentions_query(text: str, query: str) -> bool:
    """True when every significant query word appears in the text."""
    words = query_words(query) or query.lower().split()
    lowered = text.lower()
    return all(word in lowered for word in words)


def page_title(components: Mapping[str, ComponentResult], query: str) -> str:
    title = _first_text(_ranked(components), TITLE_FIELDS)
    if not title:
        return f"{query} - Search Results"
    title = truncate_text(title, MAX_TITLE_CHARS)
    if not mentions_query(title, query):
        title = f"{title} | {query}"
    return title


def page_description(components: Mapping[str, ComponentResult], query: str) -> str:
    description = _first_text(_ranked(components), DESCRIPTION_FIELDS)
    if not description:
        return f"Search results for {query}"
    return truncate_text(description, MAX_DESCRIPTION_CHARS)


def page_keywords(intent: IntentContext, query: str) -> tuple[str, ...]:
    return tuple(unique(list(intent.keywords) + query_words(query))[:MAX_PAGE_KEYWORDS])


def assemble_page(
    components: Mapping[str, ComponentResult], intent: IntentContext, query: str
) -> PageContent:
    """Build the page layout and metadata from generated components."""
    return PageContent(
        template=select_template(intent.primary_intent),
        sections=organize_sections(components),
        metadata=PageMetadata(
            title=page_title(components, query),
            description=page_description(components, query),
            keywords=page_keywords(intent, query),
            intent=intent.primary_intent.value,
        ),
    )


def fallback_components(
    query: str, discovery: Sequence[DiscoveryResult]
) -> dict[str, ComponentResult]:
    hero = ComponentResult(
        component_type="hero",
        success=True,
        content={
            "title": f"Search Results for: {query}",
            "description": f"Find information about {query}",
            "image": None,
        },
        confidence=0.3,
        metadata={"component_type": "hero", "fallback": True},
    )
    content_list = ComponentResult(
        component_type="content_list",
        success=True,
        content={
            "title": "Related Content",
            "items": [item.to_dict() for item in discovery[:MAX_FALLBACK_ITEMS]],
        },
        confidence=0.4,
        metadata={"component_type": "content_list", "fallback": True},
    )
    return {"hero": hero, "content_list": content_list}


def fallback_page(
    query: str, discovery: Sequence[DiscoveryResult]
) -> tuple[PageContent, dict[str, ComponentResult]]:
    """Minimal non-AI page: a query hero plus the raw discovery results."""
    components = fallback_components(query, discovery)
    content = PageContent(
        template=Template.BASIC,
        sections=organize_sections(components),
        metadata=PageMetadata(
            title=f"{query} - Search Results",
            description=f"Search results and information about {query}",
            keywords=tuple(query_words(query)),
            intent=Intent.INFORMATIONAL.value,
        ),
    )
    return content, components
