from __future__ import annotations

"""Hero banner component: headline, supporting copy and a primary action."""

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
    stable_index,
    strip_markup,
    title_case,
    truncate_text,
    unique,
)
from pagegen.generation.types import DiscoveryResult, GenerationContext, Intent, PersonalizationContext
from pagegen.providers.registry import ProviderRegistry

HERO_REQUIRED_FIELDS = ("headline", "subheadline", "description", "cta_text")
HERO_MAX_TOKENS = 800
MAX_KEYWORDS = 10

BACKGROUND_STYLES = ("gradient", "solid", "image")
TEXT_ALIGNMENTS = ("left", "center", "right")

HERO_STYLES = {
    Intent.COMMERCIAL: "conversion-focused",
    Intent.INFORMATIONAL: "content-focused",
    Intent.EDUCATIONAL: "learning-focused",
    Intent.NAVIGATIONAL: "navigation-focused",
}
EMOTIONAL_TONES = {
    Intent.COMMERCIAL: "exciting",
    Intent.INFORMATIONAL: "helpful",
    Intent.EDUCATIONAL: "encouraging",
    Intent.NAVIGATIONAL: "efficient",
}
VISUAL_ELEMENTS = {
    "photography": ["camera-icon", "gallery-grid", "image-showcase"],
    "technology": ["tech-icons", "code-blocks", "device-mockups"],
    "business": ["chart-icons", "professional-imagery", "growth-graphics"],
    "travel": ["map-elements", "destination-photos", "journey-icons"],
    "education": ["book-icons", "learning-graphics", "progress-indicators"],
    "home_improvement": ["before-after-slider", "tool-icons", "room-gallery"],
}
CTA_OPTIONS = {
    Intent.COMMERCIAL: {
        "professional": ["Shop Now", "Get Started", "Learn More"],
        "casual": ["Check It Out", "See What's New", "Explore"],
        "friendly": ["Find Your Perfect Match", "Discover More", "See Options"],
    },
    Intent.INFORMATIONAL: {
        "professional": ["Read More", "Learn More", "Explore"],
        "casual": ["Check It Out", "See More", "Dive In"],
        "friendly": ["Discover More", "Find Out More", "Explore Together"],
    },
    Intent.EDUCATIONAL: {
        "professional": ["Start Learning", "Begin Course", "Access Resources"],
        "casual": ["Let's Learn", "Get Started", "Jump In"],
        "friendly": ["Start Your Journey", "Begin Learning", "Explore Together"],
    },
}


@dataclass(frozen=True)
class HeroContext(GenerationContext):
    content_themes: tuple[str, ...] = ()
    hero_style: str = "content-focused"
    target_audience: str = "general"
    emotional_tone: str = "helpful"


def hero_preferences(context: PersonalizationContext) -> list[str]:
    if context.intent is Intent.COMMERCIAL:
        return ["anthropic", "openai", "google"]
    if context.intent is Intent.EDUCATIONAL:
        return ["openai", "google", "anthropic"]
    return ["openai", "anthropic", "google"]


def build_hero_context(
    personalization: PersonalizationContext, discovery: Sequence[DiscoveryResult]
) -> HeroContext:
    themes: list[str] = []
    for item in discovery:
        if item.category:
            themes.append(item.category)
        themes.extend(item.tags)
    interests = personalization.user_interests
    if interests.get("technology", 0.0) > 0.7:
        audience = "tech-savvy"
    elif interests.get("business", 0.0) > 0.7:
        audience = "business-professional"
    else:
        audience = "general"
    intent = personalization.intent
    return HeroContext(
        search_query=personalization.search_query.strip(),
        intent=intent,
        user_interests=dict(interests),
        tone_preference=personalization.tone_preference,
        complexity_level=personalization.complexity_level,
        content_themes=tuple(unique(themes)[:5]),
        hero_style=HERO_STYLES.get(intent, "content-focused"),
        target_audience=audience,
        emotional_tone=EMOTIONAL_TONES.get(intent, "helpful"),
    )


def build_hero_prompt(context: HeroContext) -> str:
    lines = [
        "Create a compelling hero banner for a search-triggered page.",
        "",
        "CONTEXT:",
        f'- Search Query: "{context.search_query}"',
        f"- User Intent: {context.intent.value}",
        f"- Hero Style: {context.hero_style}",
        f"- Tone: {context.tone_preference}",
        f"- Emotional Tone: {context.emotional_tone}",
        f"- Target Audience: {context.target_audience}",
    ]
    if context.user_interests:
        lines.append(f"- User Interests: {', '.join(list(context.user_interests)[:5])}")
    if context.content_themes:
        lines.append(f"- Content Themes: {', '.join(context.content_themes)}")
    lines.extend(
        [
            "",
            "REQUIREMENTS:",
            "- Create an attention-grabbing headline that directly addresses the search query",
            "- Write a compelling subheadline that expands on the main message",
            "- Include a clear, actionable call-to-action",
            "- Keep all text concise and scannable",
            "- Match the emotional tone to the user intent",
            "",
            "OUTPUT FORMAT (JSON):",
            "{",
            '  "headline": "Main headline (max 60 characters)",',
            '  "subheadline": "Supporting subheadline (max 120 characters)",',
            '  "description": "Description (max 200 characters)",',
            '  "cta_text": "Button text (max 25 characters)",',
            '  "cta_url": "#relevant-section",',
            '  "background_style": "gradient|solid|image",',
            '  "text_alignment": "left|center|right",',
            '  "visual_elements": ["element1", "element2"],',
            '  "keywords": ["keyword1", "keyword2"]',
            "}",
        ]
    )
    return "\n".join(lines)


def parse_hero_response(raw: str, context: GenerationContext) -> dict[str, Any]:
    data = extract_json_object(raw)
    if data is None:
        data = parse_hero_text(raw)
    return clean_hero(data, context.search_query)


def parse_hero_text(raw: str) -> dict[str, Any]:
    """Guess hero fields from free text by line length."""
    content: dict[str, Any] = {"headline": "", "subheadline": "", "description": ""}
    for line in (raw or "").splitlines():
        line = strip_markup(line).lstrip("#*- ").strip()
        if not line:
            continue
        length = len(line)
        if not content["headline"] and 10 <= length <= 80:
            content["headline"] = line
        elif not content["description"] and 50 <= length <= 250:
            content["description"] = line
        elif not content["subheadline"] and 20 <= length <= 150:
            content["subheadline"] = line
    return content


def _text_field(value: object, limit: int, fallback: str) -> str:
    if not isinstance(value, str) or not value.strip():
        return fallback
    return truncate_text(value, limit) or fallback


def clean_hero(data: dict[str, Any], query: str) -> dict[str, Any]:
    """Apply defaults, length budgets and style enums to hero fields."""
    background = str(data.get("background_style") or "").lower()
    alignment = str(data.get("text_alignment") or "").lower()
    cta_url = data.get("cta_url")
    keywords = clean_string_list(data.get("keywords"), MAX_KEYWORDS)
    return {
        "headline": _text_field(data.get("headline"), 60, truncate_text(f"Discover {title_case(query)}", 60)),
        "subheadline": _text_field(data.get("subheadline"), 120, "Find exactly what you need"),
        "description": _text_field(
            data.get("description"), 200, "Explore our comprehensive resources and expert guidance."
        ),
        "cta_text": _text_field(data.get("cta_text"), 25, "Learn More"),
        "cta_url": cta_url.strip() if isinstance(cta_url, str) and cta_url.strip() else "#content",
        "background_style": background if background in BACKGROUND_STYLES else "gradient",
        "text_alignment": alignment if alignment in TEXT_ALIGNMENTS else "center",
        "visual_elements": clean_string_list(data.get("visual_elements"), 5),
        "keywords": unique(keywords + query_words(query))[:MAX_KEYWORDS],
    }


def suggest_visual_elements(interests: list[str]) -> list[str]:
    suggestions: list[str] = []
    for name in interests:
        suggestions.extend(VISUAL_ELEMENTS.get(name, []))
    return unique(suggestions)[:3]


def personalize_cta_text(current: str, tone: str, intent: Intent, query: str) -> str:
    """Pick CTA text for the intent and tone; stable for a given query."""
    options = CTA_OPTIONS.get(intent, {}).get(tone)
    if not options:
        return current
    return options[stable_index(query.lower(), len(options))]


def personalize_hero(
    content: dict[str, Any], context: GenerationContext, personalization: PersonalizationContext
) -> dict[str, Any]:
    result = dict(content)
    top = [name for name, _score in personalization.top_interests(3)]
    if top:
        result["keywords"] = merge_capped(top, list(result.get("keywords", [])), MAX_KEYWORDS)
        visuals = suggest_visual_elements(top)
        if visuals:
            result["visual_elements"] = visuals
    tone = personalization.tone_preference
    result["cta_text"] = personalize_cta_text(
        result["cta_text"], tone, personalization.intent, personalization.search_query
    )
    if tone in {"casual", "friendly"}:
        result["text_alignment"] = "left"
    elif tone in {"professional", "authoritative"}:
        result["text_alignment"] = "center"
    return result


def fallback_hero(query: str, intent: Intent) -> dict[str, Any]:
    """Deterministic hero built only from the query and intent."""
    headline = "Find What You're Looking For"
    cta_text = "Explore Results"
    if intent is Intent.COMMERCIAL:
        headline = "Find the Perfect Solution"
        cta_text = "Shop Now"
    elif intent is Intent.EDUCATIONAL:
        headline = truncate_text(f"Learn About {title_case(query)}", 60)
        cta_text = "Start Learning"
    return {
        "headline": headline,
        "subheadline": truncate_text(f'Discover relevant content for "{title_case(query)}"', 120),
        "description": (
            "We've found some great resources that match your search. "
            "Explore the content below to find exactly what you need."
        ),
        "cta_text": cta_text,
        "cta_url": "#content",
        "background_style": "gradient",
        "text_alignment": "center",
        "visual_elements": ["search-icon", "content-grid"],
        "keywords": unique(query.lower().split())[:MAX_KEYWORDS],
    }


HERO_STRATEGY = ComponentStrategy(
    component_type="hero",
    required_fields=HERO_REQUIRED_FIELDS,
    build_context=build_hero_context,
    build_prompt=build_hero_prompt,
    parse_response=parse_hero_response,
    personalize=personalize_hero,
    fallback_content=fallback_hero,
    provider_preferences=hero_preferences,
    personalization_score=interest_alignment,
    max_tokens=HERO_MAX_TOKENS,
)


def build_hero_generator(
    registry: ProviderRegistry,
    cache: ComponentCache,
    config: GenerationConfig | None = None,
) -> ComponentGenerator:
    return ComponentGenerator(HERO_STRATEGY, registry, cache, config)
