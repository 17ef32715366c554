from __future__ import annotations

"""Call-to-action component tuned for conversion by intent."""

from dataclasses import dataclass
from typing import Any, Sequence

from pagegen.generation.cache import ComponentCache
from pagegen.generation.config import GenerationConfig
from pagegen.generation.pipeline import ComponentGenerator, ComponentStrategy
from pagegen.generation.text import (
    clean_string_list,
    extract_json_object,
    stable_index,
    strip_markup,
    truncate_text,
    unique,
)
from pagegen.generation.types import DiscoveryResult, GenerationContext, Intent, PersonalizationContext
from pagegen.providers.registry import ProviderRegistry

CTA_REQUIRED_FIELDS = ("headline", "description", "primary_button")
CTA_MAX_TOKENS = 600

URGENCY_INDICATORS = ("Limited time", "Popular choice", "Recommended")
LAYOUT_STYLES = ("centered", "split", "banner", "sidebar")
COLOR_SCHEMES = ("primary", "accent", "neutral", "custom")
CONVERSION_GOALS = ("signup", "purchase", "download", "contact", "learn")
BUTTON_STYLES = ("primary", "secondary", "outline", "text")

CTA_STRATEGIES = {
    Intent.COMMERCIAL: "conversion",
    Intent.EDUCATIONAL: "engagement",
    Intent.INFORMATIONAL: "discovery",
    Intent.NAVIGATIONAL: "guidance",
}
TARGET_ACTIONS = {
    Intent.COMMERCIAL: "purchase",
    Intent.EDUCATIONAL: "signup",
    Intent.INFORMATIONAL: "learn_more",
    Intent.NAVIGATIONAL: "contact",
}
EMOTIONAL_TONES = {
    Intent.COMMERCIAL: "exciting",
    Intent.EDUCATIONAL: "encouraging",
    Intent.INFORMATIONAL: "helpful",
    Intent.NAVIGATIONAL: "efficient",
}
VALUE_PROPOSITIONS = (
    ("learn", "comprehensive learning resources"),
    ("find", "exactly what you're looking for"),
    ("get", "immediate access to solutions"),
    ("buy", "the best products and deals"),
    ("compare", "detailed comparisons and reviews"),
)
DEFAULT_HIGHLIGHTS = {
    Intent.COMMERCIAL: ["Best value", "Fast delivery", "Money-back guarantee"],
    Intent.EDUCATIONAL: ["Expert instruction", "Practical skills", "Lifetime access"],
    Intent.INFORMATIONAL: ["Comprehensive guide", "Expert insights", "Up-to-date info"],
    Intent.NAVIGATIONAL: ["Quick access", "Easy navigation", "Helpful support"],
}
INTEREST_BUTTONS = {
    "technology": ["Explore Tech", "Get Started", "Try Now"],
    "business": ["Grow Business", "Get Results", "Start Now"],
    "education": ["Learn More", "Start Course", "Begin Learning"],
    "creative": ["Get Inspired", "Create Now", "Explore"],
    "health": ["Improve Health", "Get Fit", "Start Today"],
}
INTEREST_HIGHLIGHTS = {
    "technology": ["Cutting-edge solutions", "Technical expertise", "Innovation-driven"],
    "business": ["ROI-focused", "Scalable solutions", "Professional results"],
    "education": ["Expert instruction", "Practical skills", "Proven methods"],
    "creative": ["Inspiring content", "Creative freedom", "Artistic excellence"],
    "health": ["Science-backed", "Proven results", "Expert guidance"],
}


@dataclass(frozen=True)
class CtaContext(GenerationContext):
    cta_strategy: str = "discovery"
    conversion_opportunities: tuple[str, ...] = ()
    urgency_level: str = "low"
    value_proposition: str = "valuable insights and information"
    target_action: str = "learn_more"
    user_stage: str = "discovery"
    emotional_tone: str = "helpful"
    has_alternatives: bool = False
    competitive_keywords: tuple[str, ...] = ()


def cta_preferences(context: PersonalizationContext) -> list[str]:
    emotional = str(context.personalization_signals.get("emotional_tone", ""))
    if context.intent is Intent.COMMERCIAL or emotional in {"exciting", "urgent"}:
        return ["anthropic", "openai", "google"]
    return ["openai", "anthropic", "google"]


def build_cta_context(
    personalization: PersonalizationContext, discovery: Sequence[DiscoveryResult]
) -> CtaContext:
    intent = personalization.intent
    query = personalization.search_query.strip()
    keywords: list[str] = []
    for item in discovery:
        keywords.extend(word for word in item.title.lower().split() if len(word) > 4)
    if intent is Intent.COMMERCIAL:
        urgency, stage = "high", "consideration"
    elif intent is Intent.EDUCATIONAL:
        urgency, stage = "medium", "awareness"
    else:
        urgency, stage = "low", "discovery"
    return CtaContext(
        search_query=query,
        intent=intent,
        user_interests=dict(personalization.user_interests),
        tone_preference=personalization.tone_preference,
        complexity_level=personalization.complexity_level,
        cta_strategy=CTA_STRATEGIES.get(intent, "discovery"),
        conversion_opportunities=tuple(conversion_opportunities(discovery)),
        urgency_level=urgency,
        value_proposition=value_proposition(query),
        target_action=TARGET_ACTIONS.get(intent, "learn_more"),
        user_stage=stage,
        emotional_tone=EMOTIONAL_TONES.get(intent, "helpful"),
        has_alternatives=len(discovery) > 3,
        competitive_keywords=tuple(unique(keywords)[:5]),
    )


def conversion_opportunities(discovery: Sequence[DiscoveryResult]) -> list[str]:
    """Infer conversion actions from discovery result categories."""
    opportunities: list[str] = []
    for item in discovery:
        category = item.category.lower()
        if "product" in category or "service" in category:
            opportunities.append("purchase")
        elif "course" in category or "tutorial" in category:
            opportunities.append("signup")
        elif "download" in category:
            opportunities.append("download")
    return unique(opportunities)


def value_proposition(query: str) -> str:
    lowered = query.lower()
    for keyword, benefit in VALUE_PROPOSITIONS:
        if keyword in lowered:
            return benefit
    return "valuable insights and information"


def build_cta_prompt(context: CtaContext) -> str:
    lines = [
        "Create a compelling call-to-action component for a search-triggered page.",
        "",
        "CONTEXT:",
        f'- Search Query: "{context.search_query}"',
        f"- User Intent: {context.intent.value}",
        f"- CTA Strategy: {context.cta_strategy}",
        f"- Urgency Level: {context.urgency_level}",
        f"- Target Action: {context.target_action}",
        f"- User Stage: {context.user_stage}",
        f"- Emotional Tone: {context.emotional_tone}",
        f"- Value Proposition: {context.value_proposition}",
    ]
    if context.user_interests:
        lines.append(f"- User Interests: {', '.join(list(context.user_interests)[:5])}")
    if context.conversion_opportunities:
        lines.append(f"- Conversion Opportunities: {', '.join(context.conversion_opportunities)}")
    if context.has_alternatives and context.competitive_keywords:
        lines.append(f"- Competing Themes: {', '.join(context.competitive_keywords)}")
    lines.extend(
        [
            "",
            "REQUIREMENTS:",
            "- Write action-oriented copy that motivates an immediate response",
            "- Communicate a clear, specific value proposition",
            "- Match urgency to the user intent without false scarcity",
            "",
            "OUTPUT FORMAT (JSON):",
            "{",
            '  "headline": "CTA headline (max 50 characters)",',
            '  "description": "Supporting description (max 120 characters)",',
            '  "primary_button": {"text": "max 20 characters", "url": "#target-action", "style": "primary"},',
            '  "secondary_button": {"text": "max 20 characters", "url": "#alternative", "style": "secondary"},',
            '  "urgency_indicator": "Limited time|Popular choice|Recommended|null",',
            '  "value_highlights": ["benefit1", "benefit2", "benefit3"],',
            '  "social_proof": "testimonial or statistic (max 80 characters)",',
            '  "layout_style": "centered|split|banner|sidebar",',
            '  "color_scheme": "primary|accent|neutral|custom",',
            '  "conversion_goal": "signup|purchase|download|contact|learn"',
            "}",
        ]
    )
    return "\n".join(lines)


def parse_cta_response(raw: str, context: GenerationContext) -> dict[str, Any]:
    data = extract_json_object(raw)
    if data is None:
        lines = [strip_markup(line).strip("#*- ").strip() for line in (raw or "").splitlines()]
        lines = [line for line in lines if line]
        data = {
            "headline": lines[0] if lines else "",
            "description": lines[1] if len(lines) > 1 else "",
        }
    content = clean_cta(data, context.search_query)
    return optimize_for_conversion(content, context)


def _clean_button(value: object, default: dict[str, str]) -> dict[str, str]:
    button = value if isinstance(value, dict) else {}
    text = button.get("text")
    text = truncate_text(text, 20) if isinstance(text, str) else ""
    url = button.get("url")
    style = str(button.get("style") or "").lower()
    return {
        "text": text or default["text"],
        "url": url.strip() if isinstance(url, str) and url.strip() else default["url"],
        "style": style if style in BUTTON_STYLES else default["style"],
    }


def clean_cta(data: dict[str, Any], query: str) -> dict[str, Any]:
    """Apply defaults, length budgets and enum checks to CTA fields."""
    headline = data.get("headline")
    description = data.get("description")
    social_proof = data.get("social_proof")
    urgency = data.get("urgency_indicator")
    layout = str(data.get("layout_style") or "").lower()
    color = str(data.get("color_scheme") or "").lower()
    goal = str(data.get("conversion_goal") or "").lower()
    return {
        "headline": (truncate_text(headline, 50) if isinstance(headline, str) else "")
        or "Ready to Get Started?",
        "description": (truncate_text(description, 120) if isinstance(description, str) else "")
        or truncate_text(f"Take the next step with {query}", 120),
        "primary_button": _clean_button(
            data.get("primary_button"), {"text": "Get Started", "url": "#action", "style": "primary"}
        ),
        "secondary_button": _clean_button(
            data.get("secondary_button"), {"text": "Learn More", "url": "#info", "style": "secondary"}
        ),
        "urgency_indicator": urgency if urgency in URGENCY_INDICATORS else None,
        "value_highlights": clean_string_list(data.get("value_highlights"), 4),
        "social_proof": truncate_text(social_proof, 80) if isinstance(social_proof, str) else "",
        "layout_style": layout if layout in LAYOUT_STYLES else "centered",
        "color_scheme": color if color in COLOR_SCHEMES else "primary",
        "conversion_goal": goal if goal in CONVERSION_GOALS else "learn",
    }


def optimize_for_conversion(content: dict[str, Any], context: GenerationContext) -> dict[str, Any]:
    """Fill urgency, highlights and social proof according to intent."""
    urgency_level = getattr(context, "urgency_level", "low")
    if context.intent is Intent.COMMERCIAL and urgency_level == "high" and not content["urgency_indicator"]:
        content["urgency_indicator"] = "Popular choice"
    if not content["value_highlights"]:
        content["value_highlights"] = list(
            DEFAULT_HIGHLIGHTS.get(context.intent, ["Quality content", "Trusted source", "Easy to use"])
        )
    if context.intent is Intent.COMMERCIAL and not content["social_proof"]:
        content["social_proof"] = "Join thousands of satisfied customers"
    return content


def personalize_cta(
    content: dict[str, Any], context: GenerationContext, personalization: PersonalizationContext
) -> dict[str, Any]:
    result = dict(content)
    top = [name for name, _score in personalization.top_interests(3)]
    for name in top:
        options = INTEREST_BUTTONS.get(name)
        if options:
            button = dict(result["primary_button"])
            button["text"] = options[stable_index(personalization.search_query.lower(), len(options))]
            result["primary_button"] = button
            break
    highlights = list(result.get("value_highlights", []))
    for name in top:
        highlights.extend(INTEREST_HIGHLIGHTS.get(name, []))
    result["value_highlights"] = unique(highlights)[:4]
    if personalization.tone_preference == "casual" and result.get("urgency_indicator") == "Limited time":
        result["urgency_indicator"] = "Popular choice"
    emotional = getattr(context, "emotional_tone", "helpful")
    if emotional == "exciting":
        result["color_scheme"] = "accent"
    elif emotional == "professional":
        result["color_scheme"] = "primary"
    return result


def fallback_cta(query: str, intent: Intent) -> dict[str, Any]:
    """Deterministic CTA built only from the query and intent."""
    content: dict[str, Any] = {
        "headline": "Ready to Learn More?",
        "description": truncate_text(f"Get the information you need about {query}", 120),
        "primary_button": {"text": "Get Started", "url": "#content", "style": "primary"},
        "secondary_button": {"text": "Learn More", "url": "#info", "style": "secondary"},
        "urgency_indicator": None,
        "value_highlights": list(
            DEFAULT_HIGHLIGHTS.get(intent, DEFAULT_HIGHLIGHTS[Intent.INFORMATIONAL])
        ),
        "social_proof": "",
        "layout_style": "centered",
        "color_scheme": "primary",
        "conversion_goal": "learn",
    }
    if intent is Intent.COMMERCIAL:
        content["headline"] = "Find Your Perfect Solution"
        content["primary_button"]["text"] = "Shop Now"
        content["conversion_goal"] = "purchase"
        content["urgency_indicator"] = "Popular choice"
    elif intent is Intent.EDUCATIONAL:
        content["headline"] = "Start Learning Today"
        content["primary_button"]["text"] = "Begin Course"
        content["conversion_goal"] = "signup"
    return content


CTA_STRATEGY = ComponentStrategy(
    component_type="cta",
    required_fields=CTA_REQUIRED_FIELDS,
    build_context=build_cta_context,
    build_prompt=build_cta_prompt,
    parse_response=parse_cta_response,
    personalize=personalize_cta,
    fallback_content=fallback_cta,
    provider_preferences=cta_preferences,
    max_tokens=CTA_MAX_TOKENS,
)


def build_cta_generator(
    registry: ProviderRegistry,
    cache: ComponentCache,
    config: GenerationConfig | None = None,
) -> ComponentGenerator:
    return ComponentGenerator(CTA_STRATEGY, registry, cache, config)
