from __future__ import annotations

import json

import pytest

from pagegen.generation.hero import (
    HERO_REQUIRED_FIELDS,
    build_hero_context,
    build_hero_generator,
    clean_hero,
    fallback_hero,
    parse_hero_text,
    personalize_cta_text,
)
from pagegen.generation.types import DiscoveryResult, Intent, IntentContext, PersonalizationContext

pytestmark = pytest.mark.anyio


def _context(
    query: str = "mirrorless camera",
    intent: Intent = Intent.INFORMATIONAL,
    tone: str = "informative",
    interests: dict[str, float] | None = None,
) -> PersonalizationContext:
    return PersonalizationContext(
        search_query=query,
        user_interests=interests if interests is not None else {"photography": 0.9},
        intent_context=IntentContext(primary_intent=intent),
        tone_preference=tone,
    )


def test_clean_hero_enforces_length_budgets_and_enums() -> None:
    hero = clean_hero(
        {
            "headline": "H" * 100,
            "subheadline": "S" * 200,
            "cta_text": "A very long call to action text",
            "background_style": "video",
            "text_alignment": "justify",
            "keywords": ["lens"],
        },
        "mirrorless camera",
    )
    assert len(hero["headline"]) == 60
    assert len(hero["subheadline"]) == 120
    assert len(hero["cta_text"]) == 25
    assert hero["background_style"] == "gradient"
    assert hero["text_alignment"] == "center"
    assert hero["keywords"] == ["lens", "mirrorless", "camera"]
    for name in HERO_REQUIRED_FIELDS:
        assert hero[name]


def test_parse_hero_text_guesses_fields_by_length() -> None:
    raw = (
        "# Capture Every Moment\n"
        "Mirrorless cameras are lighter, faster and packed with features for every photographer.\n"
        "Find the right body for you"
    )
    hero = parse_hero_text(raw)
    assert hero["headline"] == "Capture Every Moment"
    assert hero["description"].startswith("Mirrorless cameras")
    assert hero["subheadline"] == "Find the right body for you"


def test_hero_context_collects_themes_and_audience() -> None:
    discovery = [DiscoveryResult(title="Lens test", category="reviews", tags=("lens", "bokeh"))]
    context = build_hero_context(
        _context(intent=Intent.COMMERCIAL, interests={"technology": 0.8}), discovery
    )
    assert context.content_themes == ("reviews", "lens", "bokeh")
    assert context.target_audience == "tech-savvy"
    assert context.hero_style == "conversion-focused"
    assert context.emotional_tone == "exciting"


def test_personalize_cta_text_is_stable_per_query() -> None:
    first = personalize_cta_text("Learn More", "casual", Intent.COMMERCIAL, "camera deals")
    second = personalize_cta_text("Learn More", "casual", Intent.COMMERCIAL, "camera deals")
    assert first == second
    assert first in {"Check It Out", "See What's New", "Explore"}
    assert personalize_cta_text("Keep", "casual", Intent.NAVIGATIONAL, "x") == "Keep"


def test_fallback_hero_by_intent() -> None:
    commercial = fallback_hero("bathroom vanity", Intent.COMMERCIAL)
    educational = fallback_hero("bathroom vanity", Intent.EDUCATIONAL)
    assert commercial["headline"] == "Find the Perfect Solution"
    assert commercial["cta_text"] == "Shop Now"
    assert educational["headline"] == "Learn About Bathroom Vanity"
    for name in HERO_REQUIRED_FIELDS:
        assert commercial[name]


async def test_hero_generator_personalizes_visuals_and_alignment(registry, cache, fake_provider) -> None:
    fake_provider.reply = json.dumps(
        {
            "headline": "Mirrorless Cameras Explained",
            "subheadline": "Everything about modern camera bodies",
            "description": "Compare sensors, lenses and autofocus systems.",
            "cta_text": "Read More",
        }
    )
    generator = build_hero_generator(registry, cache)
    result = await generator.generate_component(_context(tone="casual"), [])
    assert result.success is True
    assert result.content["text_alignment"] == "left"
    assert result.content["visual_elements"] == ["camera-icon", "gallery-grid", "image-showcase"]
    assert result.content["keywords"][0] == "photography"
    assert result.content["cta_text"] in {"Check It Out", "See More", "Dive In"}
    assert 0.0 <= result.confidence <= 1.0


async def test_hero_generator_accepts_plain_text_reply(registry, cache, fake_provider) -> None:
    fake_provider.reply = "Great Cameras For Everyone\nNo JSON here, just prose that describes cameras well."
    generator = build_hero_generator(registry, cache)
    result = await generator.generate_component(_context(), [])
    assert result.success is True
    assert result.content["headline"] == "Great Cameras For Everyone"
    for name in HERO_REQUIRED_FIELDS:
        assert result.content[name]
