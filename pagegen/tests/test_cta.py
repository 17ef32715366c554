from __future__ import annotations

import json

import pytest

from pagegen.generation.cta import (
    CTA_REQUIRED_FIELDS,
    build_cta_context,
    build_cta_generator,
    clean_cta,
    conversion_opportunities,
    cta_preferences,
    fallback_cta,
    optimize_for_conversion,
    value_proposition,
)
from pagegen.generation.types import DiscoveryResult, Intent, IntentContext, PersonalizationContext
from pagegen.providers.registry import ProviderRegistry
from pagegen.tests.fakes import FakeProvider

pytestmark = pytest.mark.anyio


def _context(
    query: str = "buy bathroom vanity",
    intent: Intent = Intent.COMMERCIAL,
    interests: dict[str, float] | None = None,
    signals: dict[str, str] | None = None,
) -> PersonalizationContext:
    return PersonalizationContext(
        search_query=query,
        user_interests=interests or {},
        intent_context=IntentContext(primary_intent=intent),
        personalization_signals=signals or {},
    )


def test_clean_cta_validates_buttons_and_enums() -> None:
    cta = clean_cta(
        {
            "headline": "Upgrade your bathroom today with premium vanities",
            "primary_button": {"text": "Order your new vanity now", "url": "/shop", "style": "glow"},
            "urgency_indicator": "Act now!!!",
            "layout_style": "SPLIT",
        },
        "bathroom vanity",
    )
    assert len(cta["headline"]) <= 50
    assert cta["primary_button"] == {"text": "Order your new va...", "url": "/shop", "style": "primary"}
    assert cta["secondary_button"]["text"] == "Learn More"
    assert cta["urgency_indicator"] is None
    assert cta["layout_style"] == "split"
    assert cta["description"] == "Take the next step with bathroom vanity"


def test_optimize_for_conversion_adds_commercial_signals() -> None:
    context = build_cta_context(_context(), [])
    cta = optimize_for_conversion(clean_cta({}, "bathroom vanity"), context)
    assert context.urgency_level == "high"
    assert cta["urgency_indicator"] == "Popular choice"
    assert cta["social_proof"] == "Join thousands of satisfied customers"
    assert cta["value_highlights"] == ["Best value", "Fast delivery", "Money-back guarantee"]


def test_cta_context_helpers() -> None:
    discovery = [
        DiscoveryResult(title="Vanity products", category="Products"),
        DiscoveryResult(title="Plumbing course", category="course"),
        DiscoveryResult(title="Data sheet", category="download"),
    ]
    assert conversion_opportunities(discovery) == ["purchase", "signup", "download"]
    assert value_proposition("where to buy tiles") == "the best products and deals"
    assert value_proposition("tiles") == "valuable insights and information"
    context = build_cta_context(_context(), discovery)
    assert context.target_action == "purchase"
    assert context.competitive_keywords == ("vanity", "products", "plumbing", "course", "sheet")


def test_cta_preferences_follow_intent_and_signals() -> None:
    assert cta_preferences(_context())[0] == "anthropic"
    informational = _context("tiles", Intent.INFORMATIONAL)
    assert cta_preferences(informational)[0] == "openai"
    excited = _context("tiles", Intent.INFORMATIONAL, signals={"emotional_tone": "urgent"})
    assert cta_preferences(excited)[0] == "anthropic"


def test_fallback_cta_by_intent() -> None:
    commercial = fallback_cta("bathroom vanity", Intent.COMMERCIAL)
    educational = fallback_cta("bathroom vanity", Intent.EDUCATIONAL)
    assert commercial["primary_button"]["text"] == "Shop Now"
    assert commercial["conversion_goal"] == "purchase"
    assert educational["headline"] == "Start Learning Today"
    for name in CTA_REQUIRED_FIELDS:
        assert commercial[name]


async def test_cta_generator_uses_interest_buttons(cache) -> None:
    anthropic = FakeProvider(provider_id="anthropic")
    anthropic.reply = json.dumps(
        {
            "headline": "Ready for a new vanity?",
            "description": "Browse vanities for every bathroom size.",
            "primary_button": {"text": "Browse", "url": "#shop", "style": "primary"},
        }
    )
    registry = ProviderRegistry([FakeProvider(provider_id="openai"), anthropic])
    generator = build_cta_generator(registry, cache)
    result = await generator.generate_component(_context(interests={"technology": 0.9}), [])
    assert result.success is True
    assert result.metadata["ai_provider"] == "anthropic"
    assert result.content["primary_button"]["text"] in {"Explore Tech", "Get Started", "Try Now"}
    assert result.content["color_scheme"] == "accent"
    assert "Cutting-edge solutions" in result.content["value_highlights"]
