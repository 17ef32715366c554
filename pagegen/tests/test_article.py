from __future__ import annotations

import json

import pytest

from pagegen.generation.article import (
    ARTICLE_REQUIRED_FIELDS,
    build_article_context,
    build_article_generator,
    build_article_prompt,
    clean_article,
    fallback_article,
    parse_article_response,
    parse_article_text,
)
from pagegen.generation.types import (
    DiscoveryResult,
    Intent,
    IntentContext,
    PersonalizationContext,
)

pytestmark = pytest.mark.anyio


def _context(
    query: str = "bathroom remodel",
    intent: Intent = Intent.INFORMATIONAL,
    interests: dict[str, float] | None = None,
    complexity: str = "medium",
) -> PersonalizationContext:
    return PersonalizationContext(
        search_query=query,
        user_interests=interests if interests is not None else {"home_improvement": 0.6},
        intent_context=IntentContext(primary_intent=intent),
        complexity_level=complexity,
    )


def test_long_main_content_truncates_to_exactly_800_chars() -> None:
    article = clean_article({"main_content": "word " * 400}, "bathroom remodel")
    assert len(article["main_content"]) == 800
    assert article["main_content"].endswith("...")


def test_clean_article_applies_defaults_and_enums() -> None:
    article = clean_article(
        {"title": "", "reading_time": "0", "difficulty_level": "expert", "content_type": "essay"},
        "solar panels",
    )
    assert article["title"] == "Understanding Solar Panels"
    assert article["reading_time"] == 1
    assert article["difficulty_level"] == "intermediate"
    assert article["content_type"] == "overview"
    assert article["tags"][:2] == ["solar", "panels"]
    for name in ARTICLE_REQUIRED_FIELDS:
        assert article[name]


def test_parse_article_text_uses_short_first_paragraph_as_title() -> None:
    raw = "Bathroom Basics\n\nStart with a plan for the space.\n\nPick tiles that resist water damage."
    article = parse_article_text(raw, "bathroom")
    assert article["title"] == "Bathroom Basics"
    assert article["introduction"] == "Start with a plan for the space."
    assert "Pick tiles" in article["main_content"]


def test_parse_article_response_attaches_source_references() -> None:
    discovery = [
        DiscoveryResult(title="Tile guide", url="https://example.com/tile", category="tiles", relevance_score=0.9),
        DiscoveryResult(title="No url"),
    ]
    context = build_article_context(_context(), discovery)
    raw = json.dumps({"title": "Remodel", "summary": "s", "introduction": "i", "main_content": "m"})
    article = parse_article_response(raw, context)
    assert article["source_references"] == [
        {"title": "Tile guide", "url": "https://example.com/tile", "relevance": 0.9}
    ]
    assert "tiles" in article["related_topics"]


def test_article_context_and_prompt_reflect_intent() -> None:
    context = build_article_context(
        _context("how to tile a shower", Intent.EDUCATIONAL), [DiscoveryResult(title="a", category="diy")]
    )
    assert context.article_structure == "tutorial"
    assert context.target_length == "long"
    assert "diy" in context.key_topics
    prompt = build_article_prompt(context)
    assert "how to tile a shower" in prompt
    assert "JSON" in prompt


def test_fallback_article_depends_on_intent() -> None:
    commercial = fallback_article("bathroom vanity", Intent.COMMERCIAL)
    educational = fallback_article("bathroom vanity", Intent.EDUCATIONAL)
    assert commercial["title"] == "Complete Guide to Bathroom Vanity"
    assert educational["content_type"] == "tutorial"
    for name in ARTICLE_REQUIRED_FIELDS:
        assert commercial[name]


async def test_article_generator_personalizes_tags_and_difficulty(registry, cache, fake_provider) -> None:
    fake_provider.reply = json.dumps(
        {
            "title": "Bathroom Remodel Guide",
            "summary": "Plan your bathroom remodel.",
            "introduction": "Remodeling starts with a budget.",
            "main_content": "Choose fixtures, tiles and lighting.",
            "tags": ["budget"],
        }
    )
    generator = build_article_generator(registry, cache)
    result = await generator.generate_component(
        _context(interests={"technology": 0.9}, complexity="high"), []
    )
    assert result.success is True
    assert result.content["tags"][0] == "technology"
    assert result.content["difficulty_level"] == "advanced"
    assert result.content["content_type"] == "tutorial"
    assert result.metadata["ai_provider"] == "openai"
