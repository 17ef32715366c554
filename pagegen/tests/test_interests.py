from __future__ import annotations

import pytest

from pagegen.generation.interests import (
    InMemoryInterestSource,
    complexity_level,
    content_preferences,
    context_interests,
    extract_search_interests,
    merge_search_interests,
    tone_preference,
)
from pagegen.generation.types import Intent


def test_extract_search_interests_counts_term_hits() -> None:
    interests = extract_search_interests("camera lens for portraits")
    assert interests == {"photography": pytest.approx(0.6)}


def test_extract_search_interests_matches_word_starts_only() -> None:
    assert extract_search_interests("travel guide") == {"travel": pytest.approx(0.2)}
    assert extract_search_interests("remodeling a bathroom") == {
        "home_improvement": pytest.approx(0.4)
    }
    assert extract_search_interests("") == {}


def test_merge_search_interests_boosts_existing_and_halves_new() -> None:
    merged = merge_search_interests({"travel": 0.5}, {"travel": 0.2, "photography": 0.6})
    assert merged["travel"] == pytest.approx(0.56)
    assert merged["photography"] == pytest.approx(0.3)
    assert merge_search_interests({"travel": 0.95}, {"travel": 1.0})["travel"] == 1.0


def test_context_interests_ignores_bad_scores() -> None:
    interests = context_interests({"interests": {"travel": "0.4", "food": "lots", "tech": 3}})
    assert interests == {"travel": 0.4, "tech": 1.0}
    assert context_interests({"interests": ["travel"]}) == {}


def test_content_preferences_rank_topics_and_formats() -> None:
    preferences = content_preferences({"travel": 0.6, "technology": 0.9, "food": 0.1, "art": 0.0})
    assert preferences.preferred_topics == ("technology", "travel", "food")
    assert preferences.preferred_formats == ("visual", "text")
    assert content_preferences({"technology": 0.9}).preferred_formats == ("text",)


def test_tone_preference_prefers_requested_tone() -> None:
    assert tone_preference(Intent.COMMERCIAL, {"tone": "Casual"}) == "casual"
    assert tone_preference(Intent.COMMERCIAL, {"tone": "snarky"}) == "professional"
    assert tone_preference(Intent.EDUCATIONAL, {}) == "friendly"
    assert tone_preference(Intent.INFORMATIONAL, {}) == "informative"


def test_complexity_level() -> None:
    assert complexity_level({}, {"complexity_level": "low"}) == "low"
    assert complexity_level({"technology": 0.8}, {}) == "high"
    assert complexity_level({"technology": 0.5}, {}) == "medium"


def test_in_memory_source_returns_copies() -> None:
    source = InMemoryInterestSource()
    assert source.get_interests("s1") is None
    source.store_interests("s1", {"travel": 0.4}, 60)
    vector = source.get_interests("s1")
    assert vector == {"travel": 0.4}
    assert vector is not None
    vector["travel"] = 1.0
    assert source.get_interests("s1") == {"travel": 0.4}
