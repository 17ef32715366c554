from __future__ import annotations

import pytest

from pagegen.generation.intent import (
    IntentAnalyzer,
    content_depth,
    extract_context_keywords,
    personalization_level,
)
from pagegen.generation.types import DiscoveryResult, Intent


@pytest.mark.parametrize(
    ("query", "expected"),
    [
        ("how to fix a leaky faucet", Intent.EDUCATIONAL),
        ("buy bathroom vanity", Intent.COMMERCIAL),
        ("remodeling a bathroom", Intent.COMMERCIAL),
        ("kitchen contractor quote", Intent.COMMERCIAL),
        ("store hours and directions", Intent.NAVIGATIONAL),
        ("overview of solar panels", Intent.INFORMATIONAL),
        ("bathroom tiles", Intent.INFORMATIONAL),
        ("", Intent.INFORMATIONAL),
    ],
)
def test_detect_intent(query: str, expected: Intent) -> None:
    assert IntentAnalyzer().detect_intent(query) is expected


def test_ties_resolve_in_rule_order() -> None:
    analyzer = IntentAnalyzer()
    scores = analyzer.score("where is the contact page")
    assert scores[Intent.EDUCATIONAL] == scores[Intent.NAVIGATIONAL]
    assert analyzer.detect_intent("where is the contact page") is Intent.EDUCATIONAL


def test_analyze_builds_full_context() -> None:
    intent = IntentAnalyzer().analyze("how to fix a leaky faucet")
    assert intent.primary_intent is Intent.EDUCATIONAL
    assert intent.confidence == pytest.approx(0.8)
    assert intent.confidence > 0.5
    assert intent.keywords == ("how", "fix", "leaky", "faucet")
    assert intent.suggested_components == ("hero", "tutorial", "resources", "cta")
    assert intent.content_depth == "basic"


def test_informational_confidence_without_keywords() -> None:
    intent = IntentAnalyzer().analyze("a an")
    assert intent.primary_intent is Intent.INFORMATIONAL
    assert intent.confidence == pytest.approx(0.5)
    assert intent.keywords == ()


def test_extract_context_keywords_drops_stop_words_and_short_words() -> None:
    assert extract_context_keywords("The price of an OLED tv") == ["price", "oled"]


def test_content_depth_thresholds() -> None:
    assert content_depth(0) == "basic"
    assert content_depth(6) == "detailed"
    assert content_depth(11) == "comprehensive"


def test_personalization_level_uses_category_variety() -> None:
    varied = [DiscoveryResult(title=str(n), category=f"c{n}") for n in range(4)]
    mixed = [DiscoveryResult(title=str(n), category=f"c{n % 2}") for n in range(4)]
    same = [DiscoveryResult(title=str(n), category="c") for n in range(4)]
    assert personalization_level(varied) == "high"
    assert personalization_level(mixed) == "medium"
    assert personalization_level(same) == "low"
    assert personalization_level([]) == "low"
