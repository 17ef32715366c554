from __future__ import annotations

import math

from pagegen.generation.quality import (
    completeness_score,
    content_relevance,
    count_syllables,
    flesch_reading_ease,
    interest_alignment,
    readability_level,
    readability_score,
    safety_flags,
    safety_score,
    score_component,
    score_page,
)
from pagegen.generation.text import extract_json_object, truncate_text
from pagegen.generation.types import (
    ComponentResult,
    Intent,
    IntentContext,
    PersonalizationContext,
    QualityMetrics,
)


def _context(query: str, interests: dict[str, float] | None = None) -> PersonalizationContext:
    return PersonalizationContext(
        search_query=query,
        user_interests=interests or {},
        intent_context=IntentContext(primary_intent=Intent.INFORMATIONAL),
    )


def test_truncate_text_strips_markup_and_adds_ellipsis() -> None:
    assert truncate_text("<b>short</b>", 10) == "short"
    cut = truncate_text("x" * 50, 20)
    assert len(cut) == 20
    assert cut.endswith("...")


def test_extract_json_object_from_wrapped_output() -> None:
    raw = 'Here you go:\n```json\n{"headline": "Hi"}\n```'
    assert extract_json_object(raw) == {"headline": "Hi"}
    assert extract_json_object("no json here") is None
    assert extract_json_object("[1, 2]") is None


def test_content_relevance_counts_long_words_over_all_words() -> None:
    content = {"title": "Bathroom remodeling tips"}
    assert content_relevance(content, "remodeling a bathroom") == 2 / 3
    assert content_relevance({}, "anything") == 0.5
    assert content_relevance(content, "") == 0.5


def test_completeness_score_counts_filled_fields() -> None:
    content = {"headline": "Hi", "description": " ", "cta_text": None}
    assert completeness_score(content, ("headline", "description", "cta_text", "missing")) == 0.25
    assert completeness_score(content, ()) == 1.0


def test_interest_alignment_rewards_interests_in_text() -> None:
    context = _context("camera", {"photography": 0.9, "travel": 0.5})
    score = interest_alignment({"text": "Photography and travel tips"}, context)
    assert score == 1.0
    assert interest_alignment({"text": "nothing relevant"}, context) == 0.5
    assert interest_alignment({"text": "x"}, _context("camera")) == 0.7


def test_score_component_weights() -> None:
    metrics = score_component({"headline": "Camera guide"}, _context("camera guide"), ("headline",))
    assert metrics.content_relevance == 1.0
    assert metrics.personalization_score == 0.7
    assert metrics.completeness_score == 1.0
    assert math.isclose(metrics.overall_confidence, 0.4 + 0.21 + 0.3)


def test_score_page_blends_component_confidence() -> None:
    components = {
        "hero": ComponentResult(
            component_type="hero",
            success=True,
            content={"headline": "Camera basics"},
            confidence=0.8,
            metadata={"quality_metrics": {"completeness_score": 0.5}},
        ),
        "cta": ComponentResult(
            component_type="cta", success=False, content={"headline": "Go"}, confidence=0.4
        ),
    }
    metrics = score_page(components, _context("camera"))
    expected = 0.4 * 0.6 + 0.3 * 1.0 + 0.2 * 0.7 + 0.1 * 0.75
    assert math.isclose(metrics.overall_confidence, expected)
    assert metrics.component_scores == {"hero": 0.8, "cta": 0.4}


def test_quality_metrics_are_clamped() -> None:
    metrics = QualityMetrics(
        overall_confidence=1.7,
        content_relevance=-0.2,
        personalization_score=float("nan"),
        completeness_score=0.5,
        component_scores={"hero": 3.0},
    )
    assert metrics.overall_confidence == 1.0
    assert metrics.content_relevance == 0.0
    assert metrics.personalization_score == 0.0
    assert metrics.component_scores == {"hero": 1.0}


def test_count_syllables_uses_vowel_groups() -> None:
    assert count_syllables("beautiful") == 3
    assert count_syllables("the") == 1
    assert count_syllables("rhythm") == 1
    assert count_syllables("hmm") == 1


def test_readability_of_simple_and_dense_text() -> None:
    simple = "The cat sat on the mat."
    dense = (
        "Comprehensive organizational restructuring necessitates "
        "substantial interdepartmental collaboration."
    )
    assert math.isclose(flesch_reading_ease(simple), 116.145)
    assert readability_level(flesch_reading_ease(simple)) == "Very Easy"
    assert readability_level(flesch_reading_ease(dense)) == "Very Difficult"
    assert readability_level(65.0) == "Standard"
    assert math.isclose(readability_score(simple), 0.4 + 0.3 * 6 / 17.5 + 0.2 + 0.08)
    assert readability_score(dense) < readability_score(simple)
    assert readability_score("") == 0.5


def test_safety_flags_detect_spam_patterns() -> None:
    flags = safety_flags("CLICK HERE NOW!!! 100% FREE BATHROOM UPGRADE")
    assert flags == ("spam_phrase", "excessive_caps", "excessive_punctuation")
    assert math.isclose(safety_score(flags), 0.3)
    repeated = safety_flags("deals deals deals deals deals on bathroom tiles and more deals today")
    assert repeated == ("repeated_words",)


def test_safety_flags_clean_text() -> None:
    flags = safety_flags("Compare porcelain and ceramic tiles for your bathroom.")
    assert flags == ()
    assert safety_score(flags) == 1.0


def test_score_component_reports_readability_and_safety_without_changing_confidence() -> None:
    spammy = score_component(
        {"headline": "CAMERA GUIDE!!! CLICK HERE FOR 100% FREE LENSES"},
        _context("camera guide"),
        ("headline",),
    )
    assert math.isclose(spammy.overall_confidence, 0.4 + 0.21 + 0.3)
    assert "spam_phrase" in spammy.safety_flags
    assert spammy.safety_score is not None and spammy.safety_score < 1.0
    payload = spammy.to_dict()
    assert payload["safety_flags"] == list(spammy.safety_flags)
    assert payload["readability_level"] == spammy.readability_level
    assert 0.0 <= payload["readability_score"] <= 1.0


def test_page_metrics_omit_component_only_fields() -> None:
    metrics = score_page({}, _context("camera"))
    assert "readability_score" not in metrics.to_dict()
    assert "safety_flags" not in metrics.to_dict()
