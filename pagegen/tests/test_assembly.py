from __future__ import annotations

from pagegen.generation.assembly import (
    assemble_page,
    fallback_page,
    mentions_query,
    organize_sections,
    page_description,
    page_title,
    select_template,
)
from pagegen.generation.types import (
    ComponentResult,
    DiscoveryResult,
    Intent,
    IntentContext,
    Template,
)


def _component(component_type: str, confidence: float, **content: object) -> ComponentResult:
    return ComponentResult(
        component_type=component_type, success=True, content=dict(content), confidence=confidence
    )


def test_sections_follow_component_placement() -> None:
    sections = organize_sections(
        {
            "hero": _component("hero", 0.8, headline="h"),
            "article": _component("article", 0.7, title="a"),
            "cta": _component("cta", 0.6, headline="c"),
        }
    )
    assert list(sections) == ["header", "main", "footer"]
    assert [item.component_type for item in sections["header"].components] == ["hero"]
    assert [item.component_type for item in sections["main"].components] == ["article"]
    assert [item.component_type for item in sections["footer"].components] == ["cta"]


def test_select_template_by_intent() -> None:
    assert select_template(Intent.COMMERCIAL) is Template.COMMERCIAL
    assert select_template(Intent.EDUCATIONAL) is Template.EDUCATIONAL


def test_page_title_uses_most_confident_component() -> None:
    components = {
        "hero": _component("hero", 0.6, headline="Bathroom Vanities On Sale"),
        "article": _component("article", 0.9, title="Choosing A Bathroom Vanity"),
    }
    assert page_title(components, "bathroom vanity") == "Choosing A Bathroom Vanity"


def test_page_title_appends_query_when_missing() -> None:
    components = {"hero": _component("hero", 0.5, headline="Find the Perfect Solution")}
    title = page_title(components, "remodeling a bathroom")
    assert title == "Find the Perfect Solution | remodeling a bathroom"
    assert mentions_query(title, "remodeling a bathroom")


def test_page_title_without_text_fields() -> None:
    assert page_title({}, "bathroom tiles") == "bathroom tiles - Search Results"


def test_page_description_truncates() -> None:
    components = {"hero": _component("hero", 0.5, subheadline="x" * 300)}
    assert len(page_description(components, "q")) == 160
    assert page_description({}, "tiles") == "Search results for tiles"


def test_assemble_page_metadata() -> None:
    intent = IntentContext(primary_intent=Intent.COMMERCIAL, keywords=("buy", "bathroom", "vanity"))
    page = assemble_page(
        {"hero": _component("hero", 0.8, headline="Shop Bathroom Vanities", subheadline="Sale")},
        intent,
        "buy bathroom vanity",
    )
    assert page.template is Template.COMMERCIAL
    assert page.metadata.intent == "commercial"
    assert page.metadata.keywords == ("buy", "bathroom", "vanity")
    assert page.metadata.description == "Sale"
    assert page.to_dict()["sections"]["header"]["components"][0]["type"] == "hero"


def test_fallback_page_lists_discovery_results() -> None:
    discovery = [DiscoveryResult(title=f"Result {n}") for n in range(12)]
    content, components = fallback_page("bathroom tiles", discovery)
    assert content.template is Template.BASIC
    assert content.title == "bathroom tiles - Search Results"
    assert components["hero"].content["title"] == "Search Results for: bathroom tiles"
    assert components["hero"].confidence == 0.3
    assert len(components["content_list"].content["items"]) == 10
    assert [item.component_type for item in content.sections["main"].components] == ["content_list"]
