from __future__ import annotations

import sqlite3
from datetime import datetime, timezone

from pagegen.generation.types import PageStat
from pagegen.metadata.stats_store import PageStatsStore
from pagegen.metadata.usage_store import UsageStore
from pagegen.providers.base import TokenUsage
from pagegen.providers.usage import UsageRecord, UsageTracker


def _record(provider_id: str, tokens: int, cost: float, month: int = 3) -> UsageRecord:
    return UsageRecord(
        provider_id=provider_id,
        model="gpt-3.5-turbo",
        prompt_tokens=tokens // 2,
        completion_tokens=tokens - tokens // 2,
        total_tokens=tokens,
        cost=cost,
        created_at=datetime(2024, month, 10, tzinfo=timezone.utc),
    )


def test_usage_store_aggregates_by_month(tmp_path) -> None:
    db_path = tmp_path / "usage.db"
    store = UsageStore(f"sqlite:///{db_path}")
    store.record_usage(_record("openai", 100, 0.0002))
    store.record_usage(_record("openai", 300, 0.0006))
    store.record_usage(_record("anthropic", 50, 0.0001))
    store.record_usage(_record("openai", 999, 0.5, month=4))

    totals = store.monthly_totals("2024-03")

    assert totals == {
        "openai": {"requests": 2, "tokens": 400, "cost": 0.0008},
        "anthropic": {"requests": 1, "tokens": 50, "cost": 0.0001},
    }
    conn = sqlite3.connect(db_path)
    try:
        count = conn.execute("SELECT COUNT(*) FROM usage_records").fetchone()
    finally:
        conn.close()
    assert count == (4,)


def test_usage_tracker_forwards_to_store(tmp_path) -> None:
    db_path = tmp_path / "usage.db"
    store = UsageStore(f"sqlite:///{db_path}")
    tracker = UsageTracker(sink=store)

    tracker.record("openai", "gpt-3.5-turbo", TokenUsage.from_counts(10, 20))

    conn = sqlite3.connect(db_path)
    try:
        row = conn.execute(
            "SELECT provider_id, model, total_tokens FROM usage_records"
        ).fetchone()
    finally:
        conn.close()
    assert row == ("openai", "gpt-3.5-turbo", 30)


def test_redact_uri_hides_password() -> None:
    assert UsageStore.redact_uri("postgresql://app:pw@db:5432/usage") == (
        "postgresql://app:***@db:5432/usage"
    )
    assert UsageStore.redact_uri("sqlite:///usage.db") == "sqlite:///usage.db"


def test_page_stats_store_hashes_queries(tmp_path) -> None:
    db_path = tmp_path / "stats.db"
    store = PageStatsStore(f"sqlite:///{db_path}")
    store.record_page(
        PageStat(
            search_query="bathroom tiles",
            template="informational",
            generation_time=0.25,
            confidence=0.62,
            component_count=2,
            fallback_used=False,
        )
    )

    conn = sqlite3.connect(db_path)
    try:
        row = conn.execute(
            "SELECT query_hash, query_length, template, component_count, fallback_used "
            "FROM page_generation_stats"
        ).fetchone()
    finally:
        conn.close()
    assert row[0] != "bathroom tiles"
    assert len(row[0]) == 64
    assert row[1:] == (14, "informational", 2, 0)
