from __future__ import annotations

"""SQL persistence for page generation stats."""

import hashlib
import uuid

from pagegen.generation.types import PageStat


class StatsStoreError(RuntimeError):
    """Raised when stats persistence fails."""
    pass


class PageStatsStore:
    """Persist one row per generated page."""
    def __init__(self, connection_uri: str) -> None:
        try:
            from sqlalchemy import (
                Boolean,
                Column,
                DateTime,
                Float,
                Integer,
                MetaData,
                String,
                Table,
                create_engine,
            )
        except ImportError as exc:  # pragma: no cover - optional dependency
            raise StatsStoreError("sqlalchemy is required to use the stats store") from exc

        self._engine = create_engine(connection_uri)
        self._metadata = MetaData()
        self._table = Table(
            "page_generation_stats",
            self._metadata,
            Column("id", String(36), primary_key=True),
            Column("query_hash", String(64), nullable=False),
            Column("query_length", Integer, nullable=False),
            Column("template", String(32), nullable=False),
            Column("generation_time", Float, nullable=False),
            Column("confidence", Float, nullable=False),
            Column("component_count", Integer, nullable=False),
            Column("fallback_used", Boolean, nullable=False),
            Column("created_at", DateTime(timezone=True), nullable=False),
        )
        self._metadata.create_all(self._engine)

    def record_page(self, stat: PageStat) -> None:
        """Insert a stats row; the query itself is stored only as a hash."""
        payload = {
            "id": str(uuid.uuid4()),
            "query_hash": hashlib.sha256(stat.search_query.encode("utf-8")).hexdigest(),
            "query_length": len(stat.search_query),
            "template": stat.template,
            "generation_time": stat.generation_time,
            "confidence": stat.confidence,
            "component_count": stat.component_count,
            "fallback_used": stat.fallback_used,
            "created_at": stat.timestamp,
        }
        with self._engine.begin() as conn:
            conn.execute(self._table.insert().values(**payload))
