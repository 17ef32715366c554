from __future__ import annotations

"""SQL persistence for provider usage records."""

import uuid
from typing import Any
from urllib.parse import urlparse, urlunparse

from pagegen.providers.usage import UsageRecord


class UsageStoreError(RuntimeError):
    """Raised when usage persistence fails."""
    pass


class UsageStore:
    """Store one row per successful provider call."""
    def __init__(self, connection_uri: str) -> None:
        try:
            from sqlalchemy import (
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
            raise UsageStoreError("sqlalchemy is required to use the usage store") from exc

        self._engine = create_engine(connection_uri)
        self._metadata = MetaData()
        self._table = Table(
            "usage_records",
            self._metadata,
            Column("id", String(36), primary_key=True),
            Column("provider_id", String(64), nullable=False),
            Column("model", String(128), nullable=False),
            Column("month", String(7), nullable=False),
            Column("prompt_tokens", Integer, nullable=False),
            Column("completion_tokens", Integer, nullable=False),
            Column("total_tokens", Integer, nullable=False),
            Column("cost", Float, nullable=False),
            Column("created_at", DateTime(timezone=True), nullable=False),
        )
        self._metadata.create_all(self._engine)

    def record_usage(self, record: UsageRecord) -> None:
        payload = {
            "id": str(uuid.uuid4()),
            "provider_id": record.provider_id,
            "model": record.model,
            "month": record.month,
            "prompt_tokens": record.prompt_tokens,
            "completion_tokens": record.completion_tokens,
            "total_tokens": record.total_tokens,
            "cost": record.cost,
            "created_at": record.created_at,
        }
        with self._engine.begin() as conn:
            conn.execute(self._table.insert().values(**payload))

    def monthly_totals(self, month: str) -> dict[str, dict[str, Any]]:
        """Aggregate requests, tokens and cost per provider for a month."""
        from sqlalchemy import func, select

        table = self._table
        statement = (
            select(
                table.c.provider_id,
                func.count().label("requests"),
                func.sum(table.c.total_tokens).label("tokens"),
                func.sum(table.c.cost).label("cost"),
            )
            .where(table.c.month == month)
            .group_by(table.c.provider_id)
        )
        with self._engine.connect() as conn:
            rows = conn.execute(statement).all()
        return {
            row.provider_id: {
                "requests": int(row.requests),
                "tokens": int(row.tokens or 0),
                "cost": round(float(row.cost or 0.0), 6),
            }
            for row in rows
        }

    @staticmethod
    def redact_uri(uri: str) -> str:
        """Redact credentials from connection URIs before logging."""
        if "://" not in uri:
            return uri
        parsed = urlparse(uri)
        if parsed.password is None:
            return uri
        netloc = parsed.hostname or ""
        if parsed.username:
            netloc = f"{parsed.username}:***@{netloc}"
        if parsed.port:
            netloc = f"{netloc}:{parsed.port}"
        return urlunparse(
            (parsed.scheme, netloc, parsed.path, parsed.params, parsed.query, parsed.fragment)
        )
