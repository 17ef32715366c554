from __future__ import annotations

"""Token usage accounting shared by all providers."""

import asyncio
import copy
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Protocol

from pagegen.app.metrics import observe_tokens
from pagegen.providers.base import TokenUsage

logger = logging.getLogger(__name__)

# USD per 1K tokens.
MODEL_PRICING: dict[str, float] = {
    "gpt-3.5-turbo": 0.002,
    "gpt-4": 0.03,
    "gpt-4-turbo": 0.01,
    "claude-3-haiku-20240307": 0.0015,
    "gemini-pro": 0.001,
}


@dataclass(frozen=True)
class UsageRecord:
    """A single successful provider call."""
    provider_id: str
    model: str
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int
    cost: float
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def month(self) -> str:
        return self.created_at.strftime("%Y-%m")


class UsageSink(Protocol):
    """Persistence target for usage records."""
    def record_usage(self, record: UsageRecord) -> None:
        ...


def estimate_cost(model: str, total_tokens: int, default_rate: float = 0.0) -> float:
    """Estimate the cost of a call from the per-model price table."""
    rate = MODEL_PRICING.get(model)
    if rate is None:
        rate = next(
            (
                price
                for name, price in sorted(MODEL_PRICING.items(), key=lambda item: -len(item[0]))
                if model.startswith(name)
            ),
            default_rate,
        )
    return round(total_tokens / 1000 * rate, 6)


class UsageTracker:
    """Monthly usage rollups per provider, forwarded to an optional sink."""
    def __init__(
        self,
        sink: UsageSink | None = None,
        default_rates: dict[str, float] | None = None,
    ) -> None:
        self._sink = sink
        self._default_rates = dict(default_rates or {})
        self._stats: dict[str, dict[str, Any]] = {}
        self._lock = threading.Lock()

    def record(self, provider_id: str, model: str, usage: TokenUsage) -> UsageRecord:
        """Record a successful call and return the stored record."""
        record = self._rollup(provider_id, model, usage)
        self._forward(record)
        return record

    async def record_async(self, provider_id: str, model: str, usage: TokenUsage) -> UsageRecord:
        """Record a call from async code; the sink write runs in a worker thread."""
        record = self._rollup(provider_id, model, usage)
        if self._sink is not None:
            await asyncio.to_thread(self._forward, record)
        return record

    def _rollup(self, provider_id: str, model: str, usage: TokenUsage) -> UsageRecord:
        cost = estimate_cost(model, usage.total_tokens, self._default_rates.get(provider_id, 0.0))
        record = UsageRecord(
            provider_id=provider_id,
            model=model,
            prompt_tokens=usage.prompt_tokens,
            completion_tokens=usage.completion_tokens,
            total_tokens=usage.total_tokens,
            cost=cost,
        )
        with self._lock:
            stats = self._stats.setdefault(
                provider_id,
                {
                    "total_requests": 0,
                    "total_tokens": 0,
                    "total_cost": 0.0,
                    "last_request": None,
                    "monthly_usage": {},
                },
            )
            stats["total_requests"] += 1
            stats["total_tokens"] += record.total_tokens
            stats["total_cost"] = round(stats["total_cost"] + cost, 6)
            stats["last_request"] = record.created_at.isoformat()
            month = stats["monthly_usage"].setdefault(
                record.month, {"requests": 0, "tokens": 0, "cost": 0.0, "model_usage": {}}
            )
            month["requests"] += 1
            month["tokens"] += record.total_tokens
            month["cost"] = round(month["cost"] + cost, 6)
            model_usage = month["model_usage"].setdefault(
                model, {"requests": 0, "tokens": 0, "cost": 0.0}
            )
            model_usage["requests"] += 1
            model_usage["tokens"] += record.total_tokens
            model_usage["cost"] = round(model_usage["cost"] + cost, 6)
        logger.info(
            "provider_usage_recorded",
            extra={
                "provider": provider_id,
                "model": model,
                "total_tokens": record.total_tokens,
                "cost": cost,
            },
        )
        observe_tokens(provider_id, model, record.total_tokens)
        return record

    def _forward(self, record: UsageRecord) -> None:
        if self._sink is None:
            return
        try:
            self._sink.record_usage(record)
        except Exception:
            logger.exception("usage_sink_failed", extra={"provider": record.provider_id})

    def get_usage_stats(self, provider_id: str | None = None) -> dict[str, Any]:
        """Return a copy of the rollup for one provider or all providers."""
        with self._lock:
            if provider_id is not None:
                return copy.deepcopy(self._stats.get(provider_id, {}))
            return copy.deepcopy(self._stats)

    def get_monthly_cost(self, provider_id: str, month: str | None = None) -> dict[str, Any]:
        """Return the cost of a month with a per-model breakdown."""
        month = month or datetime.now(timezone.utc).strftime("%Y-%m")
        with self._lock:
            monthly = self._stats.get(provider_id, {}).get("monthly_usage", {}).get(month)
            if not monthly:
                return {"month": month, "total_cost": 0.0, "model_breakdown": {}}
            return {
                "month": month,
                "total_cost": monthly["cost"],
                "model_breakdown": {
                    model: dict(values) for model, values in monthly["model_usage"].items()
                },
            }

    def reset(self) -> None:
        with self._lock:
            self._stats.clear()
