from __future__ import annotations

"""Test doubles shared across the suite."""

import asyncio
from dataclasses import dataclass, field

from pagegen.providers.base import GenerationOptions, ProviderResponse, TokenUsage


@dataclass
class FakeProvider:
    """Scripted provider: returns `reply` or raises `error`, recording each call."""
    provider_id: str = "openai"
    model: str = "fake-model"
    timeout: float = 5.0
    reply: str = "{}"
    error: Exception | None = None
    configured: bool = True
    delay: float = 0.0
    calls: list[tuple[str, GenerationOptions | None]] = field(default_factory=list)

    def is_configured(self) -> bool:
        return self.configured

    async def generate(
        self, prompt: str, options: GenerationOptions | None = None
    ) -> ProviderResponse:
        self.calls.append((prompt, options))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return ProviderResponse(
            content=self.reply,
            usage=TokenUsage.from_counts(10, 20),
            model=self.model,
            provider_id=self.provider_id,
        )
