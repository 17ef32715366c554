from __future__ import annotations

"""Anthropic messages API provider."""

from dataclasses import dataclass

import httpx

from pagegen.providers.base import (
    GenerationOptions,
    ProviderNotConfiguredError,
    ProviderResponse,
    ProviderResponseError,
    TokenUsage,
    chat_messages,
    post_json,
)
from pagegen.providers.usage import UsageTracker

ANTHROPIC_VERSION = "2023-06-01"


@dataclass(frozen=True)
class AnthropicProvider:
    """Provider backed by the Anthropic messages API."""
    api_key: str | None
    usage: UsageTracker
    model: str = "claude-3-haiku-20240307"
    base_url: str = "https://api.anthropic.com"
    timeout: float = 60.0
    transport: httpx.AsyncBaseTransport | None = None
    provider_id: str = "anthropic"

    def is_configured(self) -> bool:
        return bool(self.api_key and self.api_key.strip())

    async def generate(
        self, prompt: str, options: GenerationOptions | None = None
    ) -> ProviderResponse:
        """Generate text using the Anthropic messages API."""
        if not self.is_configured():
            raise ProviderNotConfiguredError("Anthropic API key is not configured")
        options = options or GenerationOptions()
        model = options.model or self.model
        system, user = chat_messages(prompt, options)
        payload: dict[str, object] = {
            "model": model,
            "system": system["content"],
            "messages": [user],
            "max_tokens": options.max_tokens or 1000,
            "temperature": 0.7 if options.temperature is None else min(options.temperature, 1.0),
        }
        if options.top_p is not None:
            payload["top_p"] = options.top_p
        headers = {
            "x-api-key": str(self.api_key),
            "anthropic-version": ANTHROPIC_VERSION,
        }
        data = await post_json(
            f"{self.base_url.rstrip('/')}/v1/messages",
            payload,
            timeout=self.timeout,
            headers=headers,
            transport=self.transport,
        )
        blocks = data.get("content")
        if not isinstance(blocks, list):
            raise ProviderResponseError("Invalid Anthropic response")
        texts = [
            block.get("text")
            for block in blocks
            if isinstance(block, dict) and block.get("type") == "text"
        ]
        content = "".join(text for text in texts if isinstance(text, str))
        if not content:
            raise ProviderResponseError("Invalid Anthropic response content")
        raw_usage = data.get("usage") or {}
        usage = TokenUsage.from_counts(raw_usage.get("input_tokens"), raw_usage.get("output_tokens"))
        model_used = str(data.get("model") or model)
        await self.usage.record_async(self.provider_id, model_used, usage)
        return ProviderResponse(
            content=content.strip(),
            usage=usage,
            model=model_used,
            provider_id=self.provider_id,
        )
