from __future__ import annotations

"""OpenAI chat completions provider."""

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


@dataclass(frozen=True)
class OpenAIProvider:
    """Provider backed by the OpenAI chat completions API."""
    api_key: str | None
    usage: UsageTracker
    model: str = "gpt-3.5-turbo"
    base_url: str = "https://api.openai.com/v1"
    timeout: float = 60.0
    transport: httpx.AsyncBaseTransport | None = None
    provider_id: str = "openai"

    def is_configured(self) -> bool:
        return bool(self.api_key and self.api_key.strip())

    async def generate(
        self, prompt: str, options: GenerationOptions | None = None
    ) -> ProviderResponse:
        """Generate text using OpenAI chat completions."""
        if not self.is_configured():
            raise ProviderNotConfiguredError("OpenAI API key is not configured")
        options = options or GenerationOptions()
        model = options.model or self.model
        payload: dict[str, object] = {
            "model": model,
            "messages": chat_messages(prompt, options),
            "temperature": 0.7 if options.temperature is None else options.temperature,
            "max_tokens": options.max_tokens or 1000,
        }
        if options.top_p is not None:
            payload["top_p"] = options.top_p
        headers = {"Authorization": f"Bearer {self.api_key}"}
        data = await post_json(
            f"{self.base_url.rstrip('/')}/chat/completions",
            payload,
            timeout=self.timeout,
            headers=headers,
            transport=self.transport,
        )
        choices = data.get("choices") or []
        if not choices or not isinstance(choices[0], dict):
            raise ProviderResponseError("Invalid OpenAI response")
        message = choices[0].get("message") or {}
        content = message.get("content")
        if not isinstance(content, str):
            raise ProviderResponseError("Invalid OpenAI response content")
        usage = TokenUsage.from_mapping(data.get("usage"))
        model_used = str(data.get("model") or model)
        await self.usage.record_async(self.provider_id, model_used, usage)
        return ProviderResponse(
            content=content.strip(),
            usage=usage,
            model=model_used,
            provider_id=self.provider_id,
        )
