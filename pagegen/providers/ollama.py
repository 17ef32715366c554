from __future__ import annotations

"""Local Ollama chat provider, opt-in since it needs no credential."""

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
class OllamaProvider:
    """Provider backed by the Ollama chat API."""
    enabled: bool
    usage: UsageTracker
    model: str = "llama3"
    base_url: str = "http://localhost:11434"
    timeout: float = 60.0
    transport: httpx.AsyncBaseTransport | None = None
    provider_id: str = "ollama"

    def is_configured(self) -> bool:
        return self.enabled and bool(self.base_url)

    async def generate(
        self, prompt: str, options: GenerationOptions | None = None
    ) -> ProviderResponse:
        """Generate text using a local Ollama model."""
        if not self.is_configured():
            raise ProviderNotConfiguredError("Ollama provider is disabled")
        options = options or GenerationOptions()
        model = options.model or self.model
        generation: dict[str, object] = {
            "temperature": 0.7 if options.temperature is None else options.temperature,
            "num_predict": options.max_tokens or 1000,
        }
        if options.top_p is not None:
            generation["top_p"] = options.top_p
        payload = {
            "model": model,
            "messages": chat_messages(prompt, options),
            "stream": False,
            "options": generation,
        }
        data = await post_json(
            f"{self.base_url.rstrip('/')}/api/chat",
            payload,
            timeout=self.timeout,
            transport=self.transport,
        )
        message = data.get("message") or {}
        content = message.get("content") if isinstance(message, dict) else None
        if not isinstance(content, str):
            raise ProviderResponseError("Invalid Ollama response")
        usage = TokenUsage.from_counts(data.get("prompt_eval_count"), data.get("eval_count"))
        await self.usage.record_async(self.provider_id, model, usage)
        return ProviderResponse(
            content=content.strip(),
            usage=usage,
            model=model,
            provider_id=self.provider_id,
        )
