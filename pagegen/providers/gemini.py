from __future__ import annotations

"""Google Gemini provider built on google-generativeai."""

import asyncio
from dataclasses import dataclass

from pagegen.providers.base import (
    GenerationOptions,
    ProviderNotConfiguredError,
    ProviderRequestError,
    ProviderResponse,
    ProviderResponseError,
    TokenUsage,
    sanitize_prompt,
    system_message_for,
)
from pagegen.providers.usage import UsageTracker


@dataclass(frozen=True)
class GeminiProvider:
    """Provider backed by Gemini generative models."""
    api_key: str | None
    usage: UsageTracker
    model: str = "gemini-pro"
    timeout: float = 60.0
    provider_id: str = "google"

    def is_configured(self) -> bool:
        return bool(self.api_key and self.api_key.strip())

    async def generate(
        self, prompt: str, options: GenerationOptions | None = None
    ) -> ProviderResponse:
        """Generate text using Gemini in a worker thread."""
        if not self.is_configured():
            raise ProviderNotConfiguredError("Gemini API key is not configured")
        try:
            import google.generativeai as genai
        except ImportError as exc:
            raise ProviderNotConfiguredError(
                "google-generativeai is required for GeminiProvider"
            ) from exc

        options = options or GenerationOptions()
        model_name = options.model or self.model
        system = options.system_message or system_message_for(options.content_type)
        full_prompt = f"{system}\n\n{sanitize_prompt(prompt)}"
        generation_config: dict[str, object] = {
            "temperature": 0.7 if options.temperature is None else options.temperature,
            "max_output_tokens": options.max_tokens or 1000,
        }
        if options.top_p is not None:
            generation_config["top_p"] = options.top_p

        def _run() -> tuple[str, TokenUsage]:
            genai.configure(api_key=self.api_key)
            model = genai.GenerativeModel(model_name)
            response = model.generate_content(full_prompt, generation_config=generation_config)
            metadata = getattr(response, "usage_metadata", None)
            usage = TokenUsage.from_counts(
                getattr(metadata, "prompt_token_count", 0),
                getattr(metadata, "candidates_token_count", 0),
            )
            return getattr(response, "text", "") or "", usage

        try:
            content, usage = await asyncio.wait_for(asyncio.to_thread(_run), timeout=self.timeout)
        except Exception as exc:
            raise ProviderRequestError(str(exc) or type(exc).__name__) from exc
        if not content.strip():
            raise ProviderResponseError("Empty Gemini response")
        await self.usage.record_async(self.provider_id, model_name, usage)
        return ProviderResponse(
            content=content.strip(),
            usage=usage,
            model=model_name,
            provider_id=self.provider_id,
        )
