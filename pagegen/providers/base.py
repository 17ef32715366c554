from __future__ import annotations

"""Provider contract, shared request helpers and provider errors."""

from dataclasses import dataclass
from typing import Any, Mapping, Protocol

import httpx

from pagegen.generation.text import strip_markup


class ProviderError(RuntimeError):
    """Base class for AI provider failures."""
    pass


class ProviderNotConfiguredError(ProviderError):
    """Raised when a provider has no credential or no provider is available."""
    pass


class ProviderRequestError(ProviderError):
    """Raised on transport failures and non-2xx responses."""
    pass


class ProviderResponseError(ProviderError):
    """Raised when a provider payload cannot be parsed."""
    pass


MAX_PROMPT_CHARS = 4000

_SYSTEM_MESSAGES = {
    "hero": (
        "You are an expert copywriter creating compelling hero sections for web pages. "
        "Write short, engaging headlines and clear calls to action."
    ),
    "article": (
        "You are a skilled content writer creating informative, well-structured articles. "
        "Write accurate, helpful content that matches the reader's level."
    ),
    "cta": (
        "You are a conversion specialist writing persuasive but honest calls to action. "
        "Focus on clear value and a single next step."
    ),
}
_DEFAULT_SYSTEM_MESSAGE = (
    "You are a helpful assistant generating web page content. "
    "Respond with valid JSON only when asked for JSON."
)


def system_message_for(content_type: str | None) -> str:
    """Return the system message used for a component type."""
    return _SYSTEM_MESSAGES.get((content_type or "").lower(), _DEFAULT_SYSTEM_MESSAGE)


def sanitize_prompt(prompt: str, max_chars: int = MAX_PROMPT_CHARS) -> str:
    """Strip markup and cap prompt length before sending it to a provider."""
    cleaned = strip_markup(prompt)
    if len(cleaned) > max_chars:
        cleaned = cleaned[:max_chars] + "..."
    return cleaned


@dataclass(frozen=True)
class GenerationOptions:
    """Per-request generation parameters; None means provider default."""
    model: str | None = None
    temperature: float | None = None
    max_tokens: int | None = None
    top_p: float | None = None
    system_message: str | None = None
    content_type: str | None = None


@dataclass(frozen=True)
class TokenUsage:
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    @classmethod
    def from_counts(cls, prompt_tokens: object, completion_tokens: object) -> TokenUsage:
        prompt = _as_int(prompt_tokens)
        completion = _as_int(completion_tokens)
        return cls(prompt_tokens=prompt, completion_tokens=completion, total_tokens=prompt + completion)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> TokenUsage:
        """Parse an OpenAI-style usage block."""
        if not data:
            return cls()
        usage = cls.from_counts(data.get("prompt_tokens"), data.get("completion_tokens"))
        total = _as_int(data.get("total_tokens"))
        if total:
            return cls(usage.prompt_tokens, usage.completion_tokens, total)
        return usage

    def to_dict(self) -> dict[str, int]:
        return {
            "prompt_tokens": self.prompt_tokens,
            "completion_tokens": self.completion_tokens,
            "total_tokens": self.total_tokens,
        }


@dataclass(frozen=True)
class ProviderResponse:
    """Raw text returned by a provider with its token usage."""
    content: str
    usage: TokenUsage
    model: str
    provider_id: str


class AIProvider(Protocol):
    """Text generation backend behind the provider registry."""
    provider_id: str
    model: str
    timeout: float

    def is_configured(self) -> bool:
        ...

    async def generate(
        self, prompt: str, options: GenerationOptions | None = None
    ) -> ProviderResponse:
        ...


def chat_messages(prompt: str, options: GenerationOptions) -> list[dict[str, str]]:
    """Build a system + user message list for chat-style APIs."""
    system = options.system_message or system_message_for(options.content_type)
    return [
        {"role": "system", "content": system},
        {"role": "user", "content": sanitize_prompt(prompt)},
    ]


async def post_json(
    url: str,
    payload: dict[str, Any],
    *,
    timeout: float,
    headers: dict[str, str] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> dict[str, Any]:
    """POST a JSON payload and return the decoded JSON object."""
    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            response = await client.post(url, json=payload, headers=headers)
            response.raise_for_status()
    except httpx.HTTPError as exc:
        raise ProviderRequestError(str(exc)) from exc
    try:
        data = response.json()
    except ValueError as exc:
        raise ProviderResponseError("Provider returned a non-JSON payload") from exc
    if not isinstance(data, dict):
        raise ProviderResponseError("Provider returned an unexpected payload")
    return data


def _as_int(value: object) -> int:
    try:
        return max(0, int(value))  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0
