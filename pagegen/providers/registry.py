from __future__ import annotations

"""Provider registry, rate limits and preference-based selection."""

import logging
import threading
import time
from dataclasses import dataclass, replace
from typing import Callable, Iterable, Sequence

from pagegen.providers.anthropic import AnthropicProvider
from pagegen.providers.base import AIProvider, ProviderNotConfiguredError, ProviderRequestError
from pagegen.providers.gemini import GeminiProvider
from pagegen.providers.ollama import OllamaProvider
from pagegen.providers.openai import OpenAIProvider
from pagegen.providers.usage import UsageTracker

logger = logging.getLogger(__name__)

DEFAULT_PREFERENCES = ("openai", "anthropic", "google")


@dataclass(frozen=True)
class ProviderInfo:
    """Static registry metadata for a provider."""
    provider_id: str
    name: str
    priority: int
    cost_per_1k_tokens: float
    requests_per_minute: int
    requests_per_day: int

    def to_dict(self) -> dict[str, object]:
        return {
            "provider_id": self.provider_id,
            "name": self.name,
            "priority": self.priority,
            "cost_per_1k_tokens": self.cost_per_1k_tokens,
            "requests_per_minute": self.requests_per_minute,
            "requests_per_day": self.requests_per_day,
        }


DEFAULT_PROVIDER_INFO: dict[str, ProviderInfo] = {
    "openai": ProviderInfo("openai", "OpenAI", 1, 0.002, 60, 10000),
    "anthropic": ProviderInfo("anthropic", "Anthropic", 2, 0.0015, 50, 8000),
    "google": ProviderInfo("google", "Google Gemini", 3, 0.001, 60, 12000),
    "ollama": ProviderInfo("ollama", "Ollama", 4, 0.0, 60, 100000),
}


def select_provider(available: Sequence[str], preferences: Sequence[str] | None) -> str | None:
    """Pick the first preferred provider that is available.

    Falls back to the first available provider, or None when nothing is available.
    """
    for provider_id in preferences or ():
        if provider_id in available:
            return provider_id
    return available[0] if available else None


class RateLimiter:
    """Per-provider request counters over minute and day windows."""
    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._windows: dict[str, dict[str, float]] = {}
        self._lock = threading.Lock()

    def _window(self, provider_id: str) -> dict[str, float]:
        now = self._clock()
        window = self._windows.setdefault(
            provider_id,
            {"minute_start": now, "minute_count": 0, "day_start": now, "day_count": 0},
        )
        if now - window["minute_start"] >= 60:
            window["minute_start"] = now
            window["minute_count"] = 0
        if now - window["day_start"] >= 86400:
            window["day_start"] = now
            window["day_count"] = 0
        return window

    def has_capacity(self, info: ProviderInfo) -> bool:
        with self._lock:
            window = self._window(info.provider_id)
            return (
                window["minute_count"] < info.requests_per_minute
                and window["day_count"] < info.requests_per_day
            )

    def acquire(self, info: ProviderInfo) -> bool:
        """Consume one request slot; return False when a limit is reached."""
        with self._lock:
            window = self._window(info.provider_id)
            if window["minute_count"] >= info.requests_per_minute:
                return False
            if window["day_count"] >= info.requests_per_day:
                return False
            window["minute_count"] += 1
            window["day_count"] += 1
            return True


class ProviderRegistry:
    """Registry of AI providers ordered by priority."""
    def __init__(
        self,
        providers: Iterable[AIProvider] = (),
        info: dict[str, ProviderInfo] | None = None,
        rate_limiter: RateLimiter | None = None,
    ) -> None:
        self._providers: dict[str, AIProvider] = {}
        self._info = dict(DEFAULT_PROVIDER_INFO)
        if info:
            self._info.update(info)
        self._rate_limiter = rate_limiter or RateLimiter()
        self._listeners: list[Callable[[str], None]] = []
        self._lock = threading.Lock()
        for provider in providers:
            self.register(provider)

    def register(self, provider: AIProvider, info: ProviderInfo | None = None) -> None:
        with self._lock:
            self._providers[provider.provider_id] = provider
            if info is not None:
                self._info[provider.provider_id] = info
            elif provider.provider_id not in self._info:
                self._info[provider.provider_id] = ProviderInfo(
                    provider.provider_id, provider.provider_id, 100, 0.0, 60, 10000
                )

    def info(self, provider_id: str) -> ProviderInfo:
        return self._info[provider_id]

    def _ordered(self) -> list[AIProvider]:
        with self._lock:
            providers = list(self._providers.values())
        return sorted(providers, key=lambda provider: self._info[provider.provider_id].priority)

    def get_available_providers(self) -> list[str]:
        """Return configured providers with spare rate-limit capacity, by priority."""
        return [
            provider.provider_id
            for provider in self._ordered()
            if provider.is_configured()
            and self._rate_limiter.has_capacity(self._info[provider.provider_id])
        ]

    def get_provider(self, provider_id: str) -> AIProvider:
        with self._lock:
            provider = self._providers.get(provider_id)
        if provider is None or not provider.is_configured():
            raise ProviderNotConfiguredError(f"Provider not configured: {provider_id}")
        return provider

    def select_provider(self, preferences: Sequence[str] | None = None) -> str | None:
        available = self.get_available_providers()
        chosen = select_provider(available, preferences or DEFAULT_PREFERENCES)
        logger.info(
            "provider_selected",
            extra={"provider": chosen, "available": available, "preferences": list(preferences or [])},
        )
        return chosen

    def acquire(self, provider_id: str) -> None:
        """Reserve a request slot for a provider or raise when rate limited."""
        if not self._rate_limiter.acquire(self._info[provider_id]):
            logger.warning("provider_rate_limited", extra={"provider": provider_id})
            raise ProviderRequestError(f"Rate limit exceeded for provider: {provider_id}")

    def configure_provider(
        self,
        provider_id: str,
        *,
        api_key: str | None = None,
        model: str | None = None,
    ) -> AIProvider:
        """Replace a provider's credential or model and notify listeners."""
        with self._lock:
            provider = self._providers.get(provider_id)
            if provider is None:
                raise ProviderNotConfiguredError(f"Unknown provider: {provider_id}")
            changes: dict[str, object] = {}
            if api_key is not None:
                if not hasattr(provider, "api_key"):
                    raise ProviderNotConfiguredError(f"Provider takes no API key: {provider_id}")
                changes["api_key"] = api_key
            if model is not None:
                changes["model"] = model
            updated = replace(provider, **changes) if changes else provider  # type: ignore[type-var]
            self._providers[provider_id] = updated
            listeners = list(self._listeners)
        for listener in listeners:
            listener(provider_id)
        return updated

    def add_change_listener(self, callback: Callable[[str], None]) -> None:
        with self._lock:
            self._listeners.append(callback)

    def describe(self) -> list[dict[str, object]]:
        """Summarize every registered provider for status endpoints."""
        available = set(self.get_available_providers())
        return [
            {
                **self._info[provider.provider_id].to_dict(),
                "model": provider.model,
                "configured": provider.is_configured(),
                "available": provider.provider_id in available,
            }
            for provider in self._ordered()
        ]


def build_registry(
    *,
    usage: UsageTracker,
    openai_api_key: str | None = None,
    openai_base_url: str = "https://api.openai.com/v1",
    openai_model: str = "gpt-3.5-turbo",
    openai_timeout: float = 60.0,
    anthropic_api_key: str | None = None,
    anthropic_base_url: str = "https://api.anthropic.com",
    anthropic_model: str = "claude-3-haiku-20240307",
    anthropic_timeout: float = 60.0,
    gemini_api_key: str | None = None,
    gemini_model: str = "gemini-pro",
    gemini_timeout: float = 60.0,
    ollama_enabled: bool = False,
    ollama_base_url: str = "http://localhost:11434",
    ollama_model: str = "llama3",
    ollama_timeout: float = 60.0,
    rate_limit_per_minute: int | None = None,
) -> ProviderRegistry:
    """Build a registry with every supported provider."""
    info = None
    if rate_limit_per_minute:
        info = {
            provider_id: replace(entry, requests_per_minute=rate_limit_per_minute)
            for provider_id, entry in DEFAULT_PROVIDER_INFO.items()
        }
    providers: list[AIProvider] = [
        OpenAIProvider(
            api_key=openai_api_key,
            usage=usage,
            model=openai_model,
            base_url=openai_base_url,
            timeout=openai_timeout,
        ),
        AnthropicProvider(
            api_key=anthropic_api_key,
            usage=usage,
            model=anthropic_model,
            base_url=anthropic_base_url,
            timeout=anthropic_timeout,
        ),
        GeminiProvider(
            api_key=gemini_api_key,
            usage=usage,
            model=gemini_model,
            timeout=gemini_timeout,
        ),
        OllamaProvider(
            enabled=ollama_enabled,
            usage=usage,
            model=ollama_model,
            base_url=ollama_base_url,
            timeout=ollama_timeout,
        ),
    ]
    return ProviderRegistry(providers, info=info)
