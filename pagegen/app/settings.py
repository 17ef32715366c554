from __future__ import annotations

import json
import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

_TRUE_VALUES = {"1", "true", "yes"}


def _parse_float_map(raw: str) -> dict[str, float]:
    mapping: dict[str, float] = {}
    for part in raw.split(","):
        part = part.strip()
        if not part or "=" not in part:
            continue
        key, value = part.split("=", 1)
        key = key.strip().lower()
        value = value.strip()
        if not key or not value:
            continue
        try:
            mapping[key] = float(value)
        except ValueError:
            continue
    return mapping


def _optional_int(raw: str | None) -> int | None:
    if raw is None or not raw.strip():
        return None
    try:
        return int(raw)
    except ValueError:
        return None


@dataclass(frozen=True)
class Settings:
    cache_ttl_seconds: float = float(os.getenv("SPB_CACHE_TTL_SECONDS", "3600"))
    interest_cache_ttl_seconds: float = float(os.getenv("SPB_INTEREST_CACHE_TTL_SECONDS", "300"))
    max_tokens_by_component_raw: str = os.getenv("SPB_MAX_TOKENS_BY_COMPONENT", "")
    temperature_by_intent_raw: str = os.getenv("SPB_TEMPERATURE_BY_INTENT", "")
    provider_preference_raw: str = os.getenv("SPB_PROVIDER_PREFERENCE", "")
    confidence_threshold: float = float(os.getenv("SPB_CONFIDENCE_THRESHOLD", "0.7"))
    cache_key_discovery_limit: int = int(os.getenv("SPB_CACHE_KEY_DISCOVERY_LIMIT", "5"))
    request_timeout: float = float(os.getenv("SPB_REQUEST_TIMEOUT", "90"))
    parallel_components: bool = os.getenv("SPB_PARALLEL_COMPONENTS", "true").lower() in _TRUE_VALUES
    openai_api_key: str | None = os.getenv("OPENAI_API_KEY")
    openai_base_url: str = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
    openai_chat_model: str = os.getenv("OPENAI_CHAT_MODEL", "gpt-3.5-turbo")
    openai_timeout: float = float(os.getenv("OPENAI_TIMEOUT", "60"))
    anthropic_api_key: str | None = os.getenv("ANTHROPIC_API_KEY")
    anthropic_base_url: str = os.getenv("ANTHROPIC_BASE_URL", "https://api.anthropic.com")
    anthropic_model: str = os.getenv("ANTHROPIC_MODEL", "claude-3-haiku-20240307")
    anthropic_timeout: float = float(os.getenv("ANTHROPIC_TIMEOUT", "60"))
    gemini_api_key: str | None = os.getenv("GEMINI_API_KEY")
    gemini_chat_model: str = os.getenv("GEMINI_CHAT_MODEL", "gemini-pro")
    gemini_timeout: float = float(os.getenv("GEMINI_TIMEOUT", "60"))
    ollama_enabled: bool = os.getenv("SPB_OLLAMA_ENABLED", "false").lower() in _TRUE_VALUES
    ollama_base_url: str = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434")
    ollama_model: str = os.getenv("OLLAMA_MODEL", "llama3")
    ollama_timeout: float = float(os.getenv("OLLAMA_TIMEOUT", "60"))
    rate_limit_per_minute_raw: str = os.getenv("SPB_RATE_LIMIT_PER_MINUTE", "")
    usage_db_uri: str | None = os.getenv("SPB_USAGE_DB_URI")
    api_keys_raw: str = os.getenv("SPB_API_KEYS", "")
    metrics_enabled: bool = os.getenv("SPB_METRICS_ENABLED", "true").lower() in _TRUE_VALUES
    log_level: str = os.getenv("SPB_LOG_LEVEL", "INFO")

    @property
    def api_keys(self) -> set[str]:
        raw = os.getenv("SPB_API_KEYS", self.api_keys_raw)
        return {value.strip() for value in raw.split(",") if value.strip()}

    @property
    def max_tokens_by_component(self) -> dict[str, int]:
        raw = os.getenv("SPB_MAX_TOKENS_BY_COMPONENT", self.max_tokens_by_component_raw).strip()
        return {key: int(value) for key, value in _parse_float_map(raw).items()}

    @property
    def temperature_by_intent(self) -> dict[str, float]:
        raw = os.getenv("SPB_TEMPERATURE_BY_INTENT", self.temperature_by_intent_raw).strip()
        return _parse_float_map(raw)

    @property
    def provider_preference(self) -> dict[str, list[str]]:
        raw = os.getenv("SPB_PROVIDER_PREFERENCE", self.provider_preference_raw).strip()
        if not raw:
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            return {}
        if not isinstance(data, dict):
            return {}
        result: dict[str, list[str]] = {}
        for key, value in data.items():
            if not isinstance(key, str) or not isinstance(value, list):
                continue
            names = [name.strip().lower() for name in value if isinstance(name, str) and name.strip()]
            if names:
                result[key.strip().lower()] = names
        return result

    @property
    def rate_limit_per_minute(self) -> int | None:
        return _optional_int(os.getenv("SPB_RATE_LIMIT_PER_MINUTE", self.rate_limit_per_minute_raw))


settings = Settings()
