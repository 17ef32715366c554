from __future__ import annotations

"""Tunables for the generation layer, independent of environment settings."""

from dataclasses import dataclass, field

from pagegen.generation.types import Intent

DEFAULT_TEMPERATURE = 0.6
DEFAULT_TEMPERATURES: dict[str, float] = {
    Intent.COMMERCIAL.value: 0.8,
    Intent.INFORMATIONAL.value: 0.6,
    Intent.EDUCATIONAL.value: 0.5,
    Intent.NAVIGATIONAL.value: 0.4,
}


@dataclass(frozen=True)
class GenerationConfig:
    """Generation parameters shared by generators and the page engine."""
    cache_ttl_seconds: float = 3600.0
    interest_cache_ttl_seconds: float = 300.0
    max_tokens_by_component: dict[str, int] = field(default_factory=dict)
    temperature_by_intent: dict[str, float] = field(default_factory=dict)
    provider_preference: dict[str, list[str]] = field(default_factory=dict)
    confidence_threshold: float = 0.7
    cache_key_discovery_limit: int = 5
    request_timeout: float = 90.0
    parallel_components: bool = True
    top_p: float = 0.9

    def temperature_for(self, intent: Intent | str) -> float:
        """Return the sampling temperature for an intent."""
        name = Intent.parse(intent).value
        if name in self.temperature_by_intent:
            return max(0.0, min(2.0, float(self.temperature_by_intent[name])))
        return DEFAULT_TEMPERATURES.get(name, DEFAULT_TEMPERATURE)

    def max_tokens_for(self, component_type: str, default: int) -> int:
        """Return the token budget for a component, clamped to 1..4096."""
        value = self.max_tokens_by_component.get(component_type, default)
        return max(1, min(4096, int(value)))

    def preferences_for(self, component_type: str) -> list[str] | None:
        preferences = self.provider_preference.get(component_type)
        if not preferences:
            return None
        return [name.strip().lower() for name in preferences if name and name.strip()]
