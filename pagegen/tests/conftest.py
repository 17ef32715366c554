from __future__ import annotations

"""Shared pytest fixtures and test environment defaults."""

import os
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

os.environ["OPENAI_API_KEY"] = ""
os.environ["ANTHROPIC_API_KEY"] = ""
os.environ["GEMINI_API_KEY"] = ""
os.environ["SPB_OLLAMA_ENABLED"] = "false"
os.environ["SPB_API_KEYS"] = ""
os.environ["SPB_USAGE_DB_URI"] = ""
os.environ.setdefault("SPB_METRICS_ENABLED", "true")
os.environ.setdefault("SPB_LOG_LEVEL", "WARNING")

from pagegen.generation.cache import ComponentCache  # noqa: E402
from pagegen.generation.config import GenerationConfig  # noqa: E402
from pagegen.providers.registry import ProviderRegistry  # noqa: E402
from pagegen.tests.fakes import FakeProvider  # noqa: E402


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def registry(fake_provider: FakeProvider) -> ProviderRegistry:
    return ProviderRegistry([fake_provider])


@pytest.fixture
def empty_registry() -> ProviderRegistry:
    return ProviderRegistry()


@pytest.fixture
def cache() -> ComponentCache:
    return ComponentCache(3600)


@pytest.fixture
def config() -> GenerationConfig:
    return GenerationConfig()
