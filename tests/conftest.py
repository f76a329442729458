"""Shared test fixtures for FlowForge.

Settings are pinned to an offline configuration: keyword strategies,
in-memory sessions, no tracing, no engine, no backoff.
"""

from collections.abc import Generator

import pytest

from flowforge.dal import InMemorySessionStore
from flowforge.generation import ArtifactGenerator
from flowforge.recovery import RetryCoordinator
from flowforge.services import ConversationService, Pipeline
from flowforge.settings import Settings, get_settings

OFFLINE_ENV = {
    "ENVIRONMENT": "testing",
    "LLM_ENABLED": "false",
    "SESSION_STORE": "memory",
    "TRACING_ENABLED": "false",
    "RETRY_BACKOFF_SECONDS": "0",
}


@pytest.fixture(autouse=True)
def offline_settings(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Keep get_settings() offline and uncached for every test."""
    for key, value in OFFLINE_ENV.items():
        monkeypatch.setenv(key, value)
    monkeypatch.delenv("ENGINE_URL", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def test_settings() -> Settings:
    """Provide test settings with safe defaults."""
    return Settings(
        environment="testing",
        debug=True,
        llm_enabled=False,
        session_store="memory",
        tracing_enabled=False,
        retry_backoff_seconds=0.0,
    )


@pytest.fixture
def coordinator() -> RetryCoordinator:
    return RetryCoordinator(max_attempts=3, backoff_seconds=0.0)


@pytest.fixture
def pipeline(coordinator: RetryCoordinator) -> Pipeline:
    """Keyword pipeline with no deployer."""
    return Pipeline(generator=ArtifactGenerator(), coordinator=coordinator)


@pytest.fixture
def store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def service(pipeline: Pipeline, store: InMemorySessionStore) -> ConversationService:
    return ConversationService(pipeline, store)
