"""Shared pytest fixtures."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from app.api.deps import llm_relay, product_repo, product_search_repo
from app.core.config import Settings, get_settings
from app.main import app


@pytest.fixture
def settings():
    """Fully configured settings, independent of any .env file."""
    return Settings(
        _env_file=None,
        LLM_PROVIDER="openai",
        LLM_API_KEY="test-llm-key",
        LLM_BASE_URL="https://llm.test/v1",
        LLM_CHAT_MODEL="test-model",
        LLM_NDJSON_URL="https://ollama.test/api/chat",
        SUPABASE_URL="https://store.test",
        SUPABASE_SERVICE_ROLE_KEY="test-service-key",
    )


@pytest.fixture
def make_client(settings):
    """TestClient factory with settings, relay and store repositories overridden."""

    def _make(relay=None, search_repo=None, repo=None, app_settings=None):
        app.dependency_overrides[get_settings] = lambda: app_settings or settings
        app.dependency_overrides[llm_relay] = lambda: relay
        app.dependency_overrides[product_search_repo] = lambda: search_repo
        app.dependency_overrides[product_repo] = lambda: repo
        return TestClient(app)

    yield _make
    app.dependency_overrides.clear()
