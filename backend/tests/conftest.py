"""Shared fixtures: deterministic offline settings for every test."""

import pytest

from counselor.config import get_settings
from counselor.features.chat import web_search

OFFLINE_SETTINGS = {
    "LLM_PROVIDER": "openai",
    "OPENAI_API_KEY": "",
    "OPENROUTER_API_KEY": "",
    "TAVILY_API_KEY": "",
    "WEB_SEARCH_ENABLED": True,
    "PRIMARY_MODEL": "gpt-4.1-mini",
    "FALLBACK_MODEL": "gpt-3.5-turbo",
    "WEB_BROWSING_MODEL": "gpt-4.1-mini",
    "LLM_MAX_RETRIES": 2,
    "LLM_INITIAL_RETRY_DELAY": 0.0,
    "LLM_MAX_RETRY_DELAY": 0.0,
    "CHAT_TIMEOUT_SECONDS": 90.0,
    "MAX_UPLOAD_MB": 10,
}


@pytest.fixture(autouse=True)
def settings(monkeypatch):
    s = get_settings()
    for name, value in OFFLINE_SETTINGS.items():
        monkeypatch.setattr(s, name, value)
    monkeypatch.setattr(web_search, "_client", None)
    web_search._search_cache.clear()
    return s


@pytest.fixture
def api_key(settings, monkeypatch):
    """A key that passes the `sk-` check, so real provider calls are attempted."""
    monkeypatch.setattr(settings, "OPENAI_API_KEY", "sk-test-0123456789abcdef")
    return settings.OPENAI_API_KEY
