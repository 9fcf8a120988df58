"""
Application configuration using Pydantic Settings.
All config is loaded from environment variables / .env file.
"""

from pydantic_settings import BaseSettings
from functools import lru_cache

# Sentinel used by deployments that intentionally run on canned answers
MOCK_KEY_SENTINEL = "invalid-key-use-mock-responses"


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    # ── App ──────────────────────────────────────────────
    APP_NAME: str = "academic-counselor"
    APP_VERSION: str = "0.1.0"
    ENVIRONMENT: str = "development"  # development | production | test
    DEBUG: bool = False
    CORS_ORIGINS: str = "http://localhost:3000"  # comma-separated

    # ── Chat Completion Provider ─────────────────────────
    LLM_PROVIDER: str = "openai"  # openai | openrouter
    OPENAI_API_KEY: str = ""
    OPENROUTER_API_KEY: str = ""
    OPENAI_API_URL: str = "https://api.openai.com/v1/chat/completions"
    OPENROUTER_API_URL: str = "https://openrouter.ai/api/v1/chat/completions"
    OPENROUTER_REFERER: str = "http://localhost:3000"

    # ── Models ───────────────────────────────────────────
    PRIMARY_MODEL: str = "gpt-4.1-mini"
    FALLBACK_MODEL: str = "gpt-3.5-turbo"
    WEB_BROWSING_MODEL: str = "gpt-4.1-mini"
    LLM_TEMPERATURE: float = 0.7
    LLM_MAX_TOKENS: int = 1000

    # ── Timeouts & Retry ─────────────────────────────────
    LLM_REQUEST_TIMEOUT: float = 60.0  # seconds, per HTTP attempt
    LLM_MAX_RETRIES: int = 3
    LLM_INITIAL_RETRY_DELAY: float = 1.0
    LLM_MAX_RETRY_DELAY: float = 10.0
    CHAT_TIMEOUT_SECONDS: float = 90.0  # whole chat turn, primary + fallback

    # ── Web Search (Tavily) ──────────────────────────────
    WEB_SEARCH_ENABLED: bool = True
    TAVILY_API_KEY: str = ""
    WEB_SEARCH_CACHE_TTL: int = 1800
    WEB_SEARCH_MAX_RESULTS: int = 5

    # ── Sessions ─────────────────────────────────────────
    SESSION_IDLE_MINUTES: int = 30
    SESSION_SWEEP_MINUTES: int = 5

    # ── Documents ────────────────────────────────────────
    MAX_UPLOAD_MB: int = 10
    MAX_PDF_CONTEXT_CHARS: int = 12000
    CHUNK_SIZE: int = 800
    CHUNK_OVERLAP: int = 100
    DOCS_DIR: str = "data/docs"

    # ── Retrieval QA (LangChain chat model) ──────────────
    RAG_PROVIDER: str = "openai"  # openai | openrouter | groq | gemini
    RAG_MODEL: str = "gpt-3.5-turbo"
    RAG_API_KEY: str = ""  # falls back to the provider key above
    RAG_TEMPERATURE: float = 0.2
    RAG_MAX_TOKENS: int = 400

    # ── Embedding ────────────────────────────────────────
    EMBEDDING_MODEL: str = "text-embedding-ada-002"
    EMBEDDING_DIMENSIONS: int = 384  # local hash fallback only

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
        "extra": "ignore",
    }

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def provider_api_key(self) -> str:
        """Key for the configured chat completion provider."""
        if self.LLM_PROVIDER == "openrouter":
            return self.OPENROUTER_API_KEY
        return self.OPENAI_API_KEY

    @property
    def provider_api_url(self) -> str:
        if self.LLM_PROVIDER == "openrouter":
            return self.OPENROUTER_API_URL
        return self.OPENAI_API_URL

    @property
    def max_upload_bytes(self) -> int:
        return self.MAX_UPLOAD_MB * 1024 * 1024


def is_usable_api_key(key: str | None) -> bool:
    """A key is usable when it looks like a real `sk-` key and is not the mock sentinel."""
    return bool(key) and key.startswith("sk-") and key != MOCK_KEY_SENTINEL


def mask_key(key: str) -> str:
    """Log-safe rendering of an API key."""
    if len(key) < 10:
        return "***"
    return f"{key[:5]}...{key[-4:]}"


def get_env_diagnostics(settings: "Settings") -> dict:
    """Configuration health without exposing any secret values."""
    return {
        "openrouterApiKey": "set" if settings.OPENROUTER_API_KEY else "missing",
        "apiKeyConfigured": "yes" if len(settings.provider_api_key) > 10 else "no",
        "environment": settings.ENVIRONMENT,
        "provider": settings.LLM_PROVIDER,
        "webSearchEnabled": settings.WEB_SEARCH_ENABLED,
        "tavilyApiKeyConfigured": "yes" if settings.TAVILY_API_KEY else "no",
    }


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance (singleton)."""
    return Settings()
