"""
Academic Counselor - FastAPI Application Entry Point.

Feature-based modular architecture:
  Each feature in counselor/features/ has its own router, service, and schemas.
  Adding a new feature = adding a new folder, no existing code changes needed.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from counselor.background.scheduler import init_scheduler, shutdown_scheduler
from counselor.config import get_env_diagnostics, get_settings, is_usable_api_key

# ── Feature Routers ──────────────────────────────────────
from counselor.features.chat.router import router as chat_router
from counselor.features.documents.router import router as documents_router
from counselor.features.knowledge.router import router as knowledge_router
from counselor.features.profile.router import router as profile_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle: startup & shutdown."""
    settings = get_settings()
    print(f"🚀 {settings.APP_NAME} v{settings.APP_VERSION} starting...")
    print(f"🤖 Chat provider: {settings.LLM_PROVIDER} ({settings.PRIMARY_MODEL}, fallback {settings.FALLBACK_MODEL})")
    if not is_usable_api_key(settings.provider_api_key):
        print("🧪 No usable API key, answering with mock responses")
    print(f"🔎 Web search: {'on' if settings.WEB_SEARCH_ENABLED else 'off'}")
    init_scheduler()
    yield
    shutdown_scheduler()
    print("👋 Shutting down...")


def create_app() -> FastAPI:
    """Application factory."""
    settings = get_settings()

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Academic counseling chatbot for college-bound students",
        debug=settings.DEBUG,
        lifespan=lifespan,
    )

    # ── CORS ─────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Register Feature Routers ─────────────────────────
    app.include_router(chat_router, prefix="/api/chat", tags=["Chat"])
    app.include_router(profile_router, prefix="/api/profile", tags=["Profile"])
    app.include_router(documents_router, prefix="/api", tags=["Documents"])
    app.include_router(knowledge_router, prefix="/api/langchain")

    # ── System ───────────────────────────────────────────
    @app.get("/health", tags=["System"])
    async def health_check():
        return {
            "status": "healthy",
            "app": settings.APP_NAME,
            "version": settings.APP_VERSION,
        }

    @app.get("/api/check-env", tags=["System"])
    async def check_env():
        """Configuration diagnostics; never returns secret values."""
        return get_env_diagnostics(get_settings())

    return app


app = create_app()
