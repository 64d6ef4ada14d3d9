from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from glossa.config import Settings, get_settings
from glossa.routers import router as websocket_router
from glossa.translation import BoundedWorkQueue, TranslationProvider, create_provider
from glossa.utils.cache import TranslationCache


def create_app(provider: TranslationProvider | None = None, settings: Settings | None = None) -> FastAPI:
    """
    Build the translation server application.

    Args:
        provider: Translation backend (created from settings on startup if None)
        settings: Runtime settings (read from the environment if None)

    Returns:
        Configured FastAPI app
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Create the shared cache, work queue and provider; drain on shutdown"""
        print("🚀 Starting translation server...")
        app.state.settings = settings
        app.state.translation_cache = TranslationCache(max_size=settings.server_cache_size)
        app.state.work_queue = BoundedWorkQueue(concurrency=settings.work_concurrency)
        if provider is None:
            options = {"model": settings.openai_model} if settings.provider == "openai" else {}
            app.state.provider = create_provider(settings.provider, **options)
        else:
            app.state.provider = provider
        print(
            f"✅ Provider '{app.state.provider.provider_name}' ready "
            f"(concurrency={settings.work_concurrency}, cache={settings.server_cache_size})"
        )

        yield

        # Cleanup on shutdown
        print("🔌 Shutting down...")
        await app.state.work_queue.close()

    app = FastAPI(
        title="Glossa translation server",
        description="Batched, cache-deduplicated translation over WebSocket",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Root endpoint
    @app.get("/")
    async def root():
        return {
            "message": "Glossa translation server",
            "version": "1.0.0",
            "docs": "/docs",
            "endpoints": {
                "websocket": "/ws/translate",
                "health": "/health",
            },
        }

    # Health check endpoint
    @app.get("/health")
    async def health_check():
        queue = app.state.work_queue
        return {
            "status": "healthy",
            "service": "Glossa translation server",
            "provider": app.state.provider.provider_name,
            "cache_size": app.state.translation_cache.size,
            "active_jobs": queue.active,
            "waiting_jobs": queue.waiting,
        }

    # Include routers
    app.include_router(
        websocket_router,
        prefix="/ws",
        tags=["websocket"],
    )

    return app


app = create_app()


def run():
    settings = get_settings()
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
