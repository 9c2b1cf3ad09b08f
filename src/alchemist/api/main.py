"""FastAPI application."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from alchemist import __version__
from alchemist.api.routes import router
from alchemist.config import Settings
from alchemist.pipeline.service import TranslationService


def create_app(
    settings: Settings | None = None, service: TranslationService | None = None
) -> FastAPI:
    """Create the API app. Tests pass their own service."""
    settings = settings or Settings.from_env()
    app = FastAPI(
        title="Language Alchemist",
        description="Conlang construction and translation engine",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # CORS for development
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.service = service or TranslationService.from_settings(settings)
    app.include_router(router, prefix="/api/v1")

    @app.get("/")
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Language Alchemist",
            "version": __version__,
            "docs": "/docs",
            "api": "/api/v1",
        }

    return app


def __getattr__(name: str):
    # Built on first access so importing this module has no side effects
    if name == "app":
        global app
        app = create_app()
        return app
    raise AttributeError(name)
