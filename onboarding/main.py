from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from onboarding import __version__
from onboarding.api.v1.router import router as api_v1_router
from onboarding.config.settings import settings
from onboarding.core.logging import setup_logging
from onboarding.core.middleware import register_exception_handlers, register_middlewares
from onboarding.db.init_db import init_db


def create_app() -> FastAPI:
    """
    Application factory for the FastAPI app.

    - Configures logging, title and debug mode from Settings.
    - Registers CORS, core middleware, and exception handlers.
    - Includes the versioned API router under /api/v1.
    """
    setup_logging()

    app = FastAPI(
        title=settings.APP_NAME,
        debug=settings.DEBUG,
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # Credentials cannot be combined with a wildcard origin
    wildcard = not settings.CORS_ORIGINS or settings.CORS_ORIGINS == ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if wildcard else settings.CORS_ORIGINS,
        allow_credentials=not wildcard,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Request ID, timing, security headers, error logging
    register_middlewares(app)
    register_exception_handlers(app)

    app.include_router(api_v1_router, prefix=settings.API_V1_STR)

    # Schema bootstrap for development; production databases are migrated separately
    @app.on_event("startup")
    async def on_startup() -> None:
        if not settings.is_production:
            init_db()

    return app


app = create_app()
