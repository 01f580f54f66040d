"""FastAPI application factory."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from oxt_shared.config import Settings
from oxt_shared.config import settings as default_settings

from oxt_api import __version__
from oxt_api.context import AppContext
from oxt_api.middleware.logging import LoggingMiddleware
from oxt_api.middleware.rate_limit import RateLimitMiddleware
from oxt_api.routers.health import router as health_router
from oxt_api.routers.v1 import v1_router
from oxt_api.utils.logging import configure_logging

logger = structlog.get_logger()


def create_app(
    settings: Settings | None = None,
    *,
    context: AppContext | None = None,
) -> FastAPI:
    """
    Build the API.

    With no context the lifespan builds one from settings at startup;
    tests pass a prebuilt context to control the data source and clock.
    """
    settings = context.settings if context is not None else (settings or default_settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        configure_logging(settings)
        ctx = context or AppContext.build(settings)
        app.state.context = ctx
        await ctx.startup()
        try:
            yield
        finally:
            await ctx.shutdown()

    app = FastAPI(
        title="OXT Staking API",
        description="Validator yields, delegator rankings and network statistics for OXT staking",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Custom middleware (order matters: last added = first executed)
    app.add_middleware(
        RateLimitMiddleware,
        max_requests=settings.apr_rate_limit_max,
        window_seconds=settings.apr_rate_limit_window,
    )
    app.add_middleware(LoggingMiddleware)

    # Routers
    app.include_router(health_router)
    app.include_router(v1_router)

    logger.info("app_created", cors_origins=settings.cors_origins_list)
    return app


app = create_app()
