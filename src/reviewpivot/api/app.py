"""
FastAPI application factory.

``create_app()`` wires middleware, routers, error handlers, and lifespan
events into a single ``FastAPI`` instance.

Tags:
    review-pivot, api, app-factory, composition-root, FastAPI

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from reviewpivot.api.deps import get_settings
from reviewpivot.api.middleware.errors import request_validation_handler, unhandled_exception_handler
from reviewpivot.api.middleware.request_id import RequestIDMiddleware
from reviewpivot.api.middleware.timing import TimingMiddleware
from reviewpivot.api.settings import ReviewPivotAPISettings


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: logging, optional schema init, shutdown log."""

    from reviewpivot.core.connection import create_connection
    from reviewpivot.core.logging import configure_logging, get_logger

    settings: ReviewPivotAPISettings = app.state.settings
    configure_logging(settings.log_level, json_format=settings.json_logs)

    log = get_logger("reviewpivot.api")
    log.info("review_pivot_api_starting", version=app.version)

    if settings.auto_init_schema:
        conn = None
        try:
            conn, info = create_connection(
                settings.database_url,
                init_schema=True,
                data_dir=settings.data_dir,
            )
            log.info("database_initialized", backend=info.backend)
        except Exception as e:
            log.warning("database_auto_init_failed", error=str(e))
        finally:
            if conn is not None and hasattr(conn, "close"):
                conn.close()

    yield
    log.info("review_pivot_api_shutting_down")


def create_app(
    *,
    settings: ReviewPivotAPISettings | None = None,
) -> FastAPI:
    """Build and return a fully-configured FastAPI application.

    Parameters
    ----------
    settings : ReviewPivotAPISettings | None
        Override settings (useful for testing).  When ``None`` the cached
        singleton from :func:`get_settings` is used.
    """

    settings = settings or get_settings()

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        lifespan=lifespan,
        docs_url=f"{settings.api_prefix}/docs",
        redoc_url=f"{settings.api_prefix}/redoc",
        openapi_url=f"{settings.api_prefix}/openapi.json",
    )

    # Stash settings on app state for middleware access
    app.state.settings = settings

    # Override DI so endpoints use the provided settings
    app.dependency_overrides[get_settings] = lambda: settings

    # ── Middleware (added innermost first) ────────────────────────────
    app.add_middleware(TimingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET"],
        allow_headers=["*"],
        expose_headers=["Link", "X-Request-ID", "X-Process-Time-Ms"],
    )

    # ── Exception handlers ───────────────────────────────────────────
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # ── Routers ──────────────────────────────────────────────────────
    from reviewpivot.api.routers import assets, health

    # Health endpoints at root level (no prefix) for container healthchecks
    app.include_router(health.router, tags=["health"])
    app.include_router(assets.router, prefix=settings.api_prefix, tags=["reviews"])

    return app
