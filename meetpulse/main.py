"""
MeetPulse: meeting participation analytics backend

FastAPI application factory.
Mounts routers, configures middleware, logging, and exception handlers,
and wires the session registry and participation engine into app state.
"""

import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from meetpulse.api import bots, health, webhook
from meetpulse.config import Settings, get_settings
from meetpulse.engine.snapshot import ParticipationEngine
from meetpulse.middleware import RequestLoggingMiddleware
from meetpulse.store.session_store import SessionRegistry

logger = logging.getLogger("meetpulse")


def _configure_logging(settings: Settings) -> None:
    """Set up structured logging for the application."""
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    fmt = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(fmt, datefmt="%Y-%m-%d %H:%M:%S"))

    root = logging.getLogger()
    root.setLevel(log_level)
    root.handlers.clear()
    root.addHandler(handler)

    # Quiet noisy third-party loggers
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup logic runs before ``yield``, shutdown logic runs after.
    """
    settings: Settings = app.state.settings
    logger.info(
        "🚀 %s v%s starting up [%s]",
        settings.app_name,
        settings.app_version,
        settings.environment,
    )
    yield
    stats = await app.state.registry.get_stats()
    logger.info(
        "👋 %s shutting down | sessions=%d | utterances=%d",
        settings.app_name,
        stats["active_sessions"],
        stats["total_utterances"],
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Build and configure the FastAPI application.

    Args:
        settings: Overrides the environment-derived settings (used by tests).
    """
    settings = settings or get_settings()
    _configure_logging(settings)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Live participation analytics for meeting transcripts.",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.registry = SessionRegistry()
    app.state.engine = ParticipationEngine.from_settings(settings)

    # --- Exception Handlers ---
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch unhandled exceptions and return a clean 500 response."""
        logger.exception(
            "Unhandled error | %s %s | %s",
            request.method,
            request.url.path,
            str(exc),
        )
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "detail": "An unexpected error occurred. Please try again later.",
            },
        )

    # --- Middleware (order matters: last added = first executed) ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    # --- Routers ---
    app.include_router(health.router)
    app.include_router(webhook.router)
    app.include_router(bots.router)

    return app


# Module-level app instance for uvicorn
app = create_app()
