"""
Pantry Lookup API — FastAPI Application Factory
=================================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn pantry_api.main:app).
When:  Once at server startup; the returned app handles all subsequent requests.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌──────────┐ ┌──────────┐ ┌──────┐ ┌──────┐        │
    │  │  Req ID  │→│ Logging  │→│ GZip │→│ CORS │        │
    │  └──────────┘ └──────────┘ └──────┘ └──────┘        │
    │                                                     │
    │  Routes:                                            │
    │  ┌────────────┐ ┌─────────────────┐ ┌─────────────┐ │
    │  │ /api/units │ │ /api/categories │ │ /api/staples│ │
    │  └────────────┘ └─────────────────┘ └─────────────┘ │
    │  ┌─────────┐                                        │
    │  │ /health │                                        │
    │  └─────────┘                                        │
    │                                                     │
    │  Exception Handlers:                                │
    │  ┌──────────────────────────────────────────────┐   │
    │  │ Unauthorized→401 │ PantryError→500 │ *→500   │   │
    │  └──────────────────────────────────────────────┘   │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging setup, configuration validation
    Shutdown: dispose database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from pantry_api import __version__
from pantry_api.config import settings
from pantry_api.database import dispose_engine
from pantry_api.exceptions import PantryError, UnauthorizedError
from pantry_api.middleware.logging import RequestLoggingMiddleware
from pantry_api.middleware.request_id import RequestIDMiddleware, request_id_var
from pantry_api.routes import health, lookups

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    What:    Root logger to stdout with a consistent format.
    When:    Called once during app startup, before any other initialization.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party libraries log every connection and statement at INFO/DEBUG
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Manage application lifecycle.

    Startup sequence:
        1. Setup logging
        2. Validate critical configuration (logged, not fatal, so /health
           can still report what is wrong)

    Shutdown sequence:
        1. Dispose database engine (close all pooled connections)
    """
    setup_logging()
    logger.info("Pantry Lookup API %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))

    logger.info("Backend: %s", settings.backend_url)
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)

    yield

    logger.info("Pantry Lookup API shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def error_response(request: Request, status_code: int, code: str, message: str) -> JSONResponse:
    """
    Builds the structured error body shared by every failure outcome.

    Session cookies refreshed earlier in the request are copied onto the
    error response: the provider rotates refresh tokens, so dropping them
    would leave the browser holding a spent one.
    """
    response = JSONResponse(
        status_code=status_code,
        content={
            "error": {"code": code, "message": message},
            "request_id": request_id_var.get(""),
        },
    )
    for cookie in getattr(request.state, "session_cookies", ()):
        response.headers.append("set-cookie", cookie)
    return response


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register global exception handlers for consistent error responses.

    Handler hierarchy:
        UnauthorizedError   → 401 Unauthorized
        PantryError (base)  → 500 Internal Server Error
        Exception (fallback)→ 500 Internal Server Error

    Security: handlers never echo the original error; details go to the log.
    """

    @app.exception_handler(UnauthorizedError)
    async def handle_unauthorized(request: Request, exc: UnauthorizedError):
        logger.info("[%s] Unauthorized request to %s", request_id_var.get(""), request.url.path)
        return error_response(request, exc.status_code, exc.code, exc.message)

    @app.exception_handler(PantryError)
    async def handle_pantry_error(request: Request, exc: PantryError):
        # The original exception was already logged with its traceback at the raise site
        logger.error(
            "[%s] %s on %s | Context: %s",
            request_id_var.get(""),
            type(exc).__name__,
            request.url.path,
            exc.context,
        )
        return error_response(request, exc.status_code, exc.code, exc.message)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """Catch-all: generic 500, full stack trace logged server-side only."""
        logger.error(
            "[%s] Unexpected error on %s",
            request_id_var.get(""),
            request.url.path,
            exc_info=exc,
        )
        return error_response(request, 500, "INTERNAL_ERROR", "An unexpected error occurred")


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns: Fully configured FastAPI instance ready to receive requests.
    """
    app = FastAPI(
        title="Pantry Lookup API",
        description=(
            "Read-only reference data for the pantry application: measurement units, "
            "product categories and staple definitions."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Middleware executes in REVERSE order of addition (last added = outermost)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,  # session cookie
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
        expose_headers=["X-Request-ID", "Cache-Control"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(lookups.router)
    app.include_router(health.router)

    return app


# ── Application Instance ─────────────────────────────────────────────────
# uvicorn expects `pantry_api.main:app` to be importable
app = create_app()
