"""
NoteBoard Backend - FastAPI Application Factory
===============================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn noteboard.main:app).

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌──────────┐ ┌─────────────────┐ ┌──────────────┐  │
    │  │ Req ID   │→│  Logging        │→│ GZip / CORS  │  │
    │  └──────────┘ └─────────────────┘ └──────────────┘  │
    │                                                     │
    │  Routes:                                            │
    │  ┌──────────────┐ ┌──────────────┐ ┌─────────────┐  │
    │  │ /api/board/* │ │ /api/auth/*  │ │ GET /health │  │
    │  └──────────────┘ └──────────────┘ └─────────────┘  │
    │                                                     │
    │  Exception Handlers:                                │
    │  ┌──────────────────────────────────────────────┐   │
    │  │ Validation→400 │ Auth→401 │ Platform→502 ... │   │
    │  └──────────────────────────────────────────────┘   │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging, configuration check, preview directory, HTTP client
    Shutdown: close every board (previews) and the platform HTTP client
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from noteboard import __version__
from noteboard.config import settings
from noteboard.exceptions import (
    NoteBoardError,
    ValidationError,
    AuthenticationError,
    NotFoundError,
    ConflictError,
    PreviewStorageError,
    PlatformError,
)
from noteboard.middleware.request_id import RequestIDMiddleware, request_id_var
from noteboard.middleware.logging import RequestLoggingMiddleware
from noteboard.routes import auth, board, health
from noteboard.services.preview_service import preview_service
from noteboard.services.session_registry import session_registry

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: 2024-01-15T12:00:00 [INFO] noteboard.services.note_board: message
    When:   Called once during app startup, before any other initialization.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
        force=True,
    )

    # Per-request chatter from the servers and HTTP client libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Open shared resources on startup, release them on shutdown."""
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("NoteBoard Backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Keep serving /health so the misconfiguration is visible
        logger.error("Configuration error: %s", str(e))

    logger.info("Preview directory: %s", preview_service.preview_dir)
    logger.info(
        "Platform: data=%s storage=%s auth=%s",
        settings.platform_data_url,
        settings.platform_storage_url,
        settings.platform_auth_url,
    )
    session_registry.startup()
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("NoteBoard Backend shutting down...")
    await session_registry.shutdown()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_response(
    status_code: int,
    error: str,
    message: str,
    details: Optional[dict] = None,
    headers: Optional[dict] = None,
) -> JSONResponse:
    content = {
        "error": error,
        "message": message,
        "request_id": request_id_var.get(""),
    }
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to HTTP status codes and a uniform JSON body.

    Handler hierarchy:
        ValidationError         → 400 Bad Request
        AuthenticationError     → 401 Unauthorized
        NotFoundError           → 404 Not Found
        ConflictError           → 409 Conflict
        PreviewStorageError     → 500 Internal Server Error
        PlatformError (+ subs)  → 502 Bad Gateway
        NoteBoardError (base)   → 500 Internal Server Error
        Exception (fallback)    → 500 Internal Server Error

    Security: platform response bodies, file paths and stack traces are
    logged server-side only, never returned.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return _error_response(400, "validation_error", exc.message, details=exc.context)

    @app.exception_handler(AuthenticationError)
    async def handle_authentication_error(request: Request, exc: AuthenticationError):
        return _error_response(
            401,
            "unauthorized",
            exc.message,
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return _error_response(404, "not_found", exc.message)

    @app.exception_handler(ConflictError)
    async def handle_conflict(request: Request, exc: ConflictError):
        return _error_response(409, "conflict", exc.message)

    @app.exception_handler(PreviewStorageError)
    async def handle_preview_storage_error(request: Request, exc: PreviewStorageError):
        rid = request_id_var.get("")
        logger.error("[%s] Preview storage error: %s | Context: %s", rid, exc.message, exc.context)
        return _error_response(500, "server_error", exc.message)

    @app.exception_handler(PlatformError)
    async def handle_platform_error(request: Request, exc: PlatformError):
        rid = request_id_var.get("")
        logger.error(
            "[%s] %s: %s | Context: %s",
            rid,
            type(exc).__name__,
            exc.message,
            exc.context,
        )
        return _error_response(502, "platform_error", exc.message)

    @app.exception_handler(NoteBoardError)
    async def handle_noteboard_error(request: Request, exc: NoteBoardError):
        rid = request_id_var.get("")
        logger.error("[%s] Application error: %s | Context: %s", rid, exc.message, exc.context)
        return _error_response(500, "server_error", exc.message)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error(
            "[%s] Unexpected error: %s",
            request_id_var.get(""),
            str(exc),
            exc_info=True,
        )
        return _error_response(
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again or contact support.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="NoteBoard API",
        description=(
            "Backend-for-frontend of the NoteBoard notes page. Notes, images and "
            "identities live on the managed platform; this service keeps each "
            "session's board state and runs the create, upload and delete flows."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Middleware executes in REVERSE order of addition:
    # RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(board.router)
    app.include_router(auth.router)
    app.include_router(health.router)

    return app


app = create_app()
