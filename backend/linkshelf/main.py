"""
LinkShelf Backend — FastAPI Application Factory
=================================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() picks the persistence backend, builds
       the auth service, and wires middleware, exception handlers and routes.
Who:   Called by uvicorn (`uvicorn linkshelf.main:app`) and by the tests,
       which pass their own settings and backend.
When:  Once per application instance.

Application Architecture:
    ┌───────────────────────────────────────────────────────────┐
    │                        FastAPI App                        │
    │                                                           │
    │  Middleware Chain:                                        │
    │  ┌──────────┐ ┌──────────┐ ┌──────────┐ ┌─────────────┐   │
    │  │  Req ID  │→│ Logging  │→│ Session  │→│ GZip / CORS │   │
    │  └──────────┘ └──────────┘ └──────────┘ └─────────────┘   │
    │                                                           │
    │  Routes:                                                  │
    │  ┌────────────┐ ┌────────────┐ ┌─────────────┐ ┌────────┐ │
    │  │ /api/links │ │ /api/notes │ │ /api/labels │ │ /auth  │ │
    │  └────────────┘ └────────────┘ └─────────────┘ └────────┘ │
    │                                                           │
    │  app.state:  settings · backend · auth_service            │
    │                                                           │
    │  Exception Handlers:                                      │
    │  ┌─────────────────────────────────────────────────────┐  │
    │  │ Validation/Mutation→400 │ NotFound→404 │ DB→500     │  │
    │  │ AuthError→302 /login?error=…                        │  │
    │  └─────────────────────────────────────────────────────┘  │
    └───────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Report configuration problems (logged, not fatal)
    3. Log which backend serves requests

    Shutdown:
    1. Close the backend (disposes the SQL engine's pool)
"""

import logging
import sys
import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional
from urllib.parse import quote

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse, RedirectResponse

from linkshelf import __version__
from linkshelf.backends import BookmarkBackend, build_backend
from linkshelf.config import Settings, settings as default_settings
from linkshelf.exceptions import (
    AuthError,
    DatabaseError,
    LinkShelfError,
    MutationFailedError,
    NotFoundError,
    ValidationError,
)
from linkshelf.middleware.logging import RequestLoggingMiddleware
from linkshelf.middleware.request_id import RequestIDMiddleware, request_id_var
from linkshelf.middleware.session import SessionMiddleware
from linkshelf.routes import auth, health, labels, links, notes
from linkshelf.services.auth_service import STATE_COOKIE_NAME, AuthService
from linkshelf.services.github_oauth import GitHubOAuthClient

logger = logging.getLogger(__name__)

LOGIN_PATH = "/login"

# Characters encodeURIComponent leaves unescaped beyond quote()'s defaults
SAFE_CHARS = "!*'()"


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(config: Optional[Settings] = None) -> None:
    """
    Configure root logging for the whole application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Output: stdout (container runtimes collect it)
    """
    config = config or default_settings

    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party libraries that log every operation at DEBUG/INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    config: Settings = app.state.settings
    backend: BookmarkBackend = app.state.backend

    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging(config)
    logger.info("=" * 60)
    logger.info("LinkShelf Backend %s starting up...", __version__)
    logger.info("Environment: %s | backend: %s", config.environment, backend.kind)

    try:
        config.validate_required_for_production()
    except ValueError as e:
        # Not fatal: the bookmark API still works without GitHub login
        logger.error("Configuration error: %s", str(e))

    logger.info("Server ready at http://%s:%d", config.backend_host, config.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("LinkShelf Backend shutting down...")
    await backend.close()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": message, "request_id": request_id_var.get("")},
    )


def login_error_url(message: str) -> str:
    """`/login?error=...` with the message encoded like encodeURIComponent."""
    return f"{LOGIN_PATH}?error={quote('Authentication failed: ' + message, safe=SAFE_CHARS)}"


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to HTTP responses.

    Handler hierarchy:
        ValidationError         → 400 Bad Request
        RequestValidationError  → 400 Bad Request (malformed body or params)
        MutationFailedError     → 400 Bad Request
        NotFoundError           → 404 Not Found
        DatabaseError           → 500 Internal Server Error (generic message)
        AuthError               → 302 to /login?error=...
        LinkShelfError (base)   → 500 Internal Server Error
        Exception (fallback)    → 500 Internal Server Error

    Error bodies never carry stack traces, SQL or driver messages; those
    are logged with the request id instead.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return _error_response(400, exc.message)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        if errors:
            first = errors[0]
            location = ".".join(str(part) for part in first.get("loc", ()))
            message = f"Invalid request: {location} - {first.get('msg', 'invalid value')}"
        else:
            message = "Invalid request"
        logger.warning("[%s] %s", request_id_var.get(""), message)
        return _error_response(400, message)

    @app.exception_handler(MutationFailedError)
    async def handle_mutation_failed(request: Request, exc: MutationFailedError):
        return _error_response(400, exc.message)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return _error_response(404, exc.message)

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error(
            "[%s] Database error: %s | Context: %s",
            request_id_var.get(""), exc.message, exc.context,
        )
        return _error_response(500, "An internal error occurred. Please try again later.")

    @app.exception_handler(AuthError)
    async def handle_auth_error(request: Request, exc: AuthError):
        # Browser-navigated: redirect instead of JSON, and forget the nonce
        logger.warning("[%s] Authentication failed: %s", request_id_var.get(""), exc.message)
        response = RedirectResponse(login_error_url(exc.message), status_code=302)
        response.delete_cookie(STATE_COOKIE_NAME, path="/")
        return response

    @app.exception_handler(LinkShelfError)
    async def handle_linkshelf_error(request: Request, exc: LinkShelfError):
        logger.error("[%s] %s | Context: %s", request_id_var.get(""), exc.message, exc.context)
        return _error_response(500, "An unexpected error occurred.")

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error(
            "[%s] Unexpected error: %s",
            request_id_var.get(""),
            str(exc),
            exc_info=True,
        )
        return _error_response(500, "An unexpected error occurred.")


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    config: Optional[Settings] = None,
    backend: Optional[BookmarkBackend] = None,
    github: Optional[GitHubOAuthClient] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        config:   Settings; defaults to the environment-loaded singleton
        backend:  Persistence backend; defaults to `build_backend(config)`
        github:   OAuth client; defaults to one built from config

    Returns: Fully configured FastAPI instance.
    """
    config = config or default_settings

    app = FastAPI(
        title="LinkShelf API",
        description=(
            "Personal bookmarking: save links, annotate them with notes, "
            "organise them with labels."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Application State ─────────────────────────────────────────────────
    # Built here rather than in lifespan so the app works under test
    # transports that never send lifespan events
    backend = backend or build_backend(config)
    github = github or GitHubOAuthClient(
        client_id=config.github_client_id,
        client_secret=config.github_client_secret,
        redirect_uri=config.github_redirect_uri,
    )
    app.state.settings = config
    app.state.backend = backend
    app.state.auth_service = AuthService(backend, github)
    app.state.started_at = time.time()

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added = first to execute: RequestID → Logging → Session → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins_list,
        allow_credentials=True,  # session cookie
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(SessionMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(links.router)
    app.include_router(notes.router)
    app.include_router(labels.router)
    app.include_router(auth.router)
    app.include_router(health.router)

    return app


# ── Application Instance ─────────────────────────────────────────────────
# uvicorn expects `linkshelf.main:app` to be importable
app = create_app()
