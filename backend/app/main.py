"""
Blogging API — FastAPI Application Factory
============================================

What:  Creates and configures the FastAPI application instance.
Why:   Centralizes app configuration, middleware registration, route mounting,
       and lifecycle management in one place.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn app.main:app).

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware Chain:                                       │
    │  RateLimit → RequestID → Logging → Security → GZip → CORS│
    │                                                          │
    │  Routes:                                                 │
    │  /api/posts (list, search, stats, tags, author, CRUD)    │
    │  /health                                                 │
    │                                                          │
    │  Exception Handlers (uniform {success: false, ...}):     │
    │  Validation→400 │ Forbidden→403 │ NotFound→404 │ DB→500  │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Acquire the Database handle (unless one was injected, e.g. by tests)
    3. Ping the database; a failure aborts startup outside ENVIRONMENT=test
    4. Optionally create tables (DB_AUTO_CREATE)

    Shutdown:
    1. Dispose the Database handle the lifespan created
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from app import __version__
from app.config import settings
from app.database import Database
from app.exceptions import (
    BloggingAPIError,
    DatabaseError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
    error_response,
)
from app.middleware.logging import RequestLoggingMiddleware
from app.middleware.rate_limit import RateLimitMiddleware
from app.middleware.request_id import RequestIDMiddleware, request_id_var
from app.middleware.security import SecurityHeadersMiddleware
from app.routes import health, posts
from app.services.post_rules import FIELD_MESSAGES, REQUIRED_MESSAGES

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Called once during app startup, before any other initialization.
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

    # Third-party libraries log every operation at DEBUG/INFO
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
    Acquire the store handle on startup and release it on shutdown.

    An injected handle (app.state.database set by create_app) is used as-is
    and left for its owner to dispose.
    """
    setup_logging()
    logger.info("=" * 60)
    logger.info("Blogging API starting up (environment=%s)...", settings.environment)

    owns_database = getattr(app.state, "database", None) is None
    if owns_database:
        app.state.database = Database.from_settings(settings)
    database: Database = app.state.database

    try:
        await database.ping()
        logger.info("Database connected")
        if settings.db_auto_create:
            await database.create_all()
            logger.info("Database tables ensured")
    except Exception as e:
        logger.error("Could not connect to the database: %s", str(e))
        if not settings.is_test:
            # Unrecoverable: refuse to serve traffic without a store
            if owns_database:
                await database.dispose()
            raise

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("Blogging API shutting down...")
    if owns_database:
        await database.dispose()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _field_name(loc) -> str:
    """Last named element of a pydantic error location, e.g. ("body", "title") → "title"."""
    for part in reversed(loc):
        if isinstance(part, str):
            return part
    return "body"


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register global exception handlers for the uniform error envelope.

    Handler hierarchy:
        RequestValidationError  → 400 (route-level validation; FastAPI's 422 remapped)
        ValidationError         → 400
        ForbiddenError          → 403
        NotFoundError           → 404
        DatabaseError           → 500 (generic message)
        BloggingAPIError (base) → 500
        HTTPException           → its own status (unknown routes → 404)
        Exception (fallback)    → 500

    The underlying error text is added as `error` only outside production.
    """

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        errors = []
        for err in exc.errors():
            field = _field_name(err.get("loc", ()))
            message = FIELD_MESSAGES.get(field, err.get("msg", "Valor inválido"))
            if err.get("type") == "missing":
                message = REQUIRED_MESSAGES.get(field, message)
            errors.append({"field": field, "message": message})
        logger.warning("[%s] Request validation failed: %s", request_id_var.get(""), errors)
        return error_response(400, "Dados inválidos", errors=errors)

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s %s", request_id_var.get(""), exc.message, exc.errors)
        return error_response(400, exc.message, errors=exc.errors)

    @app.exception_handler(ForbiddenError)
    async def handle_forbidden(request: Request, exc: ForbiddenError):
        return error_response(403, exc.message)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return error_response(404, exc.message)

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        rid = request_id_var.get("")
        logger.error("[%s] Database error: %s | Context: %s", rid, exc.message, exc.context)
        detail = None if settings.is_production else exc.context.get("detail", exc.message)
        return error_response(500, "Erro interno do servidor", error=detail)

    @app.exception_handler(BloggingAPIError)
    async def handle_app_error(request: Request, exc: BloggingAPIError):
        rid = request_id_var.get("")
        logger.error("[%s] Application error: %s | Context: %s", rid, exc.message, exc.context)
        detail = None if settings.is_production else exc.message
        return error_response(500, "Erro interno do servidor", error=detail)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return error_response(404, "Rota não encontrada", error=f"A rota {request.url.path} não existe")
        return error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """Stack trace is logged server-side; the client gets a generic message."""
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        detail = None if settings.is_production else str(exc)
        return error_response(500, "Erro interno do servidor", error=detail)


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(database: Optional[Database] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        database: Optional pre-built store handle. Tests pass an in-memory
                  SQLite handle; when omitted the lifespan builds one from settings.
    """
    app = FastAPI(
        title="Blogging API",
        description=(
            "REST API de postagens para a plataforma educacional: alunos leem posts "
            "publicados; professores criam, editam e excluem."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.database = database

    # Middleware executes in REVERSE order of addition:
    # RateLimit → RequestID → Logging → Security → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(RateLimitMiddleware)

    register_exception_handlers(app)

    app.include_router(posts.router)
    app.include_router(health.router)

    return app


# uvicorn expects `app.main:app` to be importable
app = create_app()
