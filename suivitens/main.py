"""
SuiviTens Backend — FastAPI Application Factory
=================================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance with
       its Database handle and identity resolver attached to `app.state`.
Who:   uvicorn imports `suivitens.main:app`; `python -m suivitens` calls run().

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌──────────┐ ┌──────────┐ ┌──────────┐ ┌────────┐  │
    │  │  Req ID  │→│ Logging  │→│ Identity │→│  CORS  │  │
    │  └──────────┘ └──────────┘ └──────────┘ └────────┘  │
    │                                                     │
    │  Routes:                                            │
    │  ┌───────────────────────────┐ ┌────────────────┐   │
    │  │ /api/measurements (CRUD)  │ │ GET /health    │   │
    │  └───────────────────────────┘ └────────────────┘   │
    │                                                     │
    │  Exception Handlers:                                │
    │  ┌──────────────────────────────────────────────┐   │
    │  │ Validation→400 │ Auth→401 │ NotFound→404 │500│   │
    │  └──────────────────────────────────────────────┘   │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging → config check → database probe (+ create tables).
              A failed probe is logged and the server keeps running, so
              /health still answers while the database is down.
    Shutdown: dispose the engine.
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from suivitens import __version__
from suivitens.config import Settings, settings as default_settings
from suivitens.database import Database
from suivitens.exceptions import (
    AuthenticationError,
    DatabaseError,
    MissingParameterError,
    NotFoundError,
    SuiviTensError,
    ValidationError,
)
from suivitens.middleware.auth import BearerIdentityMiddleware
from suivitens.middleware.logging import RequestLoggingMiddleware
from suivitens.middleware.request_id import RequestIDMiddleware, request_id_var
from suivitens.routes import health, measurements
from suivitens.services.identity import IdentityResolver, StaticTokenResolver

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: str = "INFO") -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Called once during app startup, before anything else logs.
    """
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout),  # Docker captures stdout
        ],
        force=True,
    )

    # Third-party loggers that emit a line per request/query
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: logging, config check, database probe. Shutdown: engine disposal."""
    app_settings: Settings = app.state.settings
    database: Database = app.state.database

    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging(app_settings.log_level)
    logger.info("=" * 60)
    logger.info("SuiviTens Backend starting up...")

    try:
        app_settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))

    # Not retried; the listener starts either way
    try:
        await database.connect()
    except Exception as e:
        logger.error("Database connection error: %s", str(e))

    logger.info(
        "Server ready at http://%s:%d", app_settings.backend_host, app_settings.backend_port
    )
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("SuiviTens Backend shutting down...")
    await database.dispose()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Map application exceptions to HTTP responses.

    Handler hierarchy:
        ValidationError, RequestValidationError → 400 validation_error
        MissingParameterError                   → 400 missing_parameter
        AuthenticationError                     → 401 unauthorized
        NotFoundError                           → 404 not_found
        DatabaseError, SuiviTensError (base)    → 500 server_error
        Exception (fallback)                    → 500 internal_server_error

    5xx bodies never include exception text; details are logged server-side.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        rid = request_id_var.get("")
        logger.warning("[%s] Validation error: %s", rid, exc.context.get("fields"))
        return JSONResponse(
            status_code=400,
            content={
                "error": "validation_error",
                "message": exc.message,
                "errors": exc.errors,
                "request_id": rid,
            },
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        """Body that is not a JSON object (FastAPI would answer 422)."""
        rid = request_id_var.get("")
        errors = [
            {
                "field": ".".join(str(part) for part in err.get("loc", ())[1:]) or "body",
                "message": err.get("msg", "Invalid value"),
                "value": None,
            }
            for err in exc.errors()
        ]
        logger.warning("[%s] Malformed request: %d error(s)", rid, len(errors))
        return JSONResponse(
            status_code=400,
            content={
                "error": "validation_error",
                "message": "Validation failed",
                "errors": errors,
                "request_id": rid,
            },
        )

    @app.exception_handler(MissingParameterError)
    async def handle_missing_parameter(request: Request, exc: MissingParameterError):
        rid = request_id_var.get("")
        return JSONResponse(
            status_code=400,
            content={
                "error": "missing_parameter",
                "message": exc.message,
                "details": {"parameters": exc.parameters},
                "request_id": rid,
            },
        )

    @app.exception_handler(AuthenticationError)
    async def handle_authentication_error(request: Request, exc: AuthenticationError):
        rid = request_id_var.get("")
        return JSONResponse(
            status_code=401,
            content={
                "error": "unauthorized",
                "message": exc.message,
                "request_id": rid,
            },
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        rid = request_id_var.get("")
        return JSONResponse(
            status_code=404,
            content={
                "error": "not_found",
                "message": exc.message,
                "request_id": rid,
            },
        )

    @app.exception_handler(SuiviTensError)
    async def handle_application_error(request: Request, exc: SuiviTensError):
        """DatabaseError and any other application error without a dedicated handler."""
        rid = request_id_var.get("")
        label = "Database error" if isinstance(exc, DatabaseError) else "Application error"
        logger.error("[%s] %s: %s | Context: %s", rid, label, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content={
                "error": "server_error",
                "message": "Server error",
                "request_id": rid,
            },
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "Server error",
                "request_id": rid,
            },
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
    identity_resolver: Optional[IdentityResolver] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Defaults to the environment-loaded settings.
        database: Store handle; built from settings when omitted.
        identity_resolver: Bearer token resolver; defaults to a
            StaticTokenResolver over AUTH_TOKENS.

    Returns:
        Fully configured FastAPI instance. No connection is opened here;
        the database is probed in the lifespan startup.
    """
    settings = settings or default_settings
    database = database or Database.from_settings(settings)
    if identity_resolver is None:
        identity_resolver = StaticTokenResolver(settings.auth_token_map)

    app = FastAPI(
        title="SuiviTens API",
        description="Personal blood-pressure tracking: record, list, filter, update and delete measurements.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = database
    app.state.identity_resolver = identity_resolver

    # ── Register Middleware ───────────────────────────────────────────────
    # Executes in REVERSE order of addition:
    # RequestID → Logging → Identity → GZip → CORS
    origins = settings.cors_origins_list
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Total-Count"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(BearerIdentityMiddleware, resolver=identity_resolver)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(measurements.router)
    app.include_router(health.router)

    return app


def run(settings: Optional[Settings] = None) -> None:
    """
    Standalone listener entry point (`python -m suivitens`).

    In embedded deployment mode the app is served by whoever imports
    `suivitens.main:app`, so no listener is started here.
    """
    import uvicorn

    settings = settings or default_settings
    if settings.deployment_mode != "standalone":
        setup_logging(settings.log_level)
        logger.warning(
            "DEPLOYMENT_MODE=%s: not starting a listener; import suivitens.main:app instead",
            settings.deployment_mode,
        )
        return

    uvicorn.run(
        "suivitens.main:app",
        host=settings.backend_host,
        port=settings.backend_port,
        log_level=settings.log_level.lower(),
    )


# ── Application Instance ─────────────────────────────────────────────────
# uvicorn expects `suivitens.main:app` to be importable
app = create_app()
