"""
DocMeta Backend — FastAPI Application Factory
===============================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() assembles middleware, exception handlers and routers;
       uvicorn serves the module-level `app` (uvicorn docmeta.main:app).

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌──────────┐ ┌──────────┐ ┌──────────┐ ┌────────┐  │
    │  │ Session  │→│ Req ID   │→│ Logging  │→│ GZip   │  │
    │  └──────────┘ └──────────┘ └──────────┘ └────────┘  │
    │                                                     │
    │  Routes:                                            │
    │  ┌────────────────────────────┐ ┌────────────────┐  │
    │  │ /entity/* (CRUD + locking) │ │ GET /health    │  │
    │  └────────────────────────────┘ └────────────────┘  │
    │                                                     │
    │  Exception Handlers:                                │
    │  ┌───────────────────────────────────────────────┐  │
    │  │ DocMetaError→its status │ invalid body→400    │  │
    │  │ anything else→500                              │  │
    │  └───────────────────────────────────────────────┘  │
    └─────────────────────────────────────────────────────┘

Every error body has the same shape:
    {"isOk": false, "errMsg": "...", "errCode": "ACCESS_DENY" | "NOT_LOGIN" | ..., "requestId": "..."}
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.sessions import SessionMiddleware

from docmeta import __version__
from docmeta.config import settings
from docmeta.database import dispose_engine
from docmeta.exceptions import DocMetaError
from docmeta.middleware.logging import RequestLoggingMiddleware
from docmeta.middleware.request_id import RequestIDMiddleware, request_id_var
from docmeta.routes import entity, health
from docmeta.schemas.entity import ErrorResponse

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the whole process.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Third-party loggers that chatter at INFO are raised to WARNING.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: logging and config checks. Shutdown: close the DB pool."""
    setup_logging()
    logger.info("DocMeta Backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Keep serving; a weak secret is a deployment problem, not a crash
        logger.warning("Configuration warning: %s", str(e))

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)

    yield

    logger.info("DocMeta Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_body(message: str, err_code=None) -> dict:
    return ErrorResponse(
        err_msg=message,
        err_code=err_code,
        request_id=request_id_var.get("") or None,
    ).model_dump(by_alias=True, exclude_none=True)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exceptions to `{isOk: false, errMsg}` bodies.

    DocMetaError subclasses carry their own status code and errCode, so one
    handler covers them all. Internal details (context, stack traces) are
    logged, never returned.
    """

    @app.exception_handler(DocMetaError)
    async def handle_docmeta_error(request: Request, exc: DocMetaError):
        rid = request_id_var.get("")
        if exc.status_code >= 500:
            logger.error("[%s] %s: %s | Context: %s", rid, type(exc).__name__, exc.message, exc.context)
        else:
            logger.info("[%s] %s: %s", rid, type(exc).__name__, exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.message, exc.err_code),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"Invalid parameter '{field}': {first.get('msg', 'invalid value')}"
        return JSONResponse(status_code=400, content=_error_body(message, "ERROR_PARAMS"))

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content=_error_body("An unexpected error occurred. Please try again later."),
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="DocMeta API",
        description=(
            "Metadata backend for API documentation: entities, their properties, "
            "advisory edit locks and an audit trail."
        ),
        version=__version__,
        lifespan=lifespan,
    )

    # Last added runs first: Session → RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,  # session cookie
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.session_secret,
        session_cookie=settings.session_cookie,
        max_age=settings.session_max_age,
        same_site="lax",
    )

    register_exception_handlers(app)

    app.include_router(entity.router)
    app.include_router(health.router)

    return app


app = create_app()
