"""
Profilebook Backend — FastAPI Application Factory
==================================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() assembles middleware, exception handlers, routers and
       the static image mount.
Who:   uvicorn profilebook.main:app

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                     FastAPI App                          │
    │                                                          │
    │  Middleware:  Request ID → Access log → GZip → CORS      │
    │                                                          │
    │  Routes:      profile · uploads · posts · news · health  │
    │  Static:      /images/<profile id>/<file>                │
    │                                                          │
    │  Exception Handlers:                                     │
    │    ProfilebookError / RequestValidationError / Exception │
    │    → {"message": "Error", "error": code, "request_id"}   │
    └──────────────────────────────────────────────────────────┘

Error Status Mode:
    legacy   (default) every error is answered with HTTP 200; clients detect
             failure by the "Error" message, as the existing web client does.
    semantic the exception's own status (400/404/500/503).

Lifecycle:
    Startup:  logging → settings check → storage directories
    Shutdown: close the news HTTP client → dispose the database engine
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
from fastapi.staticfiles import StaticFiles

from profilebook import __version__
from profilebook.config import settings
from profilebook.database import dispose_engine
from profilebook.exceptions import ProfilebookError
from profilebook.middleware.logging import RequestLoggingMiddleware
from profilebook.middleware.request_id import (
    REQUEST_ID_HEADER,
    RequestIDLogFilter,
    RequestIDMiddleware,
    request_id_var,
)
from profilebook.routes import health, news, posts, profile, uploads
from profilebook.schemas.profile import ErrorResponse
from profilebook.services.news_service import news_service
from profilebook.services.storage_service import storage_service

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure the root logger once at startup.

    Format: %(asctime)s [%(levelname)s] %(name)s [%(request_id)s]: %(message)s
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestIDLogFilter())

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s [%(request_id)s]: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[handler],
        force=True,
    )

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    logger.info("=" * 60)
    logger.info("Profilebook Backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Not fatal: everything except the news search still works
        logger.error("Configuration error: %s", str(e))

    storage_service.images_root.mkdir(parents=True, exist_ok=True)
    logger.info("Image directory: %s", storage_service.images_root)
    logger.info("Error status mode: %s", settings.error_status_mode)
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("Profilebook Backend shutting down...")
    await news_service.close()
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _request_id(request: Request) -> str:
    # The catch-all handler runs outside the request-id middleware's context
    return request_id_var.get("") or getattr(request.state, "request_id", "")


def error_response(request: Request, error_code: str, status_code: int) -> JSONResponse:
    """
    The one error payload every failure produces.

    Details never leave the server; only the machine code and request id do.
    """
    rid = _request_id(request)
    if settings.error_status_mode == "legacy":
        status_code = 200
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error_code, request_id=rid).model_dump(),
        headers={REQUEST_ID_HEADER: rid} if rid else None,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Handler hierarchy:
        ProfilebookError        → exc.status_code (400/404/500/503)
        RequestValidationError  → 400 (malformed body, non-numeric id, missing file)
        Exception               → 500, stack trace logged
    """

    @app.exception_handler(ProfilebookError)
    async def handle_profilebook_error(request: Request, exc: ProfilebookError):
        log_level = logging.WARNING if exc.status_code < 500 else logging.ERROR
        logger.log(
            log_level,
            "%s %s failed: %s (%s) | Context: %s",
            request.method,
            request.url.path,
            exc.error_code,
            exc.message,
            exc.context,
        )
        return error_response(request, exc.error_code, exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        fields = [".".join(str(part) for part in err.get("loc", ())) for err in exc.errors()]
        logger.warning("%s %s rejected: invalid %s", request.method, request.url.path, ", ".join(fields))
        return error_response(request, "validation_error", 400)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error(
            "%s %s unexpected error: %s",
            request.method,
            request.url.path,
            str(exc),
            exc_info=True,
        )
        return error_response(request, "internal_server_error", 500)


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="Profilebook API",
        description=(
            "Profiles, posts, picture uploads and a news search proxy "
            "for the Profilebook web client."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Last added runs first: RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials="*" not in settings.cors_origins_list,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(profile.router)
    app.include_router(uploads.router)
    app.include_router(posts.router)
    app.include_router(news.router)
    app.include_router(health.router)

    # After the routers: GET /images/{id} is the JSON listing,
    # /images/{id}/{file} falls through to the files on disk.
    app.mount(
        "/images",
        StaticFiles(directory=storage_service.images_root, check_dir=False),
        name="images",
    )

    return app


app = create_app()
