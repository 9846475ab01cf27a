"""
Telecalling CRM Backend - FastAPI Application Entry Point

Lead management for a university admissions office: staff work their
assigned prospective students through the admissions funnel, log every
call and message, and admins assign leads and review analytics.
"""

import json
import logging
import sys
import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from .core.config import settings, DEFAULT_SECRET_KEY
from .core.database import engine, check_db_connection, init_db
from .core.errors import SERVER_ERROR_MESSAGE
from .schemas.common import FieldError, ValidationErrorResponse
from .api import (
    health_router,
    auth_router,
    users_router,
    leads_router,
    interactions_router,
    analytics_router,
)


logger = logging.getLogger(__name__)


# =============================================================================
# Logging
# =============================================================================

class JsonLineFormatter(logging.Formatter):
    """One JSON object per log line."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "time": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def configure_logging() -> None:
    """Apply the root logging configuration from settings."""
    handler = logging.StreamHandler(sys.stdout)
    if settings.log_format == "json":
        handler.setFormatter(JsonLineFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)-8s %(name)s: %(message)s")
        )
    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(settings.log_level)


# =============================================================================
# Performance Monitoring Middleware
# =============================================================================

class PerformanceMonitoringMiddleware(BaseHTTPMiddleware):
    """
    Middleware to track API response times and log slow requests.

    Logs warnings for requests exceeding 500ms.
    Adds X-Response-Time header to all responses.
    """

    SLOW_REQUEST_THRESHOLD_MS = 500

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()

        response = await call_next(request)

        process_time_ms = (time.time() - start_time) * 1000
        response.headers["X-Response-Time"] = f"{process_time_ms:.2f}ms"

        if process_time_ms > self.SLOW_REQUEST_THRESHOLD_MS:
            logger.warning(
                f"Slow request: {request.method} {request.url.path} "
                f"took {process_time_ms:.2f}ms"
            )

        if settings.debug:
            logger.debug(
                f"{request.method} {request.url.path} - {process_time_ms:.2f}ms"
            )

        return response


# =============================================================================
# Application Lifespan
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan handler.

    Refuses to start with a development secret in production or when the
    database cannot be reached, then makes sure the tables exist.
    """
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {settings.environment}")

    if settings.secret_key == DEFAULT_SECRET_KEY:
        if settings.is_production:
            logger.critical("SECRET_KEY still uses the development default. Refusing to start.")
            raise SystemExit(1)
        logger.warning("SECRET_KEY uses the development default. Change it before deploying.")

    if not check_db_connection():
        logger.critical("Database is unreachable at startup. Exiting.")
        raise SystemExit(1)

    init_db()

    from .core.database import SessionLocal
    from .models.user import User, UserRole

    db = SessionLocal()
    try:
        if db.query(User.id).filter(User.role == UserRole.ADMIN).first() is None:
            logger.warning(
                "No admin account exists. Create one with POST /api/users/register-first-admin "
                "or backend/scripts/create_admin.py"
            )
    finally:
        db.close()

    yield

    logger.info("Shutting down...")
    engine.dispose()


# =============================================================================
# Exception Handlers
# =============================================================================

def _error_param(loc) -> str:
    parts = [str(p) for p in loc if p not in ("body", "query", "path", "header")]
    if parts:
        return ".".join(parts)
    return str(loc[-1]) if loc else ""


def _error_msg(msg: str) -> str:
    prefix = "Value error, "
    return msg[len(prefix):] if msg.startswith(prefix) else msg


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render HTTP errors as {"msg": ...}, or {"errors": [...]} for field errors."""
    if isinstance(exc.detail, list):
        content = {"errors": exc.detail}
    else:
        content = {"msg": exc.detail}
    return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Request validation failures become 400 with one entry per field."""
    body = ValidationErrorResponse(errors=[
        FieldError(msg=_error_msg(err.get("msg", "Invalid value")), param=_error_param(err.get("loc", ())))
        for err in exc.errors()
    ])
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=body.model_dump(exclude_none=True))


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle unhandled exceptions.

    Logs the traceback and returns a generic message without internals.
    """
    logger.error(
        f"Unhandled exception on {request.method} {request.url.path}: {type(exc).__name__}",
        exc_info=exc,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"msg": SERVER_ERROR_MESSAGE},
    )


# =============================================================================
# Application Factory
# =============================================================================

def create_application() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    configure_logging()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Admissions telecalling CRM: leads, interactions, assignment and analytics.",
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
        lifespan=lifespan,
    )

    app.add_middleware(PerformanceMonitoringMiddleware)

    cors_origins = settings.cors_origins_list
    allow_all = "*" in cors_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else cors_origins,
        allow_credentials=not allow_all,  # credentials not compatible with wildcard
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Response-Time"],
    )

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(leads_router)
    app.include_router(interactions_router)
    app.include_router(analytics_router)

    @app.get("/", tags=["Root"])
    async def root() -> dict:
        """Root endpoint returning API information."""
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "status": "running",
            "docs": "/docs" if settings.is_development else "disabled",
        }

    return app


app = create_application()


# =============================================================================
# Entry Point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "telecalling.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.is_development,
    )
