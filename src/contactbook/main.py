"""
FastAPI application entry point.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from contactbook.config import Settings, get_settings
from contactbook.contacts.router import router as contacts_router
from contactbook.groups.router import router as groups_router
from contactbook.shared.database import DatabaseManager
from contactbook.shared.exceptions import AppError
from contactbook.shared.logging import get_logger, setup_logging
from contactbook.shared.middleware import CorrelationIdMiddleware

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings: Settings = app.state.settings
    setup_logging(settings)
    db: DatabaseManager = app.state.db

    logger.info("Application starting", extra={"env": settings.app_env})

    if settings.create_schema_on_startup:
        await db.create_schema()
        logger.info("Database schema ensured")

    yield

    logger.info("Shutting down application")
    await db.close()
    logger.info("Application shutdown complete")


def create_app(
    settings: Settings | None = None,
    db: DatabaseManager | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Optional settings override.
        db: Optional database manager; built from ``settings`` when omitted.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Contact Book API",
        description="Contact management with search, pagination and CSV import/export",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )
    app.state.settings = settings
    app.state.db = db or DatabaseManager(settings.database_url, echo=settings.debug)

    # Map domain errors to HTTP responses
    @app.exception_handler(AppError)
    async def _app_error(request: Request, exc: AppError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("Request failed", extra={"path": request.url.path, "error": exc.message})
        else:
            logger.info(
                "Request rejected",
                extra={"path": request.url.path, "code": exc.code, "error": exc.message},
            )
        detail = {"code": exc.code, "message": exc.message}
        if exc.details:
            detail.update(exc.details)
        return JSONResponse(status_code=exc.status_code, content={"detail": detail})

    # Request validation (FastAPI/Pydantic) -> consistent 422 payload
    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        errors = []
        for error in exc.errors():
            field = ".".join(str(loc) for loc in error["loc"])
            errors.append(
                {
                    "field": field,
                    "message": error["msg"],
                    "type": error["type"],
                }
            )
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "detail": {
                    "code": "VALIDATION_ERROR",
                    "message": "Request validation failed",
                    "errors": errors,
                }
            },
        )

    app.add_middleware(CorrelationIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials="*" not in settings.cors_origins_list,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(contacts_router)
    app.include_router(groups_router)

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        return {"status": "healthy"}

    return app


app = create_app()
