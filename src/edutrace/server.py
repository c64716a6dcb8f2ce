"""FastAPI application factory and server configuration."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from edutrace.config import get_settings
from edutrace.db.base import close_db, init_db
from edutrace.errors import EduTraceError, RateLimitExceeded
from edutrace.middleware import AuthMiddleware, RateLimitMiddleware, RequestIDMiddleware
from edutrace.routes import (
    auth,
    certificates,
    courses,
    dashboard,
    progress,
    quizzes,
    roadmaps,
    search,
)
from edutrace.schemas.common import ErrorResponse
from edutrace.validators import input_error_from

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Application lifespan manager."""
    # Startup
    await init_db()
    logger.info("Data service client ready")

    yield

    # Shutdown
    await close_db()


async def handle_edutrace_error(request: Request, exc: EduTraceError) -> JSONResponse:
    headers = None
    if isinstance(exc, RateLimitExceeded):
        headers = {"Retry-After": str(exc.retry_after)}
    elif exc.status_code >= 500:
        logger.error("Data service failure on %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=exc.status_code, content=exc.to_dict(), headers=headers
    )


async def handle_request_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    error = input_error_from(exc.errors())
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


def register_routes(app: FastAPI) -> None:
    error_responses = {400: {"model": ErrorResponse}, 429: {"model": ErrorResponse}}

    app.include_router(auth.router, prefix="/auth", tags=["auth"])
    app.include_router(
        courses.router, prefix="/v1/courses", tags=["courses"], responses=error_responses
    )
    app.include_router(
        roadmaps.router,
        prefix="/v1/roadmaps",
        tags=["roadmaps"],
        responses=error_responses,
    )
    app.include_router(
        progress.router,
        prefix="/v1/progress",
        tags=["progress"],
        responses=error_responses,
    )
    app.include_router(
        quizzes.router, prefix="/v1/quizzes", tags=["quizzes"], responses=error_responses
    )
    app.include_router(
        certificates.router,
        prefix="/v1/certificates",
        tags=["certificates"],
        responses=error_responses,
    )
    app.include_router(
        dashboard.router,
        prefix="/v1/dashboard",
        tags=["dashboard"],
        responses=error_responses,
    )
    app.include_router(
        search.router, prefix="/v1/search", tags=["search"], responses=error_responses
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    app = FastAPI(
        title=settings.app_name,
        version="0.1.0",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    # Middleware; the last one added runs first, so auth precedes rate limiting
    app.add_middleware(RateLimitMiddleware)
    app.add_middleware(AuthMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(EduTraceError, handle_edutrace_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)

    register_routes(app)

    # Health check
    @app.get("/health")
    async def health_check():
        return {"status": "healthy", "service": "edutrace-data-service"}

    # Root
    @app.get("/")
    async def root():
        return JSONResponse(
            content={
                "service": settings.app_name,
                "version": "0.1.0",
                "docs": "/docs" if settings.debug else None,
            }
        )

    return app


app = create_app()
