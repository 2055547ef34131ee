"""
FastAPI application for Brier.

This module creates and configures the FastAPI application,
including middleware, error handlers, and route registration.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.api.deps import get_prediction_store
from src.api.routes import health, insights, predictions, reports
from src.core.config import settings
from src.core.logging_setup import configure_logging

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

logger = structlog.get_logger(__name__)

OPENAPI_TAGS = [
    {
        "name": "Health",
        "description": "Liveness and prediction store health checks.",
    },
    {
        "name": "Predictions",
        "description": "Log, resolve and delete feared-outcome predictions.",
    },
    {
        "name": "Insights",
        "description": "Brier score, calibration insights, challenges and exports.",
    },
    {
        "name": "Reports",
        "description": "Weekly and monthly summaries over a trailing window.",
    },
]


# =============================================================================
# Lifespan Management
# =============================================================================


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Manage application lifespan events.

    Startup loads the prediction store so a corrupt data directory fails fast.
    """
    logger.info(
        "Starting Brier API",
        environment=settings.ENVIRONMENT,
        data_dir=settings.DATA_DIR,
        api_version="1.0.0",
    )

    store = get_prediction_store()
    logger.info(
        "Prediction store loaded",
        records=len(store.snapshot()),
        version=store.snapshot().version,
    )

    yield

    logger.info("Shutting down application")


# =============================================================================
# Application Factory
# =============================================================================


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    configure_logging()

    app = FastAPI(
        title="Brier",
        description=(
            "Log how likely you think a feared outcome is, resolve it once you "
            "know, and track calibration with the Brier score."
        ),
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        openapi_tags=OPENAPI_TAGS,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    register_routes(app)

    return app


def register_exception_handlers(app: FastAPI) -> None:
    """Register custom exception handlers."""

    @app.exception_handler(Exception)
    async def generic_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """Handle uncaught exceptions."""
        logger.error(
            "Unhandled exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred",
            },
        )


def register_routes(app: FastAPI) -> None:
    """Register API route handlers."""

    # Health check (no prefix)
    app.include_router(health.router, tags=["Health"])

    api_v1_prefix = "/api/v1"

    app.include_router(
        predictions.router,
        prefix=f"{api_v1_prefix}/predictions",
        tags=["Predictions"],
    )

    app.include_router(
        insights.router,
        prefix=api_v1_prefix,
        tags=["Insights"],
    )

    app.include_router(
        reports.router,
        prefix=f"{api_v1_prefix}/reports",
        tags=["Reports"],
    )


# =============================================================================
# Application Instance
# =============================================================================

app = create_app()


# =============================================================================
# Development Server
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.api.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.is_development,
    )
