"""FastAPI application entry point.

This module defines the main FastAPI application with CORS middleware,
lifespan management, error handlers and API routing configuration.

Logging:
    Initializes structured logging on application startup.
    All application events are logged with appropriate context.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from workflow_builder import __version__
from workflow_builder.api import router as api_router
from workflow_builder.core.config import settings
from workflow_builder.core.exceptions import AppError
from workflow_builder.core.logging import get_logger, setup_logging
from workflow_builder.db.session import engine

# Initialize logging system
setup_logging(
    log_level=settings.LOG_LEVEL,
    log_file=settings.LOG_FILE,
    service_name=settings.PROJECT_NAME,
    enable_json=settings.LOG_JSON_FORMAT,
)

# Get application logger
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:  # noqa: ARG001 - Required by FastAPI lifespan interface
    """Application lifespan context manager.

    Logs startup and disposes of the database pool on shutdown.
    """
    logger.info(
        f"Starting {settings.PROJECT_NAME}",
        extra={
            "context": {
                "action": "application_startup",
                "version": __version__,
                "debug": settings.DEBUG,
                "log_level": settings.LOG_LEVEL,
            }
        },
    )

    yield

    logger.info(
        f"Shutting down {settings.PROJECT_NAME}",
        extra={"context": {"action": "application_shutdown"}},
    )
    await engine.dispose()


app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Visual workflow builder for returns processing rules",
    version=__version__,
    openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render application errors that escaped a router as a 500."""
    logger.error(
        "Unhandled application error",
        extra={
            "context": {
                "path": request.url.path,
                "error_code": exc.error_code,
            }
        },
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": exc.to_dict()},
    )


# Include API router
app.include_router(api_router, prefix=settings.API_V1_PREFIX)


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, str]:
    """Health check endpoint.

    Returns a simple status indicating the service is running.
    """
    return {"status": "healthy"}


@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """Root endpoint.

    Returns basic API information.
    """
    return {
        "name": settings.PROJECT_NAME,
        "version": __version__,
        "docs": "/docs",
    }
