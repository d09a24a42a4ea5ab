"""
FastAPI application entry point.

This module creates and configures the FastAPI application using an
application factory (create_app), so tests can build fresh instances.

For local development:
    uvicorn src.main:app --reload --port 3000

For production:
    gunicorn src.main:app -w 4 -k uvicorn.workers.UvicornWorker
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .api.routes import health, video
from .config.settings import get_settings
from .core.videos import (
    CatalogError,
    CorruptMetadataError,
    InvalidTitleError,
    StorageWriteError,
)

# Configure logging
logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=logging.INFO,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Logs the storage configuration on startup and reports missing
    settings without refusing to start.
    """
    settings = get_settings()
    logging.getLogger().setLevel(settings.log_level.upper())

    logger.info(
        "Short Form Video API starting",
        extra={
            "version": __version__,
            "bucket": settings.gcs_bucket_name,
            "project_id": settings.google_cloud_project_id or "NOT SET",
            "key_file": settings.google_cloud_key_file or "NOT SET",
            "mock_mode": settings.storage_mock_mode,
        }
    )

    missing_fields = settings.validate_required_fields()
    if missing_fields:
        logger.error(
            "Missing required configuration",
            extra={"missing_fields": missing_fields}
        )

    yield

    logger.info("Short Form Video API shutting down")


def create_app() -> FastAPI:
    """
    Application factory.

    Creates and configures the FastAPI application. OpenAPI docs are
    served at /docs.
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        description="""
        Short-form video upload and catalog API.

        ## Endpoints

        - `POST /video/upload`: upload a video (multipart field `video`) with
          `title`, `description`, `category` and `tags`
        - `GET /video`: every video, newest first
        - `GET /video/random?count=5`: random selection
        - `GET /video/title/{title}`: look up one video by title

        Videos are stored at `videos/{YYYY}/{MM}/{title}.{ext}` with a JSON
        metadata sidecar under `videos/{YYYY}/{MM}/metadata/`.
        """,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(
        health.router,
        prefix="/health",
        tags=["Health"],
    )

    app.include_router(
        video.router,
        prefix="/video",
        tags=["Video"],
    )

    @app.get("/", include_in_schema=False)
    async def root():
        """Root endpoint - points at the docs."""
        return {
            "message": "Short Form Video API",
            "version": __version__,
            "docs": "/docs",
            "health": "/health",
        }

    @app.exception_handler(CatalogError)
    async def catalog_exception_handler(request, exc: CatalogError):
        """
        Map catalog errors that escape a route.

        Invalid titles are the caller's fault; every storage failure is
        a server error.
        """
        if isinstance(exc, InvalidTitleError):
            status_code, detail = 400, str(exc)
        elif isinstance(exc, StorageWriteError):
            status_code, detail = 500, "Failed to store video"
        elif isinstance(exc, CorruptMetadataError):
            status_code, detail = 500, f"Corrupt video metadata at {exc.key}"
        else:
            status_code, detail = 500, "Failed to read video catalog"

        logger.error(
            "Catalog error",
            extra={
                "path": request.url.path,
                "error_type": type(exc).__name__,
                "key": exc.key,
                "error": str(exc),
                "cause": str(exc.cause) if exc.cause else None,
            },
        )

        return JSONResponse(
            status_code=status_code,
            content={"detail": detail},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request, exc):
        """
        Catch-all exception handler.

        Logs the full error server-side but returns a generic message.
        """
        logger.error(
            "Unhandled exception",
            extra={
                "path": request.url.path,
                "method": request.method,
                "error": str(exc),
            },
            exc_info=exc,
        )

        return JSONResponse(
            status_code=500,
            content={
                "detail": "Internal server error. Please contact support if this persists."
            }
        )

    logger.info(
        "FastAPI application created",
        extra={
            "title": settings.api_title,
            "version": settings.api_version,
        }
    )

    return app


# Create the application instance
# This is what uvicorn/gunicorn will import
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "src.main:app",
        host="0.0.0.0",
        port=settings.port,
        reload=True,
        log_level=settings.log_level.lower(),
    )
