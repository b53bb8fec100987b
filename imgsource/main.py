"""
FastAPI application entry point.

This module creates and configures the FastAPI application. Image
sources are constructed and registered in the lifespan handler, so the
set of sources is decided here rather than by import side effects.

For local development:
    uvicorn imgsource.main:app --reload

For production:
    gunicorn imgsource.main:app -w 4 -k uvicorn.workers.UvicornWorker
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from .api.dependencies import build_downloader_factory, build_source_registry
from .api.routes import health, images
from .config.settings import Settings, get_settings
from .infrastructure.storage import MockObjectDownloader

# Configure logging
logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=logging.INFO,
)

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Application factory.

    Called once at startup in production, and once per test with
    explicit settings.
    """
    settings = settings or get_settings()
    logging.getLogger().setLevel(settings.log_level.upper())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Build the image sources on startup.

        A ConfigLoadError only escapes here when s3_config_required is
        set, which aborts startup.
        """
        logger.info(
            "imgsource starting",
            extra={
                "version": settings.api_version,
                "config_path": settings.s3_config_path,
                "mock_mode": settings.s3_mock_mode,
            }
        )

        if settings.s3_mock_mode:
            # Exposed on app.state so local tooling can seed objects
            app.state.mock_downloader = MockObjectDownloader()
            downloader_factory = build_downloader_factory(settings, app.state.mock_downloader)
        else:
            downloader_factory = build_downloader_factory(settings)

        registry, config_status = build_source_registry(settings, downloader_factory)
        app.state.source_registry = registry
        app.state.source_config_status = config_status

        yield

        logger.info("imgsource shutting down")

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        description="""
        Image source service.

        Serves raw image bytes from S3-compatible object storage, or from a
        per-bucket local mirror directory.

        ## Usage

        `GET /image?s3=<bucket>/<key>` where `<bucket>` is a bucket `Name`
        from the bucket configuration file.
        """,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings

    # Include routers
    app.include_router(
        health.router,
        prefix="/health",
        tags=["Health"],
    )

    app.include_router(
        images.router,
        prefix="/image",
        tags=["Images"],
    )

    # Global exception handler
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
                "detail": "Internal server error."
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


# For debugging/development
if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "imgsource.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level=settings.log_level.lower(),
    )
