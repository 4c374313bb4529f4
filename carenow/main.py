"""
Main FastAPI application
"""

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from carenow.api.v1.router import api_router
from carenow.core.config import get_settings
from carenow.core.container import Container
from carenow.core.logging_config import configure_logging

logger = logging.getLogger(__name__)


def create_app(container: Optional[Container] = None) -> FastAPI:
    """
    Build the application around a container.

    The container is started on startup and disposed on shutdown; pass one
    in to control its settings and clock.
    """
    container = container or Container(get_settings())
    settings = container.settings
    configure_logging(settings)

    app = FastAPI(
        title=settings.APP_NAME,
        description="Partner job lifecycle, availability and earnings for CareNow",
        version=settings.APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.container = container

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
        allow_methods=settings.CORS_ALLOW_METHODS,
        allow_headers=settings.CORS_ALLOW_HEADERS,
    )

    app.include_router(api_router, prefix="/api/v1")

    @app.on_event("startup")
    async def startup_event():
        """Startup event handler"""
        logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
        await container.start()

    @app.on_event("shutdown")
    async def shutdown_event():
        """Shutdown event handler"""
        logger.info(f"Shutting down {settings.APP_NAME}")
        await container.dispose()

    return app


app = create_app()
