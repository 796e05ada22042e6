"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from loguru import logger

from pgpvalidation.infrastructure import Services, build_services, get_settings


def create_app(services: Optional[Services] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Without ``services`` they are built from settings at startup.
    """
    settings = get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler for startup/shutdown."""
        logger.info(f"Starting {settings.app_name} v{settings.app_version}")
        logger.info(f"Environment: {settings.environment}")

        app.state.services = services or build_services(settings)
        app.state.services.worker.start()

        yield

        logger.info("Shutting down...")
        app.state.services.worker.stop()
        logger.info("Shutdown complete")

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Certifies OpenPGP user IDs whose email address was proven by a confirmation link",
        lifespan=lifespan,
    )

    from pgpvalidation.api.routes import router

    app.include_router(router)

    return app


# Create app instance
app = create_app()
