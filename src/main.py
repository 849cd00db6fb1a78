"""Main application entry point for the Employee Directory API."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.config.settings import Settings, get_settings
from src.database.database import dispose_engine, get_engine
from src.routes.api import api_router, register_exception_handlers


# =============================================================================
# Logging Configuration
# =============================================================================

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# =============================================================================
# Application Lifespan
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Create the engine on startup and release its pool on shutdown."""
    settings: Settings = app.state.settings
    logger.info("Starting %s %s", settings.app_name, settings.app_version)
    if settings.allowed_email_domains:
        logger.info("Email domains restricted to: %s", ", ".join(settings.allowed_email_domains))

    get_engine()

    yield

    dispose_engine()
    logger.info("%s stopped", settings.app_name)


# =============================================================================
# Application Factory
# =============================================================================

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the FastAPI application with the directory routes mounted."""
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_name,
        description=(
            "Tenant-scoped employee directory with manager hierarchy "
            "validation and tenant-defined custom fields."
        ),
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)
    register_exception_handlers(app)

    @app.get("/health", tags=["Health"])
    async def health_check() -> dict:
        return {"status": "healthy", "version": settings.app_version}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("src.main:app", host="0.0.0.0", port=8000, reload=True, log_level="info")
