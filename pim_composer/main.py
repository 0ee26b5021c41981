"""PIM Composer main application module.

This module initializes the FastAPI application and configures
core middleware, routers, and startup/shutdown events.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI

from pim_composer.api.errors import setup_exception_handlers
from pim_composer.api.health import router as health_router
from pim_composer.api.middleware import setup_middleware
from pim_composer.api.products import router as products_router
from pim_composer.api.variants import router as variants_router
from pim_composer.infrastructure.config import settings
from pim_composer.infrastructure.database import create_schema, engine
from pim_composer.infrastructure.logging_config import configure_logging

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup and shutdown events.

    Args:
        app: The FastAPI application instance.

    Yields:
        None after startup, cleanup happens after yield.
    """
    configure_logging()
    logger.info(
        "Starting PIM Composer",
        version=settings.api_version,
        debug=settings.debug,
    )

    if settings.create_schema_on_startup:
        await create_schema()
        logger.info("Database schema created")

    yield

    await engine.dispose()
    logger.info("Shutting down PIM Composer")


app = FastAPI(
    title="PIM Composer",
    description="Product composition engine: types, variants, bundles and grouped products",
    version=settings.api_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Setup custom middleware (request ID, error handling)
setup_middleware(app)
setup_exception_handlers(app)

# Include routers
app.include_router(health_router, tags=["Health"])
app.include_router(products_router)
app.include_router(variants_router)
