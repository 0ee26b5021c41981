"""API layer module.

Contains FastAPI routers, request/response schemas, middleware
and the mapping of domain errors to HTTP responses.
"""

from pim_composer.api.health import router as health_router
from pim_composer.api.products import router as products_router
from pim_composer.api.variants import router as variants_router

__all__ = [
    "health_router",
    "products_router",
    "variants_router",
]
