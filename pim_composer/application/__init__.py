"""Application layer module.

Contains application services (use cases) that orchestrate
domain logic and infrastructure. Each write operation is one
transaction: it commits on success and rolls back on any error.
"""

from pim_composer.application.bundle_service import (
    BundleService,
    get_bundle_service,
)
from pim_composer.application.grouped_service import (
    GroupedService,
    get_grouped_service,
)
from pim_composer.application.stock import StockUnitOfWork
from pim_composer.application.type_service import (
    ProductTypeService,
    get_product_type_service,
)
from pim_composer.application.variant_service import (
    VariantService,
    get_variant_service,
)

__all__ = [
    "BundleService",
    "get_bundle_service",
    "GroupedService",
    "get_grouped_service",
    "ProductTypeService",
    "get_product_type_service",
    "StockUnitOfWork",
    "VariantService",
    "get_variant_service",
]
