"""Catalog module - ORM models and repositories for product composition."""

from pim_composer.catalog.models import (
    Attribute,
    AttributeOption,
    BundleComponent,
    GroupedItem,
    Product,
    VariantAxis,
    VariantAxisValue,
    VariantConfig,
)
from pim_composer.catalog.repository import (
    BundleRepository,
    GroupedRepository,
    ProductRepository,
    VariantRepository,
)

__all__ = [
    "Attribute",
    "AttributeOption",
    "BundleComponent",
    "BundleRepository",
    "GroupedItem",
    "GroupedRepository",
    "Product",
    "ProductRepository",
    "VariantAxis",
    "VariantAxisValue",
    "VariantConfig",
    "VariantRepository",
]
