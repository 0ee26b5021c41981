"""Domain layer - product types, compositions, graph and matrix algorithms.

This module exports the core domain building blocks:

- **Product types**: the five types and their transition table
- **Compositions**: a tagged union with one case per product type, used to
  derive available stock and plan stock decrements
- **Bundle graph**: cycle detection and flattening of nested bundles
- **Variant matrix**: lazy Cartesian enumeration and SKU generation
- **Exceptions**: domain-specific errors and invariant violations

Example usage:
    from pim_composer.domain import BundleComposition, StockLine, check_stock

    bundle = BundleComposition(
        product_id="kit",
        lines=(
            StockLine(product_id="a", sku="A", stock_quantity=5, per_unit=2),
            StockLine(product_id="b", sku="B", stock_quantity=10, per_unit=1),
        ),
    )
    check_stock(bundle, 2).available_quantity  # 2
"""

from pim_composer.domain.base import Entity, ValueObject
from pim_composer.domain.bundle_graph import (
    build_adjacency,
    ensure_acyclic,
    explode,
    find_cycle,
)
from pim_composer.domain.composition import (
    BundleComposition,
    Composition,
    ConfigurableComposition,
    GroupedComposition,
    PriceLine,
    QuantityBounds,
    SimpleComposition,
    StockCheck,
    StockLine,
    VirtualComposition,
    available_quantity,
    bundle_price,
    check_stock,
    plan_decrement,
)
from pim_composer.domain.exceptions import (
    AxisInUseError,
    BundleDepthExceededError,
    CyclicBundleError,
    DomainError,
    DuplicateAxisCodeError,
    DuplicateComponentError,
    DuplicateItemError,
    DuplicateSkuError,
    DuplicateVariantError,
    InsufficientStockError,
    InvalidCombinationError,
    InvalidProductTypeError,
    InvalidQuantityBoundsError,
    InvalidQuantityError,
    InvalidTransitionError,
    NotFoundError,
    SelfReferenceError,
    StockConflictError,
    TooManyCombinationsError,
)
from pim_composer.domain.product_types import (
    OwnedStructure,
    ProductType,
    validate_type_transition,
)
from pim_composer.domain.variant_matrix import (
    AxisDefinition,
    build_variant_name,
    combination_key,
    count_combinations,
    generate_sku,
    iter_combinations,
    validate_combination,
)

__all__ = [
    # Base
    "Entity",
    "ValueObject",
    # Product types
    "OwnedStructure",
    "ProductType",
    "validate_type_transition",
    # Compositions
    "BundleComposition",
    "Composition",
    "ConfigurableComposition",
    "GroupedComposition",
    "PriceLine",
    "QuantityBounds",
    "SimpleComposition",
    "StockCheck",
    "StockLine",
    "VirtualComposition",
    "available_quantity",
    "bundle_price",
    "check_stock",
    "plan_decrement",
    # Bundle graph
    "build_adjacency",
    "ensure_acyclic",
    "explode",
    "find_cycle",
    # Variant matrix
    "AxisDefinition",
    "build_variant_name",
    "combination_key",
    "count_combinations",
    "generate_sku",
    "iter_combinations",
    "validate_combination",
    # Exceptions
    "AxisInUseError",
    "BundleDepthExceededError",
    "CyclicBundleError",
    "DomainError",
    "DuplicateAxisCodeError",
    "DuplicateComponentError",
    "DuplicateItemError",
    "DuplicateSkuError",
    "DuplicateVariantError",
    "InsufficientStockError",
    "InvalidCombinationError",
    "InvalidProductTypeError",
    "InvalidQuantityBoundsError",
    "InvalidQuantityError",
    "InvalidTransitionError",
    "NotFoundError",
    "SelfReferenceError",
    "StockConflictError",
    "TooManyCombinationsError",
]
