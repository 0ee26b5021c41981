"""Domain exceptions.

All domain-level errors that represent business rule violations.
These exceptions are raised by the composition engine when invariants
are violated or invalid operations are attempted. Each error carries a
stable machine-readable ``error_code`` used by the API layer.
"""

from typing import Any, ClassVar


class DomainError(Exception):
    """Base class for all domain exceptions.

    All domain errors should inherit from this class to allow
    catching domain-specific errors at the application layer.
    """

    error_code: ClassVar[str] = "DOMAIN_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize domain error.

        Args:
            message: Human-readable error message.
            details: Optional dictionary with additional error context.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


# ============================================================================
# Lookup Errors
# ============================================================================


class NotFoundError(DomainError):
    """Raised when a referenced product, axis, component or item is absent."""

    error_code = "NOT_FOUND"

    def __init__(self, entity_type: str, entity_id: str) -> None:
        """Initialize not found error.

        Args:
            entity_type: Kind of entity (e.g., "Product", "VariantAxis").
            entity_id: ID of the missing entity.
        """
        super().__init__(
            f"{entity_type} {entity_id} not found",
            details={"entity_type": entity_type, "entity_id": entity_id},
        )


# ============================================================================
# Product Type Errors
# ============================================================================


class InvalidProductTypeError(DomainError):
    """Raised when an operation does not support the product's current type."""

    error_code = "INVALID_PRODUCT_TYPE"

    def __init__(
        self,
        product_id: str,
        product_type: str,
        reason: str,
        expected: list[str] | None = None,
    ) -> None:
        """Initialize invalid product type error.

        Args:
            product_id: ID of the product.
            product_type: Current type of the product.
            reason: Explanation of why the type is not supported.
            expected: Types that would have been accepted.
        """
        super().__init__(
            f"Product {product_id} of type '{product_type}': {reason}",
            details={
                "product_id": product_id,
                "product_type": product_type,
                "expected": expected or [],
            },
        )


class InvalidTransitionError(DomainError):
    """Raised when a product type conversion is not allowed."""

    error_code = "INVALID_TRANSITION"

    def __init__(
        self,
        product_id: str,
        current_type: str,
        target_type: str,
        reason: str,
    ) -> None:
        """Initialize invalid transition error.

        Args:
            product_id: ID of the product.
            current_type: Current product type.
            target_type: Attempted target type.
            reason: Explanation of why the conversion is refused.
        """
        super().__init__(
            f"Cannot convert product {product_id} "
            f"from '{current_type}' to '{target_type}': {reason}",
            details={
                "product_id": product_id,
                "current_type": current_type,
                "target_type": target_type,
            },
        )


# ============================================================================
# Bundle Errors
# ============================================================================


class CyclicBundleError(DomainError):
    """Raised when a component edge would close a cycle in the bundle graph."""

    error_code = "CYCLIC_BUNDLE"

    def __init__(self, bundle_id: str, component_id: str, path: list[str]) -> None:
        """Initialize cyclic bundle error.

        Args:
            bundle_id: Bundle being edited.
            component_id: Component whose addition closes the cycle.
            path: Product IDs along the cycle, starting and ending at the bundle.
        """
        super().__init__(
            f"Adding {component_id} to bundle {bundle_id} would create a cycle: "
            + " -> ".join(path),
            details={"bundle_id": bundle_id, "component_id": component_id, "path": path},
        )


class BundleDepthExceededError(DomainError):
    """Raised when bundle nesting is deeper than the configured limit."""

    error_code = "BUNDLE_DEPTH_EXCEEDED"

    def __init__(self, bundle_id: str, max_depth: int) -> None:
        """Initialize bundle depth error.

        Args:
            bundle_id: Bundle whose graph was being traversed.
            max_depth: Configured nesting limit.
        """
        super().__init__(
            f"Bundle {bundle_id} nests deeper than {max_depth} levels",
            details={"bundle_id": bundle_id, "max_depth": max_depth},
        )


class DuplicateComponentError(DomainError):
    """Raised when a product is listed twice in the same bundle."""

    error_code = "DUPLICATE_COMPONENT"

    def __init__(self, bundle_id: str, component_id: str) -> None:
        super().__init__(
            f"Component {component_id} is already in bundle {bundle_id}",
            details={"bundle_id": bundle_id, "component_id": component_id},
        )


# ============================================================================
# Grouped Product Errors
# ============================================================================


class InvalidQuantityBoundsError(DomainError):
    """Raised when grouped item quantity bounds are inconsistent."""

    error_code = "INVALID_QUANTITY_BOUNDS"

    def __init__(
        self,
        default_quantity: int,
        min_quantity: int,
        max_quantity: int | None,
        reason: str,
    ) -> None:
        """Initialize invalid quantity bounds error.

        Args:
            default_quantity: Requested default quantity.
            min_quantity: Requested minimum quantity.
            max_quantity: Requested maximum quantity, if any.
            reason: Which bound was violated.
        """
        super().__init__(
            f"Invalid quantity bounds (min={min_quantity}, default={default_quantity}, "
            f"max={max_quantity}): {reason}",
            details={
                "default_quantity": default_quantity,
                "min_quantity": min_quantity,
                "max_quantity": max_quantity,
                "reason": reason,
            },
        )


class SelfReferenceError(DomainError):
    """Raised when a grouped product would list itself as a child."""

    error_code = "SELF_REFERENCE"

    def __init__(self, product_id: str) -> None:
        super().__init__(
            f"Product {product_id} cannot contain itself",
            details={"product_id": product_id},
        )


class DuplicateItemError(DomainError):
    """Raised when a child is listed twice in the same grouped product."""

    error_code = "DUPLICATE_ITEM"

    def __init__(self, parent_id: str, child_id: str) -> None:
        super().__init__(
            f"Product {child_id} is already in grouped product {parent_id}",
            details={"parent_id": parent_id, "child_id": child_id},
        )


# ============================================================================
# Variant Errors
# ============================================================================


class DuplicateSkuError(DomainError):
    """Raised when a generated or requested variant SKU is already taken."""

    error_code = "DUPLICATE_SKU"

    def __init__(self, sku: str) -> None:
        super().__init__(f"SKU '{sku}' already exists", details={"sku": sku})


class DuplicateVariantError(DomainError):
    """Raised when a variant with the same axis combination already exists."""

    error_code = "DUPLICATE_VARIANT"

    def __init__(self, parent_id: str, variant_id: str, combination: dict[str, str]) -> None:
        super().__init__(
            f"Product {parent_id} already has variant {variant_id} for {combination}",
            details={
                "parent_id": parent_id,
                "variant_id": variant_id,
                "combination": combination,
            },
        )


class DuplicateAxisCodeError(DomainError):
    """Raised when a variant axis code is already in use."""

    error_code = "DUPLICATE_AXIS_CODE"

    def __init__(self, code: str) -> None:
        super().__init__(f"Variant axis with code '{code}' already exists", details={"code": code})


class AxisInUseError(DomainError):
    """Raised when deleting a variant axis that variants still reference."""

    error_code = "AXIS_IN_USE"

    def __init__(self, axis_id: str, variant_count: int) -> None:
        super().__init__(
            f"Variant axis {axis_id} is used by {variant_count} variants",
            details={"axis_id": axis_id, "variant_count": variant_count},
        )


class InvalidCombinationError(DomainError):
    """Raised when an axis-value combination is not a full, valid assignment."""

    error_code = "INVALID_COMBINATION"

    def __init__(self, reason: str, combination: dict[str, str] | None = None) -> None:
        super().__init__(
            f"Invalid variant combination: {reason}",
            details={"combination": combination or {}, "reason": reason},
        )


class TooManyCombinationsError(DomainError):
    """Raised when a variant matrix would exceed the combination ceiling."""

    error_code = "TOO_MANY_COMBINATIONS"

    def __init__(self, count: int, ceiling: int) -> None:
        """Initialize too many combinations error.

        Args:
            count: Number of combinations the configuration would produce.
            ceiling: Configured maximum.
        """
        super().__init__(
            f"Variant matrix has {count} combinations, exceeding the limit of {ceiling}",
            details={"count": count, "ceiling": ceiling},
        )


# ============================================================================
# Stock Errors
# ============================================================================


class InvalidQuantityError(DomainError):
    """Raised when an invalid quantity is provided."""

    error_code = "INVALID_QUANTITY"

    def __init__(self, quantity: int, reason: str = "Quantity must be positive") -> None:
        """Initialize invalid quantity error.

        Args:
            quantity: The invalid quantity value.
            reason: Explanation of why the quantity is invalid.
        """
        super().__init__(
            f"Invalid quantity {quantity}: {reason}",
            details={"quantity": quantity, "reason": reason},
        )


class InsufficientStockError(DomainError):
    """Raised when stock cannot satisfy a requested quantity."""

    error_code = "INSUFFICIENT_STOCK"

    def __init__(
        self,
        product_id: str,
        available: int,
        requested: int,
        sku: str | None = None,
    ) -> None:
        """Initialize insufficient stock error.

        Args:
            product_id: Product whose stock is short.
            available: Units currently available.
            requested: Units required.
            sku: Product SKU, when known.
        """
        label = sku or product_id
        super().__init__(
            f"Insufficient stock for {label}: needs {requested}, has {available}",
            details={
                "product_id": product_id,
                "sku": sku,
                "available": available,
                "requested": requested,
            },
        )
        self.product_id = product_id
        self.available = available
        self.requested = requested


class StockConflictError(DomainError):
    """Raised when a concurrent writer changed a stock row mid-operation."""

    error_code = "STOCK_CONFLICT"

    def __init__(self, product_ids: list[str]) -> None:
        super().__init__(
            "Stock changed concurrently; operation aborted",
            details={"product_ids": product_ids},
        )
