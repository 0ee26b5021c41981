"""Product compositions.

A composition is the type-specific shape of a product, modelled as a
tagged union with one case per ProductType. Stock and price derivation
dispatch over the union with exhaustive pattern matching, so each case
only carries the data its type actually needs.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import assert_never

from pim_composer.domain.base import ValueObject
from pim_composer.domain.exceptions import (
    InvalidProductTypeError,
    InvalidQuantityBoundsError,
    InvalidQuantityError,
)
from pim_composer.domain.product_types import ProductType


# ============================================================================
# Lines
# ============================================================================


@dataclass(frozen=True)
class StockLine(ValueObject):
    """A leaf product consumed by one unit of a bundle.

    Attributes:
        product_id: Leaf product ID.
        sku: Leaf product SKU.
        stock_quantity: Units of the leaf currently on hand.
        per_unit: Units of the leaf consumed per bundle sold.
    """

    product_id: str
    sku: str
    stock_quantity: int
    per_unit: int

    @property
    def bundles_possible(self) -> int:
        """Bundles satisfiable from this line alone."""
        return self.stock_quantity // self.per_unit

    def required_for(self, quantity: int) -> int:
        """Units of the leaf needed for ``quantity`` bundles."""
        return self.per_unit * quantity


@dataclass(frozen=True)
class PriceLine(ValueObject):
    """A direct bundle component as seen by price derivation.

    Attributes:
        component_id: Component product ID.
        quantity: Units of the component per bundle.
        price: Component's own price, if known.
        special_price: Per-bundle override of the component price.
    """

    component_id: str
    quantity: int
    price: Decimal | None = None
    special_price: Decimal | None = None

    @property
    def unit_price(self) -> Decimal:
        """Effective unit price: override, then own price, then zero."""
        if self.special_price is not None:
            return self.special_price
        if self.price is not None:
            return self.price
        return Decimal("0")

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


# ============================================================================
# Composition Cases
# ============================================================================


@dataclass(frozen=True)
class SimpleComposition(ValueObject):
    """A physical product whose own stock is authoritative."""

    product_id: str
    sku: str
    stock_quantity: int

    @property
    def product_type(self) -> ProductType:
        return ProductType.SIMPLE


@dataclass(frozen=True)
class VirtualComposition(ValueObject):
    """A non-shipping product whose own stock is authoritative."""

    product_id: str
    sku: str
    stock_quantity: int

    @property
    def product_type(self) -> ProductType:
        return ProductType.VIRTUAL


@dataclass(frozen=True)
class ConfigurableComposition(ValueObject):
    """A parent product sold through its variants."""

    product_id: str
    variant_ids: tuple[str, ...] = ()

    @property
    def product_type(self) -> ProductType:
        return ProductType.CONFIGURABLE


@dataclass(frozen=True)
class BundleComposition(ValueObject):
    """A fixed composition of other products.

    Attributes:
        product_id: Bundle product ID.
        lines: Leaf requirements, already flattened through nested bundles.
    """

    product_id: str
    lines: tuple[StockLine, ...] = ()

    @property
    def product_type(self) -> ProductType:
        return ProductType.BUNDLE


@dataclass(frozen=True)
class GroupedComposition(ValueObject):
    """A display grouping of independently purchasable children."""

    product_id: str
    child_ids: tuple[str, ...] = ()

    @property
    def product_type(self) -> ProductType:
        return ProductType.GROUPED


Composition = (
    SimpleComposition
    | VirtualComposition
    | ConfigurableComposition
    | BundleComposition
    | GroupedComposition
)


# ============================================================================
# Stock Derivation
# ============================================================================


@dataclass(frozen=True)
class StockCheck(ValueObject):
    """Outcome of checking a requested quantity against a composition.

    Attributes:
        is_valid: Whether the request can be satisfied.
        requested_quantity: Units requested.
        available_quantity: Units available (derived for bundles).
        message: Explanation when invalid.
        shortages: Leaf lines that cannot cover the request.
    """

    is_valid: bool
    requested_quantity: int
    available_quantity: int
    message: str | None = None
    shortages: tuple[StockLine, ...] = field(default=())


def _not_stock_tracked(composition: Composition, reason: str) -> InvalidProductTypeError:
    return InvalidProductTypeError(
        composition.product_id,
        composition.product_type.value,
        reason,
        expected=[
            ProductType.SIMPLE.value,
            ProductType.VIRTUAL.value,
            ProductType.BUNDLE.value,
        ],
    )


def available_quantity(composition: Composition) -> int:
    """Compute how many units of a product can be sold right now.

    For bundles the binding constraint is the scarcest leaf:
    ``min(floor(stock / per_unit))`` over all leaves, and zero when the
    bundle has no components.

    Args:
        composition: Product composition.

    Returns:
        Available units.

    Raises:
        InvalidProductTypeError: For configurable and grouped products,
            which carry no stock of their own.
    """
    match composition:
        case SimpleComposition(stock_quantity=stock) | VirtualComposition(stock_quantity=stock):
            return stock
        case BundleComposition(lines=lines):
            if not lines:
                return 0
            return min(line.bundles_possible for line in lines)
        case ConfigurableComposition():
            raise _not_stock_tracked(composition, "stock is tracked per variant")
        case GroupedComposition():
            raise _not_stock_tracked(
                composition, "grouped children are validated individually"
            )
        case _:
            assert_never(composition)


def check_stock(composition: Composition, quantity: int) -> StockCheck:
    """Check whether ``quantity`` units can be taken from a composition.

    Args:
        composition: Product composition.
        quantity: Units requested.

    Returns:
        StockCheck describing the outcome.

    Raises:
        InvalidQuantityError: If quantity is not positive.
        InvalidProductTypeError: For types without stock.
    """
    if quantity <= 0:
        raise InvalidQuantityError(quantity)

    available = available_quantity(composition)

    match composition:
        case BundleComposition(lines=lines):
            if not lines:
                return StockCheck(
                    is_valid=False,
                    requested_quantity=quantity,
                    available_quantity=0,
                    message="Bundle has no components",
                )
            shortages = tuple(
                line for line in lines if line.stock_quantity < line.required_for(quantity)
            )
            if shortages:
                detail = "; ".join(
                    f"{line.sku}: needs {line.required_for(quantity)}, has {line.stock_quantity}"
                    for line in shortages
                )
                return StockCheck(
                    is_valid=False,
                    requested_quantity=quantity,
                    available_quantity=available,
                    message=f"Insufficient stock: {detail}",
                    shortages=shortages,
                )
        case _:
            if available < quantity:
                return StockCheck(
                    is_valid=False,
                    requested_quantity=quantity,
                    available_quantity=available,
                    message=f"Insufficient stock: needs {quantity}, has {available}",
                )

    return StockCheck(
        is_valid=True,
        requested_quantity=quantity,
        available_quantity=available,
    )


def plan_decrement(composition: Composition, quantity: int) -> dict[str, int]:
    """Map each stock row touched by a sale to the units it must lose.

    Args:
        composition: Product composition.
        quantity: Units being sold.

    Returns:
        Mapping of product ID to decrement amount.

    Raises:
        InvalidProductTypeError: For types without stock.
    """
    match composition:
        case SimpleComposition(product_id=pid) | VirtualComposition(product_id=pid):
            return {pid: quantity}
        case BundleComposition(lines=lines):
            return {line.product_id: line.required_for(quantity) for line in lines}
        case ConfigurableComposition():
            raise _not_stock_tracked(composition, "stock is tracked per variant")
        case GroupedComposition():
            raise _not_stock_tracked(
                composition, "grouped children are validated individually"
            )
        case _:
            assert_never(composition)


# ============================================================================
# Price Derivation
# ============================================================================


def bundle_price(lines: list[PriceLine] | tuple[PriceLine, ...]) -> Decimal:
    """Sum ``(special_price ?? price ?? 0) * quantity`` over components.

    Args:
        lines: Direct bundle components.

    Returns:
        Derived bundle price; zero for an empty bundle.
    """
    return sum((line.line_total for line in lines), Decimal("0"))


# ============================================================================
# Grouped Item Bounds
# ============================================================================


@dataclass(frozen=True)
class QuantityBounds(ValueObject):
    """Quantity limits for one child of a grouped product.

    Enforces ``0 <= minimum <= default`` and, when a maximum is set,
    ``default <= maximum``.

    Attributes:
        default: Quantity preselected for the shopper.
        minimum: Smallest quantity that may be ordered.
        maximum: Largest quantity that may be ordered, if capped.
    """

    default: int = 1
    minimum: int = 0
    maximum: int | None = None

    def __post_init__(self) -> None:
        """Validate bounds."""
        if self.minimum < 0:
            self._fail("min_quantity must not be negative")
        if self.default < 0:
            self._fail("default_quantity must not be negative")
        if self.maximum is not None and self.maximum < self.minimum:
            self._fail("max_quantity must be >= min_quantity")
        if self.default < self.minimum:
            self._fail("default_quantity must be >= min_quantity")
        if self.maximum is not None and self.default > self.maximum:
            self._fail("default_quantity must be <= max_quantity")

    def _fail(self, reason: str) -> None:
        raise InvalidQuantityBoundsError(self.default, self.minimum, self.maximum, reason)
