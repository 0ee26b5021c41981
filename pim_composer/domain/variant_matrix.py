"""Variant matrix generation.

Pure functions over axis definitions: counting and lazily enumerating the
Cartesian product of axis values, validating a single combination, and
deriving variant SKUs and names. Nothing here touches storage or shared
state, so it is safe to call from any task or thread.
"""

import itertools
import math
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass

from pim_composer.domain.base import Entity
from pim_composer.domain.exceptions import InvalidCombinationError, TooManyCombinationsError

DEFAULT_MAX_COMBINATIONS = 10_000

# Length of each value segment in a default-pattern SKU
SKU_SEGMENT_LENGTH = 10


@dataclass(eq=False)
class AxisDefinition(Entity[str]):
    """A configured variant axis with its resolved allowed values.

    Attributes:
        id: Variant axis ID.
        code: Axis code used in SKU patterns (e.g., "color").
        name: Display name (e.g., "Color").
        values: Allowed values, in display order.
    """

    id: str
    code: str
    name: str
    values: tuple[str, ...] = ()


Combination = dict[str, str]


def combination_key(values: Mapping[str, str]) -> frozenset[tuple[str, str]]:
    """Get an order-independent key for an axis assignment."""
    return frozenset(values.items())


def count_combinations(axes: Sequence[AxisDefinition]) -> int:
    """Count entries in the variant matrix.

    Args:
        axes: Configured axes.

    Returns:
        Product of the axes' value counts, or zero with no axes.
    """
    if not axes:
        return 0
    return math.prod(len(axis.values) for axis in axes)


def iter_combinations(
    axes: Sequence[AxisDefinition],
    ceiling: int = DEFAULT_MAX_COMBINATIONS,
) -> Iterator[Combination]:
    """Enumerate every full assignment of one value per axis.

    The size check runs eagerly, before any combination is produced.
    The combinations themselves are generated lazily.

    Args:
        axes: Configured axes, in order.
        ceiling: Maximum number of combinations allowed.

    Returns:
        Iterator of ``{axis_id: value}`` mappings in axis order.

    Raises:
        TooManyCombinationsError: If the matrix would exceed ``ceiling``.
    """
    ensure_within_ceiling(axes, ceiling)
    return _generate(tuple(axes))


def ensure_within_ceiling(axes: Sequence[AxisDefinition], ceiling: int) -> int:
    """Raise if the matrix for ``axes`` is larger than ``ceiling``.

    Returns:
        Number of combinations.
    """
    count = count_combinations(axes)
    if count > ceiling:
        raise TooManyCombinationsError(count, ceiling)
    return count


def _generate(axes: tuple[AxisDefinition, ...]) -> Iterator[Combination]:
    if not axes:
        return
    axis_ids = [axis.id for axis in axes]
    for values in itertools.product(*(axis.values for axis in axes)):
        yield dict(zip(axis_ids, values))


def validate_combination(
    axes: Sequence[AxisDefinition],
    values: Mapping[str, str],
) -> Combination:
    """Check that ``values`` assigns exactly one allowed value to every axis.

    Args:
        axes: Configured axes.
        values: Requested ``{axis_id: value}`` assignment.

    Returns:
        The assignment restricted to the configured axes, in axis order.

    Raises:
        InvalidCombinationError: On a missing axis, unknown axis or
            value outside the axis's allowed set.
    """
    requested = dict(values)
    axis_ids = {axis.id for axis in axes}

    missing = [axis.code for axis in axes if axis.id not in requested]
    if missing:
        raise InvalidCombinationError(f"missing values for axes {missing}", requested)

    unknown = sorted(key for key in requested if key not in axis_ids)
    if unknown:
        raise InvalidCombinationError(f"axes {unknown} are not configured", requested)

    for axis in axes:
        if requested[axis.id] not in axis.values:
            raise InvalidCombinationError(
                f"'{requested[axis.id]}' is not an allowed value for axis '{axis.code}'",
                requested,
            )

    return {axis.id: requested[axis.id] for axis in axes}


def normalize_sku_segment(value: str, limit: int | None = None) -> str:
    """Upper-case a value and replace spaces so it can sit inside a SKU."""
    segment = value.strip().upper().replace(" ", "_")
    return segment[:limit] if limit else segment


def generate_sku(
    parent_sku: str,
    axes: Sequence[AxisDefinition],
    values: Mapping[str, str],
    pattern: str | None = None,
) -> str:
    """Derive a variant SKU from its parent and axis values.

    With a pattern, ``{parent_sku}`` and ``{<axis code>}`` placeholders are
    substituted. Without one the SKU is ``PARENT-V1-V2...`` in axis order.

    Args:
        parent_sku: SKU of the configurable parent.
        axes: Configured axes, in order.
        values: ``{axis_id: value}`` assignment.
        pattern: Optional SKU template.

    Returns:
        Generated SKU.
    """
    if pattern:
        sku = pattern.replace("{parent_sku}", parent_sku)
        for axis in axes:
            if axis.id in values:
                sku = sku.replace(f"{{{axis.code}}}", normalize_sku_segment(values[axis.id]))
        return sku

    segments = [
        normalize_sku_segment(values[axis.id], SKU_SEGMENT_LENGTH)
        for axis in axes
        if axis.id in values
    ]
    return "-".join([parent_sku, *segments])


def build_variant_name(
    parent_name: str,
    axes: Sequence[AxisDefinition],
    values: Mapping[str, str],
) -> str:
    """Build a display name like ``"Tee - Color: Red, Size: M"``."""
    labels = [f"{axis.name}: {values[axis.id]}" for axis in axes if axis.id in values]
    if not labels:
        return parent_name
    return f"{parent_name} - {', '.join(labels)}"
