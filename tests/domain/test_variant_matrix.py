"""Tests for variant matrix generation and SKU derivation."""

import pytest

from pim_composer.domain import (
    AxisDefinition,
    build_variant_name,
    combination_key,
    count_combinations,
    generate_sku,
    iter_combinations,
    validate_combination,
)
from pim_composer.domain.exceptions import InvalidCombinationError, TooManyCombinationsError

COLOR = AxisDefinition(id="ax-color", code="color", name="Color", values=("Red", "Blue"))
SIZE = AxisDefinition(id="ax-size", code="size", name="Size", values=("S", "M", "L"))


class TestIterCombinations:
    """Tests for matrix enumeration."""

    def test_count_is_product_of_value_counts(self) -> None:
        """Two colors by three sizes give six combinations."""
        assert count_combinations([COLOR, SIZE]) == 6
        assert len(list(iter_combinations([COLOR, SIZE]))) == 6

    def test_no_axes_means_empty_matrix(self) -> None:
        """Without axes there is nothing to enumerate."""
        assert count_combinations([]) == 0
        assert list(iter_combinations([])) == []

    def test_axis_without_values_empties_matrix(self) -> None:
        """One empty axis makes every combination impossible."""
        empty = AxisDefinition(id="ax-fit", code="fit", name="Fit", values=())
        assert list(iter_combinations([COLOR, empty])) == []

    def test_combinations_are_distinct_full_assignments(self) -> None:
        """Every entry assigns each axis exactly once, without repeats."""
        combos = list(iter_combinations([COLOR, SIZE]))
        assert all(set(c) == {"ax-color", "ax-size"} for c in combos)
        assert len({combination_key(c) for c in combos}) == len(combos)

    def test_first_axis_varies_slowest(self) -> None:
        """Enumeration follows axis order."""
        combos = list(iter_combinations([COLOR, SIZE]))
        assert combos[0] == {"ax-color": "Red", "ax-size": "S"}
        assert combos[3] == {"ax-color": "Blue", "ax-size": "S"}

    def test_ceiling_is_checked_before_enumeration(self) -> None:
        """An oversized matrix fails eagerly."""
        with pytest.raises(TooManyCombinationsError) as exc_info:
            iter_combinations([COLOR, SIZE], ceiling=5)
        assert exc_info.value.details == {"count": 6, "ceiling": 5}


class TestValidateCombination:
    """Tests for validate_combination."""

    def test_valid_combination_is_normalized_to_axis_order(self) -> None:
        """Keys come back in axis order."""
        result = validate_combination([COLOR, SIZE], {"ax-size": "M", "ax-color": "Red"})
        assert list(result) == ["ax-color", "ax-size"]

    def test_missing_axis(self) -> None:
        """Every configured axis needs a value."""
        with pytest.raises(InvalidCombinationError, match="missing values"):
            validate_combination([COLOR, SIZE], {"ax-color": "Red"})

    def test_unknown_axis(self) -> None:
        """Axes outside the configuration are rejected."""
        with pytest.raises(InvalidCombinationError, match="not configured"):
            validate_combination([COLOR], {"ax-color": "Red", "ax-size": "M"})

    def test_value_outside_allowed_set(self) -> None:
        """Values must come from the axis."""
        with pytest.raises(InvalidCombinationError, match="not an allowed value"):
            validate_combination([COLOR, SIZE], {"ax-color": "Green", "ax-size": "M"})


class TestSkuAndName:
    """Tests for SKU and name derivation."""

    def test_default_sku_joins_upper_cased_values(self) -> None:
        """Without a pattern, values follow the parent SKU."""
        values = {"ax-color": "navy blue", "ax-size": "M"}
        assert generate_sku("TEE", [COLOR, SIZE], values) == "TEE-NAVY_BLUE-M"

    def test_default_sku_truncates_long_values(self) -> None:
        """Each segment is capped at ten characters."""
        axis = AxisDefinition(id="ax-c", code="c", name="C", values=("Extraordinarily",))
        assert generate_sku("P", [axis], {"ax-c": "Extraordinarily"}) == "P-EXTRAORDIN"

    def test_pattern_substitutes_placeholders(self) -> None:
        """Patterns reference the parent SKU and axis codes."""
        values = {"ax-color": "Red", "ax-size": "L"}
        sku = generate_sku("TEE", [COLOR, SIZE], values, pattern="{parent_sku}/{size}/{color}")
        assert sku == "TEE/L/RED"

    def test_variant_name_lists_axis_labels(self) -> None:
        """Names read like 'Tee - Color: Red, Size: M'."""
        values = {"ax-color": "Red", "ax-size": "M"}
        assert build_variant_name("Tee", [COLOR, SIZE], values) == "Tee - Color: Red, Size: M"

    def test_variant_name_without_values(self) -> None:
        """No values leaves the parent name."""
        assert build_variant_name("Tee", [COLOR], {}) == "Tee"
