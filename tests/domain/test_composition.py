"""Tests for compositions, stock derivation and bundle pricing."""

from decimal import Decimal

import pytest

from pim_composer.domain import (
    BundleComposition,
    ConfigurableComposition,
    GroupedComposition,
    PriceLine,
    QuantityBounds,
    SimpleComposition,
    StockLine,
    VirtualComposition,
    available_quantity,
    bundle_price,
    check_stock,
    plan_decrement,
)
from pim_composer.domain.exceptions import (
    InvalidProductTypeError,
    InvalidQuantityBoundsError,
    InvalidQuantityError,
)


def kit(*lines: tuple[str, int, int]) -> BundleComposition:
    """Build a bundle from ``(sku, stock, per_unit)`` tuples."""
    return BundleComposition(
        product_id="kit",
        lines=tuple(
            StockLine(product_id=sku.lower(), sku=sku, stock_quantity=stock, per_unit=per_unit)
            for sku, stock, per_unit in lines
        ),
    )


class TestAvailableQuantity:
    """Tests for available_quantity."""

    def test_simple_uses_own_stock(self) -> None:
        """Simple products report their own stock."""
        assert available_quantity(SimpleComposition("p", "P", 7)) == 7

    def test_virtual_uses_own_stock(self) -> None:
        """Virtual products report their own stock."""
        assert available_quantity(VirtualComposition("p", "P", 3)) == 3

    def test_bundle_is_bound_by_scarcest_leaf(self) -> None:
        """A needs 2 of 5, B needs 1 of 10: two bundles can be sold."""
        assert available_quantity(kit(("A", 5, 2), ("B", 10, 1))) == 2

    def test_empty_bundle_has_nothing_available(self) -> None:
        """A bundle with no components cannot be sold."""
        assert available_quantity(BundleComposition("kit")) == 0

    def test_configurable_has_no_stock(self) -> None:
        """Configurable parents are sold through variants."""
        with pytest.raises(InvalidProductTypeError) as exc_info:
            available_quantity(ConfigurableComposition("parent", ("v1",)))
        assert exc_info.value.details["product_type"] == "configurable"

    def test_grouped_has_no_stock(self) -> None:
        """Grouped products have no aggregate stock."""
        with pytest.raises(InvalidProductTypeError):
            available_quantity(GroupedComposition("group", ("a", "b")))


class TestCheckStock:
    """Tests for check_stock."""

    def test_bundle_within_availability_is_valid(self) -> None:
        """Two bundles fit the stock."""
        result = check_stock(kit(("A", 5, 2), ("B", 10, 1)), 2)
        assert result.is_valid
        assert result.available_quantity == 2

    def test_bundle_over_availability_lists_shortages(self) -> None:
        """Three bundles need 6 of A, which only has 5."""
        result = check_stock(kit(("A", 5, 2), ("B", 10, 1)), 3)
        assert not result.is_valid
        assert [line.sku for line in result.shortages] == ["A"]
        assert "A: needs 6, has 5" in result.message

    def test_empty_bundle_is_invalid(self) -> None:
        """An empty bundle fails every request."""
        result = check_stock(BundleComposition("kit"), 1)
        assert not result.is_valid
        assert result.message == "Bundle has no components"

    def test_simple_short_stock(self) -> None:
        """Simple products compare against their own stock."""
        result = check_stock(SimpleComposition("p", "P", 1), 2)
        assert not result.is_valid
        assert result.available_quantity == 1

    @pytest.mark.parametrize("quantity", [0, -1])
    def test_non_positive_quantity_raises(self, quantity: int) -> None:
        """Quantities must be positive."""
        with pytest.raises(InvalidQuantityError):
            check_stock(SimpleComposition("p", "P", 10), quantity)


class TestPlanDecrement:
    """Tests for plan_decrement."""

    def test_bundle_plans_every_leaf(self) -> None:
        """Each leaf loses per_unit times the quantity."""
        plan = plan_decrement(kit(("A", 5, 2), ("B", 10, 1)), 2)
        assert plan == {"a": 4, "b": 2}

    def test_simple_plans_itself(self) -> None:
        """A simple product decrements its own row."""
        assert plan_decrement(SimpleComposition("p", "P", 5), 3) == {"p": 3}

    def test_grouped_cannot_be_decremented(self) -> None:
        """Grouped products are not decremented as a whole."""
        with pytest.raises(InvalidProductTypeError):
            plan_decrement(GroupedComposition("group"), 1)


class TestBundlePrice:
    """Tests for bundle_price."""

    def test_special_price_overrides_component_price(self) -> None:
        """A at 10 x1 with override 8, B at 5 x3: 8 + 15 = 23."""
        lines = [
            PriceLine("a", 1, price=Decimal("10.00"), special_price=Decimal("8.00")),
            PriceLine("b", 3, price=Decimal("5.00")),
        ]
        assert bundle_price(lines) == Decimal("23.00")

    def test_missing_price_counts_as_zero(self) -> None:
        """A component without any price contributes nothing."""
        lines = [PriceLine("a", 2), PriceLine("b", 1, price=Decimal("4.50"))]
        assert bundle_price(lines) == Decimal("4.50")

    def test_empty_bundle_costs_zero(self) -> None:
        """No components means a zero price."""
        assert bundle_price([]) == Decimal("0")


class TestQuantityBounds:
    """Tests for QuantityBounds."""

    def test_defaults_are_valid(self) -> None:
        """Default bounds are 0 <= 1 with no cap."""
        bounds = QuantityBounds()
        assert (bounds.default, bounds.minimum, bounds.maximum) == (1, 0, None)

    def test_default_may_equal_max(self) -> None:
        """Bounds are inclusive."""
        bounds = QuantityBounds(default=3, minimum=1, maximum=3)
        assert bounds.maximum == bounds.default

    def test_max_below_min_raises(self) -> None:
        """min=2, max=1 is rejected."""
        with pytest.raises(InvalidQuantityBoundsError) as exc_info:
            QuantityBounds(default=2, minimum=2, maximum=1)
        assert exc_info.value.details["reason"] == "max_quantity must be >= min_quantity"

    def test_default_below_min_raises(self) -> None:
        """The default must be at least the minimum."""
        with pytest.raises(InvalidQuantityBoundsError):
            QuantityBounds(default=1, minimum=2)

    def test_default_above_max_raises(self) -> None:
        """The default must not exceed the maximum."""
        with pytest.raises(InvalidQuantityBoundsError):
            QuantityBounds(default=5, minimum=0, maximum=3)

    def test_negative_min_raises(self) -> None:
        """Minimums cannot be negative."""
        with pytest.raises(InvalidQuantityBoundsError):
            QuantityBounds(default=0, minimum=-1)
