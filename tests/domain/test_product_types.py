"""Tests for the product type transition table."""

import pytest

from pim_composer.domain import OwnedStructure, ProductType, validate_type_transition
from pim_composer.domain.exceptions import InvalidTransitionError


class TestProductType:
    """Tests for ProductType transitions."""

    @pytest.mark.parametrize("source", list(ProductType))
    def test_every_type_can_convert_to_every_other(self, source: ProductType) -> None:
        """Each type reaches all four other types."""
        targets = source.allowed_transitions()
        assert len(targets) == 4
        assert source not in targets

    def test_no_type_is_terminal(self) -> None:
        """No product type is terminal."""
        assert not any(t.is_terminal() for t in ProductType)

    def test_cannot_transition_to_self(self) -> None:
        """Converting to the current type is not a transition."""
        assert not ProductType.BUNDLE.can_transition_to(ProductType.BUNDLE)

    def test_allowed_transitions_keep_declaration_order(self) -> None:
        """Targets are listed in enum order."""
        assert ProductType.SIMPLE.allowed_transitions() == [
            ProductType.CONFIGURABLE,
            ProductType.BUNDLE,
            ProductType.GROUPED,
            ProductType.VIRTUAL,
        ]

    def test_configurable_owns_variants_before_config(self) -> None:
        """Variants are discarded before the config that defines them."""
        assert ProductType.CONFIGURABLE.owned_structures() == (
            OwnedStructure.VARIANTS,
            OwnedStructure.VARIANT_CONFIG,
        )

    def test_simple_and_virtual_own_nothing(self) -> None:
        """Stock-tracked types own no structures."""
        assert ProductType.SIMPLE.owned_structures() == ()
        assert ProductType.VIRTUAL.owned_structures() == ()

    def test_tracks_own_stock(self) -> None:
        """Only simple and virtual products carry authoritative stock."""
        tracked = {t for t in ProductType if t.tracks_own_stock()}
        assert tracked == {ProductType.SIMPLE, ProductType.VIRTUAL}


class TestValidateTypeTransition:
    """Tests for validate_type_transition."""

    def test_valid_conversion_returns_true(self) -> None:
        """A real conversion reports a change."""
        assert validate_type_transition("p1", ProductType.SIMPLE, ProductType.BUNDLE)

    def test_noop_is_tolerated(self) -> None:
        """Same-type conversion is a no-op by default."""
        assert not validate_type_transition("p1", ProductType.GROUPED, ProductType.GROUPED)

    def test_strict_noop_raises(self) -> None:
        """Same-type conversion fails in strict mode."""
        with pytest.raises(InvalidTransitionError) as exc_info:
            validate_type_transition(
                "p1", ProductType.SIMPLE, ProductType.SIMPLE, strict_noop=True
            )
        assert exc_info.value.details["current_type"] == "simple"
        assert exc_info.value.error_code == "INVALID_TRANSITION"

    def test_terminal_type_cannot_convert(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """A type with no outgoing transitions rejects every target."""
        monkeypatch.setattr(ProductType, "is_terminal", lambda self: self == ProductType.VIRTUAL)

        with pytest.raises(InvalidTransitionError) as exc_info:
            validate_type_transition("p1", ProductType.VIRTUAL, ProductType.SIMPLE)

        assert "no conversion is possible" in exc_info.value.message
        assert validate_type_transition("p1", ProductType.SIMPLE, ProductType.VIRTUAL)
