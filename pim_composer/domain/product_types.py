"""Product type transition table.

Defines the five product types and which conversions between them are
valid. Every type may convert to every other type; none is terminal.
Leaving a type discards the structures that type owns.
"""

from enum import Enum

from pim_composer.domain.exceptions import InvalidTransitionError


class OwnedStructure(str, Enum):
    """Type-specific rows that exist only while a product has a given type."""

    VARIANT_CONFIG = "variant_config"
    VARIANTS = "variants"
    BUNDLE_COMPONENTS = "bundle_components"
    GROUPED_ITEMS = "grouped_items"


class ProductType(str, Enum):
    """Product types.

    Owned structures per type:
        SIMPLE        -> (none, own stock)
        VIRTUAL       -> (none, own stock, no shipping)
        CONFIGURABLE  -> variant config, variants
        BUNDLE        -> bundle components (derived price and stock)
        GROUPED       -> grouped items (display only)
    """

    SIMPLE = "simple"
    CONFIGURABLE = "configurable"
    BUNDLE = "bundle"
    GROUPED = "grouped"
    VIRTUAL = "virtual"

    def can_transition_to(self, target: "ProductType") -> bool:
        """Check if conversion to target type is valid.

        Args:
            target: Target type to convert to.

        Returns:
            True if conversion is valid.
        """
        return target in _TYPE_TRANSITIONS.get(self, set())

    def allowed_transitions(self) -> list["ProductType"]:
        """Get list of valid target types.

        Returns:
            Target types in declaration order.
        """
        allowed = _TYPE_TRANSITIONS.get(self, set())
        return [t for t in ProductType if t in allowed]

    def is_terminal(self) -> bool:
        """Check if no further conversion is possible.

        Returns:
            True if this type has no outgoing transitions.
        """
        return len(_TYPE_TRANSITIONS.get(self, set())) == 0

    def owned_structures(self) -> tuple[OwnedStructure, ...]:
        """Get structures that are deleted when a product leaves this type.

        Returns:
            Owned structures, children first.
        """
        return _OWNED_STRUCTURES.get(self, ())

    def tracks_own_stock(self) -> bool:
        """Check if the product's own stock_quantity is authoritative."""
        return self in {ProductType.SIMPLE, ProductType.VIRTUAL}


_TYPE_TRANSITIONS: dict[ProductType, set[ProductType]] = {
    source: {target for target in ProductType if target != source}
    for source in ProductType
}

_OWNED_STRUCTURES: dict[ProductType, tuple[OwnedStructure, ...]] = {
    ProductType.CONFIGURABLE: (OwnedStructure.VARIANTS, OwnedStructure.VARIANT_CONFIG),
    ProductType.BUNDLE: (OwnedStructure.BUNDLE_COMPONENTS,),
    ProductType.GROUPED: (OwnedStructure.GROUPED_ITEMS,),
}


def validate_type_transition(
    product_id: str,
    current: ProductType,
    target: ProductType,
    strict_noop: bool = False,
) -> bool:
    """Validate a product type conversion.

    Args:
        product_id: Product being converted.
        current: Current product type.
        target: Requested product type.
        strict_noop: Treat converting to the current type as an error.

    Returns:
        True if the conversion changes the type, False for a tolerated no-op.

    Raises:
        InvalidTransitionError: If the conversion is not allowed.
    """
    if current == target:
        if strict_noop:
            raise InvalidTransitionError(
                product_id,
                current.value,
                target.value,
                "product already has this type",
            )
        return False

    if current.is_terminal():
        raise InvalidTransitionError(
            product_id,
            current.value,
            target.value,
            "no conversion is possible from this type",
        )

    if not current.can_transition_to(target):
        raise InvalidTransitionError(
            product_id,
            current.value,
            target.value,
            f"allowed targets: {[t.value for t in current.allowed_transitions()]}",
        )
    return True
