"""Base classes for domain layer.

Provides foundational abstractions for value objects and entities
following DDD patterns.
"""

from abc import ABC
from dataclasses import dataclass
from typing import Generic, TypeVar


# ============================================================================
# Value Object Base
# ============================================================================


@dataclass(frozen=True)
class ValueObject(ABC):
    """Base class for value objects.

    Value objects are immutable and compared by their attributes,
    not by identity. They have no lifecycle and are interchangeable
    when their values are equal.

    Example:
        @dataclass(frozen=True)
        class QuantityBounds(ValueObject):
            default: int
            minimum: int
            maximum: int | None
    """

    pass


# ============================================================================
# Entity Base
# ============================================================================


T = TypeVar("T")


@dataclass
class Entity(ABC, Generic[T]):
    """Base class for entities.

    Entities have identity that persists across state changes.
    Two entities are equal if they have the same identity,
    regardless of their other attributes.

    Attributes:
        id: Unique identifier for this entity.
    """

    id: T

    def __eq__(self, other: object) -> bool:
        """Compare entities by identity.

        Args:
            other: Object to compare with.

        Returns:
            True if other is same type with same id.
        """
        if not isinstance(other, self.__class__):
            return False
        return self.id == other.id

    def __hash__(self) -> int:
        """Hash entity by identity.

        Returns:
            Hash of the entity id.
        """
        return hash(self.id)
