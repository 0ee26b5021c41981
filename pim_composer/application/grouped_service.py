"""Grouped product application service.

Manages the children of grouped products. A grouped product is a display
and ordering composition only: each child is sold on its own, so the
parent derives neither price nor stock.
"""

from dataclasses import dataclass
from decimal import Decimal

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from pim_composer.catalog.models import GroupedItem, Product
from pim_composer.catalog.repository import GroupedRepository, ProductRepository
from pim_composer.domain.composition import QuantityBounds
from pim_composer.domain.exceptions import (
    DuplicateItemError,
    InvalidProductTypeError,
    NotFoundError,
    SelfReferenceError,
)
from pim_composer.domain.product_types import ProductType

logger = structlog.get_logger()


# ============================================================================
# Grouped Item Data Transfer Objects
# ============================================================================


@dataclass
class GroupedItemInput:
    """Requested grouped item."""

    child_id: str
    default_quantity: int = 1
    min_quantity: int = 0
    max_quantity: int | None = None
    position: int | None = None

    def bounds(self) -> QuantityBounds:
        """Build validated quantity bounds.

        Raises:
            InvalidQuantityBoundsError: If the bounds are inconsistent.
        """
        return QuantityBounds(
            default=self.default_quantity,
            minimum=self.min_quantity,
            maximum=self.max_quantity,
        )


@dataclass
class GroupedItemDTO:
    """Grouped item data transfer object."""

    id: str
    parent_id: str
    child_id: str
    child_sku: str
    child_name: str
    default_quantity: int
    min_quantity: int
    max_quantity: int | None
    position: int
    child_price: Decimal | None
    child_stock: int


# ============================================================================
# Grouped Service
# ============================================================================


class GroupedService:
    """Service for grouped product items."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize grouped service.

        Args:
            session: Async SQLAlchemy session.
        """
        self.session = session
        self.products = ProductRepository(session)
        self.grouped = GroupedRepository(session)

    async def list_items(self, parent_id: str) -> list[GroupedItemDTO]:
        """Get a grouped product's items ordered by position.

        Raises:
            NotFoundError: If the product does not exist.
        """
        if await self.products.get_by_id(parent_id) is None:
            raise NotFoundError("Product", parent_id)
        rows = await self.grouped.list_items(parent_id)
        children = await self.products.get_many(row.child_id for row in rows)
        return [self._to_dto(row, children.get(row.child_id)) for row in rows]

    async def add_item(self, parent_id: str, data: GroupedItemInput) -> GroupedItemDTO:
        """Add a child to a grouped product.

        Args:
            parent_id: Grouped product ID.
            data: Child to add with its quantity bounds.

        Returns:
            Created item.

        Raises:
            NotFoundError: If the parent or child does not exist.
            InvalidProductTypeError: If the parent is not grouped or the
                child is grouped or a variant.
            SelfReferenceError: If the child is the parent.
            InvalidQuantityBoundsError: If the bounds are inconsistent.
            DuplicateItemError: If the child is already listed.
        """
        try:
            await self._lock_parent(parent_id)
            child = await self.products.get_by_id(data.child_id)
            bounds = self._validate_item(parent_id, data, child)

            existing = await self.grouped.list_items(parent_id)
            if any(row.child_id == data.child_id for row in existing):
                raise DuplicateItemError(parent_id, data.child_id)

            row = GroupedItem(
                parent_id=parent_id,
                child_id=data.child_id,
                default_quantity=bounds.default,
                min_quantity=bounds.minimum,
                max_quantity=bounds.maximum,
                position=data.position if data.position is not None else len(existing),
            )
            self.session.add(row)
            await self.session.flush()
            dto = self._to_dto(row, child)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info("Grouped item added", parent_id=parent_id, child_id=data.child_id)
        return dto

    async def update_item(self, row_id: str, data: GroupedItemInput) -> GroupedItemDTO:
        """Update quantity bounds and position of an item row.

        Raises:
            NotFoundError: If the row does not exist.
            InvalidQuantityBoundsError: If the bounds are inconsistent.
        """
        try:
            row = await self.grouped.get_item(row_id)
            if row is None:
                raise NotFoundError("GroupedItem", row_id)
            bounds = data.bounds()
            await self._lock_parent(row.parent_id)

            row.default_quantity = bounds.default
            row.min_quantity = bounds.minimum
            row.max_quantity = bounds.maximum
            if data.position is not None:
                row.position = data.position
            await self.session.flush()

            child = await self.products.get_by_id(row.child_id)
            dto = self._to_dto(row, child)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info("Grouped item updated", row_id=row_id)
        return dto

    async def remove_item(self, row_id: str) -> None:
        """Remove an item row from its grouped product.

        Raises:
            NotFoundError: If the row does not exist.
        """
        try:
            row = await self.grouped.get_item(row_id)
            if row is None:
                raise NotFoundError("GroupedItem", row_id)
            parent_id = row.parent_id
            await self._lock_parent(parent_id)
            await self.session.delete(row)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info("Grouped item removed", row_id=row_id, parent_id=parent_id)

    async def set_items(self, parent_id: str, inputs: list[GroupedItemInput]) -> list[GroupedItemDTO]:
        """Replace a grouped product's items with ``inputs``.

        Every input is validated before anything is written; positions
        default to the list index.

        Returns:
            Resulting items ordered by position.
        """
        try:
            await self._lock_parent(parent_id)

            seen: set[str] = set()
            for data in inputs:
                if data.child_id in seen:
                    raise DuplicateItemError(parent_id, data.child_id)
                seen.add(data.child_id)

            children = await self.products.get_many(seen)
            bounds = [
                self._validate_item(parent_id, data, children.get(data.child_id))
                for data in inputs
            ]

            existing = {row.child_id: row for row in await self.grouped.list_items(parent_id)}
            for child_id, row in existing.items():
                if child_id not in seen:
                    await self.session.delete(row)

            rows: list[GroupedItem] = []
            for index, (data, item_bounds) in enumerate(zip(inputs, bounds)):
                row = existing.get(data.child_id)
                if row is None:
                    row = GroupedItem(parent_id=parent_id, child_id=data.child_id)
                    self.session.add(row)
                row.default_quantity = item_bounds.default
                row.min_quantity = item_bounds.minimum
                row.max_quantity = item_bounds.maximum
                row.position = data.position if data.position is not None else index
                rows.append(row)

            await self.session.flush()
            rows.sort(key=lambda r: r.position)
            dtos = [self._to_dto(row, children[row.child_id]) for row in rows]
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info("Grouped items replaced", parent_id=parent_id, count=len(dtos))
        return dtos

    async def _lock_parent(self, parent_id: str) -> Product:
        parent = await self.products.get_for_update(parent_id)
        if parent is None:
            raise NotFoundError("Product", parent_id)
        if parent.type != ProductType.GROUPED:
            raise InvalidProductTypeError(
                parent_id, parent.type.value, "product is not a grouped product",
                expected=[ProductType.GROUPED.value],
            )
        return parent

    @staticmethod
    def _validate_item(parent_id: str, data: GroupedItemInput, child: Product | None) -> QuantityBounds:
        if data.child_id == parent_id:
            raise SelfReferenceError(parent_id)
        if child is None:
            raise NotFoundError("Product", data.child_id)
        if child.type == ProductType.GROUPED:
            raise InvalidProductTypeError(
                child.id, child.type.value, "grouped products cannot be nested",
            )
        if child.is_variant:
            raise InvalidProductTypeError(
                child.id, child.type.value, "variants cannot be grouped; add the parent instead",
            )
        return data.bounds()

    @staticmethod
    def _to_dto(row: GroupedItem, child: Product | None) -> GroupedItemDTO:
        return GroupedItemDTO(
            id=row.id,
            parent_id=row.parent_id,
            child_id=row.child_id,
            child_sku=child.sku if child else "",
            child_name=child.name if child else "",
            default_quantity=row.default_quantity,
            min_quantity=row.min_quantity,
            max_quantity=row.max_quantity,
            position=row.position,
            child_price=child.price if child else None,
            child_stock=child.stock_quantity if child else 0,
        )


def get_grouped_service(session: AsyncSession) -> GroupedService:
    """Get grouped service instance."""
    return GroupedService(session)
