"""Repositories for composition data.

Provides async data access for products, the variant-axis catalog,
bundle components and grouped items. Repositories only read and stage
changes; services decide when to commit.
"""

from collections.abc import Iterable, Sequence

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from pim_composer.catalog.models import (
    Attribute,
    BundleComponent,
    GroupedItem,
    Product,
    VariantAxis,
    VariantAxisValue,
    VariantConfig,
)


class ProductRepository:
    """Repository for Product rows.

    Example usage:
        async with async_session_factory() as session:
            repo = ProductRepository(session)
            rows = await repo.lock_many(["b", "a"])  # locked in id order
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self.session = session

    async def get_by_id(self, product_id: str, fresh: bool = False) -> Product | None:
        """Get product by ID.

        Args:
            product_id: Product ID.
            fresh: Re-read the row even if it is already in the session.

        Returns:
            Product if found, None otherwise.
        """
        query = select(Product).where(Product.id == product_id)
        if fresh:
            query = query.execution_options(populate_existing=True)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def get_for_update(self, product_id: str) -> Product | None:
        """Get and row-lock a product for the rest of the transaction.

        Args:
            product_id: Product ID.

        Returns:
            Product if found, None otherwise.
        """
        result = await self.session.execute(
            select(Product)
            .where(Product.id == product_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_many(self, product_ids: Iterable[str], fresh: bool = False) -> dict[str, Product]:
        """Get several products keyed by ID.

        Args:
            product_ids: Product IDs.
            fresh: Re-read rows even if they are already in the session.

        Returns:
            Mapping of found product IDs to products.
        """
        ids = list(set(product_ids))
        if not ids:
            return {}
        query = select(Product).where(Product.id.in_(ids))
        if fresh:
            query = query.execution_options(populate_existing=True)
        result = await self.session.execute(query)
        return {product.id: product for product in result.scalars().all()}

    async def lock_many(self, product_ids: Iterable[str]) -> dict[str, Product]:
        """Row-lock several products in ascending ID order.

        Locking in a fixed order keeps two transactions that touch
        overlapping rows from deadlocking on each other.

        Args:
            product_ids: Product IDs.

        Returns:
            Mapping of locked product IDs to freshly read products.
        """
        ids = sorted(set(product_ids))
        if not ids:
            return {}
        result = await self.session.execute(
            select(Product)
            .where(Product.id.in_(ids))
            .order_by(Product.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return {product.id: product for product in result.scalars().all()}

    async def sku_exists(self, sku: str) -> bool:
        """Check if a SKU is already taken by any product."""
        result = await self.session.execute(select(Product.id).where(Product.sku == sku))
        return result.first() is not None

    async def list_variants(self, parent_id: str) -> Sequence[Product]:
        """Get variants of a configurable product, oldest first."""
        result = await self.session.execute(
            select(Product)
            .where(Product.parent_id == parent_id)
            .order_by(Product.created_at, Product.sku)
        )
        return result.scalars().all()

    async def count_variants(self, parent_id: str) -> int:
        """Count variants of a configurable product."""
        result = await self.session.execute(
            select(func.count(Product.id)).where(Product.parent_id == parent_id)
        )
        return result.scalar_one()

    async def delete_variants(self, parent_id: str) -> int:
        """Delete all variants of a product along with their axis values.

        Returns:
            Number of deleted variants.
        """
        variants = await self.list_variants(parent_id)
        for variant in variants:
            await self.session.delete(variant)
        await self.session.flush()
        return len(variants)


class VariantRepository:
    """Repository for variant axes, configs and variant axis values."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self.session = session

    async def list_axes(self, active_only: bool = False) -> Sequence[VariantAxis]:
        """Get variant axes ordered by position."""
        query = select(VariantAxis)
        if active_only:
            query = query.where(VariantAxis.is_active.is_(True))
        result = await self.session.execute(query.order_by(VariantAxis.position, VariantAxis.code))
        return result.scalars().all()

    async def get_axis(self, axis_id: str) -> VariantAxis | None:
        return await self.session.get(VariantAxis, axis_id)

    async def get_axes(self, axis_ids: Iterable[str]) -> dict[str, VariantAxis]:
        """Get several axes keyed by ID."""
        ids = list(set(axis_ids))
        if not ids:
            return {}
        result = await self.session.execute(select(VariantAxis).where(VariantAxis.id.in_(ids)))
        return {axis.id: axis for axis in result.scalars().all()}

    async def axis_code_exists(self, code: str, exclude_id: str | None = None) -> bool:
        """Check if an axis code is taken, optionally ignoring one axis."""
        query = select(VariantAxis.id).where(VariantAxis.code == code)
        if exclude_id is not None:
            query = query.where(VariantAxis.id != exclude_id)
        result = await self.session.execute(query)
        return result.first() is not None

    async def count_axis_usage(self, axis_id: str) -> int:
        """Count variants that hold a value for the axis."""
        result = await self.session.execute(
            select(func.count(VariantAxisValue.id)).where(VariantAxisValue.axis_id == axis_id)
        )
        return result.scalar_one()

    async def get_attribute(self, attribute_id: str) -> Attribute | None:
        """Get attribute with its options loaded."""
        result = await self.session.execute(select(Attribute).where(Attribute.id == attribute_id))
        return result.scalar_one_or_none()

    async def get_config(self, product_id: str) -> VariantConfig | None:
        """Get the variant config of a product."""
        result = await self.session.execute(
            select(VariantConfig).where(VariantConfig.product_id == product_id)
        )
        return result.scalar_one_or_none()

    async def delete_config(self, product_id: str) -> int:
        """Delete a product's variant config.

        Returns:
            Number of deleted configs (0 or 1).
        """
        result = await self.session.execute(
            delete(VariantConfig).where(VariantConfig.product_id == product_id)
        )
        return result.rowcount or 0


class BundleRepository:
    """Repository for bundle component edges."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self.session = session

    async def list_components(self, bundle_id: str) -> Sequence[BundleComponent]:
        """Get a bundle's components ordered by position."""
        result = await self.session.execute(
            select(BundleComponent)
            .where(BundleComponent.bundle_id == bundle_id)
            .order_by(BundleComponent.position, BundleComponent.id)
        )
        return result.scalars().all()

    async def get_component(self, row_id: str) -> BundleComponent | None:
        return await self.session.get(BundleComponent, row_id)

    async def all_edges(self) -> list[tuple[str, str, int]]:
        """Read every ``(bundle_id, component_id, quantity)`` edge.

        Returns:
            All component edges at call time.
        """
        result = await self.session.execute(
            select(
                BundleComponent.bundle_id,
                BundleComponent.component_id,
                BundleComponent.quantity,
            )
        )
        return [(row.bundle_id, row.component_id, row.quantity) for row in result.all()]

    async def delete_for_bundle(self, bundle_id: str) -> int:
        """Delete all components of a bundle.

        Returns:
            Number of deleted rows.
        """
        result = await self.session.execute(
            delete(BundleComponent).where(BundleComponent.bundle_id == bundle_id)
        )
        return result.rowcount or 0

    async def bundles_containing(self, product_id: str) -> list[str]:
        """Get IDs of bundles that list the product as a component."""
        result = await self.session.execute(
            select(BundleComponent.bundle_id)
            .where(BundleComponent.component_id == product_id)
            .distinct()
            .order_by(BundleComponent.bundle_id)
        )
        return list(result.scalars().all())


class GroupedRepository:
    """Repository for grouped product items."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self.session = session

    async def list_items(self, parent_id: str) -> Sequence[GroupedItem]:
        """Get a grouped product's items ordered by position."""
        result = await self.session.execute(
            select(GroupedItem)
            .where(GroupedItem.parent_id == parent_id)
            .order_by(GroupedItem.position, GroupedItem.id)
        )
        return result.scalars().all()

    async def get_item(self, row_id: str) -> GroupedItem | None:
        return await self.session.get(GroupedItem, row_id)

    async def delete_for_parent(self, parent_id: str) -> int:
        """Delete all items of a grouped product.

        Returns:
            Number of deleted rows.
        """
        result = await self.session.execute(
            delete(GroupedItem).where(GroupedItem.parent_id == parent_id)
        )
        return result.rowcount or 0

    async def groups_containing(self, product_id: str) -> list[str]:
        """Get IDs of grouped products that list the product as a child."""
        result = await self.session.execute(
            select(GroupedItem.parent_id)
            .where(GroupedItem.child_id == product_id)
            .distinct()
            .order_by(GroupedItem.parent_id)
        )
        return list(result.scalars().all())
