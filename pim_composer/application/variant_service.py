"""Variant application service.

Orchestrates configurable products and their variants including:
- Managing the variant axis catalog
- Configuring which axes a configurable product varies on
- Enumerating the variant matrix lazily under a size ceiling
- Creating variants one by one or in bulk with per-entry outcomes
"""

from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from pim_composer.catalog.models import Product, VariantAxis, VariantAxisValue, VariantConfig
from pim_composer.catalog.repository import ProductRepository, VariantRepository
from pim_composer.domain.exceptions import (
    AxisInUseError,
    DuplicateAxisCodeError,
    DuplicateSkuError,
    DuplicateVariantError,
    InvalidCombinationError,
    InvalidProductTypeError,
    InvalidQuantityError,
    NotFoundError,
    TooManyCombinationsError,
)
from pim_composer.domain.product_types import ProductType
from pim_composer.domain.variant_matrix import (
    AxisDefinition,
    build_variant_name,
    combination_key,
    count_combinations,
    ensure_within_ceiling,
    generate_sku,
    iter_combinations,
    validate_combination,
)
from pim_composer.infrastructure.config import settings

logger = structlog.get_logger()


# ============================================================================
# Variant Data Transfer Objects
# ============================================================================


@dataclass
class VariantAxisInput:
    """Requested variant axis fields."""

    code: str
    name: str
    description: str | None = None
    attribute_id: str | None = None
    options: list[str] = field(default_factory=list)
    position: int = 0
    is_active: bool = True


@dataclass
class VariantAxisDTO:
    """Variant axis data transfer object."""

    id: str
    code: str
    name: str
    description: str | None
    attribute_id: str | None
    attribute_code: str | None
    values: list[str]
    position: int
    is_active: bool
    created_at: datetime
    updated_at: datetime


@dataclass
class AxisValueDTO:
    """Value a variant takes on one axis."""

    axis_id: str
    axis_code: str
    axis_name: str
    value: str


@dataclass
class VariantDTO:
    """Variant data transfer object."""

    id: str
    parent_id: str
    sku: str
    name: str
    price: Decimal | None
    stock_quantity: int
    axis_values: list[AxisValueDTO]
    is_stale: bool
    created_at: datetime

    @property
    def is_in_stock(self) -> bool:
        return self.stock_quantity > 0


@dataclass
class VariantConfigView:
    """Variant configuration of a configurable product."""

    product_id: str
    axes: list[VariantAxisDTO]
    sku_pattern: str | None
    combination_count: int
    variants: list[VariantDTO] = field(default_factory=list)


@dataclass
class VariantMatrixEntry:
    """One combination of the variant matrix."""

    values: dict[str, str]
    labels: dict[str, str]
    exists: bool
    variant_id: str | None = None
    sku: str | None = None


@dataclass
class VariantInput:
    """Requested variant; SKU and name are derived when omitted."""

    values: dict[str, str]
    sku: str | None = None
    name: str | None = None
    price: Decimal | None = None
    stock_quantity: int | None = None


@dataclass
class VariantUpdateInput:
    """Variant fields to change; None leaves a field as it is."""

    name: str | None = None
    price: Decimal | None = None
    stock_quantity: int | None = None
    values: dict[str, str] | None = None


# ============================================================================
# Service Result Types
# ============================================================================


class BulkCreateStatus(str, Enum):
    """Outcome of one bulk-create entry."""

    CREATED = "created"
    EXISTING = "existing"
    FAILED = "failed"


@dataclass
class BulkCreateEntry:
    """Outcome for one requested combination."""

    values: dict[str, str]
    status: BulkCreateStatus
    variant: VariantDTO | None = None
    error: str | None = None
    error_code: str | None = None


@dataclass
class BulkCreateResult:
    """Result of creating variants in bulk."""

    entries: list[BulkCreateEntry] = field(default_factory=list)

    @property
    def created(self) -> list[VariantDTO]:
        return [e.variant for e in self.entries if e.status == BulkCreateStatus.CREATED and e.variant]

    @property
    def failed(self) -> list[BulkCreateEntry]:
        return [e for e in self.entries if e.status == BulkCreateStatus.FAILED]

    @property
    def variants(self) -> list[VariantDTO]:
        """Created and pre-existing variants, in request order."""
        return [e.variant for e in self.entries if e.variant is not None]


# ============================================================================
# Variant Service
# ============================================================================


class VariantService:
    """Service for variant axes and configurable product variants.

    Example usage:
        service = VariantService(session)
        await service.configure(tee.id, [color.id, size.id])
        result = await service.bulk_create(
            tee.id, [entry.values for entry in await service.matrix(tee.id)]
        )
    """

    def __init__(self, session: AsyncSession, max_combinations: int | None = None) -> None:
        """Initialize variant service.

        Args:
            session: Async SQLAlchemy session.
            max_combinations: Variant matrix ceiling; defaults to settings.
        """
        self.session = session
        self.products = ProductRepository(session)
        self.variants = VariantRepository(session)
        self.max_combinations = (
            max_combinations if max_combinations is not None else settings.max_variant_combinations
        )

    # ------------------------------------------------------------------------
    # Axis catalog
    # ------------------------------------------------------------------------

    async def list_axes(self, active_only: bool = False) -> list[VariantAxisDTO]:
        """Get variant axes ordered by position."""
        return [await self._axis_dto(axis) for axis in await self.variants.list_axes(active_only)]

    async def get_axis(self, axis_id: str) -> VariantAxisDTO:
        """Get a variant axis.

        Raises:
            NotFoundError: If the axis does not exist.
        """
        axis = await self.variants.get_axis(axis_id)
        if axis is None:
            raise NotFoundError("VariantAxis", axis_id)
        return await self._axis_dto(axis)

    async def create_axis(self, data: VariantAxisInput) -> VariantAxisDTO:
        """Create a variant axis.

        Raises:
            DuplicateAxisCodeError: If the code is taken.
            NotFoundError: If the bound attribute does not exist.
        """
        try:
            if await self.variants.axis_code_exists(data.code):
                raise DuplicateAxisCodeError(data.code)
            await self._check_attribute(data.attribute_id)

            axis = VariantAxis(
                code=data.code,
                name=data.name,
                description=data.description,
                attribute_id=data.attribute_id,
                options=list(data.options),
                position=data.position,
                is_active=data.is_active,
            )
            self.session.add(axis)
            await self.session.flush()
            dto = await self._axis_dto(axis)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info("Variant axis created", axis_id=dto.id, code=dto.code)
        return dto

    async def update_axis(self, axis_id: str, data: VariantAxisInput) -> VariantAxisDTO:
        """Replace a variant axis's fields.

        Raises:
            NotFoundError: If the axis or bound attribute does not exist.
            DuplicateAxisCodeError: If the new code is taken by another axis.
        """
        try:
            axis = await self.variants.get_axis(axis_id)
            if axis is None:
                raise NotFoundError("VariantAxis", axis_id)
            if await self.variants.axis_code_exists(data.code, exclude_id=axis_id):
                raise DuplicateAxisCodeError(data.code)
            await self._check_attribute(data.attribute_id)

            axis.code = data.code
            axis.name = data.name
            axis.description = data.description
            axis.attribute_id = data.attribute_id
            axis.options = list(data.options)
            axis.position = data.position
            axis.is_active = data.is_active
            await self.session.flush()
            dto = await self._axis_dto(axis)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info("Variant axis updated", axis_id=axis_id, code=data.code)
        return dto

    async def delete_axis(self, axis_id: str) -> None:
        """Delete a variant axis that no variant uses.

        Raises:
            NotFoundError: If the axis does not exist.
            AxisInUseError: If any variant holds a value for the axis.
        """
        try:
            axis = await self.variants.get_axis(axis_id)
            if axis is None:
                raise NotFoundError("VariantAxis", axis_id)
            usage = await self.variants.count_axis_usage(axis_id)
            if usage:
                raise AxisInUseError(axis_id, usage)
            await self.session.delete(axis)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info("Variant axis deleted", axis_id=axis_id)

    async def axis_values(self, axis: VariantAxis) -> list[str]:
        """Resolve an axis's allowed values.

        Values come from the bound attribute's options when the axis has
        one, otherwise from the axis's own option list.
        """
        if axis.attribute_id:
            attribute = await self.variants.get_attribute(axis.attribute_id)
            if attribute is not None:
                return [option.code for option in attribute.options]
            return []
        return list(axis.options or [])

    # ------------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------------

    async def configure(
        self,
        product_id: str,
        axis_ids: Sequence[str],
        sku_pattern: str | None = None,
    ) -> VariantConfigView:
        """Set the axes a configurable product varies on.

        Replaces any prior config. Existing variants are kept; those whose
        axis set no longer matches are reported as stale.

        Args:
            product_id: Configurable product ID.
            axis_ids: Axis IDs in SKU order.
            sku_pattern: Optional SKU template with ``{parent_sku}`` and
                ``{<axis code>}`` placeholders.

        Returns:
            The new configuration with the product's variants.

        Raises:
            NotFoundError: If the product or an axis does not exist.
            InvalidProductTypeError: If the product is not configurable.
            InvalidCombinationError: If no axes are given or one repeats.
            TooManyCombinationsError: If the matrix would exceed the ceiling.
        """
        try:
            parent = await self._lock_parent(product_id)
            if not axis_ids:
                raise InvalidCombinationError("at least one variant axis is required")
            if len(set(axis_ids)) != len(axis_ids):
                raise InvalidCombinationError("variant axes must not repeat")

            axes, rows = await self._axis_definitions(axis_ids)
            ensure_within_ceiling(axes, self.max_combinations)

            config = await self.variants.get_config(product_id)
            if config is None:
                config = VariantConfig(product_id=product_id)
                self.session.add(config)
            config.axis_ids = list(axis_ids)
            config.sku_pattern = sku_pattern
            await self.session.flush()

            view = await self._config_view(parent, config, axes, rows)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info(
            "Variants configured",
            product_id=product_id,
            axis_ids=list(axis_ids),
            combinations=view.combination_count,
            stale=sum(1 for v in view.variants if v.is_stale),
        )
        return view

    async def get_config(self, product_id: str) -> VariantConfigView | None:
        """Get a product's variant configuration, if it has one.

        Raises:
            NotFoundError: If the product does not exist.
        """
        parent = await self.products.get_by_id(product_id)
        if parent is None:
            raise NotFoundError("Product", product_id)
        config = await self.variants.get_config(product_id)
        if config is None:
            return None
        axes, rows = await self._axis_definitions(config.axis_ids)
        return await self._config_view(parent, config, axes, rows)

    # ------------------------------------------------------------------------
    # Matrix
    # ------------------------------------------------------------------------

    async def matrix(self, product_id: str) -> Iterator[VariantMatrixEntry]:
        """Enumerate every axis combination of a configurable product.

        The size check and all reads happen before this returns; the
        entries themselves are produced lazily. Nothing is written.

        Returns:
            Iterator of matrix entries; empty when no config exists.

        Raises:
            NotFoundError: If the product or a configured axis is missing.
            InvalidProductTypeError: If the product is not configurable.
            TooManyCombinationsError: If the matrix exceeds the ceiling.
        """
        parent = await self._get_parent(product_id)
        config = await self.variants.get_config(parent.id)
        if config is None:
            return iter(())

        axes, _rows = await self._axis_definitions(config.axis_ids)
        combinations = iter_combinations(axes, self.max_combinations)
        existing = self._index_by_combination(await self.products.list_variants(parent.id), axes)
        codes = {axis.id: axis.code for axis in axes}

        def entries() -> Iterator[VariantMatrixEntry]:
            for values in combinations:
                variant = existing.get(combination_key(values))
                yield VariantMatrixEntry(
                    values=values,
                    labels={codes[axis_id]: value for axis_id, value in values.items()},
                    exists=variant is not None,
                    variant_id=variant.id if variant else None,
                    sku=variant.sku if variant else None,
                )

        return entries()

    # ------------------------------------------------------------------------
    # Variants
    # ------------------------------------------------------------------------

    async def bulk_create(
        self,
        product_id: str,
        combinations: Sequence[Mapping[str, str]],
    ) -> BulkCreateResult:
        """Create variants for several combinations.

        Each combination gets its own entry: ``created``, ``existing`` when
        a variant with that combination is already there, or ``failed``
        with the error that affected only that entry. Calling twice with
        the same input therefore yields the same variants.

        Args:
            product_id: Configurable product ID.
            combinations: ``{axis_id: value}`` mappings.

        Returns:
            BulkCreateResult with one entry per combination, in order.

        Raises:
            NotFoundError: If the product, config or an axis is missing.
            InvalidProductTypeError: If the product is not configurable.
            TooManyCombinationsError: If more combinations are requested
                than the ceiling allows.
        """
        if len(combinations) > self.max_combinations:
            raise TooManyCombinationsError(len(combinations), self.max_combinations)

        try:
            parent = await self._lock_parent(product_id)
            config = await self._require_config(parent.id)
            axes, _rows = await self._axis_definitions(config.axis_ids)
            existing = self._index_by_combination(await self.products.list_variants(parent.id), axes)

            staged: list[tuple[dict[str, str], BulkCreateStatus, Product | None, Exception | None]] = []
            batch_skus: set[str] = set()
            for raw in combinations:
                try:
                    values = validate_combination(axes, raw)
                    key = combination_key(values)
                    if key in existing:
                        staged.append((values, BulkCreateStatus.EXISTING, existing[key], None))
                        continue
                    sku = generate_sku(parent.sku, axes, values, config.sku_pattern)
                    if sku in batch_skus or await self.products.sku_exists(sku):
                        raise DuplicateSkuError(sku)
                except (InvalidCombinationError, DuplicateSkuError) as exc:
                    staged.append((dict(raw), BulkCreateStatus.FAILED, None, exc))
                    continue

                variant = self._new_variant(parent, axes, values, VariantInput(values=values), sku)
                batch_skus.add(sku)
                # SKUs are global, so another writer can take one after the check
                try:
                    async with self.session.begin_nested():
                        self.session.add(variant)
                        await self.session.flush()
                except IntegrityError:
                    logger.warning("Variant SKU taken during bulk create", product_id=product_id, sku=sku)
                    staged.append((values, BulkCreateStatus.FAILED, None, DuplicateSkuError(sku)))
                    continue

                existing[key] = variant
                staged.append((values, BulkCreateStatus.CREATED, variant, None))

            by_id = {axis.id: axis for axis in axes}
            result = BulkCreateResult()
            for values, status, variant, error in staged:
                result.entries.append(
                    BulkCreateEntry(
                        values=values,
                        status=status,
                        variant=self._variant_dto(variant, by_id, config) if variant else None,
                        error=str(error) if error else None,
                        error_code=getattr(error, "error_code", None),
                    )
                )
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info(
            "Variants bulk created",
            product_id=product_id,
            requested=len(combinations),
            created=len(result.created),
            failed=len(result.failed),
        )
        return result

    async def create_variant(self, parent_id: str, data: VariantInput) -> VariantDTO:
        """Create a single variant.

        Raises:
            NotFoundError: If the product, config or an axis is missing.
            InvalidProductTypeError: If the product is not configurable.
            InvalidCombinationError: If the values are not a full, valid
                assignment of the configured axes.
            DuplicateVariantError: If the combination already exists.
            DuplicateSkuError: If the SKU is taken.
            InvalidQuantityError: If the stock quantity is negative.
        """
        try:
            parent = await self._lock_parent(parent_id)
            config = await self._require_config(parent.id)
            axes, _rows = await self._axis_definitions(config.axis_ids)
            values = validate_combination(axes, data.values)
            self._check_stock_quantity(data.stock_quantity)

            existing = self._index_by_combination(await self.products.list_variants(parent.id), axes)
            duplicate = existing.get(combination_key(values))
            if duplicate is not None:
                raise DuplicateVariantError(parent.id, duplicate.id, values)

            sku = data.sku or generate_sku(parent.sku, axes, values, config.sku_pattern)
            if await self.products.sku_exists(sku):
                raise DuplicateSkuError(sku)

            variant = self._new_variant(parent, axes, values, data, sku)
            self.session.add(variant)
            await self.session.flush()
            dto = self._variant_dto(variant, {axis.id: axis for axis in axes}, config)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info("Variant created", parent_id=parent_id, variant_id=dto.id, sku=dto.sku)
        return dto

    async def update_variant(self, variant_id: str, data: VariantUpdateInput) -> VariantDTO:
        """Update a variant's name, price, stock or axis values.

        New axis values are merged over the current ones and the result
        must still be a full, valid, unused combination.

        Raises:
            NotFoundError: If the variant does not exist.
            InvalidProductTypeError: If the product is not a variant.
            InvalidCombinationError: If the merged values are invalid.
            DuplicateVariantError: If another variant has the combination.
            InvalidQuantityError: If the stock quantity is negative.
        """
        try:
            variant = await self._get_variant(variant_id)
            self._check_stock_quantity(data.stock_quantity)
            config = await self.variants.get_config(variant.parent_id)
            axis_ids = config.axis_ids if config else [v.axis_id for v in variant.axis_values]
            axes, _rows = await self._axis_definitions(axis_ids)

            if data.values:
                current = {v.axis_id: v.value for v in variant.axis_values}
                values = validate_combination(axes, {**current, **data.values})
                siblings = self._index_by_combination(
                    await self.products.list_variants(variant.parent_id), axes
                )
                other = siblings.get(combination_key(values))
                if other is not None and other.id != variant.id:
                    raise DuplicateVariantError(variant.parent_id, other.id, values)

                rows = {v.axis_id: v for v in variant.axis_values}
                for axis_id, value in values.items():
                    if axis_id in rows:
                        rows[axis_id].value = value
                    else:
                        variant.axis_values.append(VariantAxisValue(axis_id=axis_id, value=value))

            if data.name is not None:
                variant.name = data.name
            if data.price is not None:
                variant.price = data.price
            if data.stock_quantity is not None:
                variant.stock_quantity = data.stock_quantity
            await self.session.flush()

            dto = self._variant_dto(variant, {axis.id: axis for axis in axes}, config)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info("Variant updated", variant_id=variant_id)
        return dto

    async def delete_variant(self, variant_id: str) -> None:
        """Delete a variant and its axis values.

        Raises:
            NotFoundError: If the variant does not exist.
            InvalidProductTypeError: If the product is not a variant.
        """
        try:
            variant = await self._get_variant(variant_id)
            parent_id = variant.parent_id
            await self.session.delete(variant)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info("Variant deleted", variant_id=variant_id, parent_id=parent_id)

    async def list_variants(self, parent_id: str) -> list[VariantDTO]:
        """Get a product's variants, oldest first.

        Raises:
            NotFoundError: If the product does not exist.
        """
        parent = await self.products.get_by_id(parent_id)
        if parent is None:
            raise NotFoundError("Product", parent_id)
        config = await self.variants.get_config(parent_id)
        variants = await self.products.list_variants(parent_id)

        axis_ids = {v.axis_id for variant in variants for v in variant.axis_values}
        if config is not None:
            axis_ids.update(config.axis_ids)
        by_id = await self._definitions_by_id(axis_ids)
        return [self._variant_dto(variant, by_id, config) for variant in variants]

    # ------------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------------

    async def _get_parent(self, product_id: str) -> Product:
        parent = await self.products.get_by_id(product_id)
        return self._ensure_configurable(product_id, parent)

    async def _lock_parent(self, product_id: str) -> Product:
        parent = await self.products.get_for_update(product_id)
        return self._ensure_configurable(product_id, parent)

    @staticmethod
    def _ensure_configurable(product_id: str, parent: Product | None) -> Product:
        if parent is None:
            raise NotFoundError("Product", product_id)
        if parent.type != ProductType.CONFIGURABLE:
            raise InvalidProductTypeError(
                product_id, parent.type.value, "product is not configurable",
                expected=[ProductType.CONFIGURABLE.value],
            )
        return parent

    async def _require_config(self, product_id: str) -> VariantConfig:
        config = await self.variants.get_config(product_id)
        if config is None:
            raise NotFoundError("VariantConfig", product_id)
        return config

    async def _get_variant(self, variant_id: str) -> Product:
        variant = await self.products.get_by_id(variant_id)
        if variant is None:
            raise NotFoundError("Product", variant_id)
        if not variant.is_variant:
            raise InvalidProductTypeError(variant_id, variant.type.value, "product is not a variant")
        return variant

    async def _check_attribute(self, attribute_id: str | None) -> None:
        if attribute_id and await self.variants.get_attribute(attribute_id) is None:
            raise NotFoundError("Attribute", attribute_id)

    @staticmethod
    def _check_stock_quantity(stock_quantity: int | None) -> None:
        if stock_quantity is not None and stock_quantity < 0:
            raise InvalidQuantityError(stock_quantity, "Stock quantity must not be negative")

    async def _axis_definitions(
        self, axis_ids: Sequence[str]
    ) -> tuple[list[AxisDefinition], dict[str, VariantAxis]]:
        """Load axes in the given order with their allowed values resolved."""
        rows = await self.variants.get_axes(axis_ids)
        for axis_id in axis_ids:
            if axis_id not in rows:
                raise NotFoundError("VariantAxis", axis_id)
        axes = [
            AxisDefinition(
                id=rows[axis_id].id,
                code=rows[axis_id].code,
                name=rows[axis_id].name,
                values=tuple(await self.axis_values(rows[axis_id])),
            )
            for axis_id in axis_ids
        ]
        return axes, rows

    async def _definitions_by_id(self, axis_ids: set[str]) -> dict[str, AxisDefinition]:
        rows = await self.variants.get_axes(axis_ids)
        return {
            axis.id: AxisDefinition(id=axis.id, code=axis.code, name=axis.name)
            for axis in rows.values()
        }

    @staticmethod
    def _index_by_combination(
        variants: Sequence[Product],
        axes: Sequence[AxisDefinition],
    ) -> dict[frozenset[tuple[str, str]], Product]:
        """Map each variant holding exactly the configured axes to its combination."""
        axis_ids = {axis.id for axis in axes}
        index: dict[frozenset[tuple[str, str]], Product] = {}
        for variant in variants:
            values = {v.axis_id: v.value for v in variant.axis_values}
            if set(values) == axis_ids:
                index.setdefault(combination_key(values), variant)
        return index

    @staticmethod
    def _new_variant(
        parent: Product,
        axes: Sequence[AxisDefinition],
        values: Mapping[str, str],
        data: VariantInput,
        sku: str,
    ) -> Product:
        return Product(
            sku=sku,
            name=data.name or build_variant_name(parent.name, axes, values),
            type=ProductType.SIMPLE,
            price=data.price if data.price is not None else parent.price,
            stock_quantity=data.stock_quantity or 0,
            requires_shipping=parent.requires_shipping,
            parent_id=parent.id,
            axis_values=[
                VariantAxisValue(axis_id=axis_id, value=value) for axis_id, value in values.items()
            ],
        )

    @staticmethod
    def _variant_dto(
        variant: Product,
        axes: Mapping[str, AxisDefinition],
        config: VariantConfig | None,
    ) -> VariantDTO:
        order = {axis_id: i for i, axis_id in enumerate(config.axis_ids if config else [])}
        values = sorted(variant.axis_values, key=lambda v: (order.get(v.axis_id, len(order)), v.axis_id))
        axis_set = {v.axis_id for v in variant.axis_values}
        return VariantDTO(
            id=variant.id,
            parent_id=variant.parent_id,
            sku=variant.sku,
            name=variant.name,
            price=variant.price,
            stock_quantity=variant.stock_quantity,
            axis_values=[
                AxisValueDTO(
                    axis_id=v.axis_id,
                    axis_code=axes[v.axis_id].code if v.axis_id in axes else v.axis_id,
                    axis_name=axes[v.axis_id].name if v.axis_id in axes else v.axis_id,
                    value=v.value,
                )
                for v in values
            ],
            is_stale=config is None or axis_set != set(config.axis_ids),
            created_at=variant.created_at,
        )

    async def _axis_dto(self, axis: VariantAxis) -> VariantAxisDTO:
        attribute_code = None
        if axis.attribute_id:
            attribute = await self.variants.get_attribute(axis.attribute_id)
            attribute_code = attribute.code if attribute else None
        return VariantAxisDTO(
            id=axis.id,
            code=axis.code,
            name=axis.name,
            description=axis.description,
            attribute_id=axis.attribute_id,
            attribute_code=attribute_code,
            values=await self.axis_values(axis),
            position=axis.position,
            is_active=axis.is_active,
            created_at=axis.created_at,
            updated_at=axis.updated_at,
        )

    async def _config_view(
        self,
        parent: Product,
        config: VariantConfig,
        axes: list[AxisDefinition],
        rows: Mapping[str, VariantAxis],
    ) -> VariantConfigView:
        variants = await self.products.list_variants(parent.id)
        by_id = {axis.id: axis for axis in axes}
        extra = {v.axis_id for variant in variants for v in variant.axis_values} - by_id.keys()
        by_id.update(await self._definitions_by_id(extra))
        return VariantConfigView(
            product_id=parent.id,
            axes=[await self._axis_dto(rows[axis.id]) for axis in axes],
            sku_pattern=config.sku_pattern,
            combination_count=count_combinations(axes),
            variants=[self._variant_dto(variant, by_id, config) for variant in variants],
        )


def get_variant_service(session: AsyncSession) -> VariantService:
    """Get variant service instance."""
    return VariantService(session)
