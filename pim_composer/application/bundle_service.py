"""Bundle application service.

Orchestrates bundle composition and stock operations including:
- Managing bundle components with cycle checks on the bundle graph
- Deriving bundle price from direct components
- Validating and atomically decrementing stock for simple, virtual and
  bundle products
- Reporting which bundles and grouped products use a product
"""

from dataclasses import dataclass, field
from decimal import Decimal

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from pim_composer.application.stock import DecrementedProduct, StockUnitOfWork
from pim_composer.catalog.models import BundleComponent, Product
from pim_composer.catalog.repository import (
    BundleRepository,
    GroupedRepository,
    ProductRepository,
)
from pim_composer.domain.bundle_graph import build_adjacency, ensure_acyclic, explode
from pim_composer.domain.composition import (
    BundleComposition,
    Composition,
    ConfigurableComposition,
    GroupedComposition,
    PriceLine,
    SimpleComposition,
    StockLine,
    VirtualComposition,
    available_quantity,
    bundle_price,
    check_stock,
    plan_decrement,
)
from pim_composer.domain.exceptions import (
    DuplicateComponentError,
    InsufficientStockError,
    InvalidProductTypeError,
    InvalidQuantityError,
    NotFoundError,
    StockConflictError,
)
from pim_composer.domain.product_types import ProductType
from pim_composer.infrastructure.config import settings

logger = structlog.get_logger()

_COMPONENT_TYPES = [ProductType.SIMPLE.value, ProductType.VIRTUAL.value, ProductType.BUNDLE.value]


# ============================================================================
# Bundle Data Transfer Objects
# ============================================================================


@dataclass
class BundleComponentInput:
    """Requested bundle component."""

    component_id: str
    quantity: int = 1
    position: int | None = None
    special_price: Decimal | None = None


@dataclass
class BundleComponentDTO:
    """Bundle component data transfer object."""

    id: str
    bundle_id: str
    component_id: str
    component_sku: str
    component_name: str
    component_type: ProductType
    quantity: int
    position: int
    special_price: Decimal | None
    component_price: Decimal | None
    component_stock: int


# ============================================================================
# Service Result Types
# ============================================================================


@dataclass
class StockValidationResult:
    """Result of validating a stock operation."""

    is_valid: bool
    requested_quantity: int
    available_quantity: int
    message: str | None = None


@dataclass
class StockDecrementResult:
    """Result of decrementing stock."""

    success: bool = True
    message: str | None = None
    error_code: str | None = None
    decremented_products: list[DecrementedProduct] = field(default_factory=list)


# ============================================================================
# Bundle Service
# ============================================================================


class BundleService:
    """Service for bundle components and stock operations.

    Every component edit locks the bundle's product row before reading
    the edge set, so two edits of the same bundle never run their cycle
    checks against each other's half-written state.
    """

    def __init__(self, session: AsyncSession, max_depth: int | None = None) -> None:
        """Initialize bundle service.

        Args:
            session: Async SQLAlchemy session.
            max_depth: Bundle nesting limit; defaults to settings.
        """
        self.session = session
        self.products = ProductRepository(session)
        self.bundles = BundleRepository(session)
        self.grouped = GroupedRepository(session)
        self.max_depth = max_depth if max_depth is not None else settings.max_bundle_depth

    # ------------------------------------------------------------------------
    # Components
    # ------------------------------------------------------------------------

    async def list_components(self, bundle_id: str) -> list[BundleComponentDTO]:
        """Get a bundle's components ordered by position.

        Raises:
            NotFoundError: If the product does not exist.
        """
        if await self.products.get_by_id(bundle_id) is None:
            raise NotFoundError("Product", bundle_id)
        rows = await self.bundles.list_components(bundle_id)
        components = await self.products.get_many(row.component_id for row in rows)
        return [self._to_dto(row, components.get(row.component_id)) for row in rows]

    async def add_component(self, bundle_id: str, data: BundleComponentInput) -> BundleComponentDTO:
        """Add a component to a bundle.

        Args:
            bundle_id: Bundle product ID.
            data: Component to add.

        Returns:
            Created component.

        Raises:
            NotFoundError: If the bundle or component does not exist.
            InvalidProductTypeError: If the product is not a bundle or the
                component type cannot be bundled.
            InvalidQuantityError: If quantity is below 1.
            DuplicateComponentError: If the component is already listed.
            CyclicBundleError: If the edge would close a cycle.
            BundleDepthExceededError: If nesting would exceed the limit.
        """
        try:
            await self._lock_bundle(bundle_id)
            component = await self.products.get_by_id(data.component_id)
            self._validate_component(data, component)

            existing = await self.bundles.list_components(bundle_id)
            if any(row.component_id == data.component_id for row in existing):
                raise DuplicateComponentError(bundle_id, data.component_id)

            edges = await self.bundles.all_edges()
            ensure_acyclic(build_adjacency(edges), bundle_id, [data.component_id])
            explode(
                bundle_id,
                build_adjacency([*edges, (bundle_id, data.component_id, data.quantity)]),
                self.max_depth,
            )

            row = BundleComponent(
                bundle_id=bundle_id,
                component_id=data.component_id,
                quantity=data.quantity,
                position=data.position if data.position is not None else len(existing),
                special_price=data.special_price,
            )
            self.session.add(row)
            await self.session.flush()
            dto = self._to_dto(row, component)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info(
            "Bundle component added",
            bundle_id=bundle_id,
            component_id=data.component_id,
            quantity=data.quantity,
        )
        return dto

    async def update_component(self, row_id: str, data: BundleComponentInput) -> BundleComponentDTO:
        """Update quantity, position and special price of a component row.

        The component product itself cannot be swapped; remove and re-add
        it instead.

        Raises:
            NotFoundError: If the row does not exist.
            InvalidQuantityError: If quantity is below 1.
        """
        try:
            row = await self.bundles.get_component(row_id)
            if row is None:
                raise NotFoundError("BundleComponent", row_id)
            if data.quantity < 1:
                raise InvalidQuantityError(data.quantity, "Component quantity must be at least 1")
            await self._lock_bundle(row.bundle_id)

            row.quantity = data.quantity
            if data.position is not None:
                row.position = data.position
            row.special_price = data.special_price
            await self.session.flush()

            component = await self.products.get_by_id(row.component_id)
            dto = self._to_dto(row, component)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info("Bundle component updated", row_id=row_id, quantity=data.quantity)
        return dto

    async def remove_component(self, row_id: str) -> None:
        """Remove a component row from its bundle.

        Raises:
            NotFoundError: If the row does not exist.
        """
        try:
            row = await self.bundles.get_component(row_id)
            if row is None:
                raise NotFoundError("BundleComponent", row_id)
            bundle_id = row.bundle_id
            await self._lock_bundle(bundle_id)
            await self.session.delete(row)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info("Bundle component removed", row_id=row_id, bundle_id=bundle_id)

    async def set_components(
        self,
        bundle_id: str,
        inputs: list[BundleComponentInput],
    ) -> list[BundleComponentDTO]:
        """Replace a bundle's components with ``inputs``.

        Rows for components no longer listed are deleted, rows for kept
        components are updated in place and new components are inserted.
        All inputs are validated, including the cycle check against the
        planned edge set, before anything is written.

        Args:
            bundle_id: Bundle product ID.
            inputs: Full list of components; positions default to list index.

        Returns:
            Resulting components ordered by position.
        """
        try:
            await self._lock_bundle(bundle_id)

            seen: set[str] = set()
            for data in inputs:
                if data.component_id in seen:
                    raise DuplicateComponentError(bundle_id, data.component_id)
                seen.add(data.component_id)

            components = await self.products.get_many(seen)
            for data in inputs:
                self._validate_component(data, components.get(data.component_id))

            other_edges = [edge for edge in await self.bundles.all_edges() if edge[0] != bundle_id]
            ensure_acyclic(build_adjacency(other_edges), bundle_id, [d.component_id for d in inputs])
            planned = [(bundle_id, d.component_id, d.quantity) for d in inputs]
            explode(bundle_id, build_adjacency([*other_edges, *planned]), self.max_depth)

            existing = {row.component_id: row for row in await self.bundles.list_components(bundle_id)}
            for component_id, row in existing.items():
                if component_id not in seen:
                    await self.session.delete(row)

            rows: list[BundleComponent] = []
            for index, data in enumerate(inputs):
                position = data.position if data.position is not None else index
                row = existing.get(data.component_id)
                if row is None:
                    row = BundleComponent(bundle_id=bundle_id, component_id=data.component_id)
                    self.session.add(row)
                row.quantity = data.quantity
                row.position = position
                row.special_price = data.special_price
                rows.append(row)

            await self.session.flush()
            rows.sort(key=lambda r: r.position)
            dtos = [self._to_dto(row, components[row.component_id]) for row in rows]
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info("Bundle components replaced", bundle_id=bundle_id, count=len(dtos))
        return dtos

    # ------------------------------------------------------------------------
    # Price
    # ------------------------------------------------------------------------

    async def calculate_price(self, bundle_id: str) -> Decimal:
        """Derive a bundle's price from its direct components.

        A component without a price contributes zero unless its row
        carries a special price.

        Returns:
            ``sum((special_price or price or 0) * quantity)``; zero when
            the bundle has no components.

        Raises:
            NotFoundError: If the product does not exist.
            InvalidProductTypeError: If the product is not a bundle.
        """
        bundle = await self.products.get_by_id(bundle_id)
        if bundle is None:
            raise NotFoundError("Product", bundle_id)
        if bundle.type != ProductType.BUNDLE:
            raise InvalidProductTypeError(
                bundle_id, bundle.type.value, "price is only derived for bundles",
                expected=[ProductType.BUNDLE.value],
            )

        rows = await self.bundles.list_components(bundle_id)
        components = await self.products.get_many(row.component_id for row in rows)
        lines = [
            PriceLine(
                component_id=row.component_id,
                quantity=row.quantity,
                price=components[row.component_id].price if row.component_id in components else None,
                special_price=row.special_price,
            )
            for row in rows
        ]
        return bundle_price(lines)

    # ------------------------------------------------------------------------
    # Stock
    # ------------------------------------------------------------------------

    async def validate_stock_operation(self, product_id: str, quantity: int) -> StockValidationResult:
        """Check whether ``quantity`` units of a product can be sold now.

        Raises:
            NotFoundError: If the product does not exist.
            InvalidProductTypeError: For configurable and grouped products.
            InvalidQuantityError: If quantity is not positive.
        """
        composition = await self._load_composition(product_id)
        check = check_stock(composition, quantity)
        return StockValidationResult(
            is_valid=check.is_valid,
            requested_quantity=check.requested_quantity,
            available_quantity=check.available_quantity,
            message=check.message,
        )

    async def decrement_stock(
        self,
        product_id: str,
        quantity: int,
        include_bundle: bool = False,
    ) -> StockDecrementResult:
        """Sell ``quantity`` units of a product.

        For a bundle, every leaf component loses ``per_unit * quantity``
        units. Either every row is decremented or none is: the rows are
        locked and re-checked just before writing, and the transaction
        is rolled back if any of them no longer covers its share.

        Args:
            product_id: Product ID.
            quantity: Units to sell.
            include_bundle: Also refresh a bundle's cached stock to its
                derived availability and report it as an entry.

        Returns:
            StockDecrementResult; insufficient stock and concurrent
            modification are reported as failures, not raised.

        Raises:
            NotFoundError: If the product does not exist.
            InvalidProductTypeError: For configurable and grouped products.
            InvalidQuantityError: If quantity is not positive.
        """
        composition = await self._load_composition(product_id)
        check = check_stock(composition, quantity)
        if not check.is_valid:
            logger.info(
                "Stock decrement rejected",
                product_id=product_id,
                quantity=quantity,
                available=check.available_quantity,
            )
            return StockDecrementResult(
                success=False,
                message=check.message,
                error_code=InsufficientStockError.error_code,
            )

        refresh_bundle = include_bundle and isinstance(composition, BundleComposition)

        try:
            async with StockUnitOfWork(self.session) as uow:
                for row_id, amount in plan_decrement(composition, quantity).items():
                    uow.plan(row_id, amount)
                if refresh_bundle:
                    uow.watch(product_id)
                decremented = await uow.apply()

                if refresh_bundle:
                    decremented.append(self._refresh_bundle_stock(composition, uow))
        except (InsufficientStockError, StockConflictError) as exc:
            logger.warning(
                "Stock decrement aborted",
                product_id=product_id,
                quantity=quantity,
                error_code=exc.error_code,
            )
            return StockDecrementResult(
                success=False,
                message=exc.message,
                error_code=exc.error_code,
            )

        logger.info(
            "Stock decremented",
            product_id=product_id,
            quantity=quantity,
            rows=len(decremented),
        )
        return StockDecrementResult(
            success=True,
            message=f"Decremented stock for {len(decremented)} products",
            decremented_products=decremented,
        )

    # ------------------------------------------------------------------------
    # Usage
    # ------------------------------------------------------------------------

    async def get_usage(self, product_id: str) -> dict[str, list[str]]:
        """Find the bundles and grouped products that list a product.

        Raises:
            NotFoundError: If the product does not exist.
        """
        if await self.products.get_by_id(product_id) is None:
            raise NotFoundError("Product", product_id)
        return {
            "bundles": await self.bundles.bundles_containing(product_id),
            "grouped_products": await self.grouped.groups_containing(product_id),
        }

    # ------------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------------

    async def _lock_bundle(self, bundle_id: str) -> Product:
        bundle = await self.products.get_for_update(bundle_id)
        if bundle is None:
            raise NotFoundError("Product", bundle_id)
        if bundle.type != ProductType.BUNDLE:
            raise InvalidProductTypeError(
                bundle_id, bundle.type.value, "product is not a bundle",
                expected=[ProductType.BUNDLE.value],
            )
        return bundle

    @staticmethod
    def _validate_component(data: BundleComponentInput, component: Product | None) -> None:
        if component is None:
            raise NotFoundError("Product", data.component_id)
        if data.quantity < 1:
            raise InvalidQuantityError(data.quantity, "Component quantity must be at least 1")
        if component.is_variant:
            raise InvalidProductTypeError(
                component.id, component.type.value, "variants cannot be bundle components",
                expected=_COMPONENT_TYPES,
            )
        if component.type in (ProductType.CONFIGURABLE, ProductType.GROUPED):
            raise InvalidProductTypeError(
                component.id, component.type.value, "product cannot be a bundle component",
                expected=_COMPONENT_TYPES,
            )

    async def _load_composition(self, product_id: str) -> Composition:
        """Read a product's composition with fresh stock values."""
        product = await self.products.get_by_id(product_id, fresh=True)
        if product is None:
            raise NotFoundError("Product", product_id)

        match product.type:
            case ProductType.SIMPLE:
                return SimpleComposition(product.id, product.sku, product.stock_quantity)
            case ProductType.VIRTUAL:
                return VirtualComposition(product.id, product.sku, product.stock_quantity)
            case ProductType.CONFIGURABLE:
                variants = await self.products.list_variants(product.id)
                return ConfigurableComposition(product.id, tuple(v.id for v in variants))
            case ProductType.GROUPED:
                items = await self.grouped.list_items(product.id)
                return GroupedComposition(product.id, tuple(i.child_id for i in items))
            case ProductType.BUNDLE:
                adjacency = build_adjacency(await self.bundles.all_edges())
                leaves = explode(product.id, adjacency, self.max_depth)
                rows = await self.products.get_many(leaves, fresh=True)
                missing = sorted(leaves.keys() - rows.keys())
                if missing:
                    raise NotFoundError("Product", missing[0])
                return BundleComposition(
                    product.id,
                    tuple(
                        StockLine(
                            product_id=leaf_id,
                            sku=rows[leaf_id].sku,
                            # A leaf that is not stock-tracked (e.g. an empty
                            # nested bundle) can never be supplied.
                            stock_quantity=(
                                rows[leaf_id].stock_quantity
                                if rows[leaf_id].type.tracks_own_stock()
                                else 0
                            ),
                            per_unit=per_unit,
                        )
                        for leaf_id, per_unit in sorted(leaves.items())
                    ),
                )

    @staticmethod
    def _refresh_bundle_stock(composition: BundleComposition, uow: StockUnitOfWork) -> DecrementedProduct:
        lines = tuple(
            StockLine(
                product_id=line.product_id,
                sku=line.sku,
                stock_quantity=uow.rows[line.product_id].stock_quantity,
                per_unit=line.per_unit,
            )
            for line in composition.lines
        )
        bundle_row = uow.rows[composition.product_id]
        previous = bundle_row.stock_quantity
        bundle_row.stock_quantity = available_quantity(BundleComposition(composition.product_id, lines))
        return DecrementedProduct(
            product_id=bundle_row.id,
            sku=bundle_row.sku,
            previous_stock=previous,
            new_stock=bundle_row.stock_quantity,
            decremented_amount=previous - bundle_row.stock_quantity,
        )

    @staticmethod
    def _to_dto(row: BundleComponent, component: Product | None) -> BundleComponentDTO:
        return BundleComponentDTO(
            id=row.id,
            bundle_id=row.bundle_id,
            component_id=row.component_id,
            component_sku=component.sku if component else "",
            component_name=component.name if component else "",
            component_type=component.type if component else ProductType.SIMPLE,
            quantity=row.quantity,
            position=row.position,
            special_price=row.special_price,
            component_price=component.price if component else None,
            component_stock=component.stock_quantity if component else 0,
        )


# ============================================================================
# Service Factory
# ============================================================================


def get_bundle_service(session: AsyncSession) -> BundleService:
    """Get bundle service instance.

    Args:
        session: Async SQLAlchemy session.

    Returns:
        BundleService instance.
    """
    return BundleService(session)
