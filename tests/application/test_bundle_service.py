"""Tests for BundleService: components, price, stock and usage."""

from collections.abc import Awaitable, Callable
from decimal import Decimal

import pytest
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from pim_composer.application.bundle_service import BundleComponentInput, BundleService
from pim_composer.catalog.models import Product
from pim_composer.domain.exceptions import (
    BundleDepthExceededError,
    CyclicBundleError,
    DuplicateComponentError,
    InvalidProductTypeError,
    InvalidQuantityError,
    NotFoundError,
)
from pim_composer.domain.product_types import ProductType


@pytest.fixture
def service(session: AsyncSession) -> BundleService:
    """Create bundle service."""
    return BundleService(session)


@pytest.fixture
def kit_ids(make_product: Callable[..., Awaitable[Product]]) -> Callable[[], Awaitable[dict[str, str]]]:
    """Build a kit of 2x A (stock 5) and 1x B (stock 10)."""

    async def _build() -> dict[str, str]:
        kit = await make_product("KIT", type=ProductType.BUNDLE)
        a = await make_product("A", stock=5, price="10.00")
        b = await make_product("B", stock=10, price="5.00")
        return {"kit": kit.id, "a": a.id, "b": b.id}

    return _build


class TestBundleComponents:
    """Tests for component management."""

    @pytest.mark.asyncio
    async def test_add_component(self, service: BundleService, kit_ids) -> None:
        """Components are added with the next position."""
        ids = await kit_ids()

        first = await service.add_component(ids["kit"], BundleComponentInput(ids["a"], quantity=2))
        second = await service.add_component(ids["kit"], BundleComponentInput(ids["b"]))

        assert first.position == 0
        assert second.position == 1
        assert first.component_sku == "A"
        assert first.quantity == 2
        components = await service.list_components(ids["kit"])
        assert [c.component_id for c in components] == [ids["a"], ids["b"]]

    @pytest.mark.asyncio
    async def test_add_to_non_bundle_fails(self, service: BundleService, make_product) -> None:
        """Only bundles take components."""
        simple = await make_product("S1")
        other = await make_product("S2")
        simple_id, other_id = simple.id, other.id

        with pytest.raises(InvalidProductTypeError):
            await service.add_component(simple_id, BundleComponentInput(other_id))

    @pytest.mark.asyncio
    async def test_missing_component(self, service: BundleService, kit_ids) -> None:
        """Unknown components are rejected."""
        ids = await kit_ids()
        with pytest.raises(NotFoundError):
            await service.add_component(ids["kit"], BundleComponentInput("missing"))

    @pytest.mark.asyncio
    async def test_quantity_must_be_positive(self, service: BundleService, kit_ids) -> None:
        """Component quantity must be at least one."""
        ids = await kit_ids()
        with pytest.raises(InvalidQuantityError):
            await service.add_component(ids["kit"], BundleComponentInput(ids["a"], quantity=0))

    @pytest.mark.asyncio
    async def test_duplicate_component(self, service: BundleService, kit_ids) -> None:
        """A component is listed at most once."""
        ids = await kit_ids()
        await service.add_component(ids["kit"], BundleComponentInput(ids["a"]))
        with pytest.raises(DuplicateComponentError):
            await service.add_component(ids["kit"], BundleComponentInput(ids["a"]))

    @pytest.mark.asyncio
    async def test_grouped_product_cannot_be_component(
        self, service: BundleService, kit_ids, make_product
    ) -> None:
        """Grouped products are not bundleable."""
        ids = await kit_ids()
        group = await make_product("GRP", type=ProductType.GROUPED)
        group_id = group.id
        with pytest.raises(InvalidProductTypeError):
            await service.add_component(ids["kit"], BundleComponentInput(group_id))

    @pytest.mark.asyncio
    async def test_self_reference_is_cyclic(self, service: BundleService, kit_ids) -> None:
        """A bundle cannot contain itself."""
        ids = await kit_ids()
        with pytest.raises(CyclicBundleError):
            await service.add_component(ids["kit"], BundleComponentInput(ids["kit"]))

    @pytest.mark.asyncio
    async def test_cycle_is_rejected_and_graph_unchanged(
        self, service: BundleService, make_product
    ) -> None:
        """X contains Y, so adding X to Y fails and nothing is written."""
        x = await make_product("X", type=ProductType.BUNDLE)
        y = await make_product("Y", type=ProductType.BUNDLE)
        x_id, y_id = x.id, y.id
        await service.add_component(x_id, BundleComponentInput(y_id))

        with pytest.raises(CyclicBundleError) as exc_info:
            await service.add_component(y_id, BundleComponentInput(x_id))

        assert exc_info.value.details["path"] == [y_id, x_id, y_id]
        assert await service.list_components(y_id) == []
        assert [c.component_id for c in await service.list_components(x_id)] == [y_id]

    @pytest.mark.asyncio
    async def test_nesting_depth_limit(self, session: AsyncSession, make_product) -> None:
        """Nesting beyond the configured depth is refused."""
        service = BundleService(session, max_depth=1)
        outer = await make_product("OUTER", type=ProductType.BUNDLE)
        inner = await make_product("INNER", type=ProductType.BUNDLE)
        core = await make_product("CORE", type=ProductType.BUNDLE)
        leaf = await make_product("LEAF", stock=3)
        outer_id, inner_id, core_id, leaf_id = outer.id, inner.id, core.id, leaf.id

        await service.add_component(core_id, BundleComponentInput(leaf_id))
        await service.add_component(inner_id, BundleComponentInput(core_id))

        with pytest.raises(BundleDepthExceededError):
            await service.add_component(outer_id, BundleComponentInput(inner_id))

    @pytest.mark.asyncio
    async def test_update_component(self, service: BundleService, kit_ids) -> None:
        """Quantity and special price can be changed in place."""
        ids = await kit_ids()
        row = await service.add_component(ids["kit"], BundleComponentInput(ids["a"]))

        updated = await service.update_component(
            row.id,
            BundleComponentInput(ids["a"], quantity=4, special_price=Decimal("7.50")),
        )

        assert updated.quantity == 4
        assert updated.special_price == Decimal("7.50")

    @pytest.mark.asyncio
    async def test_remove_component(self, service: BundleService, kit_ids) -> None:
        """Removing a row leaves the other components."""
        ids = await kit_ids()
        row = await service.add_component(ids["kit"], BundleComponentInput(ids["a"]))
        await service.add_component(ids["kit"], BundleComponentInput(ids["b"]))

        await service.remove_component(row.id)

        assert [c.component_id for c in await service.list_components(ids["kit"])] == [ids["b"]]

    @pytest.mark.asyncio
    async def test_remove_missing_row(self, service: BundleService) -> None:
        """Unknown rows are reported."""
        with pytest.raises(NotFoundError):
            await service.remove_component("missing")

    @pytest.mark.asyncio
    async def test_set_components_replaces_all(self, service: BundleService, kit_ids, make_product) -> None:
        """Rows are deleted, kept and inserted to match the input."""
        ids = await kit_ids()
        c = await make_product("C", stock=1)
        c_id = c.id
        await service.add_component(ids["kit"], BundleComponentInput(ids["a"]))
        await service.add_component(ids["kit"], BundleComponentInput(ids["b"]))

        result = await service.set_components(
            ids["kit"],
            [BundleComponentInput(c_id, quantity=2), BundleComponentInput(ids["b"], quantity=3)],
        )

        assert [(r.component_id, r.quantity, r.position) for r in result] == [
            (c_id, 2, 0),
            (ids["b"], 3, 1),
        ]
        listed = await service.list_components(ids["kit"])
        assert {r.component_id for r in listed} == {c_id, ids["b"]}

    @pytest.mark.asyncio
    async def test_set_components_rejects_duplicates_without_writing(
        self, service: BundleService, kit_ids
    ) -> None:
        """A duplicate in the input leaves the old components in place."""
        ids = await kit_ids()
        await service.add_component(ids["kit"], BundleComponentInput(ids["a"]))

        with pytest.raises(DuplicateComponentError):
            await service.set_components(
                ids["kit"], [BundleComponentInput(ids["b"]), BundleComponentInput(ids["b"])]
            )

        assert [c.component_id for c in await service.list_components(ids["kit"])] == [ids["a"]]

    @pytest.mark.asyncio
    async def test_set_components_rejects_cycle_without_writing(
        self, service: BundleService, make_product
    ) -> None:
        """Outer holds Inner, so listing Outer under Inner fails and both stay as they were."""
        outer = await make_product("OUTER", type=ProductType.BUNDLE)
        inner = await make_product("INNER", type=ProductType.BUNDLE)
        cup = await make_product("CUP", stock=3)
        outer_id, inner_id, cup_id = outer.id, inner.id, cup.id
        await service.add_component(outer_id, BundleComponentInput(inner_id))
        await service.add_component(inner_id, BundleComponentInput(cup_id, quantity=2))

        with pytest.raises(CyclicBundleError) as exc_info:
            await service.set_components(
                inner_id, [BundleComponentInput(cup_id), BundleComponentInput(outer_id)]
            )

        assert exc_info.value.details["path"] == [inner_id, outer_id, inner_id]
        inner_rows = await service.list_components(inner_id)
        assert [(c.component_id, c.quantity) for c in inner_rows] == [(cup_id, 2)]
        assert [c.component_id for c in await service.list_components(outer_id)] == [inner_id]


class TestBundlePrice:
    """Tests for price derivation."""

    @pytest.mark.asyncio
    async def test_price_uses_special_price_then_product_price(
        self, service: BundleService, kit_ids
    ) -> None:
        """A at 10 x1 overridden to 8 plus B at 5 x3 is 23."""
        ids = await kit_ids()
        await service.add_component(
            ids["kit"], BundleComponentInput(ids["a"], special_price=Decimal("8.00"))
        )
        await service.add_component(ids["kit"], BundleComponentInput(ids["b"], quantity=3))

        assert await service.calculate_price(ids["kit"]) == Decimal("23.00")

    @pytest.mark.asyncio
    async def test_empty_bundle_price_is_zero(self, service: BundleService, kit_ids) -> None:
        """A bundle without components costs nothing."""
        ids = await kit_ids()
        assert await service.calculate_price(ids["kit"]) == Decimal("0")

    @pytest.mark.asyncio
    async def test_price_of_non_bundle_fails(self, service: BundleService, kit_ids) -> None:
        """Only bundles derive a price."""
        ids = await kit_ids()
        with pytest.raises(InvalidProductTypeError):
            await service.calculate_price(ids["a"])


class TestBundleStock:
    """Tests for stock validation and decrement."""

    async def _stock_kit(self, service: BundleService, ids: dict[str, str]) -> None:
        await service.add_component(ids["kit"], BundleComponentInput(ids["a"], quantity=2))
        await service.add_component(ids["kit"], BundleComponentInput(ids["b"], quantity=1))

    @pytest.mark.asyncio
    async def test_validate_reports_derived_availability(self, service: BundleService, kit_ids) -> None:
        """min(5 // 2, 10 // 1) is 2."""
        ids = await kit_ids()
        await self._stock_kit(service, ids)

        result = await service.validate_stock_operation(ids["kit"], 2)

        assert result.is_valid
        assert result.available_quantity == 2

    @pytest.mark.asyncio
    async def test_decrement_updates_every_component(
        self, service: BundleService, kit_ids, read_stock
    ) -> None:
        """Selling two kits takes 4 of A and 2 of B."""
        ids = await kit_ids()
        await self._stock_kit(service, ids)

        result = await service.decrement_stock(ids["kit"], 2)

        assert result.success
        assert {d.sku: (d.previous_stock, d.new_stock) for d in result.decremented_products} == {
            "A": (5, 1),
            "B": (10, 8),
        }
        assert await read_stock(ids["a"]) == 1
        assert await read_stock(ids["b"]) == 8

    @pytest.mark.asyncio
    async def test_insufficient_stock_changes_nothing(
        self, service: BundleService, kit_ids, read_stock
    ) -> None:
        """Three kits need 6 of A; no row is touched."""
        ids = await kit_ids()
        await self._stock_kit(service, ids)

        result = await service.decrement_stock(ids["kit"], 3)

        assert not result.success
        assert result.error_code == "INSUFFICIENT_STOCK"
        assert result.decremented_products == []
        assert await read_stock(ids["a"]) == 5
        assert await read_stock(ids["b"]) == 10

    @pytest.mark.asyncio
    async def test_stock_taken_after_validation_aborts_whole_sale(
        self,
        session: AsyncSession,
        service: BundleService,
        kit_ids,
        read_stock,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """A concurrent sale between check and write leaves A untouched."""
        ids = await kit_ids()
        await self._stock_kit(service, ids)
        load_composition = service._load_composition

        async def load_then_concurrent_sale(product_id: str):
            composition = await load_composition(product_id)
            await session.execute(
                update(Product).where(Product.id == ids["b"]).values(stock_quantity=1)
            )
            await session.commit()
            return composition

        monkeypatch.setattr(service, "_load_composition", load_then_concurrent_sale)

        result = await service.decrement_stock(ids["kit"], 2)

        assert not result.success
        assert result.error_code == "INSUFFICIENT_STOCK"
        assert await read_stock(ids["a"]) == 5
        assert await read_stock(ids["b"]) == 1

    @pytest.mark.asyncio
    async def test_simple_product_decrement(self, service: BundleService, kit_ids, read_stock) -> None:
        """Simple products decrement their own stock."""
        ids = await kit_ids()

        result = await service.decrement_stock(ids["b"], 4)

        assert result.success
        assert await read_stock(ids["b"]) == 6

    @pytest.mark.asyncio
    async def test_include_bundle_refreshes_bundle_stock(
        self, service: BundleService, kit_ids, read_stock
    ) -> None:
        """The bundle row gets its recomputed availability."""
        ids = await kit_ids()
        await self._stock_kit(service, ids)

        result = await service.decrement_stock(ids["kit"], 1, include_bundle=True)

        assert result.success
        bundle_entry = next(d for d in result.decremented_products if d.product_id == ids["kit"])
        # A 3 // 2 and B 9 // 1
        assert bundle_entry.new_stock == 1
        assert await read_stock(ids["kit"]) == 1

    @pytest.mark.asyncio
    async def test_nested_bundle_decrements_leaves(
        self, service: BundleService, kit_ids, make_product, read_stock
    ) -> None:
        """Two boxes of one kit each take 2x the kit's leaves."""
        ids = await kit_ids()
        await self._stock_kit(service, ids)
        box = await make_product("BOX", type=ProductType.BUNDLE)
        box_id = box.id
        await service.add_component(box_id, BundleComponentInput(ids["kit"]))

        assert (await service.validate_stock_operation(box_id, 1)).available_quantity == 2

        result = await service.decrement_stock(box_id, 2)

        assert result.success
        assert await read_stock(ids["a"]) == 1
        assert await read_stock(ids["b"]) == 8

    @pytest.mark.asyncio
    async def test_grouped_product_stock_is_rejected(self, service: BundleService, make_product) -> None:
        """Grouped products have no stock to validate."""
        group = await make_product("GRP", type=ProductType.GROUPED)
        group_id = group.id
        with pytest.raises(InvalidProductTypeError):
            await service.validate_stock_operation(group_id, 1)

    @pytest.mark.asyncio
    async def test_non_positive_quantity(self, service: BundleService, kit_ids) -> None:
        """Quantities must be positive."""
        ids = await kit_ids()
        with pytest.raises(InvalidQuantityError):
            await service.decrement_stock(ids["a"], 0)


class TestProductUsage:
    """Tests for usage lookup."""

    @pytest.mark.asyncio
    async def test_usage_lists_bundles(self, service: BundleService, kit_ids) -> None:
        """A component reports the bundles containing it."""
        ids = await kit_ids()
        await service.add_component(ids["kit"], BundleComponentInput(ids["a"]))

        usage = await service.get_usage(ids["a"])

        assert usage == {"bundles": [ids["kit"]], "grouped_products": []}

    @pytest.mark.asyncio
    async def test_usage_of_missing_product(self, service: BundleService) -> None:
        """Unknown products are reported."""
        with pytest.raises(NotFoundError):
            await service.get_usage("missing")
