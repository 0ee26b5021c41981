"""Product type application service.

Converts products between types. Leaving a type deletes the structures
that type owns (variants and their config, bundle components, grouped
items) in the same transaction as the type change.
"""

from dataclasses import dataclass, field

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from pim_composer.application.bundle_service import BundleService, BundleComponentDTO
from pim_composer.application.grouped_service import GroupedItemDTO, GroupedService
from pim_composer.catalog.models import Product
from pim_composer.catalog.repository import (
    BundleRepository,
    GroupedRepository,
    ProductRepository,
    VariantRepository,
)
from pim_composer.domain.exceptions import InvalidTransitionError, NotFoundError
from pim_composer.domain.product_types import (
    OwnedStructure,
    ProductType,
    validate_type_transition,
)
from pim_composer.infrastructure.config import settings

logger = structlog.get_logger()


@dataclass
class ProductTypeInfo:
    """Type information for a product.

    Only the structure matching the product's type is populated.
    """

    product_id: str
    sku: str
    name: str
    type: ProductType
    requires_shipping: bool
    can_convert_to: list[ProductType] = field(default_factory=list)
    bundle_components: list[BundleComponentDTO] | None = None
    grouped_items: list[GroupedItemDTO] | None = None
    variants_count: int | None = None


class ProductTypeService:
    """Service for product type information and conversion."""

    def __init__(self, session: AsyncSession, strict_noop: bool | None = None) -> None:
        """Initialize product type service.

        Args:
            session: Async SQLAlchemy session.
            strict_noop: Reject converting a product to its current type;
                defaults to settings.
        """
        self.session = session
        self.strict_noop = (
            strict_noop if strict_noop is not None else settings.strict_type_conversion
        )
        self.products = ProductRepository(session)
        self.variants = VariantRepository(session)
        self.bundles = BundleRepository(session)
        self.grouped = GroupedRepository(session)

    async def get_type_info(self, product_id: str) -> ProductTypeInfo:
        """Get a product's type, allowed conversions and owned structure.

        Raises:
            NotFoundError: If the product does not exist.
        """
        product = await self.products.get_by_id(product_id, fresh=True)
        if product is None:
            raise NotFoundError("Product", product_id)
        return await self._build_info(product)

    async def convert_type(
        self,
        product_id: str,
        target: ProductType,
        strict: bool | None = None,
    ) -> ProductTypeInfo:
        """Convert a product to another type.

        Args:
            product_id: Product ID.
            target: Target type.
            strict: Override the service's no-op policy for this call.

        Returns:
            Type information after the conversion.

        Raises:
            NotFoundError: If the product does not exist.
            InvalidTransitionError: If the product is a variant, or the
                conversion is a no-op under the strict policy.
        """
        strict_noop = self.strict_noop if strict is None else strict

        try:
            product = await self.products.get_for_update(product_id)
            if product is None:
                raise NotFoundError("Product", product_id)
            current = product.type

            if product.is_variant:
                raise InvalidTransitionError(
                    product_id,
                    current.value,
                    target.value,
                    "variants cannot change type; convert the parent product instead",
                )

            if not validate_type_transition(product_id, current, target, strict_noop):
                info = await self._build_info(product)
                await self.session.commit()
                logger.info("Product type unchanged", product_id=product_id, type=current.value)
                return info

            removed = await self._delete_owned(product_id, current)

            product.type = target
            product.requires_shipping = target != ProductType.VIRTUAL
            await self.session.flush()

            info = await self._build_info(product)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info(
            "Product type converted",
            product_id=product_id,
            from_type=current.value,
            to_type=target.value,
            removed=removed,
        )
        return info

    async def _delete_owned(self, product_id: str, current: ProductType) -> dict[str, int]:
        """Delete everything the current type owns; children go first."""
        removed: dict[str, int] = {}
        for structure in current.owned_structures():
            match structure:
                case OwnedStructure.VARIANTS:
                    removed[structure.value] = await self.products.delete_variants(product_id)
                case OwnedStructure.VARIANT_CONFIG:
                    removed[structure.value] = await self.variants.delete_config(product_id)
                case OwnedStructure.BUNDLE_COMPONENTS:
                    removed[structure.value] = await self.bundles.delete_for_bundle(product_id)
                case OwnedStructure.GROUPED_ITEMS:
                    removed[structure.value] = await self.grouped.delete_for_parent(product_id)
        await self.session.flush()
        return removed

    async def _build_info(self, product: Product) -> ProductTypeInfo:
        info = ProductTypeInfo(
            product_id=product.id,
            sku=product.sku,
            name=product.name,
            type=product.type,
            requires_shipping=product.requires_shipping,
            can_convert_to=[] if product.is_variant else product.type.allowed_transitions(),
        )
        match product.type:
            case ProductType.BUNDLE:
                info.bundle_components = await BundleService(self.session).list_components(product.id)
            case ProductType.GROUPED:
                info.grouped_items = await GroupedService(self.session).list_items(product.id)
            case ProductType.CONFIGURABLE:
                info.variants_count = await self.products.count_variants(product.id)
        return info


def get_product_type_service(session: AsyncSession) -> ProductTypeService:
    """Get product type service instance."""
    return ProductTypeService(session)
