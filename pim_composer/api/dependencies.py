"""FastAPI dependencies.

Each request gets its own session; services are built on top of it.
"""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from pim_composer.application.bundle_service import BundleService, get_bundle_service
from pim_composer.application.grouped_service import GroupedService, get_grouped_service
from pim_composer.application.type_service import ProductTypeService, get_product_type_service
from pim_composer.application.variant_service import VariantService, get_variant_service
from pim_composer.infrastructure.database import get_session

SessionDep = Annotated[AsyncSession, Depends(get_session)]


def get_type_service(session: SessionDep) -> ProductTypeService:
    """Get product type service for the request."""
    return get_product_type_service(session)


def get_bundles(session: SessionDep) -> BundleService:
    """Get bundle service for the request."""
    return get_bundle_service(session)


def get_grouped(session: SessionDep) -> GroupedService:
    """Get grouped service for the request."""
    return get_grouped_service(session)


def get_variants(session: SessionDep) -> VariantService:
    """Get variant service for the request."""
    return get_variant_service(session)


TypeServiceDep = Annotated[ProductTypeService, Depends(get_type_service)]
BundleServiceDep = Annotated[BundleService, Depends(get_bundles)]
GroupedServiceDep = Annotated[GroupedService, Depends(get_grouped)]
VariantServiceDep = Annotated[VariantService, Depends(get_variants)]
