"""Product composition API endpoints.

Provides endpoints for product types, bundles, grouped products and stock:
- GET /products/{id}/type-info - type and owned structure
- POST /products/{id}/convert-type - convert to another type
- GET|POST|PUT /products/{id}/bundle-components - list, add, replace
- PUT|DELETE /products/bundle-components/{row_id} - update, remove
- GET|POST|PUT /products/{id}/grouped-items - list, add, replace
- PUT|DELETE /products/grouped-items/{row_id} - update, remove
- GET /products/{id}/stock/validate - check a quantity
- POST /products/{id}/stock/decrement - sell a quantity
- GET /products/{id}/bundle-price - derived bundle price
- GET /products/{id}/usage - bundles and grouped products using a product
"""

from fastapi import APIRouter, Query, status

from pim_composer.api.dependencies import (
    BundleServiceDep,
    GroupedServiceDep,
    TypeServiceDep,
)
from pim_composer.api.schemas import (
    BundleComponentRequest,
    BundleComponentResponse,
    BundlePriceResponse,
    ConvertTypeRequest,
    ErrorResponse,
    GroupedItemRequest,
    GroupedItemResponse,
    ProductTypeInfoResponse,
    ProductUsageResponse,
    StockDecrementRequest,
    StockDecrementResponse,
    StockValidationResponse,
)
from pim_composer.application.bundle_service import BundleComponentInput
from pim_composer.application.grouped_service import GroupedItemInput

router = APIRouter(prefix="/products", tags=["Products"])

_NOT_FOUND = {404: {"model": ErrorResponse}}
_WRITE_ERRORS = {
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
}


# ============================================================================
# Converters
# ============================================================================


def to_component_input(body: BundleComponentRequest) -> BundleComponentInput:
    """Convert a request body to a service input."""
    return BundleComponentInput(
        component_id=body.component_id,
        quantity=body.quantity,
        position=body.position,
        special_price=body.special_price,
    )


def to_item_input(body: GroupedItemRequest) -> GroupedItemInput:
    """Convert a request body to a service input."""
    return GroupedItemInput(
        child_id=body.child_id,
        default_quantity=body.default_quantity,
        min_quantity=body.min_quantity,
        max_quantity=body.max_quantity,
        position=body.position,
    )


# ============================================================================
# Product Type
# ============================================================================


@router.get(
    "/{product_id}/type-info",
    response_model=ProductTypeInfoResponse,
    responses=_NOT_FOUND,
    summary="Get product type information",
)
async def get_type_info(product_id: str, service: TypeServiceDep) -> ProductTypeInfoResponse:
    """Get a product's type, allowed conversions and owned structure."""
    info = await service.get_type_info(product_id)
    return ProductTypeInfoResponse.model_validate(info)


@router.post(
    "/{product_id}/convert-type",
    response_model=ProductTypeInfoResponse,
    responses=_WRITE_ERRORS,
    summary="Convert product type",
    description="Convert a product to another type, discarding the structures of its old type.",
)
async def convert_type(
    product_id: str,
    body: ConvertTypeRequest,
    service: TypeServiceDep,
) -> ProductTypeInfoResponse:
    """Convert a product to another type."""
    info = await service.convert_type(product_id, body.target_type, strict=body.strict)
    return ProductTypeInfoResponse.model_validate(info)


# ============================================================================
# Bundle Components
# ============================================================================


@router.get(
    "/{bundle_id}/bundle-components",
    response_model=list[BundleComponentResponse],
    responses=_NOT_FOUND,
    summary="List bundle components",
)
async def list_bundle_components(
    bundle_id: str,
    service: BundleServiceDep,
) -> list[BundleComponentResponse]:
    """List a bundle's components ordered by position."""
    components = await service.list_components(bundle_id)
    return [BundleComponentResponse.model_validate(c) for c in components]


@router.post(
    "/{bundle_id}/bundle-components",
    response_model=BundleComponentResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_WRITE_ERRORS,
    summary="Add bundle component",
)
async def add_bundle_component(
    bundle_id: str,
    body: BundleComponentRequest,
    service: BundleServiceDep,
) -> BundleComponentResponse:
    """Add a component to a bundle."""
    component = await service.add_component(bundle_id, to_component_input(body))
    return BundleComponentResponse.model_validate(component)


@router.put(
    "/{bundle_id}/bundle-components",
    response_model=list[BundleComponentResponse],
    responses=_WRITE_ERRORS,
    summary="Replace bundle components",
)
async def set_bundle_components(
    bundle_id: str,
    body: list[BundleComponentRequest],
    service: BundleServiceDep,
) -> list[BundleComponentResponse]:
    """Replace all of a bundle's components in one transaction."""
    components = await service.set_components(bundle_id, [to_component_input(b) for b in body])
    return [BundleComponentResponse.model_validate(c) for c in components]


@router.put(
    "/bundle-components/{row_id}",
    response_model=BundleComponentResponse,
    responses=_WRITE_ERRORS,
    summary="Update bundle component",
)
async def update_bundle_component(
    row_id: str,
    body: BundleComponentRequest,
    service: BundleServiceDep,
) -> BundleComponentResponse:
    """Update a component row's quantity, position and special price."""
    component = await service.update_component(row_id, to_component_input(body))
    return BundleComponentResponse.model_validate(component)


@router.delete(
    "/bundle-components/{row_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=_NOT_FOUND,
    summary="Remove bundle component",
)
async def remove_bundle_component(row_id: str, service: BundleServiceDep) -> None:
    """Remove a component row from its bundle."""
    await service.remove_component(row_id)


# ============================================================================
# Grouped Items
# ============================================================================


@router.get(
    "/{parent_id}/grouped-items",
    response_model=list[GroupedItemResponse],
    responses=_NOT_FOUND,
    summary="List grouped items",
)
async def list_grouped_items(
    parent_id: str,
    service: GroupedServiceDep,
) -> list[GroupedItemResponse]:
    """List a grouped product's items ordered by position."""
    items = await service.list_items(parent_id)
    return [GroupedItemResponse.model_validate(i) for i in items]


@router.post(
    "/{parent_id}/grouped-items",
    response_model=GroupedItemResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_WRITE_ERRORS,
    summary="Add grouped item",
)
async def add_grouped_item(
    parent_id: str,
    body: GroupedItemRequest,
    service: GroupedServiceDep,
) -> GroupedItemResponse:
    """Add a child to a grouped product."""
    item = await service.add_item(parent_id, to_item_input(body))
    return GroupedItemResponse.model_validate(item)


@router.put(
    "/{parent_id}/grouped-items",
    response_model=list[GroupedItemResponse],
    responses=_WRITE_ERRORS,
    summary="Replace grouped items",
)
async def set_grouped_items(
    parent_id: str,
    body: list[GroupedItemRequest],
    service: GroupedServiceDep,
) -> list[GroupedItemResponse]:
    """Replace all of a grouped product's items in one transaction."""
    items = await service.set_items(parent_id, [to_item_input(b) for b in body])
    return [GroupedItemResponse.model_validate(i) for i in items]


@router.put(
    "/grouped-items/{row_id}",
    response_model=GroupedItemResponse,
    responses=_WRITE_ERRORS,
    summary="Update grouped item",
)
async def update_grouped_item(
    row_id: str,
    body: GroupedItemRequest,
    service: GroupedServiceDep,
) -> GroupedItemResponse:
    """Update an item row's quantity bounds and position."""
    item = await service.update_item(row_id, to_item_input(body))
    return GroupedItemResponse.model_validate(item)


@router.delete(
    "/grouped-items/{row_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=_NOT_FOUND,
    summary="Remove grouped item",
)
async def remove_grouped_item(row_id: str, service: GroupedServiceDep) -> None:
    """Remove an item row from its grouped product."""
    await service.remove_item(row_id)


# ============================================================================
# Stock, Price and Usage
# ============================================================================


@router.get(
    "/{product_id}/stock/validate",
    response_model=StockValidationResponse,
    responses=_WRITE_ERRORS,
    summary="Validate stock operation",
)
async def validate_stock(
    product_id: str,
    service: BundleServiceDep,
    quantity: int = Query(..., description="Units requested"),
) -> StockValidationResponse:
    """Check whether a quantity of a product can be sold now."""
    result = await service.validate_stock_operation(product_id, quantity)
    return StockValidationResponse.model_validate(result)


@router.post(
    "/{product_id}/stock/decrement",
    response_model=StockDecrementResponse,
    responses=_WRITE_ERRORS,
    summary="Decrement stock",
    description=(
        "Sell a quantity of a product. Bundles decrement every component "
        "atomically. Insufficient stock is reported in the body, not as an error."
    ),
)
async def decrement_stock(
    product_id: str,
    body: StockDecrementRequest,
    service: BundleServiceDep,
) -> StockDecrementResponse:
    """Decrement stock for a product."""
    result = await service.decrement_stock(
        product_id, body.quantity, include_bundle=body.include_bundle
    )
    return StockDecrementResponse.model_validate(result)


@router.get(
    "/{bundle_id}/bundle-price",
    response_model=BundlePriceResponse,
    responses=_WRITE_ERRORS,
    summary="Calculate bundle price",
)
async def get_bundle_price(bundle_id: str, service: BundleServiceDep) -> BundlePriceResponse:
    """Derive a bundle's price from its components."""
    price = await service.calculate_price(bundle_id)
    return BundlePriceResponse(bundle_id=bundle_id, price=price)


@router.get(
    "/{product_id}/usage",
    response_model=ProductUsageResponse,
    responses=_NOT_FOUND,
    summary="Get product usage",
)
async def get_usage(product_id: str, service: BundleServiceDep) -> ProductUsageResponse:
    """List bundles and grouped products that reference a product."""
    usage = await service.get_usage(product_id)
    return ProductUsageResponse(**usage)
