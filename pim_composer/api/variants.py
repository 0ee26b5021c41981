"""Variant API endpoints.

Provides endpoints for the variant axis catalog and configurable products:
- GET|POST /variants/axes, GET /variants/axes/active
- GET|PUT|DELETE /variants/axes/{id}
- GET /variants/product/{id} - variant configuration
- POST /variants/product/{id}/configure - set variant axes
- GET|POST /variants/product/{id}/variants - list, create
- PUT|DELETE /variants/variant/{id} - update, delete
- GET /variants/product/{id}/matrix - all axis combinations
- POST /variants/product/{id}/bulk-create - create many variants
"""

from fastapi import APIRouter, Query, status

from pim_composer.api.dependencies import VariantServiceDep
from pim_composer.api.schemas import (
    BulkCreateEntrySchema,
    BulkCreateRequest,
    BulkCreateResponse,
    ConfigureVariantsRequest,
    CreateVariantRequest,
    ErrorResponse,
    UpdateVariantRequest,
    VariantAxisRequest,
    VariantAxisResponse,
    VariantConfigResponse,
    VariantMatrixEntrySchema,
    VariantResponse,
)
from pim_composer.application.variant_service import (
    BulkCreateResult,
    BulkCreateStatus,
    VariantAxisInput,
    VariantInput,
    VariantUpdateInput,
)

router = APIRouter(prefix="/variants", tags=["Variants"])

_ERRORS = {
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
}


def to_axis_input(body: VariantAxisRequest) -> VariantAxisInput:
    """Convert a request body to a service input."""
    return VariantAxisInput(**body.model_dump())


def bulk_result_to_response(result: BulkCreateResult) -> BulkCreateResponse:
    """Convert BulkCreateResult to BulkCreateResponse."""
    entries = [
        BulkCreateEntrySchema(
            values=entry.values,
            status=entry.status.value,
            variant=VariantResponse.model_validate(entry.variant) if entry.variant else None,
            error=entry.error,
            error_code=entry.error_code,
        )
        for entry in result.entries
    ]
    counts = {s: sum(1 for e in result.entries if e.status == s) for s in BulkCreateStatus}
    return BulkCreateResponse(
        entries=entries,
        created_count=counts[BulkCreateStatus.CREATED],
        existing_count=counts[BulkCreateStatus.EXISTING],
        failed_count=counts[BulkCreateStatus.FAILED],
    )


# ============================================================================
# Variant Axes
# ============================================================================


@router.get("/axes", response_model=list[VariantAxisResponse], summary="List variant axes")
async def list_axes(
    service: VariantServiceDep,
    active_only: bool = Query(default=False, description="Only active axes"),
) -> list[VariantAxisResponse]:
    """List variant axes ordered by position."""
    return [VariantAxisResponse.model_validate(a) for a in await service.list_axes(active_only)]


@router.get("/axes/active", response_model=list[VariantAxisResponse], summary="List active axes")
async def list_active_axes(service: VariantServiceDep) -> list[VariantAxisResponse]:
    """List active variant axes ordered by position."""
    return [VariantAxisResponse.model_validate(a) for a in await service.list_axes(True)]


@router.get(
    "/axes/{axis_id}",
    response_model=VariantAxisResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Get variant axis",
)
async def get_axis(axis_id: str, service: VariantServiceDep) -> VariantAxisResponse:
    """Get a variant axis."""
    return VariantAxisResponse.model_validate(await service.get_axis(axis_id))


@router.post(
    "/axes",
    response_model=VariantAxisResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_ERRORS,
    summary="Create variant axis",
)
async def create_axis(body: VariantAxisRequest, service: VariantServiceDep) -> VariantAxisResponse:
    """Create a variant axis."""
    return VariantAxisResponse.model_validate(await service.create_axis(to_axis_input(body)))


@router.put(
    "/axes/{axis_id}",
    response_model=VariantAxisResponse,
    responses=_ERRORS,
    summary="Update variant axis",
)
async def update_axis(
    axis_id: str,
    body: VariantAxisRequest,
    service: VariantServiceDep,
) -> VariantAxisResponse:
    """Update a variant axis."""
    return VariantAxisResponse.model_validate(
        await service.update_axis(axis_id, to_axis_input(body))
    )


@router.delete(
    "/axes/{axis_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=_ERRORS,
    summary="Delete variant axis",
)
async def delete_axis(axis_id: str, service: VariantServiceDep) -> None:
    """Delete a variant axis no variant uses."""
    await service.delete_axis(axis_id)


# ============================================================================
# Configurable Products
# ============================================================================


@router.get(
    "/product/{product_id}",
    response_model=VariantConfigResponse | None,
    responses={404: {"model": ErrorResponse}},
    summary="Get variant configuration",
)
async def get_config(product_id: str, service: VariantServiceDep) -> VariantConfigResponse | None:
    """Get a product's variant configuration; null when not configured."""
    view = await service.get_config(product_id)
    return VariantConfigResponse.model_validate(view) if view else None


@router.post(
    "/product/{product_id}/configure",
    response_model=VariantConfigResponse,
    responses=_ERRORS,
    summary="Configure variant axes",
)
async def configure(
    product_id: str,
    body: ConfigureVariantsRequest,
    service: VariantServiceDep,
) -> VariantConfigResponse:
    """Set the axes a configurable product varies on."""
    view = await service.configure(product_id, body.axis_ids, body.sku_pattern)
    return VariantConfigResponse.model_validate(view)


@router.get(
    "/product/{product_id}/variants",
    response_model=list[VariantResponse],
    responses={404: {"model": ErrorResponse}},
    summary="List variants",
)
async def list_variants(product_id: str, service: VariantServiceDep) -> list[VariantResponse]:
    """List a product's variants."""
    return [VariantResponse.model_validate(v) for v in await service.list_variants(product_id)]


@router.post(
    "/product/{product_id}/variants",
    response_model=VariantResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_ERRORS,
    summary="Create variant",
)
async def create_variant(
    product_id: str,
    body: CreateVariantRequest,
    service: VariantServiceDep,
) -> VariantResponse:
    """Create a variant of a configurable product."""
    variant = await service.create_variant(product_id, VariantInput(**body.model_dump()))
    return VariantResponse.model_validate(variant)


@router.put(
    "/variant/{variant_id}",
    response_model=VariantResponse,
    responses=_ERRORS,
    summary="Update variant",
)
async def update_variant(
    variant_id: str,
    body: UpdateVariantRequest,
    service: VariantServiceDep,
) -> VariantResponse:
    """Update a variant."""
    variant = await service.update_variant(variant_id, VariantUpdateInput(**body.model_dump()))
    return VariantResponse.model_validate(variant)


@router.delete(
    "/variant/{variant_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=_ERRORS,
    summary="Delete variant",
)
async def delete_variant(variant_id: str, service: VariantServiceDep) -> None:
    """Delete a variant."""
    await service.delete_variant(variant_id)


@router.get(
    "/product/{product_id}/matrix",
    response_model=list[VariantMatrixEntrySchema],
    responses=_ERRORS,
    summary="Get variant matrix",
)
async def get_matrix(product_id: str, service: VariantServiceDep) -> list[VariantMatrixEntrySchema]:
    """List every axis combination and whether a variant exists for it."""
    return [VariantMatrixEntrySchema.model_validate(e) for e in await service.matrix(product_id)]


@router.post(
    "/product/{product_id}/bulk-create",
    response_model=BulkCreateResponse,
    responses=_ERRORS,
    summary="Create variants in bulk",
)
async def bulk_create(
    product_id: str,
    body: BulkCreateRequest,
    service: VariantServiceDep,
) -> BulkCreateResponse:
    """Create variants for several combinations, reporting each outcome."""
    result = await service.bulk_create(product_id, body.combinations)
    return bulk_result_to_response(result)
