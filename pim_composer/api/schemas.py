"""API schemas for PIM Composer.

Pydantic models for request/response validation and serialization.
Response models read directly from the application DTOs.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from pim_composer.domain.product_types import ProductType


# ============================================================================
# Common Schemas
# ============================================================================


class ErrorResponse(BaseModel):
    """Standard error response.

    All API errors follow this format for consistency.
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] = Field(default_factory=dict, description="Additional error context")
    request_id: str | None = Field(default=None, description="Request ID for correlation")


class DTOModel(BaseModel):
    """Base for responses built from application DTOs."""

    model_config = ConfigDict(from_attributes=True)


# ============================================================================
# Product Type Schemas
# ============================================================================


class ConvertTypeRequest(BaseModel):
    """Request to convert a product to another type."""

    target_type: ProductType = Field(..., description="Type to convert to")
    strict: bool | None = Field(
        default=None,
        description="Reject converting to the current type; server default when omitted",
    )


class BundleComponentResponse(DTOModel):
    """Bundle component with its component product summary."""

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


class GroupedItemResponse(DTOModel):
    """Grouped item with its child product summary."""

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


class ProductTypeInfoResponse(DTOModel):
    """Product type information."""

    product_id: str
    sku: str
    name: str
    type: ProductType
    requires_shipping: bool
    can_convert_to: list[ProductType]
    bundle_components: list[BundleComponentResponse] | None = None
    grouped_items: list[GroupedItemResponse] | None = None
    variants_count: int | None = None


# ============================================================================
# Bundle and Grouped Schemas
# ============================================================================


class BundleComponentRequest(BaseModel):
    """Bundle component to add, update or set."""

    component_id: str = Field(..., description="Component product ID")
    quantity: int = Field(default=1, description="Units per bundle (at least 1)")
    position: int | None = Field(default=None, description="Display position")
    special_price: Decimal | None = Field(default=None, description="Per-bundle price override")


class GroupedItemRequest(BaseModel):
    """Grouped item to add, update or set."""

    child_id: str = Field(..., description="Child product ID")
    default_quantity: int = Field(default=1)
    min_quantity: int = Field(default=0)
    max_quantity: int | None = Field(default=None)
    position: int | None = Field(default=None)


class BundlePriceResponse(BaseModel):
    """Derived bundle price."""

    bundle_id: str
    price: Decimal


class ProductUsageResponse(BaseModel):
    """Composite products that reference a product."""

    bundles: list[str]
    grouped_products: list[str]


# ============================================================================
# Stock Schemas
# ============================================================================


class StockValidationResponse(DTOModel):
    """Stock validation outcome."""

    is_valid: bool
    requested_quantity: int
    available_quantity: int
    message: str | None = None


class StockDecrementRequest(BaseModel):
    """Request to decrement stock."""

    quantity: int = Field(..., description="Units sold")
    include_bundle: bool = Field(
        default=False, description="Also refresh the bundle's cached stock"
    )


class DecrementedProductSchema(DTOModel):
    """Stock change applied to one product."""

    product_id: str
    sku: str
    previous_stock: int
    new_stock: int
    decremented_amount: int


class StockDecrementResponse(DTOModel):
    """Stock decrement outcome."""

    success: bool
    message: str | None = None
    error_code: str | None = None
    decremented_products: list[DecrementedProductSchema] = Field(default_factory=list)


# ============================================================================
# Variant Schemas
# ============================================================================


class VariantAxisRequest(BaseModel):
    """Variant axis to create or update."""

    code: str = Field(..., min_length=1, max_length=100)
    name: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    attribute_id: str | None = Field(default=None, description="Attribute supplying the values")
    options: list[str] = Field(default_factory=list, description="Fixed values when unbound")
    position: int = 0
    is_active: bool = True


class VariantAxisResponse(DTOModel):
    """Variant axis."""

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


class AxisValueSchema(DTOModel):
    """Value of a variant on one axis."""

    axis_id: str
    axis_code: str
    axis_name: str
    value: str


class VariantResponse(DTOModel):
    """Variant of a configurable product."""

    id: str
    parent_id: str
    sku: str
    name: str
    price: Decimal | None
    stock_quantity: int
    is_in_stock: bool
    axis_values: list[AxisValueSchema]
    is_stale: bool
    created_at: datetime


class ConfigureVariantsRequest(BaseModel):
    """Request to configure variant axes."""

    axis_ids: list[str] = Field(..., description="Axis IDs in SKU order")
    sku_pattern: str | None = Field(
        default=None, description="Template with {parent_sku} and {<axis code>} placeholders"
    )


class VariantConfigResponse(DTOModel):
    """Variant configuration with the product's variants."""

    product_id: str
    axes: list[VariantAxisResponse]
    sku_pattern: str | None
    combination_count: int
    variants: list[VariantResponse]


class VariantMatrixEntrySchema(DTOModel):
    """One combination of the variant matrix."""

    values: dict[str, str]
    labels: dict[str, str]
    exists: bool
    variant_id: str | None = None
    sku: str | None = None


class CreateVariantRequest(BaseModel):
    """Request to create a variant."""

    values: dict[str, str] = Field(..., description="Axis ID to value")
    sku: str | None = Field(default=None, description="Generated when omitted")
    name: str | None = Field(default=None, description="Derived from the parent when omitted")
    price: Decimal | None = None
    stock_quantity: int | None = None


class UpdateVariantRequest(BaseModel):
    """Request to update a variant."""

    name: str | None = None
    price: Decimal | None = None
    stock_quantity: int | None = None
    values: dict[str, str] | None = None


class BulkCreateRequest(BaseModel):
    """Request to create variants in bulk."""

    combinations: list[dict[str, str]] = Field(..., description="Axis ID to value mappings")


class BulkCreateEntrySchema(DTOModel):
    """Outcome for one requested combination."""

    values: dict[str, str]
    status: str
    variant: VariantResponse | None = None
    error: str | None = None
    error_code: str | None = None


class BulkCreateResponse(BaseModel):
    """Bulk create outcome."""

    entries: list[BulkCreateEntrySchema]
    created_count: int
    existing_count: int
    failed_count: int
