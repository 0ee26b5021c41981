"""SQLAlchemy models for product composition.

Defines the product row the engine reads and writes, the attribute and
variant-axis catalog, and the type-specific structures: variant configs,
variant axis values, bundle components and grouped items.
"""

from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pim_composer.domain.product_types import ProductType
from pim_composer.infrastructure.database import Base


def _uuid() -> str:
    return str(uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


# ============================================================================
# Products
# ============================================================================


class Product(Base):
    """Product row.

    Product identity and lifecycle belong to the product registry; this
    engine reads type, price and stock and writes ``stock_quantity`` and
    ``type``. Variants of a configurable product are products too, with
    ``parent_id`` pointing at the configurable parent.

    Attributes:
        id: Unique product identifier (UUID string).
        sku: Stock Keeping Unit (globally unique).
        name: Product name.
        type: Declared product type.
        price: Unit price, if priced.
        stock_quantity: Units on hand (never negative).
        requires_shipping: False for virtual products.
        parent_id: Configurable parent, for variants.
        version: Optimistic locking counter, bumped on every update.
    """

    __tablename__ = "products"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    sku: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(500), nullable=False)
    type: Mapped[ProductType] = mapped_column(
        Enum(
            ProductType,
            name="product_type",
            native_enum=False,
            length=20,
            values_callable=lambda enum: [member.value for member in enum],
        ),
        nullable=False,
        default=ProductType.SIMPLE,
        index=True,
    )
    price: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    stock_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    requires_shipping: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    parent_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_now, onupdate=_now
    )

    axis_values: Mapped[list["VariantAxisValue"]] = relationship(
        "VariantAxisValue",
        back_populates="variant",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __table_args__ = (
        CheckConstraint("stock_quantity >= 0", name="ck_products_stock_non_negative"),
    )
    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        """String representation."""
        return f"<Product(id={self.id}, sku={self.sku}, type={self.type.value})>"

    @property
    def is_variant(self) -> bool:
        """Check if this product is a variant of a configurable parent."""
        return self.parent_id is not None


# ============================================================================
# Attributes
# ============================================================================


class Attribute(Base):
    """Product attribute whose options can feed a variant axis."""

    __tablename__ = "attributes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    code: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)

    options: Mapped[list["AttributeOption"]] = relationship(
        "AttributeOption",
        back_populates="attribute",
        cascade="all, delete-orphan",
        order_by="AttributeOption.position",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        """String representation."""
        return f"<Attribute(id={self.id}, code={self.code})>"


class AttributeOption(Base):
    """One selectable value of an attribute."""

    __tablename__ = "attribute_options"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    attribute_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("attributes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    code: Mapped[str] = mapped_column(String(100), nullable=False)
    label: Mapped[str] = mapped_column(String(200), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    attribute: Mapped["Attribute"] = relationship("Attribute", back_populates="options")

    __table_args__ = (
        UniqueConstraint("attribute_id", "code", name="uq_attribute_options_code"),
    )


# ============================================================================
# Variants
# ============================================================================


class VariantAxis(Base):
    """A named dimension of variation (e.g., Color, Size).

    Allowed values come from the bound attribute's options when
    ``attribute_id`` is set, otherwise from the fixed ``options`` list.
    """

    __tablename__ = "variant_axes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    code: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    attribute_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("attributes.id", ondelete="SET NULL"),
        nullable=True,
    )
    options: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_now, onupdate=_now
    )

    def __repr__(self) -> str:
        """String representation."""
        return f"<VariantAxis(id={self.id}, code={self.code})>"


class VariantConfig(Base):
    """Variant configuration of a configurable product (one per product)."""

    __tablename__ = "variant_configs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    product_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    # Ordered list of variant axis IDs
    axis_ids: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    sku_pattern: Mapped[str | None] = mapped_column(String(200), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_now, onupdate=_now
    )


class VariantAxisValue(Base):
    """The value a variant takes on one axis."""

    __tablename__ = "variant_axis_values"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    variant_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    axis_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("variant_axes.id"),
        nullable=False,
        index=True,
    )
    value: Mapped[str] = mapped_column(String(200), nullable=False)

    variant: Mapped["Product"] = relationship("Product", back_populates="axis_values")

    __table_args__ = (
        UniqueConstraint("variant_id", "axis_id", name="uq_variant_axis_values_axis"),
    )


# ============================================================================
# Bundles and Grouped Products
# ============================================================================


class BundleComponent(Base):
    """Edge ``bundle -> component`` in the bundle graph."""

    __tablename__ = "bundle_components"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    bundle_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    component_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("products.id"),
        nullable=False,
        index=True,
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    special_price: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)

    __table_args__ = (
        UniqueConstraint("bundle_id", "component_id", name="uq_bundle_components_component"),
        CheckConstraint("quantity >= 1", name="ck_bundle_components_quantity"),
        CheckConstraint("bundle_id <> component_id", name="ck_bundle_components_not_self"),
    )

    def __repr__(self) -> str:
        """String representation."""
        return f"<BundleComponent(bundle={self.bundle_id}, component={self.component_id})>"


class GroupedItem(Base):
    """Child of a grouped product, with per-child quantity bounds."""

    __tablename__ = "grouped_items"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    parent_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    child_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("products.id"),
        nullable=False,
        index=True,
    )
    default_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    min_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    max_quantity: Mapped[int | None] = mapped_column(Integer, nullable=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("parent_id", "child_id", name="uq_grouped_items_child"),
        CheckConstraint("parent_id <> child_id", name="ck_grouped_items_not_self"),
    )

    def __repr__(self) -> str:
        """String representation."""
        return f"<GroupedItem(parent={self.parent_id}, child={self.child_id})>"
