"""Shared test fixtures.

Service tests run against an in-memory SQLite database through
aiosqlite. The application engine is created at import time, so the
database URL is pointed at SQLite before anything is imported.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LOG_JSON", "false")

from collections.abc import AsyncGenerator, Awaitable, Callable  # noqa: E402
from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from sqlalchemy import func, select  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

from pim_composer.catalog.models import Product, VariantAxis  # noqa: E402
from pim_composer.domain.product_types import ProductType  # noqa: E402
from pim_composer.infrastructure.database import Base  # noqa: E402

ProductFactory = Callable[..., Awaitable[Product]]
AxisFactory = Callable[..., Awaitable[VariantAxis]]


@pytest_asyncio.fixture
async def session() -> AsyncGenerator[AsyncSession, None]:
    """Create a session on a fresh in-memory database."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as db_session:
        yield db_session

    await engine.dispose()


@pytest.fixture
def make_product(session: AsyncSession) -> ProductFactory:
    """Create and commit products."""

    async def _make(
        sku: str,
        type: ProductType = ProductType.SIMPLE,
        stock: int = 0,
        price: Decimal | str | None = None,
        name: str | None = None,
    ) -> Product:
        product = Product(
            sku=sku,
            name=name or sku.title(),
            type=type,
            stock_quantity=stock,
            price=Decimal(price) if price is not None else None,
            requires_shipping=type != ProductType.VIRTUAL,
        )
        session.add(product)
        await session.commit()
        return product

    return _make


@pytest.fixture
def make_axis(session: AsyncSession) -> AxisFactory:
    """Create and commit variant axes with fixed options."""

    async def _make(code: str, options: list[str], position: int = 0) -> VariantAxis:
        axis = VariantAxis(code=code, name=code.title(), options=options, position=position)
        session.add(axis)
        await session.commit()
        return axis

    return _make


@pytest.fixture
def read_stock(session: AsyncSession) -> Callable[[str], Awaitable[int]]:
    """Read a product's stock straight from the database.

    Column reads avoid touching ORM instances that a failed service call
    has expired.
    """

    async def _read(product_id: str) -> int:
        result = await session.execute(
            select(Product.stock_quantity).where(Product.id == product_id)
        )
        return result.scalar_one()

    return _read


@pytest.fixture
def count_rows(session: AsyncSession) -> Callable[..., Awaitable[int]]:
    """Count rows of a mapped class matching simple equality filters."""

    async def _count(model: type, **filters: object) -> int:
        stmt = select(func.count()).select_from(model).filter_by(**filters)
        result = await session.execute(stmt)
        return result.scalar_one()

    return _count
