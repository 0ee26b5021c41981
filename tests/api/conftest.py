"""Shared fixtures for API tests.

The API runs against a temporary SQLite file. Rows are seeded through a
synchronous session, and the app gets a fresh aiosqlite session per
request on the same file.
"""

from collections.abc import Callable, Generator
from decimal import Decimal
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import NullPool

from pim_composer.catalog.models import Product, VariantAxis
from pim_composer.domain.product_types import ProductType
from pim_composer.infrastructure.database import Base, get_session
from pim_composer.main import app


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """Path of the test database file."""
    return tmp_path / "pim.db"


@pytest.fixture
def seed_session(db_path: Path) -> Generator[Session, None, None]:
    """Create the schema and a synchronous session for seeding rows."""
    engine = create_engine(f"sqlite:///{db_path}")
    Base.metadata.create_all(engine)
    with Session(engine, expire_on_commit=False) as session:
        yield session
    engine.dispose()


@pytest.fixture
def client(db_path: Path, seed_session: Session) -> Generator[TestClient, None, None]:
    """Create test client bound to the test database."""
    factory = async_sessionmaker(
        create_async_engine(f"sqlite+aiosqlite:///{db_path}", poolclass=NullPool),
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async def override_get_session():
        async with factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def seed_product(seed_session: Session) -> Callable[..., str]:
    """Insert a product and return its ID."""

    def _seed(
        sku: str,
        type: ProductType = ProductType.SIMPLE,
        stock: int = 0,
        price: str | None = None,
    ) -> str:
        product = Product(
            sku=sku,
            name=sku.title(),
            type=type,
            stock_quantity=stock,
            price=Decimal(price) if price is not None else None,
            requires_shipping=type != ProductType.VIRTUAL,
        )
        seed_session.add(product)
        seed_session.commit()
        return product.id

    return _seed


@pytest.fixture
def seed_axis(seed_session: Session) -> Callable[..., str]:
    """Insert a variant axis and return its ID."""

    def _seed(code: str, options: list[str], position: int = 0) -> str:
        axis = VariantAxis(code=code, name=code.title(), options=options, position=position)
        seed_session.add(axis)
        seed_session.commit()
        return axis.id

    return _seed
