"""Stock unit of work.

Applies a set of planned stock decrements as one local transaction:
rows are locked in ascending ID order, each row's stock is re-checked
against its freshly read value, and the whole set either commits or
rolls back. The ``version`` column on products is the optimistic guard
for backends that ignore ``FOR UPDATE``.
"""

from dataclasses import dataclass
from types import TracebackType

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from pim_composer.catalog.models import Product
from pim_composer.catalog.repository import ProductRepository
from pim_composer.domain.exceptions import (
    InsufficientStockError,
    InvalidQuantityError,
    NotFoundError,
    StockConflictError,
)

logger = structlog.get_logger()


@dataclass
class DecrementedProduct:
    """Stock change applied to one product row."""

    product_id: str
    sku: str
    previous_stock: int
    new_stock: int
    decremented_amount: int


class StockUnitOfWork:
    """Atomic multi-row stock decrement.

    Commits on a clean exit and rolls back when the block raises.

    Example usage:
        async with StockUnitOfWork(session) as uow:
            uow.plan("component-a", 4)
            uow.plan("component-b", 2)
            decremented = await uow.apply()
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize unit of work.

        Args:
            session: Async SQLAlchemy session that owns the transaction.
        """
        self.session = session
        self.products = ProductRepository(session)
        self.rows: dict[str, Product] = {}
        self._planned: dict[str, int] = {}
        self._watched: set[str] = set()

    async def __aenter__(self) -> "StockUnitOfWork":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if exc_type is not None:
            await self.session.rollback()
            return

        try:
            await self.session.commit()
        except StaleDataError as stale:
            await self.session.rollback()
            raise StockConflictError(sorted(self._planned)) from stale

    def plan(self, product_id: str, amount: int) -> None:
        """Add a planned decrement; repeated IDs accumulate.

        Raises:
            InvalidQuantityError: If amount is not positive.
        """
        if amount <= 0:
            raise InvalidQuantityError(amount)
        self._planned[product_id] = self._planned.get(product_id, 0) + amount

    def watch(self, product_id: str) -> None:
        """Lock an extra row without decrementing it."""
        self._watched.add(product_id)

    async def apply(self) -> list[DecrementedProduct]:
        """Lock, re-check and decrement every planned row.

        Returns:
            One entry per decremented row, in ascending ID order.

        Raises:
            NotFoundError: If a planned row no longer exists.
            InsufficientStockError: If a row's fresh stock is below its
                planned decrement.
            StockConflictError: If a row's version changed underneath us.
        """
        self.rows = await self.products.lock_many(set(self._planned) | self._watched)

        missing = sorted((set(self._planned) | self._watched) - self.rows.keys())
        if missing:
            raise NotFoundError("Product", missing[0])

        for product_id in sorted(self._planned):
            row = self.rows[product_id]
            amount = self._planned[product_id]
            if row.stock_quantity < amount:
                raise InsufficientStockError(
                    product_id, row.stock_quantity, amount, sku=row.sku
                )

        decremented: list[DecrementedProduct] = []
        for product_id in sorted(self._planned):
            row = self.rows[product_id]
            amount = self._planned[product_id]
            previous = row.stock_quantity
            row.stock_quantity = previous - amount
            decremented.append(
                DecrementedProduct(
                    product_id=product_id,
                    sku=row.sku,
                    previous_stock=previous,
                    new_stock=row.stock_quantity,
                    decremented_amount=amount,
                )
            )

        try:
            await self.session.flush()
        except StaleDataError as stale:
            raise StockConflictError(sorted(self._planned)) from stale

        logger.debug("Stock rows decremented", product_ids=sorted(self._planned))
        return decremented
