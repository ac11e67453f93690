"""
Inventory ledger: the only writer of Product.stock.

Reservations are a single conditional UPDATE guarded by `stock >= quantity`,
so two concurrent requests can never both take the last units. The ledger
never commits; callers own the transaction so a multi-line reservation is
committed or rolled back as a unit.
"""
from dataclasses import dataclass
from typing import Iterable

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from shared.errors import NotFound, OutOfStock, ValidationError
from shared.observability import ecomm_stock_movements_total, ecomm_stock_reservation_failures_total

from .repository import ProductRepository

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class StockLine:
    product_id: int
    quantity: int


class InventoryLedger:
    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def _check_quantity(quantity: int) -> None:
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise ValidationError(f"Quantity must be a positive integer, got {quantity!r}")

    async def reserve(self, product_id: int, quantity: int) -> None:
        self._check_quantity(quantity)
        if await ProductRepository.decrement_stock_if_available(self.db, product_id, quantity):
            ecomm_stock_movements_total.labels(direction="reserve").inc(quantity)
            logger.info("stock_reserved", product_id=product_id, quantity=quantity)
            return

        product = await ProductRepository.get_product_by_id(self.db, product_id)
        if product is None:
            raise NotFound(f"Product {product_id} not found")

        available = await ProductRepository.current_stock(self.db, product_id)
        ecomm_stock_reservation_failures_total.inc()
        logger.info(
            "stock_reservation_rejected",
            product_id=product_id,
            requested=quantity,
            available=available,
        )
        raise OutOfStock(product_id, product.name, quantity, available)

    async def release(self, product_id: int, quantity: int) -> None:
        self._check_quantity(quantity)
        if not await ProductRepository.increment_stock(self.db, product_id, quantity):
            raise NotFound(f"Product {product_id} not found")
        ecomm_stock_movements_total.labels(direction="release").inc(quantity)
        logger.info("stock_released", product_id=product_id, quantity=quantity)

    async def reserve_all(self, lines: Iterable[StockLine]) -> None:
        # Earlier lines stay decremented on failure; the caller's rollback undoes them
        for line in lines:
            await self.reserve(line.product_id, line.quantity)

    async def release_all(self, lines: Iterable[StockLine]) -> None:
        for line in lines:
            await self.release(line.product_id, line.quantity)
