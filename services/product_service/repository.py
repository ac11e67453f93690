from typing import Optional, Sequence

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Product

class ProductRepository:

    @staticmethod
    async def create_product(db: AsyncSession, product: Product) -> Product:
        db.add(product)
        await db.commit()
        await db.refresh(product)
        return product

    @staticmethod
    async def get_all_products(db: AsyncSession) -> Sequence[Product]:
        result = await db.execute(select(Product).order_by(Product.id))
        return result.scalars().all()

    @staticmethod
    async def get_low_stock_products(db: AsyncSession) -> Sequence[Product]:
        result = await db.execute(
            select(Product)
            .where(Product.is_active.is_(True))
            .where(Product.stock <= Product.low_stock_threshold)
            .order_by(Product.stock)
        )
        return result.scalars().all()

    @staticmethod
    async def get_product_by_id(db: AsyncSession, product_id: int) -> Optional[Product]:
        result = await db.execute(select(Product).where(Product.id == product_id))
        return result.scalars().first()

    @staticmethod
    async def get_products_by_ids(db: AsyncSession, product_ids: Sequence[int]) -> dict[int, Product]:
        result = await db.execute(select(Product).where(Product.id.in_(set(product_ids))))
        return {product.id: product for product in result.scalars().all()}

    @staticmethod
    async def decrement_stock_if_available(db: AsyncSession, product_id: int, quantity: int) -> bool:
        """Single conditional UPDATE; False means no row matched."""
        result = await db.execute(
            update(Product)
            .where(Product.id == product_id)
            .where(Product.stock >= quantity)
            .values(stock=Product.stock - quantity)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    @staticmethod
    async def increment_stock(db: AsyncSession, product_id: int, quantity: int) -> bool:
        result = await db.execute(
            update(Product)
            .where(Product.id == product_id)
            .values(stock=Product.stock + quantity)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    @staticmethod
    async def current_stock(db: AsyncSession, product_id: int) -> Optional[int]:
        result = await db.execute(select(Product.stock).where(Product.id == product_id))
        return result.scalar_one_or_none()
