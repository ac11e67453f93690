from sqlalchemy.ext.asyncio import AsyncSession

from shared.errors import NotFound

from .ledger import InventoryLedger
from .models import Product
from .repository import ProductRepository
from .schemas import ProductCreate

class ProductService:

    @staticmethod
    async def create_product(db: AsyncSession, data: ProductCreate):
        product = Product(
            name=data.name,
            price=data.price,
            stock=data.stock,
            low_stock_threshold=data.low_stock_threshold,
        )
        return await ProductRepository.create_product(db, product)

    @staticmethod
    async def list_products(db: AsyncSession):
        return await ProductRepository.get_all_products(db)

    @staticmethod
    async def list_low_stock(db: AsyncSession):
        return await ProductRepository.get_low_stock_products(db)

    @staticmethod
    async def get_product_by_id(db: AsyncSession, product_id: int):
        product = await ProductRepository.get_product_by_id(db, product_id)
        if not product:
            raise NotFound(f"Product {product_id} not found")
        return product

    @staticmethod
    async def reserve_stock(db: AsyncSession, product_id: int, quantity: int):
        try:
            await InventoryLedger(db).reserve(product_id, quantity)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return await ProductService._reload(db, product_id)

    @staticmethod
    async def release_stock(db: AsyncSession, product_id: int, quantity: int):
        try:
            await InventoryLedger(db).release(product_id, quantity)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return await ProductService._reload(db, product_id)

    @staticmethod
    async def _reload(db: AsyncSession, product_id: int):
        product = await ProductService.get_product_by_id(db, product_id)
        await db.refresh(product)
        return product
