from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete
from .models import Cart, CartItem

class CartRepository:
    @staticmethod
    async def find_by_user(db: AsyncSession, user_id: int) -> Optional[Cart]:
        result = await db.execute(
            select(Cart)
            .where(Cart.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    @staticmethod
    async def create_cart(db: AsyncSession, cart: Cart) -> Cart:
        db.add(cart)
        await db.commit()
        await db.refresh(cart)
        return cart

    @staticmethod
    async def get_item(db: AsyncSession, cart_id: int, product_id: int) -> Optional[CartItem]:
        result = await db.execute(
            select(CartItem)
            .where(CartItem.cart_id == cart_id)
            .where(CartItem.product_id == product_id)
        )
        return result.scalars().first()

    @staticmethod
    async def add_item(db: AsyncSession, item: CartItem):
        existing_item = await CartRepository.get_item(db, item.cart_id, item.product_id)

        if existing_item:
            existing_item.quantity += item.quantity
            existing_item.price = item.price
        else:
            db.add(item)

        await db.commit()
        return True

    @staticmethod
    async def save(db: AsyncSession):
        await db.commit()

    @staticmethod
    async def remove_item(db: AsyncSession, cart_id: int, product_id: int):
        stmt = delete(CartItem).where(
            CartItem.cart_id == cart_id,
            CartItem.product_id == product_id
        )
        await db.execute(stmt)
        await db.commit()

    @staticmethod
    async def clear(db: AsyncSession, user_id: int):
        """
        Deletes every item in the user's cart without committing, so order
        creation can clear the cart inside its own transaction.
        """
        cart_ids = select(Cart.id).where(Cart.user_id == user_id)
        await db.execute(delete(CartItem).where(CartItem.cart_id.in_(cart_ids)))
