from sqlalchemy.ext.asyncio import AsyncSession

from shared.errors import NotFound, OutOfStock
from services.product_service.repository import ProductRepository

from .models import Cart, CartItem
from .repository import CartRepository
from .schemas import CartItemCreate

class CartService:
    @staticmethod
    async def get_or_create_cart(db: AsyncSession, user_id: int) -> Cart:
        cart = await CartRepository.find_by_user(db, user_id)
        if cart:
            return cart
        return await CartRepository.create_cart(db, Cart(user_id=user_id, items=[]))

    @staticmethod
    async def _product_with_stock(db: AsyncSession, product_id: int, quantity: int):
        # Availability check only; stock is reserved when the order is created
        product = await ProductRepository.get_product_by_id(db, product_id)
        if not product or not product.is_active:
            raise NotFound(f"Product {product_id} not found")
        if product.stock < quantity:
            raise OutOfStock(product.id, product.name, quantity, product.stock)
        return product

    @staticmethod
    async def add_item(db: AsyncSession, user_id: int, item_data: CartItemCreate) -> Cart:
        cart = await CartService.get_or_create_cart(db, user_id)
        existing = await CartRepository.get_item(db, cart.id, item_data.product_id)
        wanted = item_data.quantity + (existing.quantity if existing else 0)
        product = await CartService._product_with_stock(db, item_data.product_id, wanted)

        item = CartItem(
            cart_id=cart.id,
            product_id=product.id,
            quantity=item_data.quantity,
            price=product.price,
        )
        await CartRepository.add_item(db, item)
        return await CartRepository.find_by_user(db, user_id)

    @staticmethod
    async def update_item(db: AsyncSession, user_id: int, product_id: int, quantity: int) -> Cart:
        cart = await CartRepository.find_by_user(db, user_id)
        if not cart:
            raise NotFound("Cart not found")
        item = await CartRepository.get_item(db, cart.id, product_id)
        if not item:
            raise NotFound("Item not found in cart")

        await CartService._product_with_stock(db, product_id, quantity)
        item.quantity = quantity
        await CartRepository.save(db)
        return await CartRepository.find_by_user(db, user_id)

    @staticmethod
    async def remove_item(db: AsyncSession, user_id: int, product_id: int) -> Cart:
        cart = await CartRepository.find_by_user(db, user_id)
        if not cart:
            raise NotFound("Cart not found")
        await CartRepository.remove_item(db, cart.id, product_id)
        return await CartRepository.find_by_user(db, user_id)

    @staticmethod
    async def clear_cart(db: AsyncSession, user_id: int) -> Cart:
        cart = await CartRepository.find_by_user(db, user_id)
        if not cart:
            raise NotFound("Cart not found")
        await CartRepository.clear(db, user_id)
        await CartRepository.save(db)
        return await CartRepository.find_by_user(db, user_id)
