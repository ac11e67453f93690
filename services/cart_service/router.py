"""
Shopper cart endpoints. Every route is scoped to the user in the bearer
token, so a caller can only ever see or change their own cart.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.security.dependencies import get_current_user

from .schemas import CartItemCreate, CartItemUpdate, CartResponse
from .service import CartService

router = APIRouter()
public_router = APIRouter()  # For any public endpoints (e.g. health check)

@public_router.get("/health", include_in_schema=False)
async def health_check():
    return {"service": "cart", "status": "running"}


@router.get("/", response_model=CartResponse)
async def get_cart(user_id: int = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return await CartService.get_or_create_cart(db, user_id)


@router.post("/items", response_model=CartResponse)
async def add_item(
    item: CartItemCreate,
    user_id: int = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await CartService.add_item(db, user_id, item)


@router.put("/items/{product_id}", response_model=CartResponse)
async def update_item(
    product_id: int,
    payload: CartItemUpdate,
    user_id: int = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await CartService.update_item(db, user_id, product_id, payload.quantity)


@router.delete("/items/{product_id}", response_model=CartResponse)
async def remove_item(
    product_id: int,
    user_id: int = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await CartService.remove_item(db, user_id, product_id)


@router.delete("/items", response_model=CartResponse)
async def clear_cart(user_id: int = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    """Deletes all items in the user's cart."""
    return await CartService.clear_cart(db, user_id)
