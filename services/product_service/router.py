from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.security.dependencies import verify_internal_api_key
from .schemas import ProductCreate, ProductResponse, StockUpdate
from .service import ProductService

router = APIRouter(dependencies=[Depends(verify_internal_api_key)])
public_router = APIRouter()  # For any public endpoints (e.g. health check)

@public_router.get("/health", include_in_schema=False)
async def health_check():
    return {"service": "product", "status": "running"}


@router.post("/", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def create_product(
    product: ProductCreate,
    db: AsyncSession = Depends(get_db)
):
    return await ProductService.create_product(db, product)

@router.get("/", response_model=list[ProductResponse])
async def list_products(
    query: str | None = Query(default=None),
    db: AsyncSession = Depends(get_db)
):
    products = await ProductService.list_products(db)

    if query:
        query_words = set(query.lower().split())
        products = [p for p in products if query_words & set(p.name.lower().split())]

    return products

@router.get("/low-stock", response_model=list[ProductResponse])
async def list_low_stock(db: AsyncSession = Depends(get_db)):
    """Active products at or below their low-stock threshold, emptiest first."""
    return await ProductService.list_low_stock(db)

@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: int,
    db: AsyncSession = Depends(get_db)
):
    return await ProductService.get_product_by_id(db, product_id)

# Manual stock corrections; order flows call the ledger directly
@router.post("/{product_id}/reserve", response_model=ProductResponse)
async def reserve_stock(
    product_id: int,
    stock_update: StockUpdate,
    db: AsyncSession = Depends(get_db)
):
    return await ProductService.reserve_stock(db, product_id, stock_update.quantity)

@router.post("/{product_id}/release", response_model=ProductResponse)
async def release_stock(
    product_id: int,
    stock_update: StockUpdate,
    db: AsyncSession = Depends(get_db)
):
    return await ProductService.release_stock(db, product_id, stock_update.quantity)
