from pydantic import BaseModel, Field

from shared.config import settings


class ProductCreate(BaseModel):
    name: str = Field(min_length=1)
    price: float = Field(ge=0)
    stock: int = Field(default=0, ge=0)
    low_stock_threshold: int = Field(default=settings.DEFAULT_LOW_STOCK_THRESHOLD, ge=0)


class ProductResponse(BaseModel):
    id: int
    name: str
    price: float
    stock: int
    low_stock_threshold: int
    is_active: bool

    class Config:
        from_attributes = True


class StockUpdate(BaseModel):
    quantity: int = Field(gt=0)
