from pydantic import BaseModel, Field
from typing import List

class CartItemCreate(BaseModel):
    product_id: int
    quantity: int = Field(default=1, gt=0)

class CartItemUpdate(BaseModel):
    quantity: int = Field(gt=0)

class CartItemResponse(BaseModel):
    product_id: int
    quantity: int
    price: float

    class Config:
        from_attributes = True

class CartResponse(BaseModel):
    user_id: int
    items: List[CartItemResponse] = []
    total: float = 0

    class Config:
        from_attributes = True
