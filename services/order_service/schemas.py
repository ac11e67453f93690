from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .models import OrderStatus


class OrderItemCreate(BaseModel):
    product_id: int
    quantity: int = Field(gt=0)


class ShippingAddress(BaseModel):
    address: str = Field(min_length=1)
    city: str = Field(min_length=1)
    postal_code: str = Field(min_length=1)
    country: str = Field(min_length=1)


class OrderCreate(BaseModel):
    # Prices come from the catalog at creation time, never from the client
    order_items: List[OrderItemCreate]
    shipping_address: ShippingAddress
    payment_method: str = Field(min_length=1)
    shipping_price: float = Field(default=0.0, ge=0)
    tax_price: float = Field(default=0.0, ge=0)


class PaymentUpdate(BaseModel):
    payment_result: Optional[Dict[str, Any]] = None


class StatusUpdate(BaseModel):
    status: OrderStatus


class RefundRequest(BaseModel):
    amount: Optional[float] = Field(default=None, ge=0)
    reason: Optional[str] = None


class TrackingUpdate(BaseModel):
    tracking_number: str = Field(min_length=1)
    tracking_company: Optional[str] = None


class OrderItemResponse(BaseModel):
    product_id: int
    product_name: str
    quantity: int
    unit_price: float

    class Config:
        from_attributes = True


class OrderResponse(BaseModel):
    id: str
    user_id: int
    status: OrderStatus
    order_items: List[OrderItemResponse]
    shipping_address: Dict[str, Any]
    payment_method: str
    payment_result: Optional[Dict[str, Any]] = None
    items_price: float
    shipping_price: float
    tax_price: float
    total_price: float
    is_paid: bool
    paid_at: Optional[datetime] = None
    is_delivered: bool
    delivered_at: Optional[datetime] = None
    refund_amount: Optional[float] = None
    refund_reason: Optional[str] = None
    refunded_at: Optional[datetime] = None
    tracking_number: Optional[str] = None
    tracking_company: Optional[str] = None
    invoice_number: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class OrderActionResponse(BaseModel):
    message: str
    order: OrderResponse


class InvoiceResponse(BaseModel):
    invoice_number: str
    order: OrderResponse
