"""
Order endpoints.

Shopper routes are scoped to the user in the bearer token. Administrative
routes live under /admin and require the X-Internal-API-Key header.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config import settings
from shared.config.database import get_db
from shared.security import get_current_user, limiter, verify_internal_api_key

from .models import OrderStatus
from .schemas import (
    InvoiceResponse,
    OrderActionResponse,
    OrderCreate,
    OrderResponse,
    PaymentUpdate,
    RefundRequest,
    StatusUpdate,
    TrackingUpdate,
)
from .service import OrderStateMachine

router = APIRouter(tags=["Orders"])
admin_router = APIRouter(
    prefix="/admin",
    tags=["Orders (admin)"],
    dependencies=[Depends(verify_internal_api_key)],
)
public_router = APIRouter()  # For any public endpoints (e.g. health check)


def get_state_machine(db: AsyncSession = Depends(get_db)) -> OrderStateMachine:
    return OrderStateMachine(db)


@public_router.get("/health", include_in_schema=False)
async def health_check():
    return {"service": "order", "status": "running"}


# --- SHOPPER ROUTES ---

@router.post("/", response_model=OrderActionResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.ORDER_CREATE_RATE_LIMIT)
async def create_order(
    request: Request,                          # REQUIRED: slowapi needs this to check IP/Headers
    payload: OrderCreate,
    user_id: int = Depends(get_current_user),
    orders: OrderStateMachine = Depends(get_state_machine),
):
    order = await orders.create(user_id, payload)
    return {"message": "Order created successfully", "order": order}


@router.get("/mine", response_model=list[OrderResponse])
async def list_my_orders(
    user_id: int = Depends(get_current_user),
    orders: OrderStateMachine = Depends(get_state_machine),
):
    return await orders.list_for_user(user_id)


@router.get("/{order_id}", response_model=OrderResponse)
async def get_my_order(
    order_id: str,
    user_id: int = Depends(get_current_user),
    orders: OrderStateMachine = Depends(get_state_machine),
):
    return await orders.get(order_id, user_id)


@router.put("/{order_id}/pay", response_model=OrderActionResponse)
async def pay_order(
    order_id: str,
    payload: PaymentUpdate,
    user_id: int = Depends(get_current_user),
    orders: OrderStateMachine = Depends(get_state_machine),
):
    order = await orders.mark_paid(order_id, payload.payment_result, user_id=user_id)
    return {"message": "Order marked as paid", "order": order}


# --- ADMIN ROUTES ---

@admin_router.get("/", response_model=list[OrderResponse])
async def list_orders(
    order_status: Optional[OrderStatus] = Query(default=None, alias="status"),
    orders: OrderStateMachine = Depends(get_state_machine),
):
    return await orders.list_orders(order_status)


@admin_router.get("/user/{user_id}", response_model=list[OrderResponse])
async def list_user_orders(user_id: int, orders: OrderStateMachine = Depends(get_state_machine)):
    return await orders.list_for_user(user_id)


@admin_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str, orders: OrderStateMachine = Depends(get_state_machine)):
    return await orders.get(order_id)


@admin_router.put("/{order_id}/deliver", response_model=OrderActionResponse)
async def deliver_order(order_id: str, orders: OrderStateMachine = Depends(get_state_machine)):
    order = await orders.mark_delivered(order_id)
    return {"message": "Order marked as delivered", "order": order}


@admin_router.put("/{order_id}/status", response_model=OrderActionResponse)
async def update_status(
    order_id: str,
    payload: StatusUpdate,
    orders: OrderStateMachine = Depends(get_state_machine),
):
    order = await orders.set_status(order_id, payload.status)
    return {"message": "Order status updated", "order": order}


@admin_router.put("/{order_id}/cancel", response_model=OrderActionResponse)
async def cancel_order(order_id: str, orders: OrderStateMachine = Depends(get_state_machine)):
    order = await orders.cancel(order_id)
    return {"message": "Order cancelled successfully", "order": order}


@admin_router.post("/{order_id}/refund", response_model=OrderActionResponse)
async def refund_order(
    order_id: str,
    payload: RefundRequest,
    orders: OrderStateMachine = Depends(get_state_machine),
):
    order = await orders.refund(order_id, payload.amount, payload.reason)
    return {"message": "Refund processed successfully", "order": order}


@admin_router.put("/{order_id}/tracking", response_model=OrderActionResponse)
async def update_tracking(
    order_id: str,
    payload: TrackingUpdate,
    orders: OrderStateMachine = Depends(get_state_machine),
):
    order = await orders.attach_tracking(order_id, payload.tracking_number, payload.tracking_company)
    return {"message": "Tracking information updated", "order": order}


@admin_router.get("/{order_id}/invoice", response_model=InvoiceResponse)
async def get_invoice(order_id: str, orders: OrderStateMachine = Depends(get_state_machine)):
    order = await orders.ensure_invoice_number(order_id)
    return {"invoice_number": order.invoice_number, "order": order}
