"""
Order state machine.

Owns an order's status and its payment/delivery/refund flags, enforces the
legal transitions and drives the inventory ledger. Every public operation is
one database transaction: ledger movements and the order update commit
together or not at all.

    pending ─┬─> processing ─> shipped ─> delivered ─> refunded
             │        (any non-terminal) ─> cancelled
             └─ (any status) ─> refunded

`cancelled` and `refunded` are terminal. `delivered` can still be refunded.
"""
from datetime import datetime, timezone
from typing import Optional, Sequence

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from shared.errors import Conflict, InvalidTransition, NotFound, OutOfStock, ValidationError
from shared.observability import (
    ecomm_order_create_duration_seconds,
    ecomm_order_transitions_total,
    ecomm_orders_created_total,
    ecomm_refunded_amount_total,
)
from services.cart_service.repository import CartRepository
from services.product_service.ledger import InventoryLedger, StockLine
from services.product_service.repository import ProductRepository

from . import policy
from .models import Order, OrderItem, OrderStatus
from .repository import OrderRepository
from .schemas import OrderCreate

logger = structlog.get_logger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _stock_lines(order: Order) -> list[StockLine]:
    # Always the quantities recorded at purchase, never the current request
    return [StockLine(item.product_id, item.quantity) for item in order.order_items]


class OrderStateMachine:
    def __init__(self, db: AsyncSession, ledger: Optional[InventoryLedger] = None):
        self.db = db
        self.ledger = ledger or InventoryLedger(db)

    # --- QUERIES ---

    async def get(self, order_id: str, user_id: Optional[int] = None) -> Order:
        """Loads an order; when user_id is given, orders of other users are reported as missing."""
        order = await OrderRepository.get_order(self.db, order_id)
        if not order or (user_id is not None and order.user_id != user_id):
            raise NotFound("Order not found")
        return order

    async def list_for_user(self, user_id: int) -> Sequence[Order]:
        return await OrderRepository.list_for_user(self.db, user_id)

    async def list_orders(self, status: Optional[OrderStatus] = None) -> Sequence[Order]:
        return await OrderRepository.list_orders(self.db, status.value if status else None)

    # --- CREATION ---

    async def create(self, user_id: int, data: OrderCreate) -> Order:
        if not data.order_items:
            raise ValidationError("Order must contain at least one item")

        with ecomm_order_create_duration_seconds.time():
            products = await ProductRepository.get_products_by_ids(
                self.db, [item.product_id for item in data.order_items]
            )
            lines = []
            for position, item in enumerate(data.order_items):
                product = products.get(item.product_id)
                if not product or not product.is_active:
                    ecomm_orders_created_total.labels(status="not_found").inc()
                    raise NotFound(f"Product {item.product_id} not found")
                lines.append(
                    OrderItem(
                        position=position,
                        product_id=product.id,
                        product_name=product.name,
                        quantity=item.quantity,
                        unit_price=product.price,
                    )
                )

            items_price = round(sum(line.unit_price * line.quantity for line in lines), 2)
            order = Order(
                user_id=user_id,
                status=OrderStatus.PENDING.value,
                order_items=lines,
                shipping_address=data.shipping_address.model_dump(),
                payment_method=data.payment_method,
                items_price=items_price,
                shipping_price=data.shipping_price,
                tax_price=data.tax_price,
                total_price=round(items_price + data.shipping_price + data.tax_price, 2),
                stock_reserved=True,
            )

            try:
                await self.ledger.reserve_all(StockLine(line.product_id, line.quantity) for line in lines)
                OrderRepository.add(self.db, order)
                await CartRepository.clear(self.db, user_id)
                await self.db.commit()
            except OutOfStock as e:
                await self.db.rollback()
                ecomm_orders_created_total.labels(status="out_of_stock").inc()
                logger.info("order_rejected", user_id=user_id, product_id=e.product_id, reason=e.code)
                raise
            except Exception:
                await self.db.rollback()
                ecomm_orders_created_total.labels(status="failed").inc()
                raise

        ecomm_orders_created_total.labels(status="success").inc()
        logger.info("order_created", order_id=order.id, user_id=user_id, total_price=order.total_price)
        return order

    # --- TRANSITIONS ---

    async def mark_paid(self, order_id: str, payment_result: Optional[dict] = None,
                        user_id: Optional[int] = None) -> Order:
        order = await self.get(order_id, user_id)
        self._require_not_terminal(order, "pay")

        if not order.is_paid:
            order.is_paid = True
            order.paid_at = _now()
        if payment_result:
            order.payment_result = payment_result
        return await self._commit(order, "pay")

    async def mark_delivered(self, order_id: str) -> Order:
        order = await self.get(order_id)
        self._require_not_terminal(order, "deliver")

        order.is_delivered = True
        order.delivered_at = _now()
        order.status = OrderStatus.DELIVERED.value
        return await self._commit(order, "deliver")

    async def set_status(self, order_id: str, new_status: OrderStatus) -> Order:
        """Administrative override. Only the terminal lock applies."""
        order = await self.get(order_id)
        self._require_not_terminal(order, "set_status")

        new_status = OrderStatus(new_status)
        if policy.is_terminal(new_status) and order.stock_reserved:
            await self._release_stock(order)
        order.status = new_status.value
        return await self._commit(order, "set_status")

    async def cancel(self, order_id: str) -> Order:
        order = await self.get(order_id)
        allowed, reason = policy.can_cancel(order)
        if not allowed:
            raise InvalidTransition(reason)

        if policy.must_restore_stock_on_cancel(order):
            await self._release_stock(order)
        order.status = OrderStatus.CANCELLED.value
        return await self._commit(order, "cancel")

    async def refund(self, order_id: str, amount: Optional[float] = None,
                     reason: Optional[str] = None) -> Order:
        """
        Refunds the whole order from any status.

        Stock goes back only while the order still holds its reservation, so a
        refund after a cancel does not restore the same quantities twice.
        """
        order = await self.get(order_id)
        if not policy.can_refund(order):
            raise InvalidTransition("Order cannot be refunded")

        # Ledger first: the order must stay clean until _commit so autoflush cannot
        # push its versioned UPDATE early
        if policy.must_restore_stock_on_refund(order):
            await self._release_stock(order)
        order.refund_amount = amount if amount is not None else order.total_price
        order.refund_reason = reason
        order.refunded_at = _now()
        order.status = OrderStatus.REFUNDED.value

        order = await self._commit(order, "refund")
        ecomm_refunded_amount_total.inc(order.refund_amount)
        return order

    async def attach_tracking(self, order_id: str, tracking_number: str,
                              tracking_company: Optional[str] = None) -> Order:
        order = await self.get(order_id)
        order.tracking_number = tracking_number
        order.tracking_company = tracking_company
        return await self._commit(order, "tracking")

    async def ensure_invoice_number(self, order_id: str) -> Order:
        order = await self.get(order_id)
        if order.invoice_number:
            return order

        epoch_ms = int(_now().timestamp() * 1000)
        order.invoice_number = f"INV-{epoch_ms}-{order.id[-6:]}"
        return await self._commit(order, "invoice")

    # --- HELPERS ---

    @staticmethod
    def _require_not_terminal(order: Order, transition: str) -> None:
        if policy.is_terminal(order.order_status):
            raise InvalidTransition(f"Cannot {transition.replace('_', ' ')} an order that is {order.status}")

    async def _release_stock(self, order: Order) -> None:
        await self.ledger.release_all(_stock_lines(order))
        order.stock_reserved = False

    async def _commit(self, order: Order, transition: str) -> Order:
        order_id, previous_version = order.id, order.version
        try:
            await self.db.commit()
        except StaleDataError:
            await self.db.rollback()
            logger.warning("order_update_conflict", order_id=order_id, transition=transition)
            raise Conflict(f"Order {order_id} was modified concurrently, retry the request")
        except Exception:
            await self.db.rollback()
            raise

        ecomm_order_transitions_total.labels(transition=transition).inc()
        logger.info(
            "order_transition",
            order_id=order_id,
            transition=transition,
            status=order.status,
            from_version=previous_version,
        )
        return order
