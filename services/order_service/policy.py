"""
Refund/cancellation rules, kept as pure functions over an order so the state
machine and the tests consult exactly the same decisions.

Stock restoration is keyed on `stock_reserved` rather than on payment or
fulfilment progress: every order reserves its stock at creation, so any
teardown of an order still holding that reservation must give it back, and
an order that already gave it back must never give it back twice.
"""
from typing import Tuple

from .models import TERMINAL_STATUSES, Order, OrderStatus


def is_terminal(status: OrderStatus) -> bool:
    return OrderStatus(status) in TERMINAL_STATUSES


def can_cancel(order: Order) -> Tuple[bool, str | None]:
    status = order.order_status
    if status == OrderStatus.DELIVERED:
        return False, "Cannot cancel a delivered order"
    if status == OrderStatus.CANCELLED:
        return False, "Order is already cancelled"
    if status == OrderStatus.REFUNDED:
        return False, "Cannot cancel a refunded order"
    return True, None


def must_restore_stock_on_cancel(order: Order) -> bool:
    # Superset of "paid, processing or shipped": a pending unpaid order holds stock too
    return bool(order.stock_reserved)


def can_refund(order: Order) -> bool:
    # Refunds are accepted from every status, including never-paid orders
    return True


def must_restore_stock_on_refund(order: Order) -> bool:
    return bool(order.stock_reserved)
