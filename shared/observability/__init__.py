from .setup import setup_observability
from .metrics import (
    ecomm_orders_created_total,
    ecomm_order_create_duration_seconds,
    ecomm_order_transitions_total,
    ecomm_stock_movements_total,
    ecomm_stock_reservation_failures_total,
    ecomm_refunded_amount_total
)
