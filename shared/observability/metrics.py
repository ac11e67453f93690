from prometheus_client import Counter, Histogram

# Business Metrics
ecomm_orders_created_total = Counter(
    "ecomm_orders_created_total",
    "Total order creation attempts",
    ["status"] # Labels: 'success', 'out_of_stock', 'not_found', 'failed'
)

ecomm_order_create_duration_seconds = Histogram(
    "ecomm_order_create_duration_seconds",
    "Order creation duration in seconds"
)

ecomm_order_transitions_total = Counter(
    "ecomm_order_transitions_total",
    "Order lifecycle transitions applied",
    ["transition"] # Labels: 'pay', 'deliver', 'set_status', 'cancel', 'refund'
)

ecomm_stock_movements_total = Counter(
    "ecomm_stock_movements_total",
    "Units of stock moved by the inventory ledger",
    ["direction"] # Labels: 'reserve', 'release'
)

ecomm_stock_reservation_failures_total = Counter(
    "ecomm_stock_reservation_failures_total",
    "Reservations rejected for insufficient stock"
)

ecomm_refunded_amount_total = Counter(
    "ecomm_refunded_amount_total",
    "Sum of refunded order amounts"
)
