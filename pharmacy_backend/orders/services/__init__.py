from .order_service import (
    OrderItemInput,
    accept_order,
    create_order,
    get_order,
    list_orders,
    update_order_status,
)

__all__ = [
    "OrderItemInput",
    "accept_order",
    "create_order",
    "get_order",
    "list_orders",
    "update_order_status",
]
