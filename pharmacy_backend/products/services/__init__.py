from .stock_fefo import BatchAllocation, consume_stock
from .inventory import (
    add_batch,
    delete_batch,
    get_batch,
    has_batches,
    list_batches_by_pharmacy,
    list_batches_by_product,
    list_expiring_soon,
    update_batch,
)

__all__ = [
    "BatchAllocation",
    "consume_stock",
    "add_batch",
    "update_batch",
    "delete_batch",
    "get_batch",
    "has_batches",
    "list_batches_by_product",
    "list_batches_by_pharmacy",
    "list_expiring_soon",
]
