from .product import ProductSerializer
from .inventory_batch import InventoryBatchSerializer, InventoryBatchWriteSerializer

__all__ = ["ProductSerializer", "InventoryBatchSerializer", "InventoryBatchWriteSerializer"]
