from .product import ProductViewSet
from .inventory_batch import InventoryBatchViewSet

__all__ = ["ProductViewSet", "InventoryBatchViewSet"]
