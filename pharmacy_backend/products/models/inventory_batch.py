# products/models/inventory_batch.py

"""
INVENTORY BATCH (LOT-BASED STOCK)

Represents one lot of stock for a product.

RULES:
- quantity is mutated ONLY via services (FEFO consumption, batch edits)
- a batch drained to zero by FEFO consumption is deleted
- expiry_date NULL means "never expires"; such batches are consumed LAST
"""

import uuid

from django.db import models
from django.utils import timezone

from .product import Product


class InventoryBatch(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    product = models.ForeignKey(
        Product,
        on_delete=models.CASCADE,
        related_name="inventory_batches",
    )

    # Denormalized tenant scope for dashboard queries (expiring-soon lists).
    pharmacy = models.ForeignKey(
        "pharmacies.Pharmacy",
        on_delete=models.CASCADE,
        related_name="inventory_batches",
    )

    batch_number = models.CharField(
        max_length=100,
        help_text="Supplier / lot reference",
    )

    quantity = models.PositiveIntegerField(default=0)

    expiry_date = models.DateField(null=True, blank=True, db_index=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["expiry_date", "created_at"]
        indexes = [
            models.Index(fields=["product", "expiry_date"], name="products_in_product_3b9a1d_idx"),
            models.Index(fields=["pharmacy", "expiry_date"], name="products_in_pharmac_8e2c4f_idx"),
        ]

    def __str__(self):
        product_name = getattr(self.product, "name", "Product")
        return f"{product_name} | {self.batch_number} | {self.quantity}"

    @property
    def is_expired(self) -> bool:
        return self.expiry_date is not None and self.expiry_date < timezone.localdate()
