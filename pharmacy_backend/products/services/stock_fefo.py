# products/services/stock_fefo.py

"""
FEFO STOCK ENGINE

Purpose:
- Deduct stock using FEFO (First-Expiry-First-Out): earliest expiry first,
  batches without an expiry date LAST, then oldest batch.
- Keep Product.stock_quantity in step with the deduction.

Hard rules:
- Quantities are integer units.
- FAIL-CLOSED: the batch total is checked BEFORE any batch is written, and
  the whole deduction runs inside one transaction with the product and its
  batches row-locked. A shortfall leaves no partial batch state behind.
- Expired batches are still consumed (oldest expiry drains first); expiry
  filtering is a dashboard concern (inventory.list_expiring_soon).
- product.stock_quantity is always decremented by the FULL requested
  quantity as the final step, whether or not the product is batch-tracked.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from django.db import transaction
from django.db.models import F

from common.exceptions import NotFoundError, ValidationError
from common.money import to_int_qty
from products.models import InventoryBatch, Product

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatchAllocation:
    batch_id: object
    batch_number: str
    quantity: int
    drained: bool


def fefo_batches_qs(*, product_id):
    """Canonical FEFO ordering: expiry ascending, NULL expiry last, then age."""
    return InventoryBatch.objects.filter(product_id=product_id).order_by(
        F("expiry_date").asc(nulls_last=True),
        "created_at",
    )


@transaction.atomic
def consume_stock(*, product_id, quantity) -> list[BatchAllocation]:
    """
    Deduct `quantity` units from a product, batches first (FEFO).

    Returns the per-batch allocations (empty for products without batches).
    """
    qty = to_int_qty(quantity)
    if qty <= 0:
        raise ValidationError("quantity must be positive")

    product = Product.objects.select_for_update().filter(id=product_id).first()
    if product is None:
        raise NotFoundError("product")

    if product.stock_quantity < qty:
        raise ValidationError(f"insufficient stock for {product.name}")

    batch_list = list(fefo_batches_qs(product_id=product.id).select_for_update())
    allocations: list[BatchAllocation] = []

    if batch_list:
        total_available = sum(int(b.quantity or 0) for b in batch_list)
        if total_available < qty:
            raise ValidationError(f"insufficient batch stock for {product.name}")

        remaining_qty = qty
        for batch in batch_list:
            if remaining_qty <= 0:
                break

            available = int(batch.quantity or 0)
            take = min(remaining_qty, available)
            if take <= 0:
                continue

            batch.quantity = available - take
            remaining_qty -= take

            if batch.quantity <= 0:
                allocations.append(BatchAllocation(batch.id, batch.batch_number, take, True))
                batch.delete()
            else:
                allocations.append(BatchAllocation(batch.id, batch.batch_number, take, False))
                batch.save(update_fields=["quantity", "updated_at"])

    Product.objects.filter(id=product.id).update(stock_quantity=F("stock_quantity") - qty)

    logger.info(
        "Stock consumed",
        extra={
            "product_id": str(product.id),
            "quantity": qty,
            "batches": len(allocations),
        },
    )

    return allocations
