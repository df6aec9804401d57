"""
======================================================
PATH: products/services/inventory.py
======================================================
INVENTORY BATCH SERVICES

Purpose:
- Receive stock as InventoryBatch rows (add_batch).
- Edit / delete batches while keeping Product.stock_quantity synchronized:
    add    -> stock += quantity
    edit   -> stock += (new - old), floored at zero
    delete -> stock -= remaining quantity, floored at zero
- Operational listings (per product, per pharmacy, expiring soon).

Rules:
- Quantities are integer units.
- Every mutation runs inside one transaction with the product row locked.
"""

from __future__ import annotations

from datetime import timedelta

from django.db import transaction
from django.db.models import Case, F, Value, When
from django.utils import timezone

from common.exceptions import ForbiddenError, NotFoundError, ValidationError
from common.money import to_int_qty
from products.models import InventoryBatch, Product
from products.services.stock_fefo import fefo_batches_qs


def _require_product(*, product_id, pharmacy=None, lock=False) -> Product:
    qs = Product.objects.all()
    if lock:
        qs = qs.select_for_update()
    product = qs.filter(id=product_id).first()
    if product is None:
        raise NotFoundError("product")
    if pharmacy is not None and product.pharmacy_id != getattr(pharmacy, "id", pharmacy):
        raise ForbiddenError("product does not belong to this pharmacy")
    return product


def _require_batch(*, batch_id, pharmacy=None, lock=False) -> InventoryBatch:
    qs = InventoryBatch.objects.select_related("product")
    if lock:
        qs = qs.select_for_update()
    batch = qs.filter(id=batch_id).first()
    if batch is None:
        raise NotFoundError("inventory batch")
    if pharmacy is not None and batch.pharmacy_id != getattr(pharmacy, "id", pharmacy):
        raise ForbiddenError("inventory batch does not belong to this pharmacy")
    return batch


def _shift_stock(*, product_id, delta: int) -> None:
    """Apply a signed delta to stock_quantity, never going below zero."""
    if delta == 0:
        return
    if delta > 0:
        Product.objects.filter(id=product_id).update(stock_quantity=F("stock_quantity") + delta)
        return
    drop = -delta
    Product.objects.filter(id=product_id).update(
        stock_quantity=Case(
            When(stock_quantity__gte=drop, then=F("stock_quantity") - drop),
            default=Value(0),
        )
    )


@transaction.atomic
def add_batch(
    *,
    pharmacy,
    product_id,
    batch_number: str,
    quantity,
    expiry_date=None,
) -> InventoryBatch:
    qty = to_int_qty(quantity)
    if qty <= 0:
        raise ValidationError("quantity must be positive")

    product = _require_product(product_id=product_id, pharmacy=pharmacy, lock=True)

    batch = InventoryBatch.objects.create(
        product=product,
        pharmacy_id=product.pharmacy_id,
        batch_number=(batch_number or "").strip(),
        quantity=qty,
        expiry_date=expiry_date,
    )
    _shift_stock(product_id=product.id, delta=qty)
    return batch


@transaction.atomic
def update_batch(*, batch_id, quantity=None, expiry_date=None, pharmacy=None) -> InventoryBatch:
    """
    quantity=None leaves quantity untouched; expiry_date=None leaves expiry untouched.
    """
    batch = _require_batch(batch_id=batch_id, pharmacy=pharmacy, lock=True)
    update_fields = ["updated_at"]

    if quantity is not None:
        new_qty = to_int_qty(quantity)
        if new_qty < 0:
            raise ValidationError("quantity cannot be negative")

        _require_product(product_id=batch.product_id, lock=True)
        delta = new_qty - int(batch.quantity or 0)
        batch.quantity = new_qty
        update_fields.append("quantity")
        _shift_stock(product_id=batch.product_id, delta=delta)

    if expiry_date is not None:
        batch.expiry_date = expiry_date
        update_fields.append("expiry_date")

    batch.save(update_fields=update_fields)
    return batch


@transaction.atomic
def delete_batch(*, batch_id, pharmacy=None) -> None:
    batch = _require_batch(batch_id=batch_id, pharmacy=pharmacy, lock=True)
    _require_product(product_id=batch.product_id, lock=True)

    remaining = int(batch.quantity or 0)
    product_id = batch.product_id
    batch.delete()
    _shift_stock(product_id=product_id, delta=-remaining)


def get_batch(*, batch_id, pharmacy=None) -> InventoryBatch:
    return _require_batch(batch_id=batch_id, pharmacy=pharmacy)


def list_batches_by_product(*, product_id):
    return fefo_batches_qs(product_id=product_id).select_related("product")


def list_batches_by_pharmacy(*, pharmacy):
    return (
        InventoryBatch.objects.filter(pharmacy=pharmacy)
        .select_related("product")
        .order_by(F("expiry_date").asc(nulls_last=True), "created_at")
    )


def has_batches(*, product_id) -> bool:
    return InventoryBatch.objects.filter(product_id=product_id).exists()


def list_expiring_soon(*, pharmacy, days):
    """
    Non-empty batches with a known expiry on or before today + days (already-expired
    stock included), soonest first.
    """
    window = to_int_qty(days, field_name="days")
    if window < 0:
        raise ValidationError("days must be a non-negative integer")

    cutoff = timezone.localdate() + timedelta(days=window)
    return (
        InventoryBatch.objects.filter(
            pharmacy=pharmacy,
            expiry_date__isnull=False,
            expiry_date__lte=cutoff,
            quantity__gt=0,
        )
        .select_related("product")
        .order_by("expiry_date", "created_at")
    )
