# products/models/product.py

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q


def _default_currency():
    return getattr(settings, "DEFAULT_CURRENCY", "NPR")


class Product(models.Model):
    """
    Represents a sellable, pharmacy-scoped catalog entry.

    STOCK MODEL (IMPORTANT):
    - stock_quantity is the single stock counter read by order pricing
    - when InventoryBatch rows exist, stock_quantity tracks their sum
      (kept in step by products.services.inventory / stock_fefo)
    - when no batches exist, stock_quantity is the only source of truth
    - stock_quantity is mutated ONLY via services
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    pharmacy = models.ForeignKey(
        "pharmacies.Pharmacy",
        on_delete=models.CASCADE,
        related_name="products",
    )

    sku = models.CharField(max_length=128, db_index=True)
    name = models.CharField(max_length=255, db_index=True)

    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    currency = models.CharField(max_length=10, default=_default_currency)

    stock_quantity = models.PositiveIntegerField(
        default=0,
        help_text="Units on hand (service-managed only).",
    )

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["pharmacy", "name"], name="products_pr_pharmac_5c1f0e_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["pharmacy", "sku"],
                name="uniq_product_sku_per_pharmacy",
            ),
            models.CheckConstraint(
                condition=Q(unit_price__gte=0),
                name="chk_product_unit_price_non_negative",
            ),
        ]

    def __str__(self):
        return f"{self.name} ({self.sku})"

    def clean(self):
        if self.unit_price is None or Decimal(self.unit_price) < 0:
            raise ValidationError("Unit price cannot be negative")
