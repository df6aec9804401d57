"""
PATH: promotions/models/promo_code.py

PROMO CODE

- code is stored upper-cased and is unique per pharmacy
- max_uses = 0 means unlimited
- used_count only ever increases, through
  promotions.services.promo_codes.increment_used_count (guarded UPDATE)
"""

from __future__ import annotations

import uuid

from django.db import models


class PromoCode(models.Model):
    TYPE_PERCENT = "percent"
    TYPE_FIXED = "fixed"

    DISCOUNT_TYPE_CHOICES = (
        (TYPE_PERCENT, "Percent"),
        (TYPE_FIXED, "Fixed amount"),
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    pharmacy = models.ForeignKey(
        "pharmacies.Pharmacy",
        on_delete=models.CASCADE,
        related_name="promo_codes",
    )

    code = models.CharField(max_length=50)
    discount_type = models.CharField(max_length=10, choices=DISCOUNT_TYPE_CHOICES)
    discount_value = models.DecimalField(max_digits=12, decimal_places=2)
    min_order_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)

    valid_from = models.DateTimeField()
    valid_until = models.DateTimeField()

    max_uses = models.PositiveIntegerField(default=0, help_text="0 = unlimited")
    used_count = models.PositiveIntegerField(default=0)

    is_active = models.BooleanField(default=True)
    first_order_only = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["pharmacy", "code"],
                name="uniq_promo_code_per_pharmacy",
            ),
            models.CheckConstraint(
                condition=models.Q(discount_value__gt=0),
                name="chk_promo_discount_value_positive",
            ),
        ]

    def __str__(self):
        return self.code

    def save(self, *args, **kwargs):
        self.code = (self.code or "").strip().upper()
        super().save(*args, **kwargs)
