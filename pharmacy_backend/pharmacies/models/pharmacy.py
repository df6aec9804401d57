# pharmacies/models/pharmacy.py

import uuid

from django.conf import settings
from django.db import models
from django.db.models import Q


def _default_currency():
    return getattr(settings, "DEFAULT_CURRENCY", "NPR")


class Pharmacy(models.Model):
    """
    Tenant root. Every order, product, promo code and customer is scoped
    to exactly one pharmacy.

    - code is optional, but if provided it must be unique
    - currency is carried opaquely (no conversion)
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=255)

    code = models.CharField(
        max_length=50,
        null=True,
        blank=True,
        help_text="Unique pharmacy/branch code (optional). If set, must be unique.",
        db_index=True,
    )

    address = models.TextField(blank=True)
    phone = models.CharField(max_length=50, blank=True)
    currency = models.CharField(max_length=10, default=_default_currency)

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        verbose_name_plural = "pharmacies"
        constraints = [
            models.UniqueConstraint(
                fields=["code"],
                condition=Q(code__isnull=False) & ~Q(code=""),
                name="uniq_pharmacy_code_when_present",
            ),
        ]

    def __str__(self):
        c = (self.code or "").strip()
        if c:
            return f"{self.name} ({c})"
        return self.name
