# payments/models/payment_gateway.py

from __future__ import annotations

import uuid

from django.db import models


class PaymentGateway(models.Model):
    """
    A payment channel a pharmacy accepts (esewa, khalti, qr, cod, fonepay, ...).
    code is lower-cased and unique per pharmacy.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    pharmacy = models.ForeignKey(
        "pharmacies.Pharmacy",
        on_delete=models.CASCADE,
        related_name="payment_gateways",
    )

    code = models.CharField(max_length=50)
    name = models.CharField(max_length=100)
    is_active = models.BooleanField(default=True)
    sort_order = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["sort_order", "name"]
        constraints = [
            models.UniqueConstraint(
                fields=["pharmacy", "code"],
                name="uniq_payment_gateway_code_per_pharmacy",
            ),
        ]

    def __str__(self):
        return f"{self.name} ({self.code})"

    def save(self, *args, **kwargs):
        self.code = (self.code or "").strip().lower()
        super().save(*args, **kwargs)
