"""
PATH: loyalty/models/customer.py

LOYALTY CUSTOMER

A pharmacy-scoped shopper identified by phone number.

Rules:
- phone is unique per pharmacy
- referral_code is unique per pharmacy (when present)
- points_balance never goes negative and only moves together with a
  PointsTransaction row (see loyalty.services.referral_points)
- referred_by is set at most once
"""

from __future__ import annotations

import uuid

from django.db import models


class Customer(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    pharmacy = models.ForeignKey(
        "pharmacies.Pharmacy",
        on_delete=models.CASCADE,
        related_name="customers",
    )

    name = models.CharField(max_length=255, blank=True)
    phone = models.CharField(max_length=50)
    email = models.EmailField(blank=True)

    referral_code = models.CharField(max_length=16, blank=True, db_index=True)
    points_balance = models.PositiveIntegerField(default=0)

    referred_by = models.ForeignKey(
        "self",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="referrals",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["pharmacy", "phone"],
                name="uniq_customer_phone_per_pharmacy",
            ),
            models.UniqueConstraint(
                fields=["pharmacy", "referral_code"],
                condition=~models.Q(referral_code=""),
                name="uniq_customer_referral_code_per_pharmacy",
            ),
        ]

    def __str__(self):
        return f"{self.name or 'Customer'} ({self.phone})"
