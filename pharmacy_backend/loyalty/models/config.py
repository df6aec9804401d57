"""
PATH: loyalty/models/config.py

PER-PHARMACY POINTS CONFIGURATION

ReferralPointsConfig: customer loyalty. Its absence disables loyalty for
the pharmacy entirely (no customer resolution, no points).

StaffPointsConfig: points credited to the staff member who created an
order once it completes. Absence or zero rates disable staff points.

Earn formula (both):
    floor(total / currency_unit_for_points) * points_per_currency_unit
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.db import models


class ReferralPointsConfig(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    pharmacy = models.OneToOneField(
        "pharmacies.Pharmacy",
        on_delete=models.CASCADE,
        related_name="referral_points_config",
    )

    points_per_currency_unit = models.DecimalField(max_digits=12, decimal_places=4, default=Decimal("0"))
    currency_unit_for_points = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("1"))
    referral_reward_points = models.PositiveIntegerField(default=0)
    redemption_rate_points = models.PositiveIntegerField(default=100)
    redemption_rate_currency = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("10"))
    max_redeem_points_per_order = models.PositiveIntegerField(default=0, help_text="0 = no cap")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Referral points config ({self.pharmacy_id})"


class StaffPointsConfig(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    pharmacy = models.OneToOneField(
        "pharmacies.Pharmacy",
        on_delete=models.CASCADE,
        related_name="staff_points_config",
    )

    points_per_currency_unit = models.DecimalField(max_digits=12, decimal_places=4, default=Decimal("0"))
    currency_unit_for_points = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("100"))

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Staff points config ({self.pharmacy_id})"
