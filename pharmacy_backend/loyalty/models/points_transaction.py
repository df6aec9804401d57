# loyalty/models/points_transaction.py

"""
======================================================
PATH: loyalty/models/points_transaction.py
======================================================
POINTS LEDGER

One row per customer points balance change.

Guarantees:
- Immutable once created (no updates, no deletes)
- amount is signed: earn rows are positive, redeem rows negative
- earn_referral rows carry the referred customer in referral_customer
"""

from __future__ import annotations

import uuid

from django.core.exceptions import ValidationError
from django.db import models


class PointsTransaction(models.Model):
    TYPE_EARN_PURCHASE = "earn_purchase"
    TYPE_EARN_REFERRAL = "earn_referral"
    TYPE_REDEEM = "redeem"

    TYPE_CHOICES = (
        (TYPE_EARN_PURCHASE, "Earned on purchase"),
        (TYPE_EARN_REFERRAL, "Earned by referral"),
        (TYPE_REDEEM, "Redeemed"),
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    customer = models.ForeignKey(
        "loyalty.Customer",
        on_delete=models.PROTECT,
        related_name="points_transactions",
    )

    amount = models.IntegerField()
    type = models.CharField(max_length=20, choices=TYPE_CHOICES)

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="points_transactions",
    )

    referral_customer = models.ForeignKey(
        "loyalty.Customer",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="referral_rewards",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["customer", "created_at"], name="loyalty_poi_custome_7d41a2_idx"),
        ]

    def __str__(self):
        return f"{self.type} {self.amount:+d} → {self.customer_id}"

    def clean(self):
        if self.type not in dict(self.TYPE_CHOICES):
            raise ValidationError("Invalid points transaction type")

        if self.amount == 0:
            raise ValidationError("Points amount cannot be zero")

        if self.type == self.TYPE_REDEEM and self.amount > 0:
            raise ValidationError("Redeem rows must carry a negative amount")

        if self.type != self.TYPE_REDEEM and self.amount < 0:
            raise ValidationError("Earn rows must carry a positive amount")

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("PointsTransaction records are immutable and cannot be modified")

        self.clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("PointsTransaction records are immutable and cannot be deleted")
