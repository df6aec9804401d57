"""
======================================================
PATH: payments/models/payment.py
======================================================
PAYMENT MODEL

A payment recorded against an order.

Lifecycle:
    pending -> completed (paid_at stamped)
    pending -> failed
    completed -> refunded
"""

from __future__ import annotations

import uuid

from django.conf import settings
from django.db import models


class Payment(models.Model):
    METHOD_CASH = "cash"
    METHOD_CARD = "card"
    METHOD_ONLINE = "online"
    METHOD_WALLET = "wallet"
    METHOD_QR = "qr"
    METHOD_COD = "cod"
    METHOD_FONEPAY = "fonepay"
    METHOD_OTHER = "other"

    METHOD_CHOICES = (
        (METHOD_CASH, "Cash"),
        (METHOD_CARD, "Card"),
        (METHOD_ONLINE, "Online"),
        (METHOD_WALLET, "Wallet"),
        (METHOD_QR, "QR"),
        (METHOD_COD, "Cash on delivery"),
        (METHOD_FONEPAY, "Fonepay"),
        (METHOD_OTHER, "Other"),
    )

    STATUS_PENDING = "pending"
    STATUS_COMPLETED = "completed"
    STATUS_FAILED = "failed"
    STATUS_REFUNDED = "refunded"

    STATUS_CHOICES = (
        (STATUS_PENDING, "Pending"),
        (STATUS_COMPLETED, "Completed"),
        (STATUS_FAILED, "Failed"),
        (STATUS_REFUNDED, "Refunded"),
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.PROTECT,
        related_name="payments",
    )
    pharmacy = models.ForeignKey(
        "pharmacies.Pharmacy",
        on_delete=models.PROTECT,
        related_name="payments",
    )
    gateway = models.ForeignKey(
        "payments.PaymentGateway",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="payments",
    )

    amount = models.DecimalField(max_digits=12, decimal_places=2)
    currency = models.CharField(max_length=10)
    method = models.CharField(max_length=20, choices=METHOD_CHOICES)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    reference = models.CharField(max_length=255, blank=True)
    paid_at = models.DateTimeField(null=True, blank=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="payments_recorded",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=0),
                name="chk_payment_amount_positive",
            ),
        ]

    def __str__(self):
        return f"{self.method} {self.amount} {self.currency} ({self.status})"
