# orders/models/order.py

import uuid
from decimal import Decimal

from django.conf import settings
from django.db import models


def generate_order_number() -> str:
    return f"ORD-{uuid.uuid4().hex[:8].upper()}"


class Order(models.Model):
    """
    Pharmacy order.

    Key rules:
    - Money fields are written ONCE by orders.services.order_service.create_order
        total    = max(0, subtotal - discount)
        discount = min(subtotal, membership + promo/manual + points)
    - status moves ONLY through orders.services.order_lifecycle
    - tax_amount is carried for reporting and is always 0 here
    """

    STATUS_PENDING = "pending"
    STATUS_CONFIRMED = "confirmed"
    STATUS_PROCESSING = "processing"
    STATUS_READY = "ready"
    STATUS_COMPLETED = "completed"
    STATUS_CANCELLED = "cancelled"

    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_CONFIRMED, "Confirmed"),
        (STATUS_PROCESSING, "Processing"),
        (STATUS_READY, "Ready"),
        (STATUS_COMPLETED, "Completed"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    pharmacy = models.ForeignKey(
        "pharmacies.Pharmacy",
        on_delete=models.PROTECT,
        related_name="orders",
    )

    order_number = models.CharField(
        max_length=32,
        unique=True,
        blank=True,
        help_text="System-generated order number (ORD-XXXXXXXX)",
    )

    # Customer info (free text, optional)
    customer_name = models.CharField(max_length=255, blank=True, default="")
    customer_phone = models.CharField(max_length=50, blank=True, default="")
    customer_email = models.EmailField(blank=True, default="")

    customer = models.ForeignKey(
        "loyalty.Customer",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="orders",
    )

    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default=STATUS_PENDING,
        db_index=True,
    )

    # Money fields (server authoritative)
    subtotal_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    discount_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    tax_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    currency = models.CharField(max_length=10, blank=True)

    promo_code = models.ForeignKey(
        "promotions.PromoCode",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="orders",
    )
    referral_code_used = models.CharField(max_length=16, blank=True, default="")
    points_redeemed = models.PositiveIntegerField(default=0)

    notes = models.TextField(blank=True, default="")

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="orders_created",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["pharmacy", "status"], name="orders_orde_pharmac_a41c7e_idx"),
            models.Index(fields=["pharmacy", "created_at"], name="orders_orde_pharmac_0b9d52_idx"),
            models.Index(fields=["customer", "status"], name="orders_orde_custome_6e2f18_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(total_amount__gte=0),
                name="chk_order_total_non_negative",
            ),
            models.CheckConstraint(
                condition=models.Q(discount_amount__gte=0),
                name="chk_order_discount_non_negative",
            ),
        ]

    def save(self, *args, **kwargs):
        if not self.order_number:
            self.order_number = generate_order_number()
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.order_number} | {self.total_amount} | {self.status}"
