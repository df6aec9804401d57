# orders/models/order_item.py

import uuid
from decimal import Decimal

from django.db import models


class OrderItem(models.Model):
    """
    Order line: created together with the order, never mutated.

    unit_price is a snapshot taken at order time.
    total_price = quantity * unit_price
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="items",
    )
    product = models.ForeignKey(
        "products.Product",
        on_delete=models.PROTECT,
        related_name="order_items",
    )

    quantity = models.PositiveIntegerField()
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    total_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gt=0),
                name="chk_order_item_quantity_positive",
            ),
        ]

    def __str__(self):
        return f"{self.product_id} x {self.quantity}"
