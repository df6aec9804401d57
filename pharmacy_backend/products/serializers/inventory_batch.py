# products/serializers/inventory_batch.py
"""
======================================================
PATH: products/serializers/inventory_batch.py
======================================================
INVENTORY BATCH SERIALIZERS

- InventoryBatchSerializer: read shape (includes product name).
- InventoryBatchWriteSerializer: input validation for create / PATCH.
  Quantities move only through products.services.inventory, so the
  write serializer never saves anything itself.
"""

from __future__ import annotations

from rest_framework import serializers

from products.models import InventoryBatch


class InventoryBatchSerializer(serializers.ModelSerializer):
    product_id = serializers.UUIDField(source="product.id", read_only=True)
    product_name = serializers.CharField(source="product.name", read_only=True)
    is_expired = serializers.BooleanField(read_only=True)

    class Meta:
        model = InventoryBatch
        fields = [
            "id",
            "product_id",
            "product_name",
            "pharmacy",
            "batch_number",
            "quantity",
            "expiry_date",
            "is_expired",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class InventoryBatchWriteSerializer(serializers.Serializer):
    product_id = serializers.UUIDField(required=False)
    batch_number = serializers.CharField(required=False, allow_blank=True, max_length=100)
    quantity = serializers.IntegerField(required=False)
    expiry_date = serializers.DateField(required=False, allow_null=True)

    def validate(self, attrs):
        creating = self.instance is None and not self.partial
        if creating:
            if not attrs.get("product_id"):
                raise serializers.ValidationError({"product_id": "product_id is required"})
            if attrs.get("quantity") is None:
                raise serializers.ValidationError({"quantity": "quantity is required"})
        return attrs
