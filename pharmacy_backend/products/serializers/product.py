# products/serializers/product.py

"""
PRODUCT SERIALIZER

Purpose:
- Staff-facing Product serializer.
- stock_quantity is READ-ONLY here: it only moves through the inventory
  services (batches) and the order pipeline (FEFO consumption).
"""

from rest_framework import serializers

from products.models import Product


class ProductSerializer(serializers.ModelSerializer):
    has_batches = serializers.SerializerMethodField(read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "pharmacy",
            "sku",
            "name",
            "unit_price",
            "currency",
            "stock_quantity",
            "has_batches",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "id",
            "pharmacy",
            "stock_quantity",
            "has_batches",
            "created_at",
            "updated_at",
        ]

    def validate_sku(self, value):
        value = (value or "").strip().upper()
        if not value:
            raise serializers.ValidationError("SKU is required")
        return value

    def validate_unit_price(self, value):
        if value is not None and value < 0:
            raise serializers.ValidationError("unit_price cannot be negative")
        return value

    def get_has_batches(self, obj) -> bool:
        return obj.inventory_batches.exists()
