# orders/api/serializers.py

from rest_framework import serializers

from orders.models import Order, OrderItem


class OrderItemSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source="product.name", read_only=True)

    class Meta:
        model = OrderItem
        fields = ["id", "product", "product_name", "quantity", "unit_price", "total_price"]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    items = OrderItemSerializer(many=True, read_only=True)
    promo_code = serializers.CharField(source="promo_code.code", read_only=True, default=None)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "status",
            "customer_name",
            "customer_phone",
            "customer_email",
            "customer",
            "subtotal_amount",
            "discount_amount",
            "tax_amount",
            "total_amount",
            "currency",
            "promo_code",
            "referral_code_used",
            "points_redeemed",
            "notes",
            "created_by",
            "created_at",
            "updated_at",
            "items",
        ]
        read_only_fields = fields


class OrderItemInputSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1)
    unit_price = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=0, required=False, allow_null=True
    )


class OrderCreateSerializer(serializers.Serializer):
    """
    Input shape for POST /orders/.

    Omitted optional fields reach the service as None ("not supplied").
    """

    customer_name = serializers.CharField(required=False, allow_blank=True, default="")
    customer_phone = serializers.CharField(required=False, allow_blank=True, default="")
    customer_email = serializers.EmailField(required=False, allow_blank=True, default="")
    items = OrderItemInputSerializer(many=True, allow_empty=False)
    notes = serializers.CharField(required=False, allow_blank=True, default="")

    discount_amount = serializers.DecimalField(
        max_digits=12, decimal_places=2, required=False, allow_null=True, default=None
    )
    promo_code = serializers.CharField(required=False, allow_blank=True, allow_null=True, default=None)
    referral_code = serializers.CharField(required=False, allow_blank=True, allow_null=True, default=None)
    points_to_redeem = serializers.IntegerField(required=False, allow_null=True, min_value=0, default=None)
    payment_gateway_id = serializers.UUIDField(required=False, allow_null=True, default=None)


class OrderStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Order.STATUS_CHOICES)
