# promotions/api/serializers.py

from rest_framework import serializers

from promotions.models import PromoCode


class PromoCodeSerializer(serializers.ModelSerializer):
    class Meta:
        model = PromoCode
        fields = [
            "id",
            "code",
            "discount_type",
            "discount_value",
            "min_order_amount",
            "valid_from",
            "valid_until",
            "max_uses",
            "used_count",
            "is_active",
            "first_order_only",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "used_count", "created_at", "updated_at"]
        # uniqueness per pharmacy is enforced by the service (409)
        validators = []


class PromoValidateRequestSerializer(serializers.Serializer):
    code = serializers.CharField(allow_blank=True)
    subtotal = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)


class PromoValidateResponseSerializer(serializers.Serializer):
    code = serializers.CharField()
    discount_amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    promo_code_id = serializers.UUIDField()
