# loyalty/api/serializers.py

from rest_framework import serializers

from loyalty.models import (
    Customer,
    Membership,
    PointsTransaction,
    ReferralPointsConfig,
    StaffPointsConfig,
)


class ReferralPointsConfigSerializer(serializers.ModelSerializer):
    class Meta:
        model = ReferralPointsConfig
        fields = [
            "id",
            "points_per_currency_unit",
            "currency_unit_for_points",
            "referral_reward_points",
            "redemption_rate_points",
            "redemption_rate_currency",
            "max_redeem_points_per_order",
            "updated_at",
        ]
        read_only_fields = ["id", "updated_at"]


class StaffPointsConfigSerializer(serializers.ModelSerializer):
    class Meta:
        model = StaffPointsConfig
        fields = ["id", "points_per_currency_unit", "currency_unit_for_points", "updated_at"]
        read_only_fields = ["id", "updated_at"]


class CustomerSerializer(serializers.ModelSerializer):
    referred_by_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = Customer
        fields = [
            "id",
            "name",
            "phone",
            "email",
            "referral_code",
            "points_balance",
            "referred_by_id",
            "created_at",
        ]
        read_only_fields = fields


class PointsTransactionSerializer(serializers.ModelSerializer):
    order_id = serializers.UUIDField(read_only=True)
    referral_customer_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = PointsTransaction
        fields = ["id", "amount", "type", "order_id", "referral_customer_id", "created_at"]
        read_only_fields = fields


class MembershipSerializer(serializers.ModelSerializer):
    class Meta:
        model = Membership
        fields = [
            "id",
            "name",
            "description",
            "discount_percent",
            "is_active",
            "sort_order",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "created_at", "updated_at"]


class MembershipAssignSerializer(serializers.Serializer):
    customer_id = serializers.UUIDField()
    membership_id = serializers.UUIDField()


class ReferralValidateSerializer(serializers.Serializer):
    code = serializers.CharField(allow_blank=True)


class RedeemPreviewRequestSerializer(serializers.Serializer):
    customer_id = serializers.UUIDField()
    points = serializers.IntegerField()
    subtotal = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)


class RedeemPreviewSerializer(serializers.Serializer):
    discount_amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    points_redeemed = serializers.IntegerField()
    max_redeemable = serializers.IntegerField()
    points_balance = serializers.IntegerField()
