# loyalty/admin.py

from django.contrib import admin

from loyalty.models import (
    Customer,
    CustomerMembership,
    Membership,
    PointsTransaction,
    ReferralPointsConfig,
    StaffPointsConfig,
)


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ("name", "phone", "pharmacy", "referral_code", "points_balance", "created_at")
    list_filter = ("pharmacy",)
    search_fields = ("name", "phone", "email", "referral_code")
    readonly_fields = ("referral_code", "points_balance", "referred_by", "created_at", "updated_at")


@admin.register(PointsTransaction)
class PointsTransactionAdmin(admin.ModelAdmin):
    list_display = ("customer", "type", "amount", "order", "created_at")
    list_filter = ("type",)
    search_fields = ("customer__phone", "customer__name")

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Membership)
class MembershipAdmin(admin.ModelAdmin):
    list_display = ("name", "pharmacy", "discount_percent", "is_active", "sort_order")
    list_filter = ("pharmacy", "is_active")


@admin.register(CustomerMembership)
class CustomerMembershipAdmin(admin.ModelAdmin):
    list_display = ("customer", "membership", "created_at")


@admin.register(ReferralPointsConfig)
class ReferralPointsConfigAdmin(admin.ModelAdmin):
    list_display = (
        "pharmacy",
        "points_per_currency_unit",
        "currency_unit_for_points",
        "referral_reward_points",
        "redemption_rate_points",
        "redemption_rate_currency",
    )


@admin.register(StaffPointsConfig)
class StaffPointsConfigAdmin(admin.ModelAdmin):
    list_display = ("pharmacy", "points_per_currency_unit", "currency_unit_for_points")
