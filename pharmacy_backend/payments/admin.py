# payments/admin.py

from django.contrib import admin

from payments.models import Payment, PaymentGateway


@admin.register(PaymentGateway)
class PaymentGatewayAdmin(admin.ModelAdmin):
    list_display = ("name", "code", "pharmacy", "is_active", "sort_order")
    list_filter = ("pharmacy", "is_active")
    search_fields = ("name", "code")


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ("order", "amount", "currency", "method", "status", "paid_at", "created_at")
    list_filter = ("status", "method", "pharmacy")
    search_fields = ("order__order_number", "reference")
    readonly_fields = (
        "order",
        "pharmacy",
        "gateway",
        "amount",
        "currency",
        "method",
        "status",
        "reference",
        "paid_at",
        "created_by",
        "created_at",
        "updated_at",
    )

    def has_add_permission(self, request):
        return False
