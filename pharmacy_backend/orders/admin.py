# orders/admin.py

from django.contrib import admin

from orders.models import Order, OrderItem


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    can_delete = False
    readonly_fields = ("product", "quantity", "unit_price", "total_price", "created_at")


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    """
    Read-mostly: money fields and status are owned by the order service.
    """

    list_display = (
        "order_number",
        "pharmacy",
        "status",
        "subtotal_amount",
        "discount_amount",
        "total_amount",
        "created_by",
        "created_at",
    )
    list_filter = ("pharmacy", "status")
    search_fields = ("order_number", "customer_phone", "customer_name")
    readonly_fields = (
        "order_number",
        "status",
        "subtotal_amount",
        "discount_amount",
        "tax_amount",
        "total_amount",
        "currency",
        "promo_code",
        "referral_code_used",
        "points_redeemed",
        "created_at",
        "updated_at",
    )
    inlines = [OrderItemInline]
