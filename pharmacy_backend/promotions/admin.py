# promotions/admin.py

from django.contrib import admin

from promotions.models import PromoCode


@admin.register(PromoCode)
class PromoCodeAdmin(admin.ModelAdmin):
    list_display = (
        "code",
        "pharmacy",
        "discount_type",
        "discount_value",
        "used_count",
        "max_uses",
        "valid_until",
        "is_active",
    )
    list_filter = ("pharmacy", "discount_type", "is_active", "first_order_only")
    search_fields = ("code",)
    readonly_fields = ("used_count", "created_at", "updated_at")
