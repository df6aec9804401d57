# products/admin.py
"""
Admin rules:
- Product rows are editable, but stock_quantity is read-only.
- InventoryBatch rows are shown read-only; quantity changes go through
  products.services.inventory so stock stays synchronized.
"""

from django.contrib import admin

from products.models import InventoryBatch, Product


class InventoryBatchInline(admin.TabularInline):
    model = InventoryBatch
    extra = 0
    can_delete = False
    fields = ("batch_number", "quantity", "expiry_date", "created_at")
    readonly_fields = fields
    ordering = ("expiry_date", "created_at")

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("name", "sku", "pharmacy", "unit_price", "currency", "stock_quantity", "is_active")
    list_filter = ("pharmacy", "is_active")
    search_fields = ("name", "sku")
    readonly_fields = ("stock_quantity", "created_at", "updated_at")
    inlines = [InventoryBatchInline]


@admin.register(InventoryBatch)
class InventoryBatchAdmin(admin.ModelAdmin):
    list_display = ("batch_number", "product", "pharmacy", "quantity", "expiry_date")
    list_filter = ("pharmacy",)
    search_fields = ("batch_number", "product__name", "product__sku")
    readonly_fields = ("product", "pharmacy", "quantity", "created_at", "updated_at")

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
