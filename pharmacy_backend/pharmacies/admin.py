# pharmacies/admin.py

from django.contrib import admin

from pharmacies.models import Pharmacy


@admin.register(Pharmacy)
class PharmacyAdmin(admin.ModelAdmin):
    list_display = ("name", "code", "currency", "is_active", "created_at")
    list_filter = ("is_active",)
    search_fields = ("name", "code", "phone")
