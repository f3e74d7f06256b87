from django.contrib import admin

from apps.core.models import Warehouse


@admin.register(Warehouse)
class WarehouseAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "type", "location", "is_active", "created_at")
    list_filter = ("type", "is_active")
    search_fields = ("code", "name", "location")
