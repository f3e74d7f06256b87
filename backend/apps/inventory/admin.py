from django.contrib import admin

from apps.inventory.models import InventoryRecord, InventoryTransaction, ProductMerge


@admin.register(InventoryRecord)
class InventoryRecordAdmin(admin.ModelAdmin):
    list_display = (
        "product",
        "warehouse",
        "ownership_type",
        "quantity_on_hand",
        "quantity_reserved",
        "pallet_count",
        "carton_count",
        "updated_at",
    )
    search_fields = ("product__code", "product__name", "warehouse__code")
    list_filter = ("ownership_type", "warehouse")
    readonly_fields = ("quantity_on_hand", "quantity_reserved", "pallet_count", "carton_count")


@admin.register(InventoryTransaction)
class InventoryTransactionAdmin(admin.ModelAdmin):
    list_display = (
        "created_at",
        "transaction_type",
        "product",
        "warehouse",
        "ownership_type",
        "quantity",
        "reference_type",
        "reference_id",
        "created_by",
    )
    search_fields = ("product__code", "reference_id", "correlation_id", "created_by")
    list_filter = ("transaction_type", "reference_type", "ownership_type")

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(ProductMerge)
class ProductMergeAdmin(admin.ModelAdmin):
    list_display = ("keep_product", "drop_product", "performed_by", "created_at", "restored_at")
    search_fields = ("keep_product__code", "drop_product__code", "performed_by")
    readonly_fields = ("snapshot", "repointed")
