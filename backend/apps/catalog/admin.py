from django.contrib import admin

from apps.catalog.models import Brand, CatalogEntry, Product, Supplier


@admin.register(Supplier)
class SupplierAdmin(admin.ModelAdmin):
    list_display = ("name", "vat_number", "is_consignor", "created_at")
    search_fields = ("name", "vat_number")
    list_filter = ("is_consignor",)


@admin.register(Brand)
class BrandAdmin(admin.ModelAdmin):
    list_display = ("name", "is_active", "created_at")
    search_fields = ("name",)
    list_filter = ("is_active",)


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = (
        "code",
        "name",
        "brand",
        "size",
        "primary_unit",
        "pieces_per_carton",
        "cartons_per_pallet",
        "line_item_kind",
        "is_active",
    )
    list_filter = ("primary_unit", "line_item_kind", "is_active", "brand")
    search_fields = ("code", "name", "brand__name")


@admin.register(CatalogEntry)
class CatalogEntryAdmin(admin.ModelAdmin):
    list_display = ("product_code", "product_name", "famille", "total_qty", "nb_palette", "nb_colis", "refreshed_at")
    search_fields = ("product_code", "product_name", "famille")
    list_filter = ("famille", "choix", "calibre")

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
