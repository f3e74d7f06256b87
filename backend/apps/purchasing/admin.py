from django.contrib import admin

from apps.purchasing.models import GoodsReceipt, GoodsReceiptLine, PurchaseOrder, PurchaseOrderItem


class PurchaseOrderItemInline(admin.TabularInline):
    model = PurchaseOrderItem
    extra = 0


class GoodsReceiptLineInline(admin.TabularInline):
    model = GoodsReceiptLine
    extra = 0


@admin.register(PurchaseOrder)
class PurchaseOrderAdmin(admin.ModelAdmin):
    list_display = ("po_number", "supplier", "warehouse", "ownership_type", "status", "order_date")
    search_fields = ("po_number", "supplier__name")
    list_filter = ("status", "ownership_type", "warehouse")
    inlines = (PurchaseOrderItemInline,)


@admin.register(GoodsReceipt)
class GoodsReceiptAdmin(admin.ModelAdmin):
    list_display = ("delivery_note_number", "purchase_order", "warehouse", "received_at", "received_by")
    search_fields = ("delivery_note_number", "purchase_order__po_number")
    inlines = (GoodsReceiptLineInline,)
