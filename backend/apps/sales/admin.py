from django.contrib import admin

from apps.sales.models import Order, OrderItem


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ("stock_quantity", "reserved_quantity", "pallet_count", "carton_count")


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ("order_number", "customer_name", "warehouse", "status", "confirmed_at", "delivered_at")
    search_fields = ("order_number", "customer_name")
    list_filter = ("status", "warehouse")
    inlines = (OrderItemInline,)
