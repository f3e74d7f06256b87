from django.db import transaction
from rest_framework import serializers

from apps.catalog.api.v1.serializers import UnitField
from apps.core.api.fields import quantity_field
from apps.sales.models import Order, OrderItem


class OrderItemSerializer(serializers.ModelSerializer):
    unit = UnitField(required=False)
    product_code = serializers.CharField(source="product.code", read_only=True)
    line_item_kind = serializers.CharField(source="product.line_item_kind", read_only=True)
    stock_quantity = quantity_field(allow_null=True)
    reserved_quantity = quantity_field()
    pallet_count = quantity_field(allow_null=True)
    carton_count = quantity_field(allow_null=True)

    class Meta:
        model = OrderItem
        fields = (
            "id",
            "product",
            "product_code",
            "line_item_kind",
            "quantity",
            "unit",
            "unit_price",
            "stock_quantity",
            "reserved_quantity",
            "pallet_count",
            "carton_count",
        )
        read_only_fields = ("id",)

    def validate_quantity(self, value):
        if value <= 0:
            raise serializers.ValidationError("quantity must be greater than 0.")
        return value

    def validate_product(self, value):
        if not value.is_active:
            raise serializers.ValidationError("product is inactive.")
        return value

    def validate(self, attrs):
        attrs.setdefault("unit", attrs["product"].primary_unit)
        return attrs


class OrderSerializer(serializers.ModelSerializer):
    items = OrderItemSerializer(many=True)

    class Meta:
        model = Order
        fields = (
            "id",
            "order_number",
            "customer_name",
            "warehouse",
            "ownership_type",
            "status",
            "notes",
            "items",
            "confirmed_at",
            "delivered_at",
            "created_at",
            "updated_at",
        )
        read_only_fields = ("id", "status", "confirmed_at", "delivered_at", "created_at", "updated_at")

    def validate_warehouse(self, value):
        if not value.is_active:
            raise serializers.ValidationError("warehouse is inactive.")
        return value

    def validate_items(self, value):
        if not value:
            raise serializers.ValidationError("At least one item is required.")
        return value

    def create(self, validated_data):
        items_data = validated_data.pop("items", [])
        with transaction.atomic():
            order = Order.objects.create(**validated_data)
            OrderItem.objects.bulk_create([OrderItem(order=order, **item_data) for item_data in items_data])
        return order
