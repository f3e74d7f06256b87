from django.db import transaction
from rest_framework import serializers

from apps.catalog.api.v1.serializers import UnitField
from apps.catalog.models import Product
from apps.core.models import Warehouse
from apps.purchasing.models import (
    GoodsReceipt,
    GoodsReceiptLine,
    PurchaseOrder,
    PurchaseOrderItem,
    PurchaseOrderStatus,
)
from apps.purchasing.receiving import post_goods_receipt


class PurchaseOrderItemSerializer(serializers.ModelSerializer):
    unit = UnitField(required=False)
    product_code = serializers.CharField(source="product.code", read_only=True)

    class Meta:
        model = PurchaseOrderItem
        fields = (
            "id",
            "product",
            "product_code",
            "quantity",
            "unit",
            "received_quantity",
            "unit_price",
            "created_at",
            "updated_at",
        )
        read_only_fields = ("id", "received_quantity", "created_at", "updated_at")

    def validate_quantity(self, value):
        if value <= 0:
            raise serializers.ValidationError("quantity must be greater than 0.")
        return value

    def validate_product(self, value):
        if not value.is_active:
            raise serializers.ValidationError("product is inactive.")
        return value


class PurchaseOrderSerializer(serializers.ModelSerializer):
    items = PurchaseOrderItemSerializer(many=True)

    class Meta:
        model = PurchaseOrder
        fields = (
            "id",
            "po_number",
            "supplier",
            "warehouse",
            "ownership_type",
            "status",
            "order_date",
            "expected_date",
            "notes",
            "metadata",
            "items",
            "created_at",
            "updated_at",
        )
        read_only_fields = ("id", "status", "created_at", "updated_at")

    def validate_items(self, value):
        if not value:
            raise serializers.ValidationError("At least one item is required.")
        return value

    def create(self, validated_data):
        items_data = validated_data.pop("items", [])
        with transaction.atomic():
            purchase_order = PurchaseOrder.objects.create(**validated_data)
            PurchaseOrderItem.objects.bulk_create(
                [PurchaseOrderItem(purchase_order=purchase_order, **item_data) for item_data in items_data]
            )
        return purchase_order


class GoodsReceiptLineSerializer(serializers.ModelSerializer):
    unit = UnitField(required=False)
    product = serializers.PrimaryKeyRelatedField(
        queryset=Product.objects.all(),
        required=False,
    )

    class Meta:
        model = GoodsReceiptLine
        fields = (
            "id",
            "purchase_order_item",
            "product",
            "quantity",
            "unit",
            "stock_quantity",
            "pallet_count",
            "carton_count",
            "unit_price",
            "created_at",
            "updated_at",
        )
        read_only_fields = ("id", "stock_quantity", "created_at", "updated_at")

    def validate_quantity(self, value):
        if value <= 0:
            raise serializers.ValidationError("quantity must be greater than 0.")
        return value


class GoodsReceiptSerializer(serializers.ModelSerializer):
    lines = GoodsReceiptLineSerializer(many=True)
    warehouse = serializers.PrimaryKeyRelatedField(
        queryset=Warehouse.objects.filter(is_active=True),
        required=False,
    )

    class Meta:
        model = GoodsReceipt
        fields = (
            "id",
            "purchase_order",
            "warehouse",
            "delivery_note_number",
            "received_at",
            "received_by",
            "metadata",
            "lines",
            "created_at",
            "updated_at",
        )
        read_only_fields = ("id", "received_by", "created_at", "updated_at")

    def validate(self, attrs):
        purchase_order = attrs.get("purchase_order")
        lines = attrs.get("lines", [])
        line_errors = []
        has_errors = False

        if purchase_order.status == PurchaseOrderStatus.CANCELLED:
            raise serializers.ValidationError({"purchase_order": "purchase_order is cancelled."})
        if not lines:
            raise serializers.ValidationError({"lines": "At least one line is required."})

        for line in lines:
            current_error = {}
            item = line.get("purchase_order_item")
            product = line.get("product")
            if item is not None:
                if item.purchase_order_id != purchase_order.id:
                    current_error["purchase_order_item"] = (
                        "purchase_order_item must belong to the selected purchase order."
                    )
                    has_errors = True
                elif product is not None and product.pk != item.product_id:
                    current_error["product"] = "product does not match the purchase order item."
                    has_errors = True
                else:
                    line["product"] = item.product
                    line.setdefault("unit", item.unit)
            elif product is None:
                current_error["product"] = "product or purchase_order_item is required."
                has_errors = True
            elif not product.is_active:
                current_error["product"] = "product is inactive."
                has_errors = True
            else:
                line.setdefault("unit", product.primary_unit)
            line_errors.append(current_error)

        if has_errors:
            raise serializers.ValidationError({"lines": line_errors})

        attrs.setdefault("warehouse", purchase_order.warehouse)
        return attrs

    def create(self, validated_data):
        lines_data = validated_data.pop("lines", [])
        actor = self.context.get("actor")
        with transaction.atomic():
            receipt = GoodsReceipt.objects.create(received_by=actor, **validated_data)
            GoodsReceiptLine.objects.bulk_create(
                [GoodsReceiptLine(receipt=receipt, **line_data) for line_data in lines_data]
            )
            post_goods_receipt(receipt, created_by=actor)
        return receipt
