from decimal import Decimal

from rest_framework import serializers

from apps.catalog.api.v1.serializers import UnitField
from apps.core.api.fields import quantity_field
from apps.core.models import Warehouse
from apps.inventory.models import (
    InventoryRecord,
    InventoryTransaction,
    OwnershipType,
    ProductMerge,
    ReferenceType,
    TransactionType,
)
from apps.inventory.services.history import parse_bound


class InventoryRecordSerializer(serializers.ModelSerializer):
    product_code = serializers.CharField(source="product.code", read_only=True)
    product_name = serializers.CharField(source="product.name", read_only=True)
    primary_unit = serializers.CharField(source="product.primary_unit", read_only=True)
    brand_name = serializers.CharField(source="product.brand.name", read_only=True)
    warehouse_code = serializers.CharField(source="warehouse.code", read_only=True)
    warehouse_type = serializers.CharField(source="warehouse.type", read_only=True)
    quantity_on_hand = quantity_field()
    quantity_reserved = quantity_field()
    quantity_available = quantity_field()
    pallet_count = quantity_field()
    carton_count = quantity_field()
    is_overdrawn = serializers.BooleanField(read_only=True)

    class Meta:
        model = InventoryRecord
        fields = (
            "id",
            "product",
            "product_code",
            "product_name",
            "primary_unit",
            "brand_name",
            "warehouse",
            "warehouse_code",
            "warehouse_type",
            "ownership_type",
            "quantity_on_hand",
            "quantity_reserved",
            "quantity_available",
            "pallet_count",
            "carton_count",
            "is_overdrawn",
            "updated_at",
        )
        read_only_fields = fields


class InventoryTransactionSerializer(serializers.ModelSerializer):
    product_code = serializers.CharField(source="product.code", read_only=True)
    warehouse_code = serializers.CharField(source="warehouse.code", read_only=True)
    quantity = quantity_field()
    signed_quantity = quantity_field()
    pallet_count = quantity_field()
    carton_count = quantity_field()

    class Meta:
        model = InventoryTransaction
        fields = (
            "id",
            "product",
            "product_code",
            "warehouse",
            "warehouse_code",
            "ownership_type",
            "transaction_type",
            "quantity",
            "signed_quantity",
            "pallet_count",
            "carton_count",
            "reference_type",
            "reference_id",
            "correlation_id",
            "notes",
            "created_by",
            "created_at",
        )
        read_only_fields = fields


class TransactionQuerySerializer(serializers.Serializer):
    product = serializers.UUIDField(required=False)
    warehouse = serializers.UUIDField(required=False)
    transaction_type = serializers.ChoiceField(choices=TransactionType.choices, required=False)
    reference_type = serializers.ChoiceField(choices=ReferenceType.choices, required=False)
    reference_id = serializers.CharField(required=False)
    date_from = serializers.CharField(required=False)
    date_to = serializers.CharField(required=False)
    created_by = serializers.CharField(required=False)
    search = serializers.CharField(required=False, allow_blank=True)

    def _validate_bound(self, value):
        try:
            parse_bound(value)
        except ValueError as exc:
            raise serializers.ValidationError(str(exc)) from exc
        return value

    def validate_date_from(self, value):
        return self._validate_bound(value)

    def validate_date_to(self, value):
        return self._validate_bound(value)


class AdjustmentSerializer(serializers.Serializer):
    product = serializers.UUIDField()
    warehouse = serializers.UUIDField()
    ownership_type = serializers.ChoiceField(choices=OwnershipType.choices, default=OwnershipType.OWNED)
    delta_quantity = serializers.DecimalField(max_digits=16, decimal_places=4)
    delta_pallets = serializers.DecimalField(max_digits=16, decimal_places=4, required=False, allow_null=True)
    delta_cartons = serializers.DecimalField(max_digits=16, decimal_places=4, required=False, allow_null=True)
    unit = UnitField(required=False)
    reference_id = serializers.CharField(required=False, allow_blank=True, max_length=128)
    notes = serializers.CharField(required=False, allow_blank=True)
    refresh_catalog = serializers.BooleanField(default=True)

    def validate_delta_quantity(self, value):
        if value == 0:
            raise serializers.ValidationError("delta_quantity must not be 0.")
        return value


class TransferSerializer(serializers.Serializer):
    product = serializers.UUIDField()
    from_warehouse = serializers.UUIDField()
    to_warehouse = serializers.UUIDField()
    ownership_type = serializers.ChoiceField(choices=OwnershipType.choices, default=OwnershipType.OWNED)
    quantity = serializers.DecimalField(max_digits=16, decimal_places=4, min_value=Decimal("0.0001"))
    unit = UnitField(required=False)
    reference_id = serializers.CharField(required=False, allow_blank=True, max_length=128)
    notes = serializers.CharField(required=False, allow_blank=True)


class ProductMergeSerializer(serializers.ModelSerializer):
    keep_product_code = serializers.CharField(source="keep_product.code", read_only=True)
    drop_product_code = serializers.CharField(source="drop_product.code", read_only=True)

    class Meta:
        model = ProductMerge
        fields = (
            "id",
            "keep_product",
            "keep_product_code",
            "drop_product",
            "drop_product_code",
            "snapshot",
            "repointed",
            "performed_by",
            "restored_at",
            "created_at",
        )
        read_only_fields = fields


class MergeRequestSerializer(serializers.Serializer):
    keep_product = serializers.UUIDField()
    drop_product = serializers.UUIDField()


class StockImportSerializer(serializers.Serializer):
    warehouse = serializers.UUIDField()
    file = serializers.FileField()


class InventoryLevelQuerySerializer(serializers.Serializer):
    product = serializers.UUIDField(required=False)
    warehouse = serializers.UUIDField(required=False)
    brand = serializers.UUIDField(required=False)
    ownership_type = serializers.ChoiceField(choices=OwnershipType.choices, required=False)
    warehouse_type = serializers.ChoiceField(choices=Warehouse.Type.choices, required=False)
    search = serializers.CharField(required=False, allow_blank=True)
    stock_level = serializers.ChoiceField(choices=("low", "out"), required=False)
