from decimal import Decimal

from rest_framework import serializers

from apps.catalog.models import Brand, CatalogEntry, Product, Supplier
from apps.catalog.services.units import UNIT_ALIASES
from apps.core.api.fields import quantity_field


class SupplierSerializer(serializers.ModelSerializer):
    class Meta:
        model = Supplier
        fields = ("id", "name", "vat_number", "is_consignor", "metadata", "created_at", "updated_at")
        read_only_fields = ("id", "created_at", "updated_at")


class BrandSerializer(serializers.ModelSerializer):
    class Meta:
        model = Brand
        fields = ("id", "name", "is_active", "created_at", "updated_at")
        read_only_fields = ("id", "created_at", "updated_at")


class ProductSerializer(serializers.ModelSerializer):
    brand_name = serializers.CharField(source="brand.name", read_only=True)

    class Meta:
        model = Product
        fields = (
            "id",
            "code",
            "name",
            "brand",
            "brand_name",
            "size",
            "calibre",
            "choix",
            "primary_unit",
            "pieces_per_carton",
            "cartons_per_pallet",
            "line_item_kind",
            "base_price",
            "purchase_price",
            "is_active",
            "metadata",
            "created_at",
            "updated_at",
        )
        read_only_fields = ("id", "is_active", "created_at", "updated_at")

    def validate_code(self, value):
        normalized = value.strip()
        if not normalized:
            raise serializers.ValidationError("Product code is required.")
        return normalized

    def validate_name(self, value):
        normalized = " ".join(value.split())
        if not normalized:
            raise serializers.ValidationError("Product name is required.")
        return normalized


class UnitField(serializers.CharField):
    def to_internal_value(self, data):
        value = super().to_internal_value(data).strip().upper()
        if value not in UNIT_ALIASES:
            self.fail("invalid_unit", value=data)
        return UNIT_ALIASES[value]

    default_error_messages = {"invalid_unit": "Unknown unit: {value}."}


class ConversionRequestSerializer(serializers.Serializer):
    quantity = serializers.DecimalField(max_digits=16, decimal_places=4, min_value=Decimal("0"))
    from_unit = UnitField()
    to_unit = UnitField()


class CatalogEntrySerializer(serializers.ModelSerializer):
    total_qty = quantity_field()
    nb_palette = quantity_field()
    nb_colis = quantity_field()

    class Meta:
        model = CatalogEntry
        fields = (
            "product_id",
            "product_code",
            "product_name",
            "brand_id",
            "famille",
            "size",
            "calibre",
            "choix",
            "primary_unit",
            "line_item_kind",
            "pieces_per_carton",
            "cartons_per_pallet",
            "derived_pieces_per_carton",
            "derived_cartons_per_pallet",
            "prix_vente",
            "prix_achat",
            "total_qty",
            "nb_palette",
            "nb_colis",
            "refreshed_at",
        )
        read_only_fields = fields


class CatalogQuerySerializer(serializers.Serializer):
    search = serializers.CharField(required=False, allow_blank=True)
    famille = serializers.CharField(required=False, allow_blank=True)
    choix = serializers.CharField(required=False, allow_blank=True)
    calibre = serializers.CharField(required=False, allow_blank=True)
    ids = serializers.CharField(required=False, allow_blank=True)
    sort_by = serializers.CharField(required=False, allow_blank=True)
    sort_order = serializers.ChoiceField(choices=("ASC", "DESC", "asc", "desc"), required=False)
    page = serializers.IntegerField(required=False, min_value=1, default=1)
    limit = serializers.IntegerField(required=False, min_value=1)


class CatalogStatsSerializer(serializers.Serializer):
    total_qty = quantity_field()
    total_pallets = quantity_field()
    total_cartons = quantity_field()
    total_purchase_value = quantity_field()
    total_sale_value = quantity_field()
    total_products = serializers.IntegerField(read_only=True)
    refreshed_at = serializers.DateTimeField(read_only=True, allow_null=True)
