from rest_framework import serializers

from apps.core.models import Warehouse


class WarehouseSerializer(serializers.ModelSerializer):
    class Meta:
        model = Warehouse
        fields = ("id", "code", "name", "type", "location", "is_active", "created_at", "updated_at")
        read_only_fields = ("id", "created_at", "updated_at")

    def validate_code(self, value):
        normalized = value.strip().upper().replace(" ", "-")
        if not normalized:
            raise serializers.ValidationError("Warehouse code is required.")
        return normalized
