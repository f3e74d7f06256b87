from rest_framework import mixins, viewsets
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.core.api.v1.serializers import WarehouseSerializer
from apps.core.models import Warehouse


class HealthView(APIView):
    authentication_classes = []
    permission_classes = []

    def get(self, request):
        return Response({"status": "ok", "service": "ceramica", "version": "v1"})


class WarehouseViewSet(
    mixins.ListModelMixin,
    mixins.CreateModelMixin,
    mixins.RetrieveModelMixin,
    mixins.UpdateModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = WarehouseSerializer

    def get_queryset(self):
        include_inactive = self.request.query_params.get("include_inactive") in {"1", "true", "True"}
        queryset = Warehouse.objects.all() if include_inactive else Warehouse.objects.filter(is_active=True)
        warehouse_type = (self.request.query_params.get("type") or "").strip().upper()
        if warehouse_type:
            queryset = queryset.filter(type=warehouse_type)
        return queryset.order_by("code")
