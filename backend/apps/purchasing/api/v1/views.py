import logging

from rest_framework import mixins, status, viewsets
from rest_framework.response import Response

from apps.catalog.services import projection
from apps.core.api.authentication import resolve_actor
from apps.core.api.exceptions import inventory_error_status
from apps.integration import import_batches
from apps.inventory.errors import InventoryError
from apps.purchasing.api.v1.serializers import GoodsReceiptSerializer, PurchaseOrderSerializer
from apps.purchasing.models import GoodsReceipt, PurchaseOrder


logger = logging.getLogger(__name__)


class PurchaseOrderViewSet(
    mixins.ListModelMixin,
    mixins.CreateModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = PurchaseOrderSerializer

    def get_queryset(self):
        queryset = PurchaseOrder.objects.select_related("supplier", "warehouse").prefetch_related("items__product")
        status_filter = (self.request.query_params.get("status") or "").strip().upper()
        if status_filter:
            queryset = queryset.filter(status=status_filter)
        supplier = self.request.query_params.get("supplier")
        if supplier:
            queryset = queryset.filter(supplier_id=supplier)
        return queryset


class GoodsReceiptViewSet(mixins.CreateModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    queryset = GoodsReceipt.objects.prefetch_related("lines")
    serializer_class = GoodsReceiptSerializer

    def get_serializer_context(self):
        context = super().get_serializer_context()
        context["actor"] = resolve_actor(self.request)
        return context

    def create(self, request, *args, **kwargs):
        import_type = "goods_receipt"
        key = import_batches.idempotency_key(request)
        if not key:
            return Response({"detail": import_batches.MISSING_KEY_DETAIL}, status=status.HTTP_400_BAD_REQUEST)

        existing = import_batches.find_completed_batch(import_type, key)
        if existing:
            data, status_code = import_batches.replay(existing)
            return Response(data, status=status_code)

        batch = import_batches.start_batch(import_type, key, request.data)

        serializer = self.get_serializer(data=request.data)
        if not serializer.is_valid():
            import_batches.fail_batch(batch, status.HTTP_400_BAD_REQUEST, serializer.errors)
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        try:
            instance = serializer.save()
        except InventoryError as exc:
            import_batches.fail_batch(
                batch,
                inventory_error_status(exc),
                {"code": exc.kind.value, "detail": exc.message},
            )
            raise
        except Exception as exc:
            logger.exception("Goods receipt %s failed", serializer.validated_data.get("delivery_note_number"))
            import_batches.fail_batch(batch, status.HTTP_500_INTERNAL_SERVER_ERROR, {"detail": str(exc)})
            raise

        refresh = projection.rebuild()
        data = self.get_serializer(instance).data
        data["catalog_refreshed_at"] = refresh.refreshed_at.isoformat()
        import_batches.complete_batch(batch, status.HTTP_201_CREATED, data)
        headers = self.get_success_headers(data)
        return Response(data, status=status.HTTP_201_CREATED, headers=headers)
