from decimal import Decimal

from django.conf import settings
from django.db.models import Q
from django.http import HttpResponse
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.catalog.services import projection
from apps.catalog.services.units import PackagingSpec, convert
from apps.core.api.authentication import resolve_actor
from apps.core.api.exceptions import inventory_error_status
from apps.core.api.pagination import TransactionLogPagination
from apps.integration import import_batches
from apps.inventory.api.v1.serializers import (
    AdjustmentSerializer,
    InventoryLevelQuerySerializer,
    InventoryRecordSerializer,
    InventoryTransactionSerializer,
    MergeRequestSerializer,
    ProductMergeSerializer,
    StockImportSerializer,
    TransactionQuerySerializer,
    TransferSerializer,
)
from apps.inventory.errors import InventoryError
from apps.inventory.models import InventoryRecord, ProductMerge
from apps.inventory.services import history, ledger, reconciliation, stock_import


def _to_stock_unit(product, quantity: Decimal, unit: str | None) -> Decimal:
    if not unit or unit == product.primary_unit:
        return quantity
    magnitude = convert(PackagingSpec.for_product(product), abs(quantity), unit, product.primary_unit)
    return -magnitude if quantity < 0 else magnitude


class InventoryLevelViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    serializer_class = InventoryRecordSerializer

    def get_queryset(self):
        query = InventoryLevelQuerySerializer(data=self.request.query_params)
        query.is_valid(raise_exception=True)
        params = query.validated_data
        queryset = InventoryRecord.objects.select_related("product", "product__brand", "warehouse").filter(
            product__is_active=True
        )

        if params.get("product"):
            queryset = queryset.filter(product_id=params["product"])
        if params.get("warehouse"):
            queryset = queryset.filter(warehouse_id=params["warehouse"])
        if params.get("ownership_type"):
            queryset = queryset.filter(ownership_type=params["ownership_type"])
        if params.get("warehouse_type"):
            queryset = queryset.filter(warehouse__type=params["warehouse_type"])
        if params.get("brand"):
            queryset = queryset.filter(product__brand_id=params["brand"])

        search = (params.get("search") or "").strip()
        if search:
            queryset = queryset.filter(
                Q(product__code__icontains=search)
                | Q(product__name__icontains=search)
                | Q(product__brand__name__icontains=search)
            )

        stock_level = params.get("stock_level")
        if stock_level == "out":
            queryset = queryset.filter(quantity_on_hand__lte=0)
        elif stock_level == "low":
            threshold = Decimal(str(getattr(settings, "LOW_STOCK_THRESHOLD", "100")))
            queryset = queryset.filter(quantity_on_hand__gt=0, quantity_on_hand__lte=threshold)

        return queryset.order_by("product__name", "warehouse__code", "ownership_type")

    @action(detail=False, methods=["get"])
    def export(self, request):
        response = HttpResponse(content_type="text/csv; charset=utf-8")
        response["Content-Disposition"] = 'attachment; filename="stock.csv"'
        stock_import.write_stock_csv(self.get_queryset(), response)
        return response


class InventoryTransactionViewSet(mixins.ListModelMixin, viewsets.GenericViewSet):
    serializer_class = InventoryTransactionSerializer
    pagination_class = TransactionLogPagination

    def get_queryset(self):
        params = TransactionQuerySerializer(data=self.request.query_params)
        params.is_valid(raise_exception=True)
        return history.query_transactions(**params.validated_data)


class AdjustmentView(APIView):
    def post(self, request):
        serializer = AdjustmentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        payload = serializer.validated_data

        product = ledger.resolve_product(payload["product"])
        entry = ledger.adjust(
            product,
            payload["warehouse"],
            payload["ownership_type"],
            _to_stock_unit(product, payload["delta_quantity"], payload.get("unit")),
            payload.get("delta_pallets"),
            payload.get("delta_cartons"),
            reference_id=payload.get("reference_id") or None,
            created_by=resolve_actor(request),
            notes=payload.get("notes") or None,
        )
        refreshed_at = projection.rebuild().refreshed_at if payload["refresh_catalog"] else None
        return Response(
            {
                "record": InventoryRecordSerializer(entry.record).data,
                "transaction": InventoryTransactionSerializer(entry.transaction).data,
                "catalog_refreshed_at": refreshed_at,
            },
            status=status.HTTP_201_CREATED,
        )


class TransferView(APIView):
    def post(self, request):
        serializer = TransferSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        payload = serializer.validated_data

        product = ledger.resolve_product(payload["product"])
        result = ledger.transfer(
            product,
            payload["from_warehouse"],
            payload["to_warehouse"],
            payload["ownership_type"],
            _to_stock_unit(product, payload["quantity"], payload.get("unit")),
            created_by=resolve_actor(request),
            notes=payload.get("notes") or None,
            reference_id=payload.get("reference_id") or None,
        )
        return Response(
            {
                "correlation_id": str(result.correlation_id),
                "source": InventoryRecordSerializer(result.source.record).data,
                "destination": InventoryRecordSerializer(result.destination.record).data,
                "transactions": InventoryTransactionSerializer(
                    [result.source.transaction, result.destination.transaction],
                    many=True,
                ).data,
            },
            status=status.HTTP_201_CREATED,
        )


class ProductMergeViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.CreateModelMixin,
    viewsets.GenericViewSet,
):
    queryset = ProductMerge.objects.select_related("keep_product", "drop_product")
    serializer_class = ProductMergeSerializer

    def create(self, request, *args, **kwargs):
        serializer = MergeRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        product_merge = reconciliation.merge_and_rebuild(
            serializer.validated_data["keep_product"],
            serializer.validated_data["drop_product"],
            performed_by=resolve_actor(request),
        )
        return Response(self.get_serializer(product_merge).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["post"])
    def restore(self, request, pk=None):
        product_merge = reconciliation.restore_snapshot(self.get_object(), performed_by=resolve_actor(request))
        projection.rebuild()
        return Response(self.get_serializer(product_merge).data)


class StockImportView(APIView):
    parser_classes = (MultiPartParser, FormParser)

    def post(self, request):
        import_type = "stock_import"
        key = import_batches.idempotency_key(request)
        if not key:
            return Response({"detail": import_batches.MISSING_KEY_DETAIL}, status=status.HTTP_400_BAD_REQUEST)

        existing = import_batches.find_completed_batch(import_type, key)
        if existing:
            data, status_code = import_batches.replay(existing)
            return Response(data, status=status_code)

        serializer = StockImportSerializer(data=request.data)
        batch = import_batches.start_batch(
            import_type,
            key,
            {"warehouse": request.data.get("warehouse"), "file": getattr(request.data.get("file"), "name", None)},
        )
        if not serializer.is_valid():
            import_batches.fail_batch(batch, status.HTTP_400_BAD_REQUEST, serializer.errors)
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        try:
            rows = stock_import.parse_stock_csv(serializer.validated_data["file"].read())
            result = stock_import.import_stock(
                rows,
                serializer.validated_data["warehouse"],
                created_by=resolve_actor(request),
            )
        except InventoryError as exc:
            import_batches.fail_batch(
                batch,
                inventory_error_status(exc),
                {"code": exc.kind.value, "detail": exc.message},
            )
            raise
        except Exception as exc:
            import_batches.fail_batch(batch, status.HTTP_500_INTERNAL_SERVER_ERROR, {"detail": str(exc)})
            raise

        data = result.as_dict()
        import_batches.complete_batch(batch, status.HTTP_200_OK, data)
        return Response(data, status=status.HTTP_200_OK)
