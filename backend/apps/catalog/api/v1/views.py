from django.db.models import Q
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.catalog.api.v1.serializers import (
    BrandSerializer,
    CatalogEntrySerializer,
    CatalogQuerySerializer,
    CatalogStatsSerializer,
    ConversionRequestSerializer,
    ProductSerializer,
    SupplierSerializer,
)
from apps.catalog.models import Brand, Product, Supplier
from apps.catalog.services import projection, units


TRUTHY = {"1", "true", "True"}


class SupplierViewSet(viewsets.ModelViewSet):
    queryset = Supplier.objects.all()
    serializer_class = SupplierSerializer


class BrandViewSet(
    mixins.ListModelMixin,
    mixins.CreateModelMixin,
    mixins.RetrieveModelMixin,
    mixins.UpdateModelMixin,
    viewsets.GenericViewSet,
):
    queryset = Brand.objects.all()
    serializer_class = BrandSerializer


class ProductViewSet(viewsets.ModelViewSet):
    serializer_class = ProductSerializer
    http_method_names = ["get", "post", "patch", "delete", "head", "options"]

    def get_queryset(self):
        queryset = Product.objects.select_related("brand").order_by("name", "code")
        include_inactive = self.request.query_params.get("include_inactive") in TRUTHY
        if not include_inactive and self.action == "list":
            queryset = queryset.filter(is_active=True)
        brand = self.request.query_params.get("brand")
        if brand:
            queryset = queryset.filter(brand_id=brand)
        kind = (self.request.query_params.get("line_item_kind") or "").strip().upper()
        if kind:
            queryset = queryset.filter(line_item_kind=kind)
        query = (self.request.query_params.get("q") or "").strip()
        if query:
            queryset = queryset.filter(Q(name__icontains=query) | Q(code__icontains=query))
        return queryset

    def perform_destroy(self, instance):
        # Products referenced by the ledger are never hard-deleted.
        instance.is_active = False
        instance.save(update_fields=["is_active", "updated_at"])

    @action(detail=True, methods=["post"])
    def convert(self, request, pk=None):
        product = self.get_object()
        serializer = ConversionRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        payload = serializer.validated_data

        spec = units.PackagingSpec.for_product(product)
        result = units.convert(spec, payload["quantity"], payload["from_unit"], payload["to_unit"])
        counts = units.breakdown(spec, payload["quantity"], payload["from_unit"])
        return Response(
            {
                "product": str(product.id),
                "quantity": str(payload["quantity"]),
                "from_unit": payload["from_unit"],
                "to_unit": payload["to_unit"],
                "result": str(result),
                "area_per_piece": str(spec.area_per_piece) if spec.area_per_piece is not None else None,
                "breakdown": {
                    "pieces": str(counts.pieces),
                    "cartons": str(counts.cartons),
                    "pallets": str(counts.pallets),
                },
            }
        )


class CatalogListView(APIView):
    def get(self, request):
        params = CatalogQuerySerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        page = projection.query_catalog(**params.validated_data)
        return Response(
            {
                "results": CatalogEntrySerializer(page.results, many=True).data,
                "pagination": {
                    "page": page.page,
                    "limit": page.limit,
                    "total_count": page.total_count,
                    "total_pages": page.total_pages,
                },
                "refreshed_at": page.refreshed_at,
            }
        )


class CatalogFiltersView(APIView):
    def get(self, request):
        return Response(projection.catalog_filters())


class CatalogStatsView(APIView):
    def get(self, request):
        return Response(CatalogStatsSerializer(projection.catalog_stats()).data)


class CatalogRebuildView(APIView):
    def post(self, request):
        refresh = projection.rebuild()
        return Response(
            {"rows": refresh.rows, "refreshed_at": refresh.refreshed_at},
            status=status.HTTP_200_OK,
        )
