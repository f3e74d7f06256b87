from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from apps.catalog.services import projection
from apps.core.api.authentication import resolve_actor
from apps.sales.api.v1.serializers import OrderSerializer
from apps.sales.fulfilment import InvalidOrderState, cancel_order, confirm_order, deliver_order
from apps.sales.models import Order


class OrderViewSet(
    mixins.ListModelMixin,
    mixins.CreateModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = OrderSerializer

    def get_queryset(self):
        queryset = Order.objects.select_related("warehouse").prefetch_related("items__product")
        status_filter = (self.request.query_params.get("status") or "").strip().upper()
        if status_filter:
            queryset = queryset.filter(status=status_filter)
        warehouse = self.request.query_params.get("warehouse")
        if warehouse:
            queryset = queryset.filter(warehouse_id=warehouse)
        return queryset

    def _transition(self, handler, **kwargs):
        order = self.get_object()
        try:
            order = handler(order, **kwargs)
        except InvalidOrderState as exc:
            return Response(
                {"code": "invalid_state", "detail": str(exc), "field_errors": {}},
                status=status.HTTP_409_CONFLICT,
            )
        return Response(self.get_serializer(self.get_queryset().get(pk=order.pk)).data)

    @action(detail=True, methods=["post"])
    def confirm(self, request, pk=None):
        return self._transition(confirm_order)

    @action(detail=True, methods=["post"])
    def deliver(self, request, pk=None):
        response = self._transition(deliver_order, created_by=resolve_actor(request))
        if response.status_code == status.HTTP_200_OK:
            projection.rebuild()
        return response

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):
        return self._transition(cancel_order)
