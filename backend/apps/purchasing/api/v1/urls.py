from django.urls import path
from rest_framework.routers import DefaultRouter

from apps.purchasing.api.v1.views import GoodsReceiptViewSet, PurchaseOrderViewSet


router = DefaultRouter()
router.register("purchase-orders", PurchaseOrderViewSet, basename="purchase-order")

urlpatterns = [
    path(
        "goods-receipts/",
        GoodsReceiptViewSet.as_view({"post": "create"}),
        name="goods-receipt-create",
    ),
    path(
        "goods-receipts/<uuid:pk>/",
        GoodsReceiptViewSet.as_view({"get": "retrieve"}),
        name="goods-receipt-detail",
    ),
]

urlpatterns += router.urls
