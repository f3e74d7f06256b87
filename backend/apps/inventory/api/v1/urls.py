from django.urls import path
from rest_framework.routers import DefaultRouter

from apps.inventory.api.v1.views import (
    AdjustmentView,
    InventoryLevelViewSet,
    InventoryTransactionViewSet,
    ProductMergeViewSet,
    StockImportView,
    TransferView,
)


router = DefaultRouter()
router.register("inventory/levels", InventoryLevelViewSet, basename="inventory-level")
router.register("inventory/transactions", InventoryTransactionViewSet, basename="inventory-transaction")
router.register("inventory/merges", ProductMergeViewSet, basename="inventory-merge")

urlpatterns = [
    path("inventory/adjustments/", AdjustmentView.as_view(), name="inventory-adjustment-create"),
    path("inventory/transfers/", TransferView.as_view(), name="inventory-transfer-create"),
    path("inventory/imports/", StockImportView.as_view(), name="inventory-import-create"),
]

urlpatterns += router.urls
