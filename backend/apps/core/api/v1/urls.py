from django.urls import path
from rest_framework.routers import DefaultRouter

from apps.core.api.v1.views import HealthView, WarehouseViewSet


router = DefaultRouter()
router.register("warehouses", WarehouseViewSet, basename="warehouse")

urlpatterns = [
    path("health/", HealthView.as_view(), name="health"),
]

urlpatterns += router.urls
