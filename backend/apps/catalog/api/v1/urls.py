from django.urls import path
from rest_framework.routers import DefaultRouter

from apps.catalog.api.v1.views import (
    BrandViewSet,
    CatalogFiltersView,
    CatalogListView,
    CatalogRebuildView,
    CatalogStatsView,
    ProductViewSet,
    SupplierViewSet,
)


router = DefaultRouter()
router.register("suppliers", SupplierViewSet, basename="supplier")
router.register("brands", BrandViewSet, basename="brand")
router.register("products", ProductViewSet, basename="product")

urlpatterns = [
    path("catalog/", CatalogListView.as_view(), name="catalog-list"),
    path("catalog/filters/", CatalogFiltersView.as_view(), name="catalog-filters"),
    path("catalog/stats/", CatalogStatsView.as_view(), name="catalog-stats"),
    path("catalog/rebuild/", CatalogRebuildView.as_view(), name="catalog-rebuild"),
]

urlpatterns += router.urls
