from rest_framework.routers import DefaultRouter

from apps.sales.api.v1.views import OrderViewSet


router = DefaultRouter()
router.register("orders", OrderViewSet, basename="order")

urlpatterns = router.urls
