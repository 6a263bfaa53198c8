from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import WarehouseViewSet, LogisticsRegionViewSet

router = DefaultRouter()
router.register(r"warehouses", WarehouseViewSet, basename="warehouse")
router.register(r"regions", LogisticsRegionViewSet, basename="logisticsregion")

urlpatterns = [
    path("", include(router.urls)),
]
