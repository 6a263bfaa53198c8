"""
URL configuration for Order Fulfillment & Logistics Assignment.

Provides API endpoints for orders, shipments and notifications.
"""

from rest_framework.routers import DefaultRouter

from .views import OrderViewSet, ShipmentViewSet, NotificationViewSet

# Create router and register viewsets
router = DefaultRouter()
router.register(r'orders', OrderViewSet, basename='order')
router.register(r'shipments', ShipmentViewSet, basename='shipment')
router.register(r'notifications', NotificationViewSet, basename='notification')

# URL patterns
urlpatterns = router.urls
