"""
Order Fulfillment & Logistics Assignment Views
"""

from .order_views import OrderViewSet
from .shipment_views import ShipmentViewSet
from .notification_views import NotificationViewSet

__all__ = [
    'OrderViewSet',
    'ShipmentViewSet',
    'NotificationViewSet',
]
