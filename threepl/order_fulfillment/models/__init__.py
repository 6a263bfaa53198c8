"""
Order Fulfillment & Logistics Assignment Models
"""

from .order import Order, OrderStatus, TERMINAL_STATUSES
from .order_item import OrderItem
from .shipment import Shipment
from .audit import AuditLog
from .notification import Notification, NotificationType

__all__ = [
    # Order models
    'Order', 'OrderStatus', 'TERMINAL_STATUSES',
    'OrderItem',

    # Shipment models
    'Shipment',

    # Side-effect records
    'AuditLog',
    'Notification', 'NotificationType',
]
