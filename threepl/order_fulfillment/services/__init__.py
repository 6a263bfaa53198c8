"""
Order Fulfillment & Logistics Assignment Services
"""

from .workflow import OrderWorkflow, validate_order_workflow, validate_status_value
from .order_store import OrderStore, BulkStatusResult, TransitionResult
from .shipment_tracker import ShipmentTracker
from .order_service import OrderService
from .assignment_service import AssignmentService
from .notification_service import NotificationService

__all__ = [
    # Workflow validators
    'OrderWorkflow', 'validate_order_workflow', 'validate_status_value',

    # Services
    'OrderStore', 'BulkStatusResult', 'TransitionResult',
    'ShipmentTracker', 'OrderService', 'AssignmentService', 'NotificationService',
]
