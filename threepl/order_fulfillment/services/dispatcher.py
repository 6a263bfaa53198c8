"""
Side-effect dispatcher for Order Fulfillment & Logistics Assignment.

Audit entries and merchant notifications are produced after the state change
has committed. Every sink call is isolated: a failing sink is logged and
never undoes or blocks the primary write.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from django.conf import settings
from django.db import transaction

from users.models import MERCHANT_ROLES, User
from ..adapters.audit_adapter import get_audit_sink
from ..adapters.notification_adapter import get_notification_sink
from ..models import Order, OrderStatus, NotificationType

logger = logging.getLogger(__name__)

STATUS_TITLES = {
    OrderStatus.NEW: 'Order Created',
    OrderStatus.AWAITING_ALLOC: 'Order Awaiting Allocation',
    OrderStatus.DISPATCHED: 'Order Dispatched',
    OrderStatus.PICKED_UP: 'Order Picked Up',
    OrderStatus.DELIVERING: 'Order Delivering',
    OrderStatus.DELIVERED: 'Order Delivered',
    OrderStatus.RETURNED: 'Order Returned',
    OrderStatus.CANCELED: 'Order Canceled',
    OrderStatus.ON_HOLD: 'Order On Hold',
}

STATUS_MESSAGES = {
    OrderStatus.NEW: 'Order #{code} has been created and is now active.',
    OrderStatus.AWAITING_ALLOC: 'Order #{code} is awaiting allocation to a warehouse or logistics provider.',
    OrderStatus.DISPATCHED: 'Order #{code} has been dispatched for delivery.',
    OrderStatus.PICKED_UP: 'Order #{code} has been picked up by logistics.',
    OrderStatus.DELIVERING: 'Order #{code} is currently out for delivery.',
    OrderStatus.DELIVERED: 'Order #{code} has been delivered to the customer.',
    OrderStatus.RETURNED: 'Order #{code} has been returned to the warehouse.',
    OrderStatus.CANCELED: 'Order #{code} has been canceled.',
    OrderStatus.ON_HOLD: 'Order #{code} is currently on hold.',
}

TEMPLATE_STATUS_CHANGED = 'order_status_changed'
TEMPLATE_DELIVERY_FAILED = 'order_delivery_failed'


@dataclass(frozen=True)
class TransitionEvent:
    order_id: Any
    old_status: str
    new_status: str
    actor_id: Any
    details: Dict[str, Any] = field(default_factory=dict)


def notification_type_for(status: str) -> str:
    if status == OrderStatus.DELIVERED:
        return NotificationType.SUCCESS
    if status == OrderStatus.CANCELED:
        return NotificationType.ERROR
    return NotificationType.INFO


def merchant_link(order_id) -> str:
    return settings.FULFILLMENT.get('MERCHANT_ORDER_LINK', '/merchant/orders/{order_id}').format(order_id=order_id)


def merchant_recipients(business_id):
    """Primary keys of every merchant user of a business."""
    return list(
        User.objects.filter(business_id=business_id, role__in=MERCHANT_ROLES, is_active=True)
        .order_by('pk')
        .values_list('pk', flat=True)
    )


def safe_audit(actor_id, entity_type: str, entity_id, action: str, details: Optional[Dict[str, Any]] = None) -> bool:
    """Record an audit entry, logging instead of raising on failure."""
    try:
        get_audit_sink().record_audit(actor_id, entity_type, entity_id, action, details or {})
        return True
    except Exception:
        logger.exception(f"Audit sink failed for {entity_type} {entity_id} action {action}")
        return False


def safe_notify(user_id, message: str, link: Optional[str], template_kind: str, template_data: Dict[str, Any]) -> bool:
    """Send a notification, logging instead of raising on failure."""
    try:
        get_notification_sink().notify(user_id, message, link, template_kind, template_data)
        return True
    except Exception:
        logger.exception(f"Notification sink failed for user {user_id} ({template_kind})")
        return False


def notify_merchant_users(order: Order, title: str, message: str, notification_type: str,
                          template_kind: str, extra: Optional[Dict[str, Any]] = None) -> int:
    """
    Notify all merchant users of the order's business.

    Returns:
        Number of notifications delivered to the sink
    """
    try:
        recipients = merchant_recipients(order.merchant_id)
    except Exception:
        logger.exception(f"Could not resolve notification recipients for order {order.id}")
        return 0

    template_data = {
        'title': title,
        'notification_type': notification_type,
        'order_id': str(order.id),
        'tracking_code': order.tracking_code,
        'status': order.status,
    }
    template_data.update(extra or {})
    link = merchant_link(order.id)

    delivered = 0
    for user_id in recipients:
        if safe_notify(user_id, message, link, template_kind, template_data):
            delivered += 1
    return delivered


def dispatch_transition(event: TransitionEvent) -> None:
    """
    Emit the audit entry and merchant notifications for an accepted transition.

    Never raises.
    """
    details = {'old_status': event.old_status, 'new_status': event.new_status}
    details.update(event.details)
    safe_audit(event.actor_id, 'Order', event.order_id, 'STATUS_CHANGED', details)

    try:
        order = Order.objects.get(pk=event.order_id)
    except Exception:
        logger.exception(f"Could not load order {event.order_id} for status notifications")
        return

    status = event.new_status
    code = order.tracking_code
    title = STATUS_TITLES.get(status, 'Order Status Updated')
    message = STATUS_MESSAGES.get(status, 'Order #{code} status updated to {status}.').format(code=code, status=status)
    sent = notify_merchant_users(
        order, title, message, notification_type_for(status), TEMPLATE_STATUS_CHANGED,
        {'old_status': event.old_status, 'new_status': status},
    )
    logger.info(f"Dispatched {event.old_status} -> {status} for order {code} to {sent} merchant user(s)")


def dispatch_event(actor_id, entity_type: str, entity_id, action: str,
                   details: Optional[Dict[str, Any]] = None) -> None:
    """Emit a non-transition audit entry (assignment, regions, tracking updates)."""
    safe_audit(actor_id, entity_type, entity_id, action, details)


def dispatch_failed_attempt(order_id, shipment_id, actor_id, attempts: int, reason: str = '') -> None:
    """Audit a failed delivery attempt and warn the merchant."""
    safe_audit(actor_id, 'Shipment', shipment_id, 'DELIVERY_FAILED', {
        'order_id': str(order_id),
        'delivery_attempts': attempts,
        'reason': reason,
    })

    try:
        order = Order.objects.get(pk=order_id)
    except Exception:
        logger.exception(f"Could not load order {order_id} for delivery failure notification")
        return

    message = f"Delivery attempt {attempts} for order #{order.tracking_code} failed."
    if reason:
        message = f"{message} Reason: {reason}"
    notify_merchant_users(
        order, 'Delivery Attempt Failed', message, NotificationType.WARNING, TEMPLATE_DELIVERY_FAILED,
        {'delivery_attempts': attempts, 'reason': reason},
    )


def schedule(func, *args, **kwargs) -> None:
    """Run a dispatch function once the surrounding transaction commits."""
    transaction.on_commit(lambda: func(*args, **kwargs), robust=True)


def schedule_transition(order_id, old_status: str, new_status: str, actor_id, **details) -> None:
    schedule(dispatch_transition, TransitionEvent(
        order_id=order_id,
        old_status=old_status,
        new_status=new_status,
        actor_id=actor_id,
        details=details,
    ))
