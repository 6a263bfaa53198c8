"""
Notification Adapter for Order Fulfillment & Logistics Assignment.

Narrow interface to the notification system. Template rendering and
email/SMS transport live behind this boundary and are not part of the engine.
"""

from abc import ABC, abstractmethod
from typing import Dict, Any, List, Optional

from django.conf import settings
from django.utils.module_loading import import_string

from ..models import Notification, NotificationType
from ..models.audit import _json_safe

DEFAULT_TITLE = "Fulfillment Notification"


class NotificationSinkInterface(ABC):
    """
    Interface for delivering notifications to platform users.

    Callers treat every call as fire-and-forget.
    """

    @abstractmethod
    def notify(self, user_id, message: str, link: Optional[str], template_kind: str,
               template_data: Dict[str, Any]) -> Any:
        """
        Send a notification to a user.

        Args:
            user_id: Recipient user primary key
            message: Human readable message
            link: Optional in-app link
            template_kind: Template key understood by the delivery system
            template_data: Data for rendering the template
        """
        pass


class DatabaseNotificationSink(NotificationSinkInterface):
    """Stores in-app notifications as Notification rows."""

    def notify(self, user_id, message, link, template_kind, template_data):
        data = template_data or {}
        return Notification.objects.create(
            recipient_id=user_id,
            title=data.get('title', DEFAULT_TITLE),
            message=message,
            link_url=link or '',
            notification_type=data.get('notification_type', NotificationType.INFO),
            template_kind=template_kind,
            template_data=_json_safe(data),
        )


class InMemoryNotificationSink(NotificationSinkInterface):
    """
    Deterministic sink for development and testing.

    Keeps every call in ``sent`` instead of delivering it.
    """

    def __init__(self):
        self.sent: List[Dict[str, Any]] = []

    def notify(self, user_id, message, link, template_kind, template_data):
        entry = {
            'user_id': user_id,
            'message': message,
            'link': link,
            'template_kind': template_kind,
            'template_data': template_data or {},
        }
        self.sent.append(entry)
        return entry


# Global sink instance, built lazily from settings.FULFILLMENT['NOTIFICATION_SINK']
notification_sink: Optional[NotificationSinkInterface] = None


def get_notification_sink() -> NotificationSinkInterface:
    """Factory function to get the configured notification sink."""
    global notification_sink
    if notification_sink is None:
        notification_sink = import_string(settings.FULFILLMENT['NOTIFICATION_SINK'])()
    return notification_sink


def switch_notification_sink(sink: Optional[NotificationSinkInterface]):
    """
    Replace the notification sink.

    Args:
        sink: Sink implementation, or None to rebuild from settings on next use
    """
    global notification_sink
    notification_sink = sink
