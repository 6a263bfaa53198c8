"""
Notification Service for Order Fulfillment & Logistics Assignment.

Read-side access to in-app notifications written by the database sink.
"""

import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from django.utils import timezone

from ..exceptions import NotFoundException
from ..models import Notification

logger = logging.getLogger(__name__)


class NotificationService:
    """Service class for notification operations."""

    @staticmethod
    def list_for_user(user, unread_only: bool = False):
        queryset = Notification.objects.filter(recipient=user)
        if unread_only:
            queryset = queryset.filter(is_read=False)
        return queryset

    @staticmethod
    def unread_count(user) -> int:
        return Notification.objects.filter(recipient=user, is_read=False).count()

    @staticmethod
    def mark_read(user, notification_id) -> Notification:
        """
        Mark one of the user's notifications as read.

        Raises:
            NotFoundException: If the notification does not exist or belongs to someone else
        """
        try:
            notification = Notification.objects.get(pk=notification_id, recipient=user)
        except (Notification.DoesNotExist, ValueError, DjangoValidationError):
            raise NotFoundException("Notification", notification_id)
        notification.mark_as_read()
        return notification

    @staticmethod
    def mark_all_read(user) -> int:
        """Mark every unread notification of the user as read; returns the count."""
        updated = Notification.objects.filter(recipient=user, is_read=False).update(
            is_read=True, read_at=timezone.now()
        )
        logger.info(f"Marked {updated} notifications read for user {user.pk}")
        return updated
