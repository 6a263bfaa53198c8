"""
Notification views for Order Fulfillment & Logistics Assignment.
"""

from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated

from ..exceptions import BusinessException
from ..services import NotificationService
from ..serializers.notification_serializers import NotificationSerializer
from .base import error_response, success_response


class NotificationViewSet(viewsets.ReadOnlyModelViewSet):
    """The caller's own in-app notifications."""

    serializer_class = NotificationSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        unread_only = self.request.query_params.get('unread') in ('1', 'true', 'True')
        return NotificationService.list_for_user(self.request.user, unread_only=unread_only)

    @action(detail=True, methods=['post'])
    def read(self, request, pk=None):
        """Mark one notification as read."""
        try:
            notification = NotificationService.mark_read(request.user, pk)
        except BusinessException as e:
            return error_response(e)
        return success_response(NotificationSerializer(notification).data)

    @action(detail=False, methods=['post'], url_path='read-all')
    def read_all(self, request):
        """Mark all notifications as read."""
        updated = NotificationService.mark_all_read(request.user)
        return success_response({'updated': updated})

    @action(detail=False, methods=['get'], url_path='unread-count')
    def unread_count(self, request):
        return success_response({'unread': NotificationService.unread_count(request.user)})
