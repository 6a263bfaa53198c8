"""
Notification serializers for Order Fulfillment & Logistics Assignment.
"""

from rest_framework import serializers

from ..models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Notification
        fields = [
            'id', 'notification_type', 'title', 'message', 'link_url',
            'template_kind', 'template_data', 'is_read', 'read_at', 'created_at'
        ]
        read_only_fields = fields
