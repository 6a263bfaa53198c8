"""
Shipment serializers for Order Fulfillment & Logistics Assignment.
"""

from rest_framework import serializers

from ..models import Shipment


class ShipmentListSerializer(serializers.ModelSerializer):
    """Serializer for shipment listing."""

    order_tracking_code = serializers.CharField(source='order.tracking_code', read_only=True)
    order_status = serializers.CharField(source='order.status', read_only=True)
    has_tracking = serializers.SerializerMethodField()

    class Meta:
        model = Shipment
        fields = [
            'id', 'order', 'order_tracking_code', 'order_status', 'carrier_name',
            'tracking_number', 'has_tracking', 'delivery_attempts', 'last_status_update', 'created_at'
        ]

    def get_has_tracking(self, obj):
        return bool(obj.tracking_number)


class ShipmentDetailSerializer(serializers.ModelSerializer):
    """Serializer for shipment details."""

    order_tracking_code = serializers.CharField(source='order.tracking_code', read_only=True)
    order_status = serializers.CharField(source='order.status', read_only=True)
    assigned_logistics = serializers.IntegerField(source='order.assigned_logistics_id', read_only=True)
    customer_name = serializers.CharField(source='order.customer_name', read_only=True)
    delivery_address = serializers.CharField(source='order.delivery_address', read_only=True)

    class Meta:
        model = Shipment
        fields = [
            'id', 'order', 'order_tracking_code', 'order_status', 'assigned_logistics',
            'customer_name', 'delivery_address', 'carrier_name', 'tracking_number',
            'delivery_attempts', 'last_status_update', 'created_at', 'updated_at'
        ]
        read_only_fields = fields


class TrackingUpdateSerializer(serializers.Serializer):
    tracking_number = serializers.CharField(max_length=100, required=False, allow_blank=True)
    carrier_name = serializers.CharField(max_length=100, required=False, allow_blank=True)

    def validate(self, data):
        if 'tracking_number' not in data and 'carrier_name' not in data:
            raise serializers.ValidationError("Provide tracking_number or carrier_name")
        return data


class FailedAttemptSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=500, required=False, allow_blank=True, default='')
