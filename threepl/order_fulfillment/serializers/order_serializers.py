"""
Order serializers for Order Fulfillment & Logistics Assignment.
"""

from rest_framework import serializers

from ..models import Order, OrderItem


class OrderItemSerializer(serializers.ModelSerializer):
    """Serializer for OrderItem model."""

    product_name = serializers.CharField(source='product.name', read_only=True)
    product_sku = serializers.CharField(source='product.sku', read_only=True)
    line_total = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = OrderItem
        fields = [
            'id', 'product', 'product_name', 'product_sku',
            'quantity', 'unit_price', 'line_total', 'created_at'
        ]
        read_only_fields = fields


class OrderItemInputSerializer(serializers.Serializer):
    """One requested line when creating an order."""

    product_id = serializers.IntegerField()
    quantity = serializers.IntegerField(min_value=1)
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, min_value=0)


class OrderCreateSerializer(serializers.ModelSerializer):
    """Serializer for creating orders."""

    items = OrderItemInputSerializer(many=True, write_only=True)
    merchant_id = serializers.IntegerField(required=False, write_only=True)

    class Meta:
        model = Order
        fields = [
            'merchant_id', 'customer_name', 'customer_email', 'customer_phone',
            'delivery_address', 'notes', 'items'
        ]

    def validate_items(self, value):
        """Validate order items."""
        if not value:
            raise serializers.ValidationError("Order must contain at least one item")
        return value

    def create(self, validated_data):
        """Create order with items."""
        from ..services import OrderService

        return OrderService.create_order(self.context['request'].user, validated_data)


class OrderListSerializer(serializers.ModelSerializer):
    """Serializer for order listing."""

    merchant_name = serializers.CharField(source='merchant.name', read_only=True)
    assigned_logistics_name = serializers.CharField(source='assigned_logistics.username', read_only=True, default=None)

    class Meta:
        model = Order
        fields = [
            'id', 'tracking_code', 'merchant', 'merchant_name', 'customer_name',
            'status', 'total_amount', 'assigned_logistics', 'assigned_logistics_name',
            'fulfillment_warehouse', 'order_date', 'updated_at'
        ]


class OrderDetailSerializer(serializers.ModelSerializer):
    """Serializer for order details."""

    merchant_name = serializers.CharField(source='merchant.name', read_only=True)
    items = OrderItemSerializer(many=True, read_only=True)
    shipment_id = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            'id', 'tracking_code', 'merchant', 'merchant_name',
            'customer_name', 'customer_email', 'customer_phone', 'delivery_address',
            'status', 'held_from_status', 'total_amount',
            'assigned_logistics', 'fulfillment_warehouse', 'stock_committed_at',
            'shipment_id', 'notes', 'created_by', 'order_date', 'updated_at',
            'items'
        ]
        read_only_fields = fields

    def get_shipment_id(self, obj):
        # Reverse one-to-one access raises when no shipment exists yet.
        if hasattr(obj, 'shipment'):
            return str(obj.shipment.id)
        return None


class StatusUpdateSerializer(serializers.Serializer):
    """Requested status; unknown values are rejected by the workflow, not here."""

    status = serializers.CharField(max_length=30)


class AllocateSerializer(serializers.Serializer):
    warehouse_id = serializers.UUIDField(required=False, allow_null=True)


class PickSerializer(serializers.Serializer):
    warehouse_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1)


class WarehousePickSerializer(serializers.Serializer):
    product_id = serializers.IntegerField()
    picks = PickSerializer(many=True)


class AssignLogisticsSerializer(serializers.Serializer):
    """Logistics user to assign, with optional per-warehouse picks."""

    logistics_user_id = serializers.IntegerField()
    warehouse_picks = WarehousePickSerializer(many=True, required=False, allow_null=True)


class BulkStatusSerializer(serializers.Serializer):
    """Serializer for bulk status updates."""

    order_ids = serializers.ListField(child=serializers.CharField(), allow_empty=False)
    status = serializers.CharField(max_length=30)
