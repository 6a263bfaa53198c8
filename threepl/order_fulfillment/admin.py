"""
Django admin configuration for Order Fulfillment & Logistics Assignment.

Status, assignment and stock-commit fields are read-only here: they only
change through the fulfillment services.
"""

from django.contrib import admin
from .models import Order, OrderItem, Shipment, AuditLog, Notification


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ['id', 'created_at']


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ['tracking_code', 'merchant', 'customer_name', 'status', 'assigned_logistics',
                    'total_amount', 'order_date']
    list_filter = ['status', 'merchant', 'order_date']
    search_fields = ['tracking_code', 'customer_name', 'customer_email', 'merchant__name']
    readonly_fields = ['id', 'tracking_code', 'status', 'held_from_status', 'assigned_logistics',
                       'stock_committed_at', 'updated_at']
    inlines = [OrderItemInline]


@admin.register(Shipment)
class ShipmentAdmin(admin.ModelAdmin):
    list_display = ['order', 'carrier_name', 'tracking_number', 'delivery_attempts', 'last_status_update']
    search_fields = ['order__tracking_code', 'tracking_number', 'carrier_name']
    readonly_fields = ['id', 'order', 'delivery_attempts', 'last_status_update', 'created_at', 'updated_at']


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ['title', 'recipient', 'notification_type', 'is_read', 'created_at']
    list_filter = ['notification_type', 'is_read', 'template_kind']
    search_fields = ['title', 'message', 'recipient__username']
    readonly_fields = ['id', 'created_at', 'read_at']


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ['entity_type', 'entity_id', 'action', 'actor', 'timestamp']
    list_filter = ['entity_type', 'action', 'timestamp']
    search_fields = ['entity_id', 'actor__username']
    readonly_fields = ['id', 'entity_type', 'entity_id', 'action', 'actor', 'details', 'timestamp']

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
