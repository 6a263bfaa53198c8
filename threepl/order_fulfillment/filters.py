"""
List filters for Order Fulfillment & Logistics Assignment.
"""

import django_filters

from .models import Order, OrderStatus


class OrderFilter(django_filters.FilterSet):
    status = django_filters.ChoiceFilter(choices=OrderStatus.choices)
    date_from = django_filters.IsoDateTimeFilter(field_name='order_date', lookup_expr='gte')
    date_to = django_filters.IsoDateTimeFilter(field_name='order_date', lookup_expr='lte')

    class Meta:
        model = Order
        fields = ['status', 'merchant', 'assigned_logistics', 'fulfillment_warehouse']
