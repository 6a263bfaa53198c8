"""
Shared test data for the fulfillment tests.
"""

from decimal import Decimal

from django.contrib.auth import get_user_model

from products.models import Product
from users.models import Business, Role
from warehouse.models import LogisticsRegion, StockAllocation, Warehouse
from ..adapters.audit_adapter import InMemoryAuditSink, switch_audit_sink
from ..adapters.notification_adapter import (
    InMemoryNotificationSink, NotificationSinkInterface, switch_notification_sink
)
from ..models import Order, OrderItem, OrderStatus


class FailingNotificationSink(NotificationSinkInterface):
    """Sink whose delivery system is down."""

    def __init__(self):
        self.calls = 0

    def notify(self, user_id, message, link, template_kind, template_data):
        self.calls += 1
        raise RuntimeError('notification transport unavailable')


class FulfillmentTestMixin:
    """Two merchants, an admin, two logistics users, two warehouses and stocked products."""

    def setUp(self):
        """Set up test data."""
        User = get_user_model()

        self.business = Business.objects.create(name='Merchant One')
        self.other_business = Business.objects.create(name='Merchant Two')

        self.admin = User.objects.create_user(username='admin', password='testpass123', role=Role.ADMIN)
        self.merchant = User.objects.create_user(
            username='merchant1', password='testpass123', role=Role.MERCHANT, business=self.business
        )
        self.merchant_staff = User.objects.create_user(
            username='staff1', password='testpass123', role=Role.MERCHANT_STAFF, business=self.business
        )
        self.other_merchant = User.objects.create_user(
            username='merchant2', password='testpass123', role=Role.MERCHANT, business=self.other_business
        )
        self.logistics = User.objects.create_user(username='courier1', password='testpass123', role=Role.LOGISTICS)
        self.other_logistics = User.objects.create_user(
            username='courier2', password='testpass123', role=Role.LOGISTICS
        )

        self.warehouse = Warehouse.objects.create(code='WH-A', name='Main', region='North', capacity=1000)
        self.other_warehouse = Warehouse.objects.create(code='WH-B', name='Overflow', region='South', capacity=500)

        self.product = Product.objects.create(
            business=self.business, name='Widget', sku='W-1', unit_price=Decimal('10.00')
        )
        self.other_product = Product.objects.create(
            business=self.business, name='Gadget', sku='G-1', unit_price=Decimal('4.50')
        )

        self.allocation = StockAllocation.objects.create(
            product=self.product, warehouse=self.warehouse, allocated_quantity=20, safety_stock=2
        )
        StockAllocation.objects.create(
            product=self.other_product, warehouse=self.warehouse, allocated_quantity=10, safety_stock=0
        )
        self.warehouse.current_stock = 30
        self.warehouse.save()

        LogisticsRegion.objects.create(user=self.logistics, warehouse=self.warehouse)

        self.notifications = InMemoryNotificationSink()
        self.audits = InMemoryAuditSink()
        switch_notification_sink(self.notifications)
        switch_audit_sink(self.audits)

    def tearDown(self):
        switch_notification_sink(None)
        switch_audit_sink(None)

    def make_order(self, status=OrderStatus.NEW, business=None, logistics=None, warehouse=None,
                   items=None, **kwargs):
        fields = {
            'customer_name': 'Jane Customer',
            'customer_email': 'jane@example.com',
            'customer_phone': '555-0100',
        }
        fields.update(kwargs)
        order = Order.objects.create(
            merchant=business or self.business,
            status=status,
            assigned_logistics=logistics,
            fulfillment_warehouse=warehouse,
            **fields
        )
        for product, quantity in (items if items is not None else [(self.product, 3)]):
            OrderItem.objects.create(order=order, product=product, quantity=quantity, unit_price=product.unit_price)
        order.recalculate_total()
        order.save()
        return order
