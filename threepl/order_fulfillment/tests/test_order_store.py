"""
Tests for tenant-scoped order reads and bulk status changes.
"""

import uuid
from datetime import timedelta

from django.test import TestCase
from django.utils import timezone

from users.models import Role, User
from ..exceptions import AccessDeniedException, NotFoundException, UnknownStatusException
from ..models import OrderStatus
from ..services import OrderStore
from .fixtures import FulfillmentTestMixin


class OrderScopeTest(FulfillmentTestMixin, TestCase):
    """Test which orders each role can see."""

    def setUp(self):
        super().setUp()
        self.own_order = self.make_order()
        self.assigned_order = self.make_order(status=OrderStatus.PICKED_UP, logistics=self.logistics)
        self.foreign_order = self.make_order(business=self.other_business, items=[])

    def test_merchant_sees_own_business(self):
        visible = set(OrderStore.scope_queryset(self.merchant).values_list('id', flat=True))

        self.assertEqual(visible, {self.own_order.id, self.assigned_order.id})
        self.assertEqual(
            set(OrderStore.scope_queryset(self.merchant_staff).values_list('id', flat=True)), visible
        )

    def test_logistics_sees_assigned_only(self):
        visible = list(OrderStore.scope_queryset(self.logistics).values_list('id', flat=True))

        self.assertEqual(visible, [self.assigned_order.id])
        self.assertFalse(OrderStore.scope_queryset(self.other_logistics).exists())

    def test_admin_sees_everything(self):
        self.assertEqual(OrderStore.scope_queryset(self.admin).count(), 3)

    def test_merchant_without_business_sees_nothing(self):
        orphan = User.objects.create_user(username='orphan', password='testpass123', role=Role.MERCHANT)

        self.assertFalse(OrderStore.scope_queryset(orphan).exists())

    def test_get_by_tracking_code(self):
        order = OrderStore.get_for_actor(self.merchant, self.own_order.tracking_code.lower())

        self.assertEqual(order.id, self.own_order.id)

    def test_missing_order_is_not_found(self):
        with self.assertRaises(NotFoundException):
            OrderStore.get_for_actor(self.admin, uuid.uuid4())
        with self.assertRaises(NotFoundException):
            OrderStore.get_for_actor(self.admin, 'NOSUCHCODE')

    def test_foreign_order_is_access_denied(self):
        with self.assertRaises(AccessDeniedException):
            OrderStore.get_for_actor(self.merchant, self.foreign_order.id)
        with self.assertRaises(AccessDeniedException):
            OrderStore.get_for_actor(self.other_logistics, self.assigned_order.id)


class OrderListTest(FulfillmentTestMixin, TestCase):
    """Test listing filters, search and counts."""

    def test_filter_by_status(self):
        self.make_order()
        delivered = self.make_order(status=OrderStatus.DELIVERED, logistics=self.logistics)

        orders = OrderStore.list_for_actor(self.merchant, status=OrderStatus.DELIVERED)

        self.assertEqual([order.id for order in orders], [delivered.id])

    def test_unknown_status_filter(self):
        with self.assertRaises(UnknownStatusException):
            OrderStore.list_for_actor(self.merchant, status='LOST')

    def test_filter_by_date_range(self):
        now = timezone.now()
        old = self.make_order(order_date=now - timedelta(days=10))
        recent = self.make_order(order_date=now - timedelta(days=1))

        orders = OrderStore.list_for_actor(self.merchant, date_from=now - timedelta(days=3))
        self.assertEqual([order.id for order in orders], [recent.id])

        orders = OrderStore.list_for_actor(self.merchant, date_to=now - timedelta(days=5))
        self.assertEqual([order.id for order in orders], [old.id])

    def test_search_matches_customer_fields(self):
        target = self.make_order(customer_name='Zed Buyer')
        self.make_order()

        self.assertEqual([o.id for o in OrderStore.list_for_actor(self.merchant, search='zed')], [target.id])
        self.assertEqual(
            [o.id for o in OrderStore.list_for_actor(self.merchant, search=target.tracking_code)], [target.id]
        )

    def test_ordering_falls_back_to_newest_first(self):
        now = timezone.now()
        first = self.make_order(order_date=now - timedelta(days=2))
        second = self.make_order(order_date=now - timedelta(days=1))

        orders = OrderStore.list_for_actor(self.merchant, ordering='customer_name; DROP TABLE')
        self.assertEqual([order.id for order in orders], [second.id, first.id])

        orders = OrderStore.list_for_actor(self.merchant, ordering='order_date')
        self.assertEqual([order.id for order in orders], [first.id, second.id])

    def test_status_counts(self):
        self.make_order()
        self.make_order()
        self.make_order(status=OrderStatus.CANCELED)
        self.make_order(business=self.other_business, items=[])

        counts = OrderStore.status_counts(self.merchant)

        self.assertEqual(counts[OrderStatus.NEW], 2)
        self.assertEqual(counts[OrderStatus.CANCELED], 1)
        self.assertEqual(counts[OrderStatus.DELIVERED], 0)
        self.assertEqual(counts['total'], 3)
        self.assertEqual(OrderStore.status_counts(self.admin)['total'], 4)


class BulkStatusTest(FulfillmentTestMixin, TestCase):
    """Test bulk status changes."""

    def test_bulk_cancel_skips_terminal_orders(self):
        open_order = self.make_order()
        delivered = self.make_order(status=OrderStatus.DELIVERED, logistics=self.logistics)

        result = OrderStore.bulk_set_status(self.admin, [open_order.id, delivered.id], OrderStatus.CANCELED)

        self.assertEqual(result.updated_count, 1)
        self.assertEqual(len(result.skipped), 1)
        self.assertEqual(result.skipped[0].order_id, str(delivered.id))
        self.assertEqual(result.skipped[0].error_code, 'INVALID_TRANSITION')

        open_order.refresh_from_db()
        delivered.refresh_from_db()
        self.assertEqual(open_order.status, OrderStatus.CANCELED)
        self.assertEqual(delivered.status, OrderStatus.DELIVERED)

    def test_bulk_reports_missing_orders(self):
        missing = uuid.uuid4()

        result = OrderStore.bulk_set_status(self.admin, [missing], OrderStatus.CANCELED)

        self.assertEqual(result.updated_count, 0)
        self.assertEqual(result.skipped[0].error_code, 'NOT_FOUND')

    def test_bulk_unknown_status_raises(self):
        order = self.make_order()

        with self.assertRaises(UnknownStatusException):
            OrderStore.bulk_set_status(self.admin, [order.id], 'ARCHIVED')

        order.refresh_from_db()
        self.assertEqual(order.status, OrderStatus.NEW)
