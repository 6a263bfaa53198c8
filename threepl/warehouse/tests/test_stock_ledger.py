"""
Tests for the per-warehouse stock ledger.
"""

import threading
import uuid
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.db import connection
from django.test import TestCase, TransactionTestCase, skipUnlessDBFeature

from order_fulfillment.exceptions import (
    AccessDeniedException, InsufficientStockException, NotFoundException, ValidationException
)
from products.models import Product
from users.models import Business, Role
from warehouse.models import LogisticsRegion, StockAllocation, Warehouse
from warehouse.services.stock_ledger import StockLedger


class StockLedgerTest(TestCase):
    """Test allocation reads and decrements."""

    def setUp(self):
        """Set up test data."""
        self.ledger = StockLedger()
        self.business = Business.objects.create(name='Merchant One')
        self.warehouse = Warehouse.objects.create(code='WH-A', name='Main', region='North', capacity=200)
        self.other_warehouse = Warehouse.objects.create(code='WH-B', name='Overflow', region='South')
        self.product = Product.objects.create(
            business=self.business, name='Widget', sku='W-1', unit_price=Decimal('10.00')
        )
        self.unstocked = Product.objects.create(business=self.business, name='Spare', sku='S-1')
        self.allocation = StockAllocation.objects.create(
            product=self.product, warehouse=self.warehouse, allocated_quantity=5, safety_stock=2
        )
        self.warehouse.current_stock = 5
        self.warehouse.save()

    def test_second_decrement_cannot_overdraw(self):
        self.ledger.decrement(self.product.pk, self.warehouse.pk, 4)

        with self.assertRaises(InsufficientStockException) as ctx:
            self.ledger.decrement(self.product.pk, self.warehouse.pk, 4)

        self.assertEqual(ctx.exception.details['allocated_quantity'], 1)
        self.allocation.refresh_from_db()
        self.assertEqual(self.allocation.allocated_quantity, 1)
        self.warehouse.refresh_from_db()
        self.assertEqual(self.warehouse.current_stock, 1)

    def test_decrement_may_dip_into_safety_stock(self):
        allocation = self.ledger.decrement(self.product.pk, self.warehouse.pk, 5)

        self.assertEqual(allocation.allocated_quantity, 0)
        self.assertEqual(self.ledger.get_available(self.product.pk, self.warehouse.pk).available, -2)

    def test_decrement_rejects_bad_quantities(self):
        for quantity in (0, -3, 1.5, '2', True):
            with self.assertRaises(ValidationException):
                self.ledger.decrement(self.product.pk, self.warehouse.pk, quantity)

        self.allocation.refresh_from_db()
        self.assertEqual(self.allocation.allocated_quantity, 5)

    def test_decrement_without_allocation_row(self):
        with self.assertRaises(NotFoundException):
            self.ledger.decrement(self.product.pk, self.other_warehouse.pk, 1)

    def test_get_available(self):
        level = self.ledger.get_available(self.product.pk, self.warehouse.pk)

        self.assertEqual(level.allocated, 5)
        self.assertEqual(level.safety_stock, 2)
        self.assertEqual(level.available, 3)

    def test_get_available_without_row_is_zero(self):
        level = self.ledger.get_available(self.unstocked.pk, self.warehouse.pk)

        self.assertEqual((level.allocated, level.safety_stock, level.available), (0, 0, 0))

    def test_get_available_unknown_entities(self):
        with self.assertRaises(NotFoundException):
            self.ledger.get_available(999999, self.warehouse.pk)
        with self.assertRaises(NotFoundException):
            self.ledger.get_available(self.product.pk, uuid.uuid4())

    def test_get_available_malformed_ids(self):
        with self.assertRaises(ValidationException):
            self.ledger.get_available(self.product.pk, 'not-a-uuid')
        with self.assertRaises(ValidationException):
            self.ledger.get_available('abc', self.warehouse.pk)

    def test_can_fulfill_uses_available(self):
        self.assertTrue(self.ledger.can_fulfill([(self.product.pk, 3)], self.warehouse.pk))
        self.assertFalse(self.ledger.can_fulfill([(self.product.pk, 4)], self.warehouse.pk))
        self.assertFalse(self.ledger.can_fulfill([(self.product.pk, 2), (self.product.pk, 2)], self.warehouse.pk))
        self.assertTrue(self.ledger.can_fulfill([], self.warehouse.pk))

    def test_shortfalls(self):
        missing = self.ledger.shortfalls([(self.product.pk, 4), (self.unstocked.pk, 1)], self.warehouse.pk)

        self.assertEqual(missing, [(self.product.pk, 4, 3), (self.unstocked.pk, 1, 0)])


class WarehouseTotalsTest(TestCase):
    """Test warehouse-level aggregates."""

    def setUp(self):
        """Set up test data."""
        self.ledger = StockLedger()
        business = Business.objects.create(name='Merchant One')
        self.warehouse = Warehouse.objects.create(code='WH-A', name='Main', region='North', capacity=100)
        products = [
            Product.objects.create(business=business, name=f'Item {n}', sku=f'I-{n}') for n in range(3)
        ]
        StockAllocation.objects.create(product=products[0], warehouse=self.warehouse,
                                       allocated_quantity=40, safety_stock=5)
        self.low = StockAllocation.objects.create(product=products[1], warehouse=self.warehouse,
                                                  allocated_quantity=3, safety_stock=5)
        self.empty = StockAllocation.objects.create(product=products[2], warehouse=self.warehouse,
                                                    allocated_quantity=0, safety_stock=0)

    def test_totals(self):
        totals = self.ledger.warehouse_totals(self.warehouse.pk)

        self.assertEqual(totals['total_stock'], 43)
        self.assertEqual(totals['total_products'], 3)
        self.assertEqual(totals['low_stock_items'], 2)
        self.assertEqual(totals['out_of_stock_items'], 1)
        self.assertEqual(totals['utilization_rate'], 43)

    def test_totals_unknown_warehouse(self):
        with self.assertRaises(NotFoundException):
            self.ledger.warehouse_totals(uuid.uuid4())

    def test_zero_capacity_utilization(self):
        empty = Warehouse.objects.create(code='WH-Z', name='Empty', region='West', capacity=0)

        self.assertEqual(self.ledger.warehouse_totals(empty.pk)['utilization_rate'], 0)

    def test_low_stock(self):
        self.assertEqual(list(self.ledger.low_stock(self.warehouse.pk)), [self.empty, self.low])
        self.assertEqual(self.ledger.low_stock(uuid.uuid4()).count(), 0)

    def test_low_stock_malformed_warehouse(self):
        with self.assertRaises(ValidationException):
            self.ledger.low_stock('not-a-uuid')


class StockScopingTest(TestCase):
    """Test which allocation rows each role may read."""

    def setUp(self):
        """Set up test data."""
        self.ledger = StockLedger()
        User = get_user_model()
        own_business = Business.objects.create(name='Merchant One')
        other_business = Business.objects.create(name='Merchant Two')
        self.warehouse = Warehouse.objects.create(code='WH-A', name='Main', region='North')
        self.own = StockAllocation.objects.create(
            product=Product.objects.create(business=own_business, name='Widget', sku='W-1'),
            warehouse=self.warehouse, allocated_quantity=5,
        )
        self.foreign = StockAllocation.objects.create(
            product=Product.objects.create(business=other_business, name='Secret', sku='S-1'),
            warehouse=self.warehouse, allocated_quantity=77,
        )
        self.admin = User.objects.create_user(username='admin', role=Role.ADMIN)
        self.merchant = User.objects.create_user(username='merchant1', role=Role.MERCHANT, business=own_business)
        self.courier = User.objects.create_user(username='courier1', role=Role.LOGISTICS)

    def test_admin_sees_everything(self):
        self.assertEqual(self.ledger.scope_allocations(self.admin).count(), 2)

    def test_merchant_sees_own_products(self):
        self.assertEqual(list(self.ledger.scope_allocations(self.merchant)), [self.own])

        self.ledger.check_visible(self.merchant, self.own.product_id, self.warehouse.pk)
        with self.assertRaises(AccessDeniedException):
            self.ledger.check_visible(self.merchant, self.foreign.product_id, self.warehouse.pk)

    def test_logistics_sees_covered_warehouses(self):
        self.assertEqual(self.ledger.scope_allocations(self.courier).count(), 0)
        with self.assertRaises(AccessDeniedException):
            self.ledger.check_visible(self.courier, self.own.product_id, self.warehouse.pk)

        LogisticsRegion.objects.create(user=self.courier, warehouse=self.warehouse)

        self.assertEqual(self.ledger.scope_allocations(self.courier).count(), 2)
        self.ledger.check_visible(self.courier, self.foreign.product_id, self.warehouse.pk)


@skipUnlessDBFeature('has_select_for_update')
class ConcurrentDecrementTest(TransactionTestCase):
    """Two pickers racing for the same allocation row."""

    def setUp(self):
        business = Business.objects.create(name='Merchant One')
        self.warehouse = Warehouse.objects.create(code='WH-A', name='Main', region='North')
        self.product = Product.objects.create(business=business, name='Widget', sku='W-1')
        StockAllocation.objects.create(
            product=self.product, warehouse=self.warehouse, allocated_quantity=5, safety_stock=2
        )

    def test_exactly_one_concurrent_decrement_wins(self):
        barrier = threading.Barrier(2)
        outcomes = []

        def pick():
            barrier.wait()
            try:
                StockLedger().decrement(self.product.pk, self.warehouse.pk, 4)
                outcomes.append('ok')
            except InsufficientStockException:
                outcomes.append('insufficient')
            finally:
                connection.close()

        threads = [threading.Thread(target=pick) for _ in range(2)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(sorted(outcomes), ['insufficient', 'ok'])
        allocation = StockAllocation.objects.get(product=self.product, warehouse=self.warehouse)
        self.assertEqual(allocation.allocated_quantity, 1)
