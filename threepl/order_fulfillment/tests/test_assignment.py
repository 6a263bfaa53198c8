"""
Tests for logistics and warehouse-region assignment.
"""

from django.test import TestCase

from warehouse.models import LogisticsRegion, StockAllocation
from ..exceptions import (
    AccessDeniedException, AlreadyAssignedException, InsufficientStockException,
    InvalidTransitionException, NotFoundException, ValidationException
)
from ..models import OrderStatus, Shipment
from ..services import AssignmentService, OrderService
from .fixtures import FulfillmentTestMixin


class AssignLogisticsTest(FulfillmentTestMixin, TestCase):
    """Test assigning logistics users to orders."""

    def test_assign_new_order_creates_single_shipment(self):
        order = self.make_order()

        shipment = AssignmentService.assign_logistics(self.admin, order.id, self.logistics.pk)

        order.refresh_from_db()
        self.assertEqual(order.status, OrderStatus.PICKED_UP)
        self.assertEqual(order.assigned_logistics, self.logistics)
        self.assertEqual(shipment.order_id, order.id)

        again = AssignmentService.assign_logistics(self.admin, order.id, self.logistics.pk)

        self.assertEqual(again.pk, shipment.pk)
        self.assertEqual(Shipment.objects.filter(order=order).count(), 1)

    def test_assignment_skips_dispatched(self):
        order = self.make_order(status=OrderStatus.AWAITING_ALLOC)

        AssignmentService.assign_logistics(self.admin, order.id, self.logistics.pk)

        order.refresh_from_db()
        self.assertEqual(order.status, OrderStatus.PICKED_UP)

    def test_assign_by_tracking_code(self):
        order = self.make_order()

        AssignmentService.assign_logistics(self.admin, order.tracking_code.lower(), self.logistics.pk)

        order.refresh_from_db()
        self.assertEqual(order.assigned_logistics, self.logistics)

    def test_only_admin_may_assign(self):
        order = self.make_order()

        with self.assertRaises(AccessDeniedException):
            AssignmentService.assign_logistics(self.merchant, order.id, self.logistics.pk)

        order.refresh_from_db()
        self.assertIsNone(order.assigned_logistics)
        self.assertFalse(Shipment.objects.filter(order=order).exists())

    def test_assignee_must_be_logistics_user(self):
        order = self.make_order()

        with self.assertRaises(NotFoundException):
            AssignmentService.assign_logistics(self.admin, order.id, self.merchant.pk)
        with self.assertRaises(NotFoundException):
            AssignmentService.assign_logistics(self.admin, order.id, 999999)

    def test_cannot_assign_past_pickup(self):
        for status in (OrderStatus.DELIVERING, OrderStatus.DELIVERED, OrderStatus.CANCELED, OrderStatus.ON_HOLD):
            order = self.make_order(status=status)
            with self.assertRaises(InvalidTransitionException):
                AssignmentService.assign_logistics(self.admin, order.id, self.logistics.pk)

    def test_assignee_must_cover_fulfillment_warehouse(self):
        order = self.make_order(status=OrderStatus.AWAITING_ALLOC, warehouse=self.warehouse)

        with self.assertRaises(AccessDeniedException):
            AssignmentService.assign_logistics(self.admin, order.id, self.other_logistics.pk)

        order.refresh_from_db()
        self.assertEqual(order.status, OrderStatus.AWAITING_ALLOC)

    def test_stock_committed_once_from_fulfillment_warehouse(self):
        order = self.make_order(status=OrderStatus.AWAITING_ALLOC, warehouse=self.warehouse)

        AssignmentService.assign_logistics(self.admin, order.id, self.logistics.pk)
        AssignmentService.assign_logistics(self.admin, order.id, self.logistics.pk)

        self.allocation.refresh_from_db()
        self.assertEqual(self.allocation.allocated_quantity, 17)
        order.refresh_from_db()
        self.assertIsNotNone(order.stock_committed_at)
        self.warehouse.refresh_from_db()
        self.assertEqual(self.warehouse.current_stock, 27)

    def test_explicit_warehouse_picks(self):
        StockAllocation.objects.create(
            product=self.product, warehouse=self.other_warehouse, allocated_quantity=5, safety_stock=0
        )
        order = self.make_order(items=[(self.product, 4)])

        AssignmentService.assign_logistics(self.admin, order.id, self.logistics.pk, warehouse_picks=[
            {'product_id': self.product.pk, 'picks': [
                {'warehouse_id': self.warehouse.pk, 'quantity': 1},
                {'warehouse_id': self.other_warehouse.pk, 'quantity': 3},
            ]},
        ])

        self.allocation.refresh_from_db()
        self.assertEqual(self.allocation.allocated_quantity, 19)
        other = StockAllocation.objects.get(product=self.product, warehouse=self.other_warehouse)
        self.assertEqual(other.allocated_quantity, 2)

    def test_picks_must_match_ordered_quantity(self):
        order = self.make_order(items=[(self.product, 4)])

        with self.assertRaises(ValidationException):
            AssignmentService.assign_logistics(self.admin, order.id, self.logistics.pk, warehouse_picks=[
                {'product_id': self.product.pk, 'picks': [{'warehouse_id': self.warehouse.pk, 'quantity': 3}]},
            ])

        self.allocation.refresh_from_db()
        self.assertEqual(self.allocation.allocated_quantity, 20)

    def test_insufficient_stock_rolls_back_assignment(self):
        order = self.make_order(items=[(self.product, 2), (self.other_product, 50)], warehouse=self.warehouse,
                                status=OrderStatus.AWAITING_ALLOC)

        with self.assertRaises(InsufficientStockException):
            AssignmentService.assign_logistics(self.admin, order.id, self.logistics.pk)

        order.refresh_from_db()
        self.assertEqual(order.status, OrderStatus.AWAITING_ALLOC)
        self.assertIsNone(order.assigned_logistics)
        self.assertIsNone(order.stock_committed_at)
        self.assertFalse(Shipment.objects.filter(order=order).exists())
        self.allocation.refresh_from_db()
        self.assertEqual(self.allocation.allocated_quantity, 20)

    def test_remove_logistics_keeps_status(self):
        order = self.make_order()
        shipment = AssignmentService.assign_logistics(self.admin, order.id, self.logistics.pk)

        AssignmentService.remove_logistics(self.admin, shipment.id)

        order.refresh_from_db()
        self.assertIsNone(order.assigned_logistics)
        self.assertEqual(order.status, OrderStatus.PICKED_UP)

    def test_remove_logistics_requires_admin(self):
        order = self.make_order()
        shipment = AssignmentService.assign_logistics(self.admin, order.id, self.logistics.pk)

        with self.assertRaises(AccessDeniedException):
            AssignmentService.remove_logistics(self.logistics, shipment.id)

    def test_full_lifecycle_after_assignment(self):
        order = self.make_order()
        OrderService.request_allocation(self.merchant, order.id)
        AssignmentService.assign_logistics(self.admin, order.id, self.logistics.pk)
        OrderService.update_status(self.logistics, order.id, OrderStatus.DELIVERING)
        OrderService.update_status(self.logistics, order.id, OrderStatus.DELIVERED)

        order.refresh_from_db()
        self.assertEqual(order.status, OrderStatus.DELIVERED)
        self.allocation.refresh_from_db()
        self.assertEqual(self.allocation.allocated_quantity, 17)


class WarehouseRegionTest(FulfillmentTestMixin, TestCase):
    """Test logistics coverage of warehouses."""

    def test_assign_region(self):
        region = AssignmentService.assign_warehouse_region(self.admin, self.other_logistics.pk, self.warehouse.pk)

        self.assertEqual(region.user, self.other_logistics)
        self.assertIn(self.other_logistics, AssignmentService.eligible_logistics(self.warehouse.pk))

    def test_duplicate_region_is_already_assigned(self):
        with self.assertRaises(AlreadyAssignedException):
            AssignmentService.assign_warehouse_region(self.admin, self.logistics.pk, self.warehouse.pk)

        self.assertEqual(LogisticsRegion.objects.filter(user=self.logistics, warehouse=self.warehouse).count(), 1)

    def test_region_requires_logistics_user_and_warehouse(self):
        with self.assertRaises(NotFoundException):
            AssignmentService.assign_warehouse_region(self.admin, self.merchant.pk, self.warehouse.pk)
        with self.assertRaises(NotFoundException):
            AssignmentService.assign_warehouse_region(
                self.admin, self.logistics.pk, '00000000-0000-0000-0000-000000000000'
            )

    def test_region_requires_admin(self):
        with self.assertRaises(AccessDeniedException):
            AssignmentService.assign_warehouse_region(self.logistics, self.logistics.pk, self.other_warehouse.pk)

    def test_remove_region(self):
        region = LogisticsRegion.objects.get(user=self.logistics, warehouse=self.warehouse)

        AssignmentService.remove_warehouse_region(self.admin, region.id)

        self.assertFalse(LogisticsRegion.objects.filter(pk=region.pk).exists())
        with self.assertRaises(NotFoundException):
            AssignmentService.remove_warehouse_region(self.admin, region.id)

    def test_list_regions_by_role(self):
        AssignmentService.assign_warehouse_region(self.admin, self.other_logistics.pk, self.other_warehouse.pk)

        self.assertEqual(AssignmentService.list_regions(self.admin).count(), 2)
        own = AssignmentService.list_regions(self.logistics)
        self.assertEqual([region.warehouse_id for region in own], [self.warehouse.pk])
        with self.assertRaises(AccessDeniedException):
            AssignmentService.list_regions(self.merchant)
