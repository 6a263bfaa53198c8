"""
Races between writers on the same order.

Needs a backend with row locks (e.g. PostgreSQL); SQLite cannot serve two
threads from its in-memory test database.
"""

import threading

from django.db import connection
from django.test import TransactionTestCase, skipUnlessDBFeature

from ..exceptions import InvalidTransitionException
from ..models import OrderStatus, Shipment
from ..services import AssignmentService, OrderService, ShipmentTracker
from .fixtures import FulfillmentTestMixin


def run_together(*calls):
    """Start every call at the same moment; return 'ok' or the exception class per call."""
    barrier = threading.Barrier(len(calls))
    outcomes = [None] * len(calls)

    def run(index, call):
        barrier.wait()
        try:
            call()
            outcomes[index] = 'ok'
        except Exception as exc:
            outcomes[index] = type(exc)
        finally:
            connection.close()

    threads = [threading.Thread(target=run, args=(index, call)) for index, call in enumerate(calls)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    return outcomes


@skipUnlessDBFeature('has_select_for_update')
class ConcurrentOrderWritesTest(FulfillmentTestMixin, TransactionTestCase):
    """Only one of two racing writers wins; the loser gets a business error."""

    def test_one_of_two_cancels_wins(self):
        order = self.make_order()

        outcomes = run_together(
            lambda: OrderService.update_status(self.merchant, order.id, OrderStatus.CANCELED),
            lambda: OrderService.update_status(self.admin, order.id, OrderStatus.CANCELED),
        )

        self.assertEqual(sorted(outcomes, key=str), sorted(['ok', InvalidTransitionException], key=str))
        order.refresh_from_db()
        self.assertEqual(order.status, OrderStatus.CANCELED)

    def test_double_assignment_creates_one_shipment(self):
        order = self.make_order(warehouse=self.warehouse)

        outcomes = run_together(
            lambda: AssignmentService.assign_logistics(self.admin, order.id, self.logistics.pk),
            lambda: AssignmentService.assign_logistics(self.admin, order.id, self.logistics.pk),
        )

        self.assertEqual(outcomes, ['ok', 'ok'])
        self.assertEqual(Shipment.objects.filter(order=order).count(), 1)
        self.allocation.refresh_from_db()
        self.assertEqual(self.allocation.allocated_quantity, 17)

    def test_failed_attempt_racing_delivery_does_not_deadlock(self):
        order = self.make_order(status=OrderStatus.DELIVERING, logistics=self.logistics)
        shipment, _ = ShipmentTracker.ensure_shipment(order)

        outcomes = run_together(
            lambda: ShipmentTracker.record_failed_attempt(self.logistics, shipment.id, 'Closed'),
            lambda: OrderService.update_status(self.logistics, order.id, OrderStatus.DELIVERED),
        )

        self.assertIn(outcomes[0], ('ok', InvalidTransitionException))
        self.assertEqual(outcomes[1], 'ok')
        order.refresh_from_db()
        self.assertEqual(order.status, OrderStatus.DELIVERED)
