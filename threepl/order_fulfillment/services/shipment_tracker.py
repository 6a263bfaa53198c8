"""
Shipment Tracker for Order Fulfillment & Logistics Assignment.

Keeps the one-to-one Shipment record of an order: lazy creation, the
last-update timestamp, carrier tracking details and failed delivery attempts.
The order remains the owner of the canonical status.
"""

import logging
from typing import Optional, Tuple

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from users.actor import Actor
from ..exceptions import AccessDeniedException, InvalidTransitionException, NotFoundException
from ..models import Order, OrderStatus, Shipment
from . import dispatcher
from .order_store import OrderStore
from .workflow import validate_status_value

logger = logging.getLogger(__name__)


class ShipmentTracker:
    """Service class for shipment operations."""

    @staticmethod
    def ensure_shipment(order: Order) -> Tuple[Shipment, bool]:
        """
        Get the order's shipment, creating it on first use.

        The unique one-to-one column makes concurrent creation converge on a
        single row.

        Returns:
            (shipment, created) tuple
        """
        shipment, created = Shipment.objects.get_or_create(order=order)
        if created:
            logger.info(f"Shipment {shipment.id} created for order {order.tracking_code}")
        return shipment, created

    @staticmethod
    def touch(order: Order) -> int:
        """Bump last_status_update on the order's shipment, if it has one."""
        return Shipment.objects.filter(order_id=order.pk).update(last_status_update=timezone.now())

    @staticmethod
    def get_for_actor(actor, shipment_id, for_update: bool = False) -> Shipment:
        """
        Get a shipment, enforcing the scope of its order.

        Raises:
            NotFoundException: If the shipment does not exist
            AccessDeniedException: If its order is outside the actor's scope
        """
        actor = Actor.resolve(actor)
        queryset = Shipment.objects.all()
        if for_update:
            queryset = queryset.select_for_update()
        try:
            shipment = queryset.get(pk=shipment_id)
        except (Shipment.DoesNotExist, ValueError, ValidationError):
            raise NotFoundException("Shipment", shipment_id)

        if not OrderStore.scope_queryset(actor, Order.objects.filter(pk=shipment.order_id)).exists():
            raise AccessDeniedException(
                f"Shipment {shipment_id} is outside the scope of user {actor.id}",
                {"shipment_id": str(shipment_id)},
            )
        return shipment

    @staticmethod
    def list_for_actor(actor):
        """Shipments whose orders are visible to the actor."""
        orders = OrderStore.scope_queryset(actor)
        return Shipment.objects.filter(order__in=orders).select_related('order')

    @staticmethod
    def _check_assigned(actor, order: Order, allow_admin: bool):
        if allow_admin and actor.is_admin:
            return
        if actor.is_logistics and order.assigned_logistics_id == actor.id:
            return
        raise AccessDeniedException(
            f"User {actor.id} is not the logistics user assigned to order {order.tracking_code}",
            {"order_id": str(order.id)},
        )

    @staticmethod
    def update_tracking(actor, shipment_id, tracking_number: Optional[str] = None,
                        carrier_name: Optional[str] = None) -> Shipment:
        """
        Update carrier tracking details.

        Args:
            actor: Admin or the assigned logistics user
            shipment_id: Shipment UUID
            tracking_number: New carrier tracking number, left unchanged if None
            carrier_name: New carrier name, left unchanged if None

        Returns:
            Updated Shipment instance

        Raises:
            NotFoundException: If the shipment does not exist
            AccessDeniedException: If the actor may not update this shipment
        """
        actor = Actor.resolve(actor)
        with transaction.atomic():
            shipment = ShipmentTracker.get_for_actor(actor, shipment_id, for_update=True)
            ShipmentTracker._check_assigned(actor, shipment.order, allow_admin=True)

            changes = {}
            if tracking_number is not None and tracking_number != shipment.tracking_number:
                changes['tracking_number'] = {'old': shipment.tracking_number, 'new': tracking_number}
                shipment.tracking_number = tracking_number
            if carrier_name is not None and carrier_name != shipment.carrier_name:
                changes['carrier_name'] = {'old': shipment.carrier_name, 'new': carrier_name}
                shipment.carrier_name = carrier_name

            if changes:
                shipment.save(update_fields=['tracking_number', 'carrier_name', 'updated_at'])
                dispatcher.schedule(
                    dispatcher.dispatch_event, actor.id, 'Shipment', shipment.id, 'TRACKING_UPDATED', changes
                )
                logger.info(f"Shipment {shipment.id} tracking updated by user {actor.id}")
            return shipment

    @staticmethod
    def record_failed_attempt(actor, shipment_id, reason: str = '') -> Shipment:
        """
        Record a failed delivery attempt on an order out for delivery.

        Args:
            actor: The assigned logistics user
            shipment_id: Shipment UUID
            reason: Free-text reason passed on to the merchant

        Returns:
            Refreshed Shipment instance

        Raises:
            NotFoundException: If the shipment does not exist
            AccessDeniedException: If the actor is not the assigned logistics user
            InvalidTransitionException: If the order is not DELIVERING
        """
        actor = Actor.resolve(actor)
        with transaction.atomic():
            shipment = ShipmentTracker.get_for_actor(actor, shipment_id)
            # Order row before shipment row, the same order status updates take.
            order = Order.objects.select_for_update().get(pk=shipment.order_id)
            shipment = Shipment.objects.select_for_update().get(pk=shipment.pk)
            ShipmentTracker._check_assigned(actor, order, allow_admin=False)

            if order.status != OrderStatus.DELIVERING:
                raise InvalidTransitionException(
                    current_status=order.status,
                    attempted_status='DELIVERY_ATTEMPT_FAILED',
                    entity_type="shipment"
                )

            Shipment.objects.filter(pk=shipment.pk).update(
                delivery_attempts=F('delivery_attempts') + 1,
                last_status_update=timezone.now(),
            )
            shipment.refresh_from_db()

            dispatcher.schedule(
                dispatcher.dispatch_failed_attempt,
                order.id, shipment.id, actor.id, shipment.delivery_attempts, reason
            )
            logger.info(
                f"Failed delivery attempt {shipment.delivery_attempts} recorded for order {order.tracking_code}"
            )
            return shipment

    @staticmethod
    def update_status_via_shipment(actor, shipment_id, new_status: str) -> Order:
        """
        Change the status of a shipment's order.

        Same checks as a direct order status update.

        Raises:
            UnknownStatusException: If new_status is not an order status
            NotFoundException: If the shipment does not exist
            AccessDeniedException: If the actor may not see or change the order
            InvalidTransitionException: If the order cannot move to new_status
        """
        from .order_service import OrderService

        new_status = validate_status_value(new_status)
        shipment = ShipmentTracker.get_for_actor(actor, shipment_id)
        return OrderService.update_status(actor, shipment.order_id, new_status)
