"""
Assignment Service for Order Fulfillment & Logistics Assignment.

Binds orders to logistics users and logistics users to warehouses. An
assignment commits the picked stock, moves the order to PICKED_UP and creates
its shipment in a single transaction.
"""

import logging
from collections import defaultdict
from typing import Any, Dict, List, Optional, Tuple

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction
from django.utils import timezone

from users.actor import Actor
from users.models import Role, User
from warehouse.models import LogisticsRegion, Warehouse
from warehouse.services.stock_ledger import StockLedger
from ..exceptions import (
    AccessDeniedException, AlreadyAssignedException, NotFoundException, ValidationException
)
from ..models import Order, OrderStatus, Shipment
from . import dispatcher
from .order_store import OrderStore
from .shipment_tracker import ShipmentTracker
from .workflow import OrderWorkflow

logger = logging.getLogger(__name__)

stock_ledger = StockLedger()


def _require_admin(actor: Actor, action: str):
    if not actor.is_admin:
        raise AccessDeniedException(f"Only platform admins may {action}", {"role": actor.role})


def _get_logistics_user(user_id) -> User:
    try:
        return User.objects.get(pk=user_id, role=Role.LOGISTICS)
    except (User.DoesNotExist, ValueError, TypeError):
        raise NotFoundException("LogisticsUser", user_id)


def _get_warehouse(warehouse_id) -> Warehouse:
    try:
        return Warehouse.objects.get(pk=warehouse_id)
    except (Warehouse.DoesNotExist, ValueError, DjangoValidationError):
        raise NotFoundException("Warehouse", warehouse_id)


class AssignmentService:
    """Service class for logistics assignment operations."""

    @staticmethod
    def assign_logistics(actor, order_ref, logistics_user_id,
                         warehouse_picks: Optional[List[Dict[str, Any]]] = None) -> Shipment:
        """
        Assign a logistics user to an order.

        The order moves straight to PICKED_UP. Stock is decremented once per
        order, either from explicit warehouse picks or from the order's
        fulfillment warehouse. Re-assigning reuses the existing shipment.

        Args:
            actor: Platform admin
            order_ref: Order UUID or tracking code
            logistics_user_id: User with role LOGISTICS
            warehouse_picks: Optional [{product_id, picks: [{warehouse_id, quantity}]}]

        Returns:
            The order's Shipment

        Raises:
            AccessDeniedException: If the actor is not an admin, or the logistics
                user does not cover the order's fulfillment warehouse
            NotFoundException: If the order or logistics user does not exist
            InvalidTransitionException: If the order is past pickup, held or terminal
            ValidationException: If warehouse picks do not match the order items
            InsufficientStockException: If a pick exceeds allocated stock
        """
        actor = Actor.resolve(actor)
        _require_admin(actor, "assign logistics")

        with transaction.atomic():
            logistics_user = _get_logistics_user(logistics_user_id)
            order = OrderStore.get_for_actor(actor, order_ref, for_update=True)
            OrderWorkflow.validate_assignment(order)

            if order.fulfillment_warehouse_id and not LogisticsRegion.objects.filter(
                user=logistics_user, warehouse_id=order.fulfillment_warehouse_id
            ).exists():
                raise AccessDeniedException(
                    f"Logistics user {logistics_user.pk} does not cover warehouse {order.fulfillment_warehouse_id}",
                    {"user_id": str(logistics_user.pk), "warehouse_id": str(order.fulfillment_warehouse_id)},
                )

            update_fields = ['assigned_logistics', 'status', 'updated_at']
            picks = []
            if order.stock_committed_at is None:
                picks = AssignmentService._resolve_picks(order, warehouse_picks)
                for product_id, warehouse_id, quantity in picks:
                    stock_ledger.decrement(product_id, warehouse_id, quantity)
                if picks:
                    order.stock_committed_at = timezone.now()
                    update_fields.append('stock_committed_at')

            old_status = order.status
            previous_assignee = order.assigned_logistics_id
            order.assigned_logistics = logistics_user
            order.status = OrderStatus.PICKED_UP
            order.save(update_fields=update_fields)

            shipment, created = ShipmentTracker.ensure_shipment(order)
            if not created:
                ShipmentTracker.touch(order)

            if old_status != OrderStatus.PICKED_UP:
                dispatcher.schedule_transition(order.id, old_status, OrderStatus.PICKED_UP, actor.id)
            dispatcher.schedule(
                dispatcher.dispatch_event, actor.id, 'Order', order.id, 'LOGISTICS_ASSIGNED', {
                    'logistics_user_id': logistics_user.pk,
                    'previous_logistics_user_id': previous_assignee,
                    'shipment_id': shipment.id,
                    'picks': [
                        {'product_id': p, 'warehouse_id': w, 'quantity': q} for p, w, q in picks
                    ],
                }
            )

            logger.info(
                f"Order {order.tracking_code} assigned to logistics user {logistics_user.pk} "
                f"({old_status} -> {OrderStatus.PICKED_UP})"
            )
            return shipment

    @staticmethod
    def _resolve_picks(order: Order, warehouse_picks) -> List[Tuple[Any, Any, int]]:
        """
        Turn explicit picks or the fulfillment warehouse into ledger decrements.

        Returns:
            List of (product_id, warehouse_id, quantity); empty when the order
            is bound to no warehouse and no picks were given
        """
        required = defaultdict(int)
        for product_id, quantity in order.items.values_list('product_id', 'quantity'):
            required[product_id] += quantity

        if warehouse_picks is None:
            if not order.fulfillment_warehouse_id:
                return []
            return [
                (product_id, order.fulfillment_warehouse_id, quantity)
                for product_id, quantity in required.items()
            ]

        picks = []
        picked = defaultdict(int)
        by_product = {str(product_id): product_id for product_id in required}
        for entry in warehouse_picks:
            product_key = str(entry.get('product_id'))
            if product_key not in by_product:
                raise ValidationException(
                    f"Product {product_key} is not part of order {order.tracking_code}",
                    {'product_id': product_key}
                )
            product_id = by_product[product_key]
            for pick in entry.get('picks') or []:
                quantity = pick.get('quantity')
                if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
                    raise ValidationException(
                        "Pick quantity must be a positive integer",
                        {'product_id': product_key, 'quantity': quantity}
                    )
                warehouse = _get_warehouse(pick.get('warehouse_id'))
                picks.append((product_id, warehouse.pk, quantity))
                picked[product_id] += quantity

        mismatched = {
            str(product_id): {'ordered': qty, 'picked': picked.get(product_id, 0)}
            for product_id, qty in required.items()
            if picked.get(product_id, 0) != qty
        }
        if mismatched:
            raise ValidationException("Picked quantities must equal ordered quantities", mismatched)
        return picks

    @staticmethod
    def remove_logistics(actor, shipment_id) -> Order:
        """
        Clear the logistics assignment of a shipment's order.

        The order status is left as it is.

        Raises:
            AccessDeniedException: If the actor is not an admin
            NotFoundException: If the shipment does not exist
        """
        actor = Actor.resolve(actor)
        _require_admin(actor, "remove logistics assignments")

        with transaction.atomic():
            shipment = ShipmentTracker.get_for_actor(actor, shipment_id)
            order = Order.objects.select_for_update().get(pk=shipment.order_id)
            previous_assignee = order.assigned_logistics_id
            order.assigned_logistics = None
            order.save(update_fields=['assigned_logistics', 'updated_at'])
            ShipmentTracker.touch(order)

            dispatcher.schedule(
                dispatcher.dispatch_event, actor.id, 'Order', order.id, 'LOGISTICS_REMOVED', {
                    'logistics_user_id': previous_assignee,
                    'shipment_id': shipment.id,
                    'status': order.status,
                }
            )
            logger.info(f"Logistics user {previous_assignee} removed from order {order.tracking_code}")
            return order

    @staticmethod
    def assign_warehouse_region(actor, logistics_user_id, warehouse_id) -> LogisticsRegion:
        """
        Let a logistics user take orders from a warehouse.

        Raises:
            AccessDeniedException: If the actor is not an admin
            NotFoundException: If the logistics user or warehouse does not exist
            AlreadyAssignedException: If the pair already exists
        """
        actor = Actor.resolve(actor)
        _require_admin(actor, "assign warehouse regions")

        logistics_user = _get_logistics_user(logistics_user_id)
        warehouse = _get_warehouse(warehouse_id)

        if LogisticsRegion.objects.filter(user=logistics_user, warehouse=warehouse).exists():
            raise AlreadyAssignedException(logistics_user.pk, warehouse.pk)

        try:
            with transaction.atomic():
                region = LogisticsRegion.objects.create(user=logistics_user, warehouse=warehouse)
                dispatcher.schedule(
                    dispatcher.dispatch_event, actor.id, 'LogisticsRegion', region.id, 'REGION_ASSIGNED',
                    {'user_id': logistics_user.pk, 'warehouse_id': warehouse.pk}
                )
        except IntegrityError:
            raise AlreadyAssignedException(logistics_user.pk, warehouse.pk)

        logger.info(f"Logistics user {logistics_user.pk} assigned to warehouse {warehouse.code}")
        return region

    @staticmethod
    def remove_warehouse_region(actor, region_id) -> None:
        """
        Remove a logistics user's coverage of a warehouse.

        Raises:
            AccessDeniedException: If the actor is not an admin
            NotFoundException: If the region assignment does not exist
        """
        actor = Actor.resolve(actor)
        _require_admin(actor, "remove warehouse regions")

        with transaction.atomic():
            try:
                region = LogisticsRegion.objects.select_for_update().get(pk=region_id)
            except (LogisticsRegion.DoesNotExist, ValueError, DjangoValidationError):
                raise NotFoundException("LogisticsRegion", region_id)

            details = {'user_id': region.user_id, 'warehouse_id': region.warehouse_id}
            region.delete()
            dispatcher.schedule(
                dispatcher.dispatch_event, actor.id, 'LogisticsRegion', region_id, 'REGION_REMOVED', details
            )

        logger.info(f"Logistics region {region_id} removed")

    @staticmethod
    def list_regions(actor):
        """
        Region assignments visible to the actor: all for admins, own for logistics users.

        Raises:
            AccessDeniedException: For any other role
        """
        actor = Actor.resolve(actor)
        queryset = LogisticsRegion.objects.select_related('user', 'warehouse')
        if actor.is_admin:
            return queryset
        if actor.is_logistics:
            return queryset.filter(user_id=actor.id)
        raise AccessDeniedException(f"Role {actor.role} may not view logistics regions")

    @staticmethod
    def eligible_logistics(warehouse_id):
        """Active logistics users covering a warehouse."""
        return User.objects.filter(
            role=Role.LOGISTICS,
            is_active=True,
            logistics_regions__warehouse_id=warehouse_id,
        ).distinct().order_by('username')
