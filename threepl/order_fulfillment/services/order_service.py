"""
Order Service for Order Fulfillment & Logistics Assignment.

Handles order intake, allocation requests and every status change. All status
writes happen under a row lock; side effects are scheduled for after commit.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Dict, Any, Optional

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction

from products.models import Product
from users.actor import Actor
from warehouse.models import Warehouse
from warehouse.services.stock_ledger import StockLedger
from ..exceptions import (
    AccessDeniedException, InsufficientStockException, InvalidTransitionException,
    NotFoundException, ValidationException
)
from ..models import Order, OrderItem, OrderStatus
from . import dispatcher
from .order_store import OrderStore
from .shipment_tracker import ShipmentTracker
from .workflow import validate_order_workflow, validate_status_value

logger = logging.getLogger(__name__)

stock_ledger = StockLedger()


class OrderService:
    """Service class for order operations."""

    @staticmethod
    def create_order(actor, order_data: Dict[str, Any]) -> Order:
        """
        Create a new order with items.

        Args:
            actor: Merchant user of the owning business, or an admin passing merchant_id
            order_data: Customer fields, optional notes and a non-empty list of
                items ({product_id, quantity, unit_price?})

        Returns:
            Created Order instance in status NEW

        Raises:
            AccessDeniedException: If the actor cannot create orders for the business
            ValidationException: If order data is invalid
        """
        actor = Actor.resolve(actor)

        if actor.is_merchant:
            merchant_id = actor.business_id
            if merchant_id is None:
                raise AccessDeniedException("Merchant user is not attached to a business")
        elif actor.is_admin:
            merchant_id = order_data.get('merchant_id')
            if not merchant_id:
                raise ValidationException("merchant_id is required", {'merchant_id': 'This field is required.'})
        else:
            raise AccessDeniedException(f"Role {actor.role} may not create orders")

        items_data = order_data.get('items') or []
        if not items_data:
            raise ValidationException("Order must contain at least one item", {'items': 'At least one item is required.'})

        if not order_data.get('customer_name'):
            raise ValidationException("customer_name is required", {'customer_name': 'This field is required.'})

        with transaction.atomic():
            order = Order.objects.create(
                merchant_id=merchant_id,
                customer_name=order_data['customer_name'],
                customer_email=order_data.get('customer_email', ''),
                customer_phone=order_data.get('customer_phone', ''),
                delivery_address=order_data.get('delivery_address', ''),
                notes=order_data.get('notes', ''),
                created_by_id=actor.id,
            )

            for index, item_data in enumerate(items_data):
                product_id = item_data.get('product_id')
                try:
                    product = Product.objects.get(pk=product_id, business_id=merchant_id, is_active=True)
                except (Product.DoesNotExist, ValueError, TypeError):
                    raise ValidationException(
                        f"Product {product_id} is not an active product of this merchant",
                        {f'items[{index}].product_id': str(product_id)}
                    )

                quantity = item_data.get('quantity')
                if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
                    raise ValidationException(
                        "Item quantity must be a positive integer",
                        {f'items[{index}].quantity': quantity}
                    )

                unit_price = item_data.get('unit_price', product.unit_price)
                try:
                    unit_price = Decimal(str(unit_price))
                except InvalidOperation:
                    raise ValidationException(
                        "Item unit_price must be a decimal",
                        {f'items[{index}].unit_price': str(unit_price)}
                    )

                OrderItem.objects.create(order=order, product=product, quantity=quantity, unit_price=unit_price)

            order.recalculate_total()
            order.save(update_fields=['total_amount', 'updated_at'])

            dispatcher.schedule(
                dispatcher.dispatch_event, actor.id, 'Order', order.id, 'ORDER_CREATED',
                {'status': order.status, 'items': len(items_data), 'total_amount': order.total_amount}
            )

            logger.info(f"Order {order.tracking_code} created for merchant {merchant_id} with {len(items_data)} items")
            return order

    @staticmethod
    def _apply_transition(actor: Actor, order: Order, new_status: str, **extra_fields) -> Order:
        """
        Write an already validated status change on a locked order.

        Must run inside transaction.atomic.
        """
        old_status = order.status
        update_fields = ['status', 'held_from_status', 'updated_at']

        if new_status == OrderStatus.ON_HOLD:
            order.held_from_status = old_status
        elif old_status == OrderStatus.ON_HOLD:
            order.held_from_status = ''

        order.status = new_status
        for name, value in extra_fields.items():
            setattr(order, name, value)
            update_fields.append(name)
        order.save(update_fields=update_fields)

        ShipmentTracker.touch(order)
        dispatcher.schedule_transition(order.id, old_status, new_status, actor.id)

        logger.info(f"Order {order.tracking_code} moved {old_status} -> {new_status} by user {actor.id}")
        return order

    @staticmethod
    def update_status(actor, order_ref, new_status: str) -> Order:
        """
        Move an order to a new status.

        Args:
            actor: Acting identity
            order_ref: Order UUID or tracking code
            new_status: Requested status

        Returns:
            Updated Order instance

        Raises:
            UnknownStatusException: If new_status is not an order status
            NotFoundException: If the order does not exist
            AccessDeniedException: If the order is out of scope or the actor lacks the right
            InvalidTransitionException: If the order cannot move to new_status
        """
        new_status = validate_status_value(new_status)
        actor = Actor.resolve(actor)

        with transaction.atomic():
            order = OrderStore.get_for_actor(actor, order_ref, for_update=True)
            validate_order_workflow(actor, order, new_status)
            # Entering AWAITING_ALLOC always goes through the stock check. A held
            # order released back to it keeps its fulfillment warehouse.
            if new_status == OrderStatus.AWAITING_ALLOC and not order.is_on_hold:
                return OrderService._allocate(actor, order)
            return OrderService._apply_transition(actor, order, new_status)

    @staticmethod
    def request_allocation(actor, order_ref, warehouse_id=None) -> Order:
        """
        Move a NEW order to AWAITING_ALLOC against a warehouse with enough stock.

        Args:
            actor: Admin or a merchant user of the owning business
            order_ref: Order UUID or tracking code
            warehouse_id: Warehouse to allocate against; when omitted, the first
                active warehouse (by code) able to fulfil every item is chosen

        Returns:
            Updated Order instance with fulfillment_warehouse set

        Raises:
            NotFoundException: If the order or the given warehouse does not exist
            AccessDeniedException: If the actor may not request allocation
            InvalidTransitionException: If the order is not NEW
            InsufficientStockException: If no warehouse can cover the order
            ValidationException: If the order has no items
        """
        actor = Actor.resolve(actor)

        with transaction.atomic():
            order = OrderStore.get_for_actor(actor, order_ref, for_update=True)
            validate_order_workflow(actor, order, OrderStatus.AWAITING_ALLOC)
            if order.is_on_hold:
                raise InvalidTransitionException(
                    current_status=order.status,
                    attempted_status=OrderStatus.AWAITING_ALLOC,
                    entity_type="order"
                )
            return OrderService._allocate(actor, order, warehouse_id)

    @staticmethod
    def _allocate(actor: Actor, order: Order, warehouse_id=None) -> Order:
        """
        Check stock for a locked NEW order and move it to AWAITING_ALLOC.

        Must run inside transaction.atomic, after the transition is validated.
        """
        lines = list(order.items.values_list('product_id', 'quantity'))
        if not lines:
            raise ValidationException(f"Order {order.tracking_code} has no items to allocate")

        if warehouse_id is not None:
            try:
                warehouse = Warehouse.objects.get(pk=warehouse_id, is_active=True)
            except (Warehouse.DoesNotExist, ValueError, DjangoValidationError):
                raise NotFoundException("Warehouse", warehouse_id)
            missing = stock_ledger.shortfalls(lines, warehouse.pk)
            if missing:
                product_id, required, available = missing[0]
                raise InsufficientStockException(product_id, warehouse.pk, required, available)
        else:
            warehouse = OrderService._find_fulfilling_warehouse(lines)
            if warehouse is None:
                product_id, quantity = lines[0]
                raise InsufficientStockException(product_id, 'any', quantity)

        return OrderService._apply_transition(
            actor, order, OrderStatus.AWAITING_ALLOC, fulfillment_warehouse=warehouse
        )

    @staticmethod
    def _find_fulfilling_warehouse(lines) -> Optional[Warehouse]:
        for warehouse in Warehouse.objects.filter(is_active=True).order_by('code'):
            if stock_ledger.can_fulfill(lines, warehouse.pk):
                return warehouse
        return None

    @staticmethod
    def cancel_order(actor, order_ref) -> Order:
        """Cancel an order that has not reached a terminal status."""
        return OrderService.update_status(actor, order_ref, OrderStatus.CANCELED)

    @staticmethod
    def hold_order(actor, order_ref) -> Order:
        """Put an order on hold, remembering the status to release it to."""
        return OrderService.update_status(actor, order_ref, OrderStatus.ON_HOLD)

    @staticmethod
    def release_order(actor, order_ref) -> Order:
        """
        Release an ON_HOLD order back to the status it was held from.

        Raises:
            InvalidTransitionException: If the order is not on hold
        """
        actor = Actor.resolve(actor)

        with transaction.atomic():
            order = OrderStore.get_for_actor(actor, order_ref, for_update=True)
            if not order.is_on_hold or not order.held_from_status:
                if not actor.is_admin:
                    raise AccessDeniedException(f"Role {actor.role} may not release held orders")
                raise InvalidTransitionException(
                    current_status=order.status,
                    attempted_status=order.held_from_status or 'RELEASE',
                    entity_type="order"
                )
            target = order.held_from_status
            validate_order_workflow(actor, order, target)
            return OrderService._apply_transition(actor, order, target)
