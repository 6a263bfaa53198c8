"""
Order Store for Order Fulfillment & Logistics Assignment.

Tenant-scoped order lookups. ``scope_queryset`` is the one place where the
isolation rule between merchants, logistics users and admins is written down.
"""

import logging
import uuid
from dataclasses import dataclass, field
from typing import List, Optional

from django.db import transaction
from django.db.models import Count, Q, QuerySet

from users.actor import Actor
from ..exceptions import AccessDeniedException, BusinessException, NotFoundException
from ..models import Order, OrderStatus
from .workflow import validate_status_value

logger = logging.getLogger(__name__)

ORDERING_FIELDS = ('order_date', '-order_date', 'total_amount', '-total_amount', 'status', '-status',
                   'updated_at', '-updated_at')


@dataclass
class TransitionResult:
    order_id: str
    updated: bool
    error_code: Optional[str] = None
    error_message: Optional[str] = None


@dataclass
class BulkStatusResult:
    status: str
    results: List[TransitionResult] = field(default_factory=list)

    @property
    def updated_count(self) -> int:
        return sum(1 for result in self.results if result.updated)

    @property
    def skipped(self) -> List[TransitionResult]:
        return [result for result in self.results if not result.updated]


class OrderStore:
    """Service class for scoped order reads."""

    @staticmethod
    def scope_queryset(actor, queryset: Optional[QuerySet] = None) -> QuerySet:
        """
        Restrict an order queryset to what the actor may see.

        Admins see every order, merchant users see their business's orders,
        logistics users see orders assigned to them. Anyone else sees nothing.
        """
        actor = Actor.resolve(actor)
        if queryset is None:
            queryset = Order.objects.all()

        if actor.is_admin:
            return queryset
        if actor.is_merchant and actor.business_id is not None:
            return queryset.filter(merchant_id=actor.business_id)
        if actor.is_logistics:
            return queryset.filter(assigned_logistics_id=actor.id)
        return queryset.none()

    @staticmethod
    def _lookup(order_ref) -> Q:
        if isinstance(order_ref, uuid.UUID):
            return Q(pk=order_ref)
        ref = str(order_ref).strip()
        try:
            return Q(pk=uuid.UUID(ref))
        except ValueError:
            return Q(tracking_code=ref.upper())

    @staticmethod
    def get_for_actor(actor, order_ref, for_update: bool = False) -> Order:
        """
        Get an order by id or tracking code, enforcing tenant scope.

        Args:
            actor: Acting identity
            order_ref: Order UUID or tracking code
            for_update: Lock the row; must be called inside transaction.atomic

        Returns:
            Order instance

        Raises:
            NotFoundException: If no order matches the reference
            AccessDeniedException: If the order exists outside the actor's scope
        """
        actor = Actor.resolve(actor)
        queryset = Order.objects.all()
        if for_update:
            queryset = queryset.select_for_update()

        order = queryset.filter(OrderStore._lookup(order_ref)).first()
        if order is None:
            raise NotFoundException("Order", order_ref)

        if not OrderStore.scope_queryset(actor, Order.objects.filter(pk=order.pk)).exists():
            raise AccessDeniedException(
                f"Order {order.tracking_code} is outside the scope of user {actor.id}",
                {"order_id": str(order.id)},
            )
        return order

    @staticmethod
    def list_for_actor(actor, status: Optional[str] = None, date_from=None, date_to=None,
                       search: Optional[str] = None, ordering: str = '-order_date') -> QuerySet:
        """
        List orders visible to the actor.

        Args:
            actor: Acting identity
            status: Optional status filter
            date_from: Optional lower bound on order_date (inclusive)
            date_to: Optional upper bound on order_date (inclusive)
            search: Matches tracking code and customer name, email or phone
            ordering: One of ORDERING_FIELDS; defaults to newest first

        Raises:
            UnknownStatusException: If status is not an order status
        """
        queryset = OrderStore.scope_queryset(actor).select_related('merchant', 'assigned_logistics')

        if status:
            queryset = queryset.filter(status=validate_status_value(status))
        if date_from:
            queryset = queryset.filter(order_date__gte=date_from)
        if date_to:
            queryset = queryset.filter(order_date__lte=date_to)
        if search:
            queryset = queryset.filter(
                Q(tracking_code__icontains=search) |
                Q(customer_name__icontains=search) |
                Q(customer_email__icontains=search) |
                Q(customer_phone__icontains=search)
            )

        if ordering not in ORDERING_FIELDS:
            ordering = '-order_date'
        return queryset.order_by(ordering)

    @staticmethod
    def status_counts(actor) -> dict:
        """Per-status order counts within the actor's scope, plus a total."""
        counts = {status: 0 for status in OrderStatus.values}
        rows = OrderStore.scope_queryset(actor).order_by().values('status').annotate(count=Count('id'))
        for row in rows:
            counts[row['status']] = row['count']
        counts['total'] = sum(counts.values())
        return counts

    @staticmethod
    def bulk_set_status(actor, order_ids, new_status: str) -> BulkStatusResult:
        """
        Apply one status change to many orders.

        Each order goes through the same checks as a single update, inside its
        own savepoint. Orders that fail are skipped and reported, not raised.

        Raises:
            UnknownStatusException: If new_status is not an order status
        """
        from .order_service import OrderService

        new_status = validate_status_value(new_status)
        result = BulkStatusResult(status=new_status)

        for order_id in order_ids:
            try:
                with transaction.atomic():
                    OrderService.update_status(actor, order_id, new_status)
                result.results.append(TransitionResult(order_id=str(order_id), updated=True))
            except BusinessException as exc:
                logger.info(f"Bulk status {new_status}: skipped order {order_id} ({exc.code}: {exc.message})")
                result.results.append(TransitionResult(
                    order_id=str(order_id),
                    updated=False,
                    error_code=exc.code,
                    error_message=exc.message,
                ))

        logger.info(f"Bulk status {new_status}: {result.updated_count} of {len(result.results)} orders updated")
        return result
