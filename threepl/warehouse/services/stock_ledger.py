import logging
from collections import defaultdict
from dataclasses import dataclass

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.db.models import Count, F, Q, Sum
from django.db.models.functions import Coalesce
from django.utils import timezone

from order_fulfillment.exceptions import (
    AccessDeniedException, InsufficientStockException, NotFoundException, ValidationException
)
from products.models import Product
from users.actor import Actor
from warehouse.models import LogisticsRegion, StockAllocation, Warehouse

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StockLevel:
    allocated: int
    safety_stock: int

    @property
    def available(self):
        # Negative means over-committed: callers treat it as "cannot fulfill".
        return self.allocated - self.safety_stock


class StockLedger:
    """
    Per-warehouse, per-product allocation bookkeeping.

    ``decrement`` is the only mutation path used during fulfillment.
    """

    def get_available(self, product_id, warehouse_id):
        """
        Get the allocation level of a product at a warehouse.

        Args:
            product_id: Product primary key
            warehouse_id: Warehouse UUID

        Returns:
            StockLevel; zeros when the pair has no allocation row

        Raises:
            ValidationException: If either id is malformed
            NotFoundException: If the product or warehouse does not exist
        """
        try:
            allocation = StockAllocation.objects.filter(product_id=product_id, warehouse_id=warehouse_id).first()
        except (ValueError, TypeError, DjangoValidationError):
            raise ValidationException(
                "Malformed product or warehouse id", {"product_id": str(product_id), "warehouse_id": str(warehouse_id)}
            )
        if allocation is None:
            self._ensure_exists(product_id, warehouse_id)
            return StockLevel(allocated=0, safety_stock=0)
        return StockLevel(allocated=allocation.allocated_quantity, safety_stock=allocation.safety_stock)

    @transaction.atomic
    def decrement(self, product_id, warehouse_id, quantity):
        """
        Atomically reduce allocated quantity for one pick event.

        The guard and the write are a single UPDATE, so concurrent decrements
        against the same row serialise in the database and can never overdraw.

        Args:
            product_id: Product primary key
            warehouse_id: Warehouse UUID
            quantity: Positive number of units picked

        Returns:
            Refreshed StockAllocation instance

        Raises:
            ValidationException: If quantity is not a positive integer
            NotFoundException: If no allocation row exists for the pair
            InsufficientStockException: If allocated quantity would go below zero
        """
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise ValidationException("Decrement quantity must be a positive integer", {"quantity": quantity})

        updated = StockAllocation.objects.filter(
            product_id=product_id, warehouse_id=warehouse_id, allocated_quantity__gte=quantity
        ).update(allocated_quantity=F("allocated_quantity") - quantity, updated_at=timezone.now())

        if not updated:
            allocation = StockAllocation.objects.filter(product_id=product_id, warehouse_id=warehouse_id).first()
            if allocation is None:
                raise NotFoundException("StockAllocation", f"{product_id}@{warehouse_id}")
            raise InsufficientStockException(product_id, warehouse_id, quantity, allocation.allocated_quantity)

        Warehouse.objects.filter(pk=warehouse_id).update(current_stock=F("current_stock") - quantity)

        logger.info(f"Decremented {quantity} units of product {product_id} at warehouse {warehouse_id}")
        return StockAllocation.objects.get(product_id=product_id, warehouse_id=warehouse_id)

    def shortfalls(self, lines, warehouse_id):
        """
        Products a warehouse cannot cover from available stock.

        Args:
            lines: Iterable of (product_id, quantity) pairs; repeated products are summed
            warehouse_id: Warehouse UUID

        Returns:
            List of (product_id, required, available) tuples, empty when every line is covered
        """
        required = defaultdict(int)
        for product_id, quantity in lines:
            required[product_id] += quantity

        if not required:
            return []

        levels = {
            row["product_id"]: row["allocated_quantity"] - row["safety_stock"]
            for row in StockAllocation.objects.filter(
                warehouse_id=warehouse_id, product_id__in=list(required)
            ).values("product_id", "allocated_quantity", "safety_stock")
        }
        return [
            (product_id, qty, levels.get(product_id, 0))
            for product_id, qty in required.items()
            if levels.get(product_id, 0) < qty
        ]

    def can_fulfill(self, lines, warehouse_id):
        """True if available (allocated minus safety stock) covers each product at the warehouse."""
        return not self.shortfalls(lines, warehouse_id)

    def warehouse_totals(self, warehouse_id):
        """
        Warehouse-level stock figures computed in one aggregate query.

        Args:
            warehouse_id: Warehouse UUID

        Returns:
            Dict with total_stock, total_products, low_stock_items,
            out_of_stock_items and utilization_rate

        Raises:
            NotFoundException: If the warehouse does not exist
        """
        try:
            warehouse = Warehouse.objects.get(pk=warehouse_id)
        except Warehouse.DoesNotExist:
            raise NotFoundException("Warehouse", warehouse_id)

        totals = StockAllocation.objects.filter(warehouse=warehouse).aggregate(
            total_stock=Coalesce(Sum("allocated_quantity"), 0),
            total_products=Count("id"),
            low_stock_items=Count("id", filter=Q(allocated_quantity__lte=F("safety_stock"))),
            out_of_stock_items=Count("id", filter=Q(allocated_quantity=0)),
        )
        totals["utilization_rate"] = (
            round(totals["total_stock"] * 100 / warehouse.capacity) if warehouse.capacity else 0
        )
        return totals

    def low_stock(self, warehouse_id=None):
        """
        Allocations at or below their safety stock floor.

        Args:
            warehouse_id: Optional warehouse UUID to restrict to

        Returns:
            QuerySet of StockAllocation
        """
        queryset = StockAllocation.objects.filter(allocated_quantity__lte=F("safety_stock"))
        if warehouse_id is not None:
            try:
                queryset = queryset.filter(warehouse_id=warehouse_id)
            except (ValueError, DjangoValidationError):
                raise ValidationException("Malformed warehouse id", {"warehouse_id": str(warehouse_id)})
        return queryset.select_related("product", "warehouse").order_by("allocated_quantity")

    def scope_allocations(self, actor, queryset=None):
        """
        Restrict allocation rows to what the actor may see.

        Admins see every row, merchant users only their own business's
        products, logistics users only warehouses they cover.
        """
        actor = Actor.resolve(actor)
        if queryset is None:
            queryset = StockAllocation.objects.all()

        if actor.is_admin:
            return queryset
        if actor.is_merchant and actor.business_id is not None:
            return queryset.filter(product__business_id=actor.business_id)
        if actor.is_logistics:
            return queryset.filter(warehouse__logistics_regions__user_id=actor.id)
        return queryset.none()

    def check_visible(self, actor, product_id, warehouse_id):
        """
        Raises:
            AccessDeniedException: If the actor may not see the product's stock at the warehouse
        """
        actor = Actor.resolve(actor)
        if actor.is_admin:
            return
        if actor.is_merchant and actor.business_id is not None:
            if not Product.objects.filter(pk=product_id, business_id=actor.business_id).exists():
                raise AccessDeniedException(f"Product {product_id} belongs to another merchant")
            return
        if actor.is_logistics:
            if not LogisticsRegion.objects.filter(user_id=actor.id, warehouse_id=warehouse_id).exists():
                raise AccessDeniedException(f"Warehouse {warehouse_id} is outside the user's regions")
            return
        raise AccessDeniedException(f"Role {actor.role} may not read stock levels")

    def _ensure_exists(self, product_id, warehouse_id):
        if not Product.objects.filter(pk=product_id).exists():
            raise NotFoundException("Product", product_id)
        if not Warehouse.objects.filter(pk=warehouse_id).exists():
            raise NotFoundException("Warehouse", warehouse_id)
