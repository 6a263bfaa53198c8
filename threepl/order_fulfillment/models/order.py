"""
Order model for Order Fulfillment & Logistics Assignment.
"""

import logging
import uuid
from decimal import Decimal
from django.conf import settings
from django.db import IntegrityError, models, transaction
from django.db.models import Q
from django.utils import timezone
from django.utils.crypto import get_random_string

logger = logging.getLogger(__name__)

TRACKING_CODE_CHARS = 'ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789'
TRACKING_CODE_ATTEMPTS = 10


class OrderStatus(models.TextChoices):
    """Order status enumeration. The value set is closed."""
    NEW = 'NEW', 'New'
    AWAITING_ALLOC = 'AWAITING_ALLOC', 'Awaiting Allocation'
    DISPATCHED = 'DISPATCHED', 'Dispatched'
    PICKED_UP = 'PICKED_UP', 'Picked Up'
    DELIVERING = 'DELIVERING', 'Delivering'
    DELIVERED = 'DELIVERED', 'Delivered'
    RETURNED = 'RETURNED', 'Returned'
    CANCELED = 'CANCELED', 'Canceled'
    ON_HOLD = 'ON_HOLD', 'On Hold'


TERMINAL_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.RETURNED, OrderStatus.CANCELED})


def generate_tracking_code() -> str:
    """
    Generate a short alphanumeric tracking code not used by any order yet.

    Raises:
        RuntimeError: If no free code was found after a few attempts
    """
    length = settings.FULFILLMENT.get('TRACKING_CODE_LENGTH', 5)
    for _ in range(TRACKING_CODE_ATTEMPTS):
        code = get_random_string(length, TRACKING_CODE_CHARS)
        if not Order.objects.filter(tracking_code=code).exists():
            return code
    raise RuntimeError('Unable to generate unique tracking code')


class Order(models.Model):
    """
    A merchant order moving through the fulfillment lifecycle.

    The order owns the canonical ``status``; its Shipment only mirrors the
    timing of status changes. Orders are never deleted by the engine, only
    moved to CANCELED.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    tracking_code = models.CharField(
        max_length=12,
        unique=True,
        editable=False,
        help_text="Short public order reference (auto-generated)"
    )

    # Owning tenant
    merchant = models.ForeignKey(
        'users.Business',
        on_delete=models.PROTECT,
        related_name='orders',
        help_text="Merchant business that owns the order"
    )

    # Customer contact
    customer_name = models.CharField(max_length=200)
    customer_email = models.EmailField(blank=True)
    customer_phone = models.CharField(max_length=30, blank=True)
    delivery_address = models.TextField(blank=True)

    status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.NEW,
        help_text="Current order status in the fulfillment workflow"
    )
    held_from_status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        blank=True,
        help_text="Status to return to when an ON_HOLD order is released"
    )

    total_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00'),
        help_text="Total order amount"
    )

    # Fulfillment bindings
    assigned_logistics = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='assigned_orders',
        help_text="Logistics user currently responsible for the order"
    )
    fulfillment_warehouse = models.ForeignKey(
        'warehouse.Warehouse',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='orders',
        help_text="Warehouse the order is allocated against"
    )
    stock_committed_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When picked quantities were decremented from the stock ledger"
    )

    notes = models.TextField(blank=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name='created_orders',
        help_text="User who created the order"
    )
    order_date = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-order_date']
        indexes = [
            models.Index(fields=['merchant', 'status'], name='order_merchant_status_idx'),
            models.Index(fields=['assigned_logistics', 'status'], name='order_logistics_status_idx'),
            models.Index(fields=['order_date'], name='order_date_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(status__in=OrderStatus.values),
                name='order_status_in_closed_set'
            ),
        ]

    def __str__(self):
        return f"Order {self.tracking_code} - {self.merchant_id}"

    def save(self, *args, **kwargs):
        """
        Override save to auto-generate the tracking code if not provided.

        A generated code taken by a concurrent insert is replaced and the
        insert retried inside a savepoint.
        """
        if self.tracking_code:
            super().save(*args, **kwargs)
            return

        for _ in range(TRACKING_CODE_ATTEMPTS):
            self.tracking_code = generate_tracking_code()
            try:
                with transaction.atomic():
                    super().save(*args, **kwargs)
                return
            except IntegrityError:
                if not Order.objects.filter(tracking_code=self.tracking_code).exists():
                    raise
                logger.warning(f"Tracking code {self.tracking_code} taken concurrently, retrying")
        self.tracking_code = ''
        raise RuntimeError('Unable to generate unique tracking code')

    @property
    def is_terminal(self):
        return self.status in TERMINAL_STATUSES

    @property
    def is_on_hold(self):
        return self.status == OrderStatus.ON_HOLD

    def recalculate_total(self):
        """Recompute total_amount from the order's items."""
        self.total_amount = sum((item.line_total for item in self.items.all()), Decimal('0.00'))
        return self.total_amount
