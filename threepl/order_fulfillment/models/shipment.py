"""
Shipment model for Order Fulfillment & Logistics Assignment.
"""

import uuid
from django.db import models
from django.utils import timezone


class Shipment(models.Model):
    """
    Physical-delivery tracking record, one per order.

    Created lazily on the first logistics assignment. The one-to-one column
    carries the unique constraint that keeps creation idempotent under races.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order = models.OneToOneField(
        'Order',
        on_delete=models.CASCADE,
        related_name='shipment',
        help_text="Order this shipment belongs to"
    )

    tracking_number = models.CharField(
        max_length=100,
        blank=True,
        help_text="Carrier tracking number"
    )
    carrier_name = models.CharField(
        max_length=100,
        blank=True,
        help_text="Carrier handling the delivery"
    )
    delivery_attempts = models.PositiveIntegerField(
        default=0,
        help_text="Number of failed delivery attempts"
    )
    last_status_update = models.DateTimeField(
        default=timezone.now,
        help_text="Touched by every status-changing operation on the order"
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-last_status_update']
        indexes = [
            models.Index(fields=['tracking_number'], name='shipment_tracking_number_idx'),
            models.Index(fields=['last_status_update'], name='shipment_last_update_idx'),
        ]

    def __str__(self):
        return f"Shipment for order {self.order_id} ({self.carrier_name or 'unassigned carrier'})"
