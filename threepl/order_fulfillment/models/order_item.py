"""
OrderItem model for Order Fulfillment & Logistics Assignment.
"""

import uuid
from decimal import Decimal
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Q


class OrderItem(models.Model):
    """
    A product line within an order, priced at the time of ordering.

    Items are fixed once the order leaves NEW.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order = models.ForeignKey(
        'Order',
        on_delete=models.CASCADE,
        related_name='items',
        help_text="Order this item belongs to"
    )
    product = models.ForeignKey(
        'products.Product',
        on_delete=models.PROTECT,
        related_name='order_items',
        help_text="Ordered product"
    )
    quantity = models.PositiveIntegerField(
        validators=[MinValueValidator(1)],
        help_text="Units ordered"
    )
    unit_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00'),
        help_text="Price per unit at time of order"
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['created_at']
        constraints = [
            models.CheckConstraint(condition=Q(quantity__gte=1), name='order_item_quantity_positive'),
        ]

    def __str__(self):
        return f"{self.product_id} x {self.quantity} (order {self.order_id})"

    @property
    def line_total(self):
        return self.unit_price * self.quantity
