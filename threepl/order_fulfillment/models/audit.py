"""
Audit log model for Order Fulfillment & Logistics Assignment.
"""

import uuid
from datetime import date, datetime
from decimal import Decimal
from django.conf import settings
from django.db import models
from django.utils import timezone


def _json_safe(obj):
    """Convert Decimal, UUID and datetime values nested in dicts/lists for JSON storage."""
    if isinstance(obj, dict):
        return {str(k): _json_safe(v) for k, v in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [_json_safe(item) for item in obj]
    elif isinstance(obj, (Decimal, uuid.UUID)):
        return str(obj)
    elif isinstance(obj, (datetime, date)):
        return obj.isoformat()
    else:
        return obj


class AuditLog(models.Model):
    """
    Append-only audit trail for orders, shipments and region assignments.

    Rows are written once and never updated or deleted.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    # Entity being audited
    entity_type = models.CharField(
        max_length=50,
        help_text="Type of entity (Order, Shipment, LogisticsRegion, etc.)"
    )
    entity_id = models.CharField(
        max_length=64,
        help_text="Identifier of the entity being audited"
    )

    action = models.CharField(
        max_length=50,
        help_text="Action performed (STATUS_CHANGED, LOGISTICS_ASSIGNED, etc.)"
    )

    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name='audit_logs',
        help_text="User who performed the action"
    )

    details = models.JSONField(
        default=dict,
        blank=True,
        help_text="Before/after state or other context"
    )
    timestamp = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['-timestamp']
        indexes = [
            models.Index(fields=['entity_type', 'entity_id', '-timestamp'], name='audit_entity_ts_idx'),
            models.Index(fields=['action', '-timestamp'], name='audit_action_ts_idx'),
            models.Index(fields=['actor', '-timestamp'], name='audit_actor_ts_idx'),
        ]

    def __str__(self):
        return f"{self.entity_type} {self.entity_id} - {self.action} by {self.actor_id} at {self.timestamp}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError("Audit log entries are immutable")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError("Audit log entries are immutable")

    @classmethod
    def record(cls, actor_id, entity_type: str, entity_id, action: str, details=None):
        """
        Create an audit log entry.

        Args:
            actor_id: Primary key of the acting user (may be None for system actions)
            entity_type: Model name affected
            entity_id: Identifier of the affected record
            action: Short action key
            details: Context such as before/after values
        """
        return cls.objects.create(
            actor_id=actor_id,
            entity_type=entity_type,
            entity_id=str(entity_id),
            action=action,
            details=_json_safe(details or {}),
        )
