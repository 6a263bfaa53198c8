"""
Audit Adapter for Order Fulfillment & Logistics Assignment.

Append-only audit trail boundary. Failures are the caller's to log, never to
propagate.
"""

from abc import ABC, abstractmethod
from typing import Dict, Any, List, Optional

from django.conf import settings
from django.utils.module_loading import import_string

from ..models import AuditLog


class AuditSinkInterface(ABC):
    """Interface for recording audit entries."""

    @abstractmethod
    def record_audit(self, actor_id, entity_type: str, entity_id, action: str,
                     details: Optional[Dict[str, Any]]) -> Any:
        """
        Append an audit entry.

        Args:
            actor_id: Acting user primary key
            entity_type: Model name affected (e.g. 'Order')
            entity_id: Identifier of the affected record
            action: Short action key (e.g. 'STATUS_CHANGED')
            details: Before/after state or other context
        """
        pass


class DatabaseAuditSink(AuditSinkInterface):
    """Writes AuditLog rows."""

    def record_audit(self, actor_id, entity_type, entity_id, action, details):
        return AuditLog.record(actor_id, entity_type, entity_id, action, details)


class InMemoryAuditSink(AuditSinkInterface):
    """Keeps audit entries in ``entries`` for development and testing."""

    def __init__(self):
        self.entries: List[Dict[str, Any]] = []

    def record_audit(self, actor_id, entity_type, entity_id, action, details):
        entry = {
            'actor_id': actor_id,
            'entity_type': entity_type,
            'entity_id': str(entity_id),
            'action': action,
            'details': details or {},
        }
        self.entries.append(entry)
        return entry


# Global sink instance, built lazily from settings.FULFILLMENT['AUDIT_SINK']
audit_sink: Optional[AuditSinkInterface] = None


def get_audit_sink() -> AuditSinkInterface:
    """Factory function to get the configured audit sink."""
    global audit_sink
    if audit_sink is None:
        audit_sink = import_string(settings.FULFILLMENT['AUDIT_SINK'])()
    return audit_sink


def switch_audit_sink(sink: Optional[AuditSinkInterface]):
    """
    Replace the audit sink.

    Args:
        sink: Sink implementation, or None to rebuild from settings on next use
    """
    global audit_sink
    audit_sink = sink
