"""
Workflow rules for Order Fulfillment & Logistics Assignment.

One table decides every order status change: who may request a target
status and which statuses it may be reached from. Single-order updates, bulk
updates and shipment-driven updates all go through ``validate_order_workflow``.
"""

from dataclasses import dataclass
from typing import FrozenSet

from ..exceptions import AccessDeniedException, InvalidTransitionException, UnknownStatusException
from ..models import Order, OrderStatus, TERMINAL_STATUSES

NON_TERMINAL_STATUSES = frozenset(set(OrderStatus.values) - TERMINAL_STATUSES)

# Statuses an order may be in when a logistics user is assigned to it.
ASSIGNABLE_STATUSES = frozenset({
    OrderStatus.NEW,
    OrderStatus.AWAITING_ALLOC,
    OrderStatus.DISPATCHED,
    OrderStatus.PICKED_UP,
})

ADMIN = 'admin'
OWNING_MERCHANT = 'owning_merchant'
ASSIGNED_LOGISTICS = 'assigned_logistics'


@dataclass(frozen=True)
class TransitionRule:
    """Who may request a target status, and from which current statuses."""
    allowed: FrozenSet[str]
    from_statuses: FrozenSet[str]


class OrderWorkflow:
    """Workflow rules for Order state transitions."""

    RULES = {
        OrderStatus.AWAITING_ALLOC: TransitionRule(
            allowed=frozenset({ADMIN, OWNING_MERCHANT}),
            from_statuses=frozenset({OrderStatus.NEW}),
        ),
        # Only reachable through logistics assignment.
        OrderStatus.DISPATCHED: TransitionRule(
            allowed=frozenset({ADMIN}),
            from_statuses=frozenset(),
        ),
        OrderStatus.PICKED_UP: TransitionRule(
            allowed=frozenset({ASSIGNED_LOGISTICS}),
            from_statuses=frozenset({OrderStatus.DISPATCHED}),
        ),
        OrderStatus.DELIVERING: TransitionRule(
            allowed=frozenset({ASSIGNED_LOGISTICS}),
            from_statuses=frozenset({OrderStatus.DISPATCHED, OrderStatus.PICKED_UP}),
        ),
        OrderStatus.DELIVERED: TransitionRule(
            allowed=frozenset({ASSIGNED_LOGISTICS}),
            from_statuses=frozenset({OrderStatus.DELIVERING}),
        ),
        OrderStatus.RETURNED: TransitionRule(
            allowed=frozenset({ASSIGNED_LOGISTICS}),
            from_statuses=frozenset({OrderStatus.PICKED_UP, OrderStatus.DELIVERING}),
        ),
        OrderStatus.CANCELED: TransitionRule(
            allowed=frozenset({ADMIN, OWNING_MERCHANT}),
            from_statuses=NON_TERMINAL_STATUSES,
        ),
        OrderStatus.ON_HOLD: TransitionRule(
            allowed=frozenset({ADMIN}),
            from_statuses=NON_TERMINAL_STATUSES - {OrderStatus.ON_HOLD},
        ),
        # Only reachable by releasing a hold placed on a NEW order.
        OrderStatus.NEW: TransitionRule(
            allowed=frozenset({ADMIN}),
            from_statuses=frozenset(),
        ),
    }

    RELEASE_RULE = TransitionRule(
        allowed=frozenset({ADMIN}),
        from_statuses=frozenset({OrderStatus.ON_HOLD}),
    )

    @staticmethod
    def validate_status_value(value) -> str:
        """
        Validate a requested status against the closed status set.

        Raises:
            UnknownStatusException: If the value is not an order status
        """
        if not isinstance(value, str) or value not in OrderStatus.values:
            raise UnknownStatusException(value)
        return OrderStatus(value)

    @staticmethod
    def actor_capacities(actor, order: Order) -> FrozenSet[str]:
        """Relationships the actor has to the order."""
        capacities = set()
        if actor.is_admin:
            capacities.add(ADMIN)
        if actor.is_merchant and actor.business_id is not None and actor.business_id == order.merchant_id:
            capacities.add(OWNING_MERCHANT)
        if actor.is_logistics and order.assigned_logistics_id == actor.id:
            capacities.add(ASSIGNED_LOGISTICS)
        return frozenset(capacities)

    @classmethod
    def rule_for(cls, order: Order, new_status: str) -> TransitionRule:
        if (order.status == OrderStatus.ON_HOLD
                and order.held_from_status
                and new_status == order.held_from_status):
            return cls.RELEASE_RULE
        return cls.RULES[new_status]

    @classmethod
    def validate_transition(cls, actor, order: Order, new_status: str) -> None:
        """
        Validate that an actor may move an order to a new status.

        Permission is checked before state, so a caller without rights never
        learns whether the transition would otherwise be valid.

        Args:
            actor: Acting identity (users.actor.Actor)
            order: Order instance, already scoped to the actor
            new_status: Requested status

        Raises:
            UnknownStatusException: If new_status is not an order status
            AccessDeniedException: If the actor may not request new_status
            InvalidTransitionException: If the order cannot move to new_status
        """
        new_status = cls.validate_status_value(new_status)
        rule = cls.rule_for(order, new_status)

        if not rule.allowed & cls.actor_capacities(actor, order):
            raise AccessDeniedException(
                f"Role {actor.role} may not move order {order.tracking_code} to {new_status}",
                {"order_id": str(order.id), "attempted_status": new_status},
            )

        if (order.status in TERMINAL_STATUSES
                or order.status == new_status
                or order.status not in rule.from_statuses):
            raise InvalidTransitionException(
                current_status=order.status,
                attempted_status=new_status,
                entity_type="order"
            )

    @classmethod
    def can_transition_to(cls, actor, order: Order, new_status: str) -> bool:
        """
        Check if transition is allowed without raising exception.

        Returns:
            True if transition is allowed
        """
        try:
            cls.validate_transition(actor, order, new_status)
            return True
        except (AccessDeniedException, InvalidTransitionException, UnknownStatusException):
            return False

    @staticmethod
    def validate_assignment(order: Order) -> None:
        """
        Validate that a logistics user may be assigned to the order.

        Raises:
            InvalidTransitionException: If the order is past pickup, held or terminal
        """
        if order.status not in ASSIGNABLE_STATUSES:
            raise InvalidTransitionException(
                current_status=order.status,
                attempted_status=OrderStatus.PICKED_UP,
                entity_type="order"
            )


def validate_order_workflow(actor, order: Order, new_status: str) -> None:
    """
    Validate order workflow transition.

    Args:
        actor: Acting identity
        order: Order instance
        new_status: New status to transition to

    Raises:
        AccessDeniedException: If the actor may not request the status
        InvalidTransitionException: If transition is not allowed
    """
    OrderWorkflow.validate_transition(actor, order, new_status)


def validate_status_value(value) -> str:
    """Reject values outside the closed status set with UnknownStatusException."""
    return OrderWorkflow.validate_status_value(value)
