"""
Custom exceptions for the Order Fulfillment & Logistics Assignment engine.

Every failure an engine operation can return to its caller derives from
BusinessException. ``http_status`` is only consulted by the API layer.
"""

from typing import Dict, Any


class BusinessException(Exception):
    """Base exception for business logic errors."""

    http_status = 400

    def __init__(self, message: str, code: str = "BUSINESS_ERROR", details: Dict[str, Any] = None):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)


class NotFoundException(BusinessException):
    """Raised when a referenced entity does not exist."""

    http_status = 404

    def __init__(self, entity_type: str, entity_id: Any):
        message = f"{entity_type} {entity_id} not found"
        super().__init__(message, "NOT_FOUND", {
            "entity_type": entity_type,
            "entity_id": str(entity_id),
        })


class AccessDeniedException(BusinessException):
    """Raised when a role, tenant or ownership check fails."""

    http_status = 403

    def __init__(self, message: str = "Access denied", details: Dict[str, Any] = None):
        super().__init__(message, "ACCESS_DENIED", details)


class InvalidTransitionException(BusinessException):
    """Raised when attempting an invalid workflow transition."""

    http_status = 409

    def __init__(self, current_status: str, attempted_status: str, entity_type: str = "order"):
        message = f"Invalid transition for {entity_type}: cannot move from {current_status} to {attempted_status}"
        super().__init__(message, "INVALID_TRANSITION", {
            "current_status": current_status,
            "attempted_status": attempted_status,
            "entity_type": entity_type
        })


class UnknownStatusException(BusinessException):
    """Raised when a status value is outside the closed status set."""

    def __init__(self, status: Any):
        message = f"Unknown status value: {status!r}"
        super().__init__(message, "UNKNOWN_STATUS", {"status": str(status)})


class InsufficientStockException(BusinessException):
    """Raised when a ledger decrement would take allocated stock below zero."""

    http_status = 409

    def __init__(self, product_id: Any, warehouse_id: Any, requested_qty: int, allocated_qty: int = 0):
        message = (
            f"Insufficient stock for product {product_id} in warehouse {warehouse_id}: "
            f"requested {requested_qty}, allocated {allocated_qty}"
        )
        super().__init__(message, "INSUFFICIENT_STOCK", {
            "product_id": str(product_id),
            "warehouse_id": str(warehouse_id),
            "requested_quantity": requested_qty,
            "allocated_quantity": allocated_qty,
        })


class ConflictException(BusinessException):
    """Raised on uniqueness or idempotency violations."""

    http_status = 409

    def __init__(self, message: str, code: str = "CONFLICT", details: Dict[str, Any] = None):
        super().__init__(message, code, details)


class AlreadyAssignedException(ConflictException):
    """Raised when a logistics user already covers a warehouse."""

    def __init__(self, user_id: Any, warehouse_id: Any):
        message = f"Logistics user {user_id} is already assigned to warehouse {warehouse_id}"
        super().__init__(message, "ALREADY_ASSIGNED", {
            "user_id": str(user_id),
            "warehouse_id": str(warehouse_id),
        })


class ValidationException(BusinessException):
    """Raised when data validation fails."""

    def __init__(self, message: str, field_errors: Dict[str, Any] = None):
        super().__init__(message, "VALIDATION_ERROR", field_errors or {})
