"""
Order core exception hierarchy.

Every error raised by the domain and application layers derives from
OrderCoreError, so callers can map the taxonomy to their transport
(4xx/5xx, gRPC codes, ...) in one place.
"""
from typing import Any, Dict, Optional


class OrderCoreError(Exception):
    """
    Base exception for the order core.

    Attributes:
        message: Human-readable error message
        code: Machine-readable error code
        details: Additional error details
    """

    default_code = "ORDER_CORE_ERROR"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(OrderCoreError):
    """Malformed or missing input, attributed to a field group."""

    default_code = "validation.failed"

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = details or {}
        details["field"] = field
        self.field = field
        super().__init__(message, code, details)


class InvalidArgumentError(ValidationError):
    """A value outside of a recognised enumeration or range."""

    default_code = "invalid_argument"


class PricingError(ValidationError):
    """Pricing inputs that would produce an impossible total."""

    default_code = "pricing.negative_total"


class InvalidTransitionError(OrderCoreError):
    """Status-machine violation."""

    default_code = "invalid_transition"

    def __init__(self, current_status: str, target_status: str, message: Optional[str] = None):
        self.current_status = current_status
        self.target_status = target_status
        super().__init__(
            message or f"Cannot transition order from '{current_status}' to '{target_status}'",
            details={"current_status": current_status, "target_status": target_status},
        )


class InvalidOperationError(OrderCoreError):
    """Operation not permitted in the order's current state."""

    default_code = "invalid_operation"


class PermissionDeniedError(OrderCoreError):
    """Ownership or role check failed."""

    default_code = "permission_denied"


class NotFoundError(OrderCoreError):
    """Referenced entity does not exist."""

    default_code = "not_found"

    def __init__(self, entity: str, identifier: str):
        self.entity = entity
        self.identifier = identifier
        super().__init__(
            f"{entity} not found: {identifier}",
            details={"entity": entity, "id": identifier},
        )


class ConflictError(OrderCoreError):
    """Concurrent modification or uniqueness conflict."""

    default_code = "conflict"

    def __init__(
        self,
        message: str,
        current_status: Optional[str] = None,
        target_status: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = details or {}
        if current_status is not None:
            details["current_status"] = current_status
        if target_status is not None:
            details["target_status"] = target_status
        self.current_status = current_status
        self.target_status = target_status
        super().__init__(message, details=details)


class ConcurrentUpdateError(ConflictError):
    """Compare-and-set write rejected because the stored version moved on."""

    default_code = "conflict.concurrent_update"

    def __init__(self, order_id: str, expected_version: Optional[int], actual_version: Optional[int]):
        self.order_id = order_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Order {order_id} was modified concurrently "
            f"(expected version {expected_version}, found {actual_version})",
            details={
                "order_id": order_id,
                "expected_version": expected_version,
                "actual_version": actual_version,
            },
        )


class UniqueViolationError(ConflictError):
    """Persistence rejected a write on a unique constraint."""

    default_code = "conflict.unique_violation"

    def __init__(self, field: str, value: str):
        self.field = field
        self.value = value
        super().__init__(
            f"Duplicate value for {field}: {value}",
            details={"field": field, "value": value},
        )


class ResourceExhaustedError(OrderCoreError):
    """Bounded retries were used up."""

    default_code = "resource_exhausted"


class DependencyFailureError(OrderCoreError):
    """An external collaborator (notifier, authorizer, catalog) failed."""

    default_code = "dependency_failure"

    def __init__(self, dependency: str, message: str):
        self.dependency = dependency
        super().__init__(message, details={"dependency": dependency})
