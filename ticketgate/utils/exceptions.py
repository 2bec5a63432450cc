"""
Custom exceptions for the Ticketgate service.
"""

from typing import Any, Dict, Optional, List, TYPE_CHECKING
from enum import Enum

if TYPE_CHECKING:
    from ..models.ticket import Ticket


class ErrorCode(str, Enum):
    """Standard error codes for the service."""

    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    FORBIDDEN = "FORBIDDEN"

    # Booking errors
    EVENT_EXPIRED = "EVENT_EXPIRED"
    SOLD_OUT = "SOLD_OUT"
    INVALID_CAPACITY_ADJUSTMENT = "INVALID_CAPACITY_ADJUSTMENT"

    # Admission errors
    WRONG_EVENT = "WRONG_EVENT"
    TICKET_ALREADY_USED = "TICKET_ALREADY_USED"

    # Concurrency errors
    CONCURRENCY_CONFLICT = "CONCURRENCY_CONFLICT"

    # External service errors
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"
    STORAGE_UNAVAILABLE = "STORAGE_UNAVAILABLE"


class TicketgateError(Exception):
    """Base exception class for Ticketgate."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
        retry_after: Optional[int] = None
    ):
        """Initialize the exception with comprehensive error information."""
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.suggestions = suggestions or []
        self.retry_after = retry_after
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        result = {
            "error_code": self.error_code.value,
            "message": self.message,
        }

        if self.details:
            result["details"] = self.details

        if self.suggestions:
            result["suggestions"] = self.suggestions

        if self.retry_after:
            result["retry_after"] = self.retry_after

        return result


class ValidationError(TicketgateError):
    """Exception raised for request validation errors."""

    def __init__(self, message: str, field_errors: Optional[Dict[str, List[str]]] = None, **kwargs):
        super().__init__(
            message,
            error_code=ErrorCode.VALIDATION_ERROR,
            details={"field_errors": field_errors} if field_errors else None,
            **kwargs
        )
        self.field_errors = field_errors or {}


class NotFoundError(TicketgateError):
    """Base exception for resource not found errors."""

    def __init__(self, message: str, resource_type: Optional[str] = None, resource_id: Optional[str] = None, **kwargs):
        super().__init__(
            message,
            error_code=ErrorCode.NOT_FOUND,
            details={"resource_type": resource_type, "resource_id": resource_id} if resource_type else None,
            **kwargs
        )


class EventNotFoundError(NotFoundError):
    """Exception raised when an event is not found."""

    def __init__(self, event_id: str, **kwargs):
        super().__init__(
            f"Event {event_id} not found",
            resource_type="event",
            resource_id=event_id,
            suggestions=["Check the event ID", "Browse available events"],
            **kwargs
        )
        self.event_id = event_id


class TicketNotFoundError(NotFoundError):
    """Exception raised when a ticket is not found."""

    def __init__(self, ticket_id: str, **kwargs):
        super().__init__(
            f"Ticket {ticket_id} not found",
            resource_type="ticket",
            resource_id=ticket_id,
            **kwargs
        )
        self.ticket_id = ticket_id


class AuthorizationError(TicketgateError):
    """Exception raised for authorization failures."""

    def __init__(self, message: str = "Access denied", required_permission: Optional[str] = None, **kwargs):
        super().__init__(
            message,
            error_code=ErrorCode.FORBIDDEN,
            details={"required_permission": required_permission} if required_permission else None,
            **kwargs
        )


class BusinessLogicError(TicketgateError):
    """Base exception for business rule violations."""
    pass


class EventExpiredError(BusinessLogicError):
    """Exception raised when booking an event that has already started."""

    def __init__(self, event_id: str, **kwargs):
        super().__init__(
            f"Booking closed for event {event_id}: the event has started",
            error_code=ErrorCode.EVENT_EXPIRED,
            details={"event_id": event_id},
            suggestions=["Browse upcoming events"],
            **kwargs
        )
        self.event_id = event_id


class SoldOutError(BusinessLogicError):
    """Exception raised when an event has no remaining capacity."""

    def __init__(self, event_id: str, **kwargs):
        super().__init__(
            f"Event {event_id} is sold out",
            error_code=ErrorCode.SOLD_OUT,
            details={"event_id": event_id},
            suggestions=["Check similar events"],
            **kwargs
        )
        self.event_id = event_id


class InvalidCapacityAdjustmentError(BusinessLogicError):
    """Exception raised when a resize would push capacity below zero."""

    def __init__(self, event_id: str, delta: int, capacity_total: int, capacity_remaining: int, **kwargs):
        super().__init__(
            f"Cannot adjust capacity of event {event_id} by {delta}",
            error_code=ErrorCode.INVALID_CAPACITY_ADJUSTMENT,
            details={
                "event_id": event_id,
                "delta": delta,
                "capacity_total": capacity_total,
                "capacity_remaining": capacity_remaining,
            },
            suggestions=["Tickets already issued cannot be revoked by a resize"],
            **kwargs
        )


class WrongEventError(BusinessLogicError):
    """Exception raised when a ticket is presented at a different event."""

    def __init__(self, ticket: "Ticket", expected_event_id: str, **kwargs):
        super().__init__(
            f"Ticket {ticket.id} is not valid for event {expected_event_id}",
            error_code=ErrorCode.WRONG_EVENT,
            details={"ticket_event_id": str(ticket.event_id), "expected_event_id": expected_event_id},
            **kwargs
        )
        self.ticket = ticket


class TicketAlreadyUsedError(BusinessLogicError):
    """Exception raised when a ticket has already been validated.

    The ticket is attached so callers can display when it was used.
    """

    def __init__(self, ticket: "Ticket", **kwargs):
        super().__init__(
            f"Ticket {ticket.id} has already been used",
            error_code=ErrorCode.TICKET_ALREADY_USED,
            details={"validated_at": ticket.validated_at.isoformat() if ticket.validated_at else None},
            **kwargs
        )
        self.ticket = ticket


class ConcurrencyError(TicketgateError):
    """Exception raised for concurrency-related issues."""

    def __init__(self, message: str, retry_after: int = 1, **kwargs):
        super().__init__(
            message,
            error_code=ErrorCode.CONCURRENCY_CONFLICT,
            retry_after=retry_after,
            suggestions=["Please try again"],
            **kwargs
        )


class ExternalServiceError(TicketgateError):
    """Exception raised for external service failures."""

    def __init__(self, service_name: str, message: str, status_code: Optional[int] = None, **kwargs):
        kwargs.setdefault("error_code", ErrorCode.EXTERNAL_SERVICE_ERROR)
        super().__init__(
            f"{service_name} service error: {message}",
            details={"service_name": service_name, "status_code": status_code},
            suggestions=["Try again later", "Contact support if problem persists"],
            **kwargs
        )


class StorageUnavailableError(ExternalServiceError):
    """Exception raised when the inventory database cannot complete a transaction."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            "storage",
            message,
            error_code=ErrorCode.STORAGE_UNAVAILABLE,
            retry_after=5,
            **kwargs
        )
