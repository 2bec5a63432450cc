"""Business logic services for Ticketgate."""

from .inventory_store import InventoryStore
from .booking_service import BookingService, BookingResult, BookingErrorKind
from .validation_service import TicketValidationService, ValidationResult, ValidationOutcome
from .event_service import EventService, EventStats

__all__ = [
    "InventoryStore",
    "BookingService",
    "BookingResult",
    "BookingErrorKind",
    "TicketValidationService",
    "ValidationResult",
    "ValidationOutcome",
    "EventService",
    "EventStats",
]
