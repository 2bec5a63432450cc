"""
Booking service: turns a holder's request into at most one issued ticket.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Union
from uuid import UUID

from ..cache import CacheInvalidator, RedisCache, get_cache
from ..config import get_settings
from ..models.ticket import Ticket
from ..utils.exceptions import (
    ConcurrencyError,
    EventExpiredError,
    EventNotFoundError,
    SoldOutError,
    StorageUnavailableError,
)
from ..utils.identifiers import parse_identifier
from ..utils.logging_config import log_business_event
from .inventory_store import InventoryStore

logger = logging.getLogger(__name__)


class BookingErrorKind(str, Enum):
    """Why a booking request did not produce a ticket."""

    NOT_FOUND = "NOT_FOUND"
    EXPIRED = "EXPIRED"
    SOLD_OUT = "SOLD_OUT"
    LIMIT_REACHED = "LIMIT_REACHED"
    TRANSIENT_FAILURE = "TRANSIENT_FAILURE"


@dataclass
class BookingResult:
    """Outcome of a booking request. Exactly one of ticket or error_kind is set."""

    success: bool
    ticket: Optional[Ticket] = None
    error_kind: Optional[BookingErrorKind] = None
    message: str = ""

    @classmethod
    def booked(cls, ticket: Ticket) -> "BookingResult":
        return cls(success=True, ticket=ticket, message="Ticket booked successfully.")

    @classmethod
    def failed(cls, kind: BookingErrorKind, message: str) -> "BookingResult":
        return cls(success=False, error_kind=kind, message=message)


MESSAGE_NOT_FOUND = "Event not found."
MESSAGE_SOLD_OUT = "Sorry, this event is sold out."
MESSAGE_EXPIRED = "Booking closed. Event date has passed."
MESSAGE_TRANSIENT = "Booking failed. Please try again."


def limit_reached_message(limit: int) -> str:
    return f"You've reached the maximum booking limit of {limit} tickets for this event."


class BookingService:
    """Service for issuing tickets against the shared inventory."""

    def __init__(
        self,
        store: InventoryStore,
        cache: Optional[RedisCache] = None,
        max_tickets_per_holder: Optional[int] = None
    ):
        self.store = store
        self.cache = cache or get_cache()
        self.invalidator = CacheInvalidator(self.cache)
        self.max_tickets_per_holder = (
            max_tickets_per_holder
            if max_tickets_per_holder is not None
            else get_settings().max_tickets_per_holder
        )

    async def book_ticket(
        self,
        event_id: Union[str, UUID],
        holder_id: str,
        holder_name: str = "",
        holder_email: str = ""
    ) -> BookingResult:
        """
        Book one ticket for a holder.

        The per-holder count is checked before reserving, in its own
        transaction. Two concurrent requests from the same holder sitting one
        below the limit can therefore both succeed; the limit is a soft cap.
        Capacity itself is never oversold.

        Args:
            event_id: Event to book (string or UUID)
            holder_id: Identity of the requesting holder
            holder_name: Display name copied onto the ticket
            holder_email: Contact email copied onto the ticket

        Returns:
            BookingResult; this method does not raise for expected failures
        """
        parsed_event_id = parse_identifier(event_id)
        if parsed_event_id is None:
            return BookingResult.failed(BookingErrorKind.NOT_FOUND, MESSAGE_NOT_FOUND)

        logger.info(f"Booking request from holder {holder_id} for event {parsed_event_id}")

        try:
            held = await self.store.count_held(parsed_event_id, holder_id)
            if held >= self.max_tickets_per_holder:
                logger.info(
                    f"Holder {holder_id} already holds {held} tickets for event {parsed_event_id}"
                )
                return BookingResult.failed(
                    BookingErrorKind.LIMIT_REACHED,
                    limit_reached_message(self.max_tickets_per_holder)
                )

            ticket = await self.store.try_reserve(
                parsed_event_id, holder_id, holder_name, holder_email
            )

        except EventNotFoundError:
            return BookingResult.failed(BookingErrorKind.NOT_FOUND, MESSAGE_NOT_FOUND)
        except EventExpiredError:
            return BookingResult.failed(BookingErrorKind.EXPIRED, MESSAGE_EXPIRED)
        except SoldOutError:
            return BookingResult.failed(BookingErrorKind.SOLD_OUT, MESSAGE_SOLD_OUT)
        except (StorageUnavailableError, ConcurrencyError) as e:
            logger.error(f"Booking for event {parsed_event_id} failed: {e}")
            return BookingResult.failed(BookingErrorKind.TRANSIENT_FAILURE, MESSAGE_TRANSIENT)

        await self.invalidator.invalidate_event(str(parsed_event_id))

        log_business_event(
            "ticket_booked",
            {"ticket_id": str(ticket.id), "event_id": str(parsed_event_id)},
            holder_id=holder_id
        )

        return BookingResult.booked(ticket)

    async def get_holder_tickets(self, holder_id: str) -> List[Ticket]:
        """All tickets owned by a holder, newest first."""
        return await self.store.list_holder_tickets(holder_id)

    async def get_ticket(self, ticket_id: Union[str, UUID]) -> Optional[Ticket]:
        """Look up one ticket by id; malformed ids are treated as unknown."""
        parsed_ticket_id = parse_identifier(ticket_id)
        if parsed_ticket_id is None:
            return None
        return await self.store.get_ticket(parsed_ticket_id)
