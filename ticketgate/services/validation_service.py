"""
Ticket validation service for admission at the venue.

A ticket moves from unused to used exactly once. Every later attempt is
reported as already used, with the time of the first admission.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union
from uuid import UUID

from ..cache import CacheInvalidator, RedisCache, get_cache
from ..models.ticket import Ticket
from ..utils.exceptions import (
    ConcurrencyError,
    StorageUnavailableError,
    TicketAlreadyUsedError,
    TicketNotFoundError,
    WrongEventError,
)
from ..utils.identifiers import parse_identifier
from ..utils.logging_config import log_business_event
from .inventory_store import InventoryStore

logger = logging.getLogger(__name__)


class ValidationOutcome(str, Enum):
    VALID = "VALID"
    ALREADY_USED = "ALREADY_USED"
    WRONG_EVENT = "WRONG_EVENT"
    NOT_FOUND = "NOT_FOUND"
    TRANSIENT_FAILURE = "TRANSIENT_FAILURE"


@dataclass
class ValidationResult:
    """Result shown to the staff member scanning a ticket."""

    valid: bool
    already_used: bool
    outcome: ValidationOutcome
    message: str
    ticket: Optional[Ticket] = None


MESSAGE_NOT_FOUND = "Invalid ticket: ticket not found."
MESSAGE_WRONG_EVENT = "This ticket is not valid for this event."


def extract_ticket_id(payload: Optional[str]) -> str:
    """Ticket id carried by a scanned QR payload. The payload is the bare id."""
    if payload is None:
        return ""
    return payload.strip()


class TicketValidationService:
    """Service for admitting ticket holders."""

    def __init__(self, store: InventoryStore, cache: Optional[RedisCache] = None):
        self.store = store
        self.invalidator = CacheInvalidator(cache or get_cache())

    async def validate_ticket(
        self,
        ticket_id: Union[str, UUID],
        event_id: Union[str, UUID, None] = None
    ) -> ValidationResult:
        """
        Validate a scanned ticket and mark it used.

        Args:
            ticket_id: Scanned ticket id; surrounding whitespace is ignored
            event_id: Event the gate is admitting to; when non-blank, tickets
                for other events are rejected without being marked

        Returns:
            ValidationResult; this method does not raise for expected failures
        """
        parsed_ticket_id = parse_identifier(ticket_id)
        if parsed_ticket_id is None:
            return self._not_found(ticket_id)

        expected_event_id = None
        if event_id is not None and str(event_id).strip():
            expected_event_id = parse_identifier(event_id)
            if expected_event_id is None:
                # No ticket belongs to an event with a malformed id
                logger.warning(f"Unparsable event id {event_id!r} supplied for validation")
                return await self._reject_foreign_scope(parsed_ticket_id, ticket_id)

        try:
            ticket = await self.store.try_mark_used(parsed_ticket_id, expected_event_id)

        except TicketNotFoundError:
            return self._not_found(ticket_id)

        except WrongEventError as e:
            return self._wrong_event(e.ticket)

        except TicketAlreadyUsedError as e:
            log_business_event(
                "ticket_rejected",
                {"ticket_id": str(parsed_ticket_id), "reason": "already_used"}
            )
            return ValidationResult(
                valid=False,
                already_used=True,
                outcome=ValidationOutcome.ALREADY_USED,
                message="Warning: This ticket has already been used.",
                ticket=e.ticket
            )

        except (StorageUnavailableError, ConcurrencyError) as e:
            logger.error(f"Validation of ticket {parsed_ticket_id} failed: {e}")
            return ValidationResult(
                valid=False,
                already_used=False,
                outcome=ValidationOutcome.TRANSIENT_FAILURE,
                message="Validation failed. Please try again."
            )

        await self.invalidator.invalidate_event(str(ticket.event_id))

        log_business_event(
            "ticket_validated",
            {"ticket_id": str(ticket.id), "event_id": str(ticket.event_id)},
            holder_id=ticket.holder_id
        )

        return ValidationResult(
            valid=True,
            already_used=False,
            outcome=ValidationOutcome.VALID,
            message="Valid ticket. Entry granted.",
            ticket=ticket
        )

    async def check_ticket_status(self, ticket_id: Union[str, UUID]) -> ValidationResult:
        """Preview a ticket without marking it used."""
        parsed_ticket_id = parse_identifier(ticket_id)
        if parsed_ticket_id is None:
            return self._not_found(ticket_id)

        try:
            ticket = await self.store.get_ticket(parsed_ticket_id)
        except StorageUnavailableError as e:
            logger.error(f"Status check of ticket {parsed_ticket_id} failed: {e}")
            return ValidationResult(
                valid=False,
                already_used=False,
                outcome=ValidationOutcome.TRANSIENT_FAILURE,
                message="Failed to check ticket status."
            )

        if ticket is None:
            return self._not_found(ticket_id)

        if ticket.validated:
            return ValidationResult(
                valid=False,
                already_used=True,
                outcome=ValidationOutcome.ALREADY_USED,
                message="This ticket has already been used.",
                ticket=ticket
            )

        return ValidationResult(
            valid=True,
            already_used=False,
            outcome=ValidationOutcome.VALID,
            message="Ticket is valid and ready to use.",
            ticket=ticket
        )

    async def _reject_foreign_scope(self, parsed_ticket_id: UUID, ticket_id) -> ValidationResult:
        """Answer for a scope that matches no event: unknown ticket or wrong event, never admitted."""
        try:
            ticket = await self.store.get_ticket(parsed_ticket_id)
        except StorageUnavailableError as e:
            logger.error(f"Validation of ticket {parsed_ticket_id} failed: {e}")
            return ValidationResult(
                valid=False,
                already_used=False,
                outcome=ValidationOutcome.TRANSIENT_FAILURE,
                message="Validation failed. Please try again."
            )

        if ticket is None:
            return self._not_found(ticket_id)
        return self._wrong_event(ticket)

    def _wrong_event(self, ticket: Ticket) -> ValidationResult:
        log_business_event(
            "ticket_rejected",
            {"ticket_id": str(ticket.id), "reason": "wrong_event"}
        )
        return ValidationResult(
            valid=False,
            already_used=False,
            outcome=ValidationOutcome.WRONG_EVENT,
            message=MESSAGE_WRONG_EVENT,
            ticket=ticket
        )

    def _not_found(self, ticket_id) -> ValidationResult:
        logger.info(f"Unknown ticket presented: {ticket_id!r}")
        return ValidationResult(
            valid=False,
            already_used=False,
            outcome=ValidationOutcome.NOT_FOUND,
            message=MESSAGE_NOT_FOUND
        )
