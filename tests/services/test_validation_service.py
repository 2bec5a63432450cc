"""
Tests for TicketValidationService.
"""

import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest

from ticketgate.services.validation_service import (
    TicketValidationService,
    ValidationOutcome,
    extract_ticket_id,
)
from ticketgate.utils.clock import ensure_utc
from ticketgate.utils.exceptions import StorageUnavailableError


@pytest.fixture
def book(store, make_event):
    """Issue one ticket for a fresh event."""

    async def _book(holder_id: str = "holder-1"):
        event = await make_event()
        return await store.try_reserve(event.id, holder_id)

    return _book


class TestValidateTicket:

    @pytest.mark.asyncio
    async def test_first_scan_admits(self, validation_service, book):
        ticket = await book()

        result = await validation_service.validate_ticket(str(ticket.id))

        assert result.valid is True
        assert result.already_used is False
        assert result.outcome == ValidationOutcome.VALID
        assert result.message == "Valid ticket. Entry granted."
        assert result.ticket.validated is True

    @pytest.mark.asyncio
    async def test_second_scan_reports_first_use(self, validation_service, book, clock):
        ticket = await book()
        first = await validation_service.validate_ticket(ticket.id)
        clock.advance(timedelta(minutes=10))

        second = await validation_service.validate_ticket(ticket.id)
        third = await validation_service.validate_ticket(ticket.id)

        for result in (second, third):
            assert result.valid is False
            assert result.already_used is True
            assert result.outcome == ValidationOutcome.ALREADY_USED
            assert result.message == "Warning: This ticket has already been used."
            assert ensure_utc(result.ticket.validated_at) == ensure_utc(first.ticket.validated_at)

    @pytest.mark.asyncio
    async def test_unknown_ticket(self, validation_service, store, book):
        ticket = await book()

        result = await validation_service.validate_ticket("unknown-id")

        assert result.valid is False
        assert result.already_used is False
        assert result.outcome == ValidationOutcome.NOT_FOUND
        assert "ticket not found" in result.message
        assert (await store.get_ticket(ticket.id)).validated is False

    @pytest.mark.asyncio
    async def test_unknown_well_formed_id(self, validation_service):
        result = await validation_service.validate_ticket(str(uuid4()))

        assert result.outcome == ValidationOutcome.NOT_FOUND
        assert result.message == "Invalid ticket: ticket not found."

    @pytest.mark.asyncio
    async def test_empty_input_is_not_found(self, validation_service):
        result = await validation_service.validate_ticket("   ")

        assert result.outcome == ValidationOutcome.NOT_FOUND

    @pytest.mark.asyncio
    async def test_surrounding_whitespace_is_ignored(self, validation_service, book):
        ticket = await book()

        result = await validation_service.validate_ticket(f"\n  {ticket.id}\t")

        assert result.outcome == ValidationOutcome.VALID

    @pytest.mark.asyncio
    async def test_wrong_event_is_rejected_and_not_marked(self, validation_service, store, book, make_event):
        ticket = await book()
        other = await make_event(name="Other Show")

        result = await validation_service.validate_ticket(ticket.id, event_id=other.id)

        assert result.valid is False
        assert result.already_used is False
        assert result.outcome == ValidationOutcome.WRONG_EVENT
        assert result.message == "This ticket is not valid for this event."
        assert result.ticket.id == ticket.id
        assert (await store.get_ticket(ticket.id)).validated is False

    @pytest.mark.asyncio
    async def test_matching_event_admits(self, validation_service, book):
        ticket = await book()

        result = await validation_service.validate_ticket(ticket.id, event_id=str(ticket.event_id))

        assert result.outcome == ValidationOutcome.VALID

    @pytest.mark.asyncio
    async def test_blank_event_scope_is_unscoped(self, validation_service, store, book):
        ticket = await book()

        result = await validation_service.validate_ticket(str(ticket.id), event_id="  ")

        assert result.outcome == ValidationOutcome.VALID
        assert (await store.get_ticket(ticket.id)).validated is True

    @pytest.mark.asyncio
    async def test_malformed_event_scope_is_wrong_event(self, validation_service, store, book):
        ticket = await book()

        result = await validation_service.validate_ticket(str(ticket.id), event_id="not-a-uuid")

        assert result.outcome == ValidationOutcome.WRONG_EVENT
        assert result.ticket.id == ticket.id
        assert (await store.get_ticket(ticket.id)).validated is False

    @pytest.mark.asyncio
    async def test_malformed_event_scope_on_unknown_ticket(self, validation_service):
        result = await validation_service.validate_ticket(str(uuid4()), event_id="not-a-uuid")

        assert result.outcome == ValidationOutcome.NOT_FOUND

    @pytest.mark.asyncio
    async def test_storage_fault_is_transient_failure(self, validation_service, store, book):
        ticket = await book()

        with patch.object(store, "try_mark_used", AsyncMock(side_effect=StorageUnavailableError("down"))):
            result = await validation_service.validate_ticket(ticket.id)

        assert result.valid is False
        assert result.outcome == ValidationOutcome.TRANSIENT_FAILURE
        assert result.message == "Validation failed. Please try again."

    @pytest.mark.asyncio
    async def test_concurrent_scans_admit_exactly_once(self, validation_service, store, book):
        ticket = await book()

        results = await asyncio.gather(
            *(validation_service.validate_ticket(ticket.id) for _ in range(6))
        )

        outcomes = [r.outcome for r in results]
        assert outcomes.count(ValidationOutcome.VALID) == 1
        assert outcomes.count(ValidationOutcome.ALREADY_USED) == 5
        assert await store.count_validated(ticket.event_id) == 1


class TestCheckTicketStatus:

    @pytest.mark.asyncio
    async def test_preview_never_marks_used(self, validation_service, store, book):
        ticket = await book()

        for _ in range(3):
            result = await validation_service.check_ticket_status(ticket.id)
            assert result.valid is True
            assert result.outcome == ValidationOutcome.VALID
            assert result.message == "Ticket is valid and ready to use."

        assert (await store.get_ticket(ticket.id)).validated is False

    @pytest.mark.asyncio
    async def test_preview_of_used_ticket(self, validation_service, book):
        ticket = await book()
        await validation_service.validate_ticket(ticket.id)

        result = await validation_service.check_ticket_status(ticket.id)

        assert result.valid is False
        assert result.already_used is True
        assert result.message == "This ticket has already been used."

    @pytest.mark.asyncio
    async def test_preview_of_unknown_ticket(self, validation_service):
        result = await validation_service.check_ticket_status("unknown-id")

        assert result.outcome == ValidationOutcome.NOT_FOUND
        assert result.message == "Invalid ticket: ticket not found."

    @pytest.mark.asyncio
    async def test_preview_storage_fault(self, validation_service, store):
        with patch.object(store, "get_ticket", AsyncMock(side_effect=StorageUnavailableError("down"))):
            result = await validation_service.check_ticket_status(str(uuid4()))

        assert result.outcome == ValidationOutcome.TRANSIENT_FAILURE
        assert result.message == "Failed to check ticket status."


def test_extract_ticket_id_trims_payload():
    assert extract_ticket_id("  abc \n") == "abc"
    assert extract_ticket_id(None) == ""


@pytest.mark.asyncio
async def test_unreachable_database_is_transient_failure(unreachable_store, cache):
    service = TicketValidationService(unreachable_store, cache)

    scanned = await service.validate_ticket(str(uuid4()))
    previewed = await service.check_ticket_status(str(uuid4()))

    assert scanned.outcome == ValidationOutcome.TRANSIENT_FAILURE
    assert previewed.outcome == ValidationOutcome.TRANSIENT_FAILURE
