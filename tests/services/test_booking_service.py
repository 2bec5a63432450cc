"""
Tests for BookingService.
Covers capacity safety under concurrency, the per-holder limit and expiry.
"""

import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest

from ticketgate.cache import CacheKeyBuilder
from ticketgate.services.booking_service import BookingErrorKind, BookingService
from ticketgate.utils.exceptions import ConcurrencyError, StorageUnavailableError


class TestBookTicket:

    @pytest.mark.asyncio
    async def test_successful_booking(self, booking_service, store, make_event):
        event = await make_event(capacity=10)

        result = await booking_service.book_ticket(str(event.id), "holder-1", "Ada", "ada@example.com")

        assert result.success is True
        assert result.error_kind is None
        assert result.ticket.holder_id == "holder-1"
        assert result.ticket.holder_email == "ada@example.com"
        assert (await store.get_event(event.id)).capacity_remaining == 9

    @pytest.mark.asyncio
    async def test_unknown_event(self, booking_service):
        result = await booking_service.book_ticket(str(uuid4()), "holder-1")

        assert result.success is False
        assert result.error_kind == BookingErrorKind.NOT_FOUND
        assert result.message == "Event not found."

    @pytest.mark.asyncio
    async def test_malformed_event_id_is_not_found(self, booking_service):
        result = await booking_service.book_ticket("not-a-uuid", "holder-1")

        assert result.error_kind == BookingErrorKind.NOT_FOUND

    @pytest.mark.asyncio
    async def test_sold_out(self, booking_service, make_event):
        event = await make_event(capacity=0)

        result = await booking_service.book_ticket(event.id, "holder-1")

        assert result.error_kind == BookingErrorKind.SOLD_OUT
        assert result.message == "Sorry, this event is sold out."

    @pytest.mark.asyncio
    async def test_expired_at_start_time(self, booking_service, make_event, clock):
        event = await make_event(starts_at=clock.current)

        result = await booking_service.book_ticket(event.id, "holder-1")

        assert result.error_kind == BookingErrorKind.EXPIRED
        assert result.message == "Booking closed. Event date has passed."

    @pytest.mark.asyncio
    async def test_open_one_microsecond_before_start(self, booking_service, make_event, clock):
        event = await make_event(starts_at=clock.current + timedelta(microseconds=1))

        result = await booking_service.book_ticket(event.id, "holder-1")

        assert result.success is True


class TestHolderLimit:

    @pytest.mark.asyncio
    async def test_third_ticket_is_refused_without_mutation(self, booking_service, store, make_event):
        event = await make_event(capacity=10)
        assert (await booking_service.book_ticket(event.id, "holder-1")).success
        assert (await booking_service.book_ticket(event.id, "holder-1")).success

        result = await booking_service.book_ticket(event.id, "holder-1")

        assert result.success is False
        assert result.error_kind == BookingErrorKind.LIMIT_REACHED
        assert result.message == "You've reached the maximum booking limit of 2 tickets for this event."
        assert await store.count_held(event.id, "holder-1") == 2
        assert (await store.get_event(event.id)).capacity_remaining == 8

    @pytest.mark.asyncio
    async def test_limit_is_per_event(self, booking_service, make_event):
        first = await make_event()
        second = await make_event(name="Second Show")
        await booking_service.book_ticket(first.id, "holder-1")
        await booking_service.book_ticket(first.id, "holder-1")

        result = await booking_service.book_ticket(second.id, "holder-1")

        assert result.success is True

    @pytest.mark.asyncio
    async def test_limit_checked_before_capacity(self, store, cache, make_event):
        service = BookingService(store, cache, max_tickets_per_holder=1)
        event = await make_event(capacity=1)
        await service.book_ticket(event.id, "holder-1")

        result = await service.book_ticket(event.id, "holder-1")

        assert result.error_kind == BookingErrorKind.LIMIT_REACHED


class TestConcurrentBooking:
    """Concurrent booking requests against one event."""

    @pytest.mark.asyncio
    async def test_last_seat_goes_to_exactly_one_holder(self, booking_service, store, make_event):
        event = await make_event(capacity=1)

        results = await asyncio.gather(
            booking_service.book_ticket(event.id, "holder-a"),
            booking_service.book_ticket(event.id, "holder-b"),
        )

        kinds = sorted(r.error_kind.value if r.error_kind else "OK" for r in results)
        assert kinds == ["OK", "SOLD_OUT"]
        assert (await store.get_event(event.id)).capacity_remaining == 0

    @pytest.mark.asyncio
    async def test_many_holders_never_oversell(self, booking_service, store, make_event):
        event = await make_event(capacity=7)

        results = await asyncio.gather(
            *(booking_service.book_ticket(event.id, f"holder-{i}") for i in range(20))
        )

        booked = [r for r in results if r.success]
        assert len(booked) == 7
        assert all(r.error_kind == BookingErrorKind.SOLD_OUT for r in results if not r.success)
        assert len({r.ticket.id for r in booked}) == 7

        refreshed = await store.get_event(event.id)
        assert refreshed.capacity_remaining == 0
        assert await store.count_issued(event.id) == refreshed.capacity_total


class TestFailuresAndSideEffects:

    @pytest.mark.asyncio
    async def test_storage_fault_is_transient_failure(self, booking_service, store, make_event):
        event = await make_event()

        with patch.object(store, "try_reserve", AsyncMock(side_effect=StorageUnavailableError("down"))):
            result = await booking_service.book_ticket(event.id, "holder-1")

        assert result.success is False
        assert result.error_kind == BookingErrorKind.TRANSIENT_FAILURE
        assert result.message == "Booking failed. Please try again."

    @pytest.mark.asyncio
    async def test_unreachable_database_is_transient_failure(self, unreachable_store, cache):
        service = BookingService(unreachable_store, cache)

        result = await service.book_ticket(uuid4(), "holder-1")

        assert result.success is False
        assert result.error_kind == BookingErrorKind.TRANSIENT_FAILURE

    @pytest.mark.asyncio
    async def test_concurrency_conflict_is_transient_failure(self, booking_service, store, make_event):
        event = await make_event()

        with patch.object(store, "count_held", AsyncMock(side_effect=ConcurrencyError("raced"))):
            result = await booking_service.book_ticket(event.id, "holder-1")

        assert result.error_kind == BookingErrorKind.TRANSIENT_FAILURE

    @pytest.mark.asyncio
    async def test_booking_drops_cached_event(self, booking_service, cache, make_event):
        event = await make_event()
        key = CacheKeyBuilder.event_detail(str(event.id))
        await cache.set(key, {"stale": True})

        await booking_service.book_ticket(event.id, "holder-1")

        assert await cache.get(key) is None

    @pytest.mark.asyncio
    async def test_booking_is_logged_as_business_event(self, booking_service, make_event):
        event = await make_event()

        with patch("ticketgate.services.booking_service.log_business_event") as mock_log:
            result = await booking_service.book_ticket(event.id, "holder-1")

        mock_log.assert_called_once_with(
            "ticket_booked",
            {"ticket_id": str(result.ticket.id), "event_id": str(event.id)},
            holder_id="holder-1"
        )


class TestHolderReads:

    @pytest.mark.asyncio
    async def test_holder_tickets_and_lookup(self, booking_service, make_event):
        event = await make_event()
        booked = (await booking_service.book_ticket(event.id, "holder-1")).ticket

        tickets = await booking_service.get_holder_tickets("holder-1")
        assert [t.id for t in tickets] == [booked.id]

        assert (await booking_service.get_ticket(f"  {booked.id}  ")).id == booked.id
        assert await booking_service.get_ticket("garbage") is None
