"""
Tests for EventService lookups and organizer operations.
"""

from datetime import timedelta
from decimal import Decimal
from uuid import uuid4

import pytest

from ticketgate.cache import CacheKeyBuilder
from ticketgate.utils.exceptions import (
    AuthorizationError,
    EventNotFoundError,
    InvalidCapacityAdjustmentError,
)


class TestGetEventById:

    @pytest.mark.asyncio
    async def test_lookup_populates_cache(self, event_service, cache, make_event):
        event = await make_event(capacity=4, price=Decimal("12.50"))

        found = await event_service.get_event_by_id(str(event.id))

        assert found.id == event.id
        assert found.capacity_remaining == 4
        assert CacheKeyBuilder.event_detail(str(event.id)) in cache.store

    @pytest.mark.asyncio
    async def test_cached_snapshot_is_rebuilt(self, event_service, make_event):
        event = await make_event(capacity=4, price=Decimal("12.50"))
        await event_service.get_event_by_id(event.id)

        cached = await event_service.get_event_by_id(event.id)

        assert cached.id == event.id
        assert cached.name == event.name
        assert cached.price == Decimal("12.50")
        assert cached.capacity_total == 4

    @pytest.mark.asyncio
    async def test_unknown_or_malformed_id(self, event_service):
        assert await event_service.get_event_by_id(uuid4()) is None
        assert await event_service.get_event_by_id("nope") is None


class TestAdjustCapacity:

    @pytest.mark.asyncio
    async def test_owner_can_resize(self, event_service, cache, make_event):
        event = await make_event(capacity=5)
        await event_service.get_event_by_id(event.id)

        updated = await event_service.adjust_capacity(event.id, 5, "organizer-1")

        assert updated.capacity_total == 10
        assert updated.capacity_remaining == 10
        assert CacheKeyBuilder.event_detail(str(event.id)) not in cache.store

    @pytest.mark.asyncio
    async def test_other_organizer_is_refused(self, event_service, make_event):
        event = await make_event()

        with pytest.raises(AuthorizationError):
            await event_service.adjust_capacity(event.id, 1, "organizer-2")

    @pytest.mark.asyncio
    async def test_shrink_below_issued_is_rejected(self, event_service, booking_service, make_event):
        event = await make_event(capacity=2)
        await booking_service.book_ticket(event.id, "holder-1")

        with pytest.raises(InvalidCapacityAdjustmentError):
            await event_service.adjust_capacity(event.id, -2, "organizer-1")

    @pytest.mark.asyncio
    async def test_unknown_event(self, event_service):
        with pytest.raises(EventNotFoundError):
            await event_service.adjust_capacity(uuid4(), 1, "organizer-1")


class TestStatsAndAttendees:

    @pytest.mark.asyncio
    async def test_stats(self, event_service, booking_service, validation_service, make_event):
        event = await make_event(capacity=4, price=Decimal("20.00"))
        first = (await booking_service.book_ticket(event.id, "holder-1")).ticket
        await booking_service.book_ticket(event.id, "holder-2")
        await validation_service.validate_ticket(first.id)

        stats = await event_service.get_event_stats(event.id, "organizer-1")

        assert stats.total_booked == 2
        assert stats.total_available == 2
        assert stats.capacity_total == 4
        assert stats.revenue == Decimal("40.00")
        assert stats.validated_count == 1
        assert stats.utilization == 50.0

    @pytest.mark.asyncio
    async def test_stats_follow_validations(self, event_service, booking_service, validation_service, make_event):
        event = await make_event(capacity=4)
        ticket = (await booking_service.book_ticket(event.id, "holder-1")).ticket
        assert (await event_service.get_event_stats(event.id, "organizer-1")).validated_count == 0

        await validation_service.validate_ticket(ticket.id)

        assert (await event_service.get_event_stats(event.id, "organizer-1")).validated_count == 1

    @pytest.mark.asyncio
    async def test_organizer_events_soonest_first_with_stats(
        self, event_service, booking_service, make_event, clock
    ):
        later = await make_event(starts_at=clock.current + timedelta(days=7), name="Later")
        sooner = await make_event(capacity=2, name="Sooner")
        await make_event(organizer_id="organizer-2", name="Someone Else's")
        await booking_service.book_ticket(sooner.id, "holder-1")

        rows = await event_service.list_organizer_events("organizer-1")

        assert [event.id for event, _ in rows] == [sooner.id, later.id]
        sooner_stats = rows[0][1]
        assert sooner_stats.total_booked == 1
        assert sooner_stats.total_available == 1
        assert rows[1][1].total_booked == 0

    @pytest.mark.asyncio
    async def test_attendees_in_booking_order(self, event_service, booking_service, make_event, clock):
        event = await make_event()
        first = (await booking_service.book_ticket(event.id, "holder-1")).ticket
        clock.advance(timedelta(seconds=1))
        second = (await booking_service.book_ticket(event.id, "holder-2")).ticket

        attendees = await event_service.list_attendees(event.id, "organizer-1")

        assert [t.id for t in attendees] == [first.id, second.id]

    @pytest.mark.asyncio
    async def test_attendees_require_ownership(self, event_service, make_event):
        event = await make_event()

        with pytest.raises(AuthorizationError):
            await event_service.list_attendees(event.id, "someone-else")
