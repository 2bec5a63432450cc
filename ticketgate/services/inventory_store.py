"""
Inventory store: durable events and tickets behind atomic compound operations.

Every mutating operation is a single guarded UPDATE inside one transaction.
The WHERE clause carries the precondition (capacity left, event not started,
ticket unused), so the database serializes competing writers and at most
one of them matches the row. When the guarded update matches nothing, the
row is re-read inside the same transaction only to explain the rejection.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from decimal import Decimal
from typing import AsyncGenerator, Callable, List, Optional
from uuid import UUID, uuid4

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..models.event import Event
from ..models.ticket import Ticket
from ..utils.clock import ensure_utc, utcnow
from ..utils.exceptions import (
    ConcurrencyError,
    EventExpiredError,
    EventNotFoundError,
    InvalidCapacityAdjustmentError,
    SoldOutError,
    StorageUnavailableError,
    TicketAlreadyUsedError,
    TicketNotFoundError,
    ValidationError,
    WrongEventError,
)

logger = logging.getLogger(__name__)


class InventoryStore:
    """Atomic operations over the ``events`` and ``tickets`` tables."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        clock: Callable[[], datetime] = utcnow
    ):
        self._session_factory = session_factory
        self._clock = clock

    def now(self) -> datetime:
        """Current time according to the store's clock, in UTC."""
        return ensure_utc(self._clock())

    @asynccontextmanager
    async def _transaction(self) -> AsyncGenerator[AsyncSession, None]:
        """
        One session, one transaction.

        Commits on normal exit and rolls back on any exception, including
        cancellation of the awaiting task. Driver and database faults, and
        connection failures the driver raises unwrapped, are surfaced as
        StorageUnavailableError.
        """
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    yield session
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Inventory transaction failed: {e}")
            raise StorageUnavailableError("Inventory database unavailable") from e

    # Booking side

    async def try_reserve(
        self,
        event_id: UUID,
        holder_id: str,
        holder_name: str = "",
        holder_email: str = ""
    ) -> Ticket:
        """
        Issue one ticket and decrement the event's remaining capacity atomically.

        Raises:
            EventNotFoundError: The event does not exist
            EventExpiredError: The event starts at or before now
            SoldOutError: No capacity is left
        """
        now = self.now()

        async with self._transaction() as session:
            result = await session.execute(
                update(Event)
                .where(
                    Event.id == event_id,
                    Event.capacity_remaining > 0,
                    Event.starts_at > now
                )
                .values(
                    capacity_remaining=Event.capacity_remaining - 1
                )
                .execution_options(synchronize_session=False)
            )

            event = await session.get(Event, event_id)

            if result.rowcount == 0:
                raise self._reservation_rejection(event, event_id, now)

            ticket = Ticket(
                id=uuid4(),
                event_id=event.id,
                holder_id=holder_id,
                holder_name=holder_name,
                holder_email=holder_email,
                event_name=event.name,
                event_starts_at=event.starts_at,
                price=event.price,
                issued_at=now,
                validated=False,
                validated_at=None,
            )
            session.add(ticket)
            await session.flush()

        logger.debug(
            f"Reserved ticket {ticket.id} for holder {holder_id} on event {event_id}, "
            f"{event.capacity_remaining} remaining"
        )
        return ticket

    def _reservation_rejection(self, event: Optional[Event], event_id: UUID, now: datetime) -> Exception:
        """Explain why the guarded capacity update matched no row."""
        if event is None:
            return EventNotFoundError(str(event_id))
        if event.has_started(now):
            return EventExpiredError(str(event_id))
        if event.capacity_remaining <= 0:
            return SoldOutError(str(event_id))
        return ConcurrencyError(f"Event {event_id} changed during reservation")

    async def count_held(self, event_id: UUID, holder_id: str) -> int:
        """Number of tickets the holder owns for the event."""
        async with self._transaction() as session:
            result = await session.execute(
                select(func.count(Ticket.id)).where(
                    Ticket.event_id == event_id,
                    Ticket.holder_id == holder_id
                )
            )
            return result.scalar_one()

    # Admission side

    async def try_mark_used(self, ticket_id: UUID, expected_event_id: Optional[UUID] = None) -> Ticket:
        """
        Flip a ticket from unused to used, exactly once.

        Raises:
            TicketNotFoundError: No ticket has this id
            WrongEventError: The ticket belongs to another event
            TicketAlreadyUsedError: The ticket was validated before; carries the ticket
        """
        now = self.now()

        async with self._transaction() as session:
            conditions = [Ticket.id == ticket_id, Ticket.validated.is_(False)]
            if expected_event_id is not None:
                conditions.append(Ticket.event_id == expected_event_id)

            result = await session.execute(
                update(Ticket)
                .where(*conditions)
                .values(validated=True, validated_at=now)
                .execution_options(synchronize_session=False)
            )

            ticket = await session.get(Ticket, ticket_id)

            if result.rowcount == 1:
                return ticket

            if ticket is None:
                raise TicketNotFoundError(str(ticket_id))

            # Keep the snapshot readable after the rollback below
            session.expunge(ticket)

            if expected_event_id is not None and ticket.event_id != expected_event_id:
                raise WrongEventError(ticket, str(expected_event_id))
            if ticket.validated:
                raise TicketAlreadyUsedError(ticket)
            raise ConcurrencyError(f"Ticket {ticket_id} changed during validation")

    # Organizer side

    async def adjust_capacity(self, event_id: UUID, delta: int) -> Event:
        """
        Resize an event by adding ``delta`` to both capacity counters.

        Raises:
            EventNotFoundError: The event does not exist
            InvalidCapacityAdjustmentError: Either counter would drop below zero
        """
        async with self._transaction() as session:
            result = await session.execute(
                update(Event)
                .where(
                    Event.id == event_id,
                    Event.capacity_total + delta >= 0,
                    Event.capacity_remaining + delta >= 0
                )
                .values(
                    capacity_total=Event.capacity_total + delta,
                    capacity_remaining=Event.capacity_remaining + delta
                )
                .execution_options(synchronize_session=False)
            )

            event = await session.get(Event, event_id)

            if event is None:
                raise EventNotFoundError(str(event_id))
            if result.rowcount == 0:
                raise InvalidCapacityAdjustmentError(
                    str(event_id), delta, event.capacity_total, event.capacity_remaining
                )

        logger.info(
            f"Adjusted capacity of event {event_id} by {delta}: "
            f"{event.capacity_remaining}/{event.capacity_total}"
        )
        return event

    async def add_event(
        self,
        name: str,
        starts_at: datetime,
        capacity: int,
        organizer_id: str,
        price: Decimal = Decimal("0.00"),
        venue: str = "",
        description: Optional[str] = None,
        event_id: Optional[UUID] = None
    ) -> Event:
        """Insert a new event with its full capacity available."""
        field_errors = {}
        if capacity < 0:
            field_errors["capacity"] = ["Capacity cannot be negative"]
        if price < 0:
            field_errors["price"] = ["Price cannot be negative"]
        if field_errors:
            raise ValidationError("Invalid event", field_errors=field_errors)

        event = Event(
            id=event_id or uuid4(),
            name=name,
            description=description,
            venue=venue,
            organizer_id=organizer_id,
            starts_at=ensure_utc(starts_at),
            capacity_total=capacity,
            capacity_remaining=capacity,
            price=price,
        )

        async with self._transaction() as session:
            session.add(event)
            await session.flush()

        logger.info(f"Added event {event.id} '{name}' with capacity {capacity}")
        return event

    # Reads

    async def get_event(self, event_id: UUID) -> Optional[Event]:
        """Return the event, or None."""
        async with self._transaction() as session:
            return await session.get(Event, event_id)

    async def list_organizer_events(self, organizer_id: str) -> List[Event]:
        """Events run by an organizer, soonest first."""
        async with self._transaction() as session:
            result = await session.execute(
                select(Event)
                .where(Event.organizer_id == organizer_id)
                .order_by(Event.starts_at.asc())
            )
            return list(result.scalars().all())

    async def get_ticket(self, ticket_id: UUID) -> Optional[Ticket]:
        """Return the ticket, or None. Never mutates."""
        async with self._transaction() as session:
            return await session.get(Ticket, ticket_id)

    async def list_holder_tickets(self, holder_id: str) -> List[Ticket]:
        """All tickets of a holder, newest first."""
        async with self._transaction() as session:
            result = await session.execute(
                select(Ticket)
                .where(Ticket.holder_id == holder_id)
                .order_by(Ticket.issued_at.desc())
            )
            return list(result.scalars().all())

    async def list_event_tickets(self, event_id: UUID) -> List[Ticket]:
        """All tickets issued for an event, oldest first."""
        async with self._transaction() as session:
            result = await session.execute(
                select(Ticket)
                .where(Ticket.event_id == event_id)
                .order_by(Ticket.issued_at.asc())
            )
            return list(result.scalars().all())

    async def count_issued(self, event_id: UUID) -> int:
        """Number of ticket rows for an event."""
        async with self._transaction() as session:
            result = await session.execute(
                select(func.count(Ticket.id)).where(Ticket.event_id == event_id)
            )
            return result.scalar_one()

    async def count_validated(self, event_id: UUID) -> int:
        """Number of tickets already used for entry."""
        async with self._transaction() as session:
            result = await session.execute(
                select(func.count(Ticket.id)).where(
                    Ticket.event_id == event_id,
                    Ticket.validated.is_(True)
                )
            )
            return result.scalar_one()
