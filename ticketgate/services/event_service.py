"""
Event service: catalog lookup and organizer operations on an event's inventory.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple, Union
from uuid import UUID

from ..cache import CacheInvalidator, CacheKeyBuilder, CacheTTL, RedisCache, get_cache
from ..models.event import Event
from ..models.ticket import Ticket
from ..utils.exceptions import AuthorizationError, EventNotFoundError
from ..utils.identifiers import parse_identifier
from ..utils.logging_config import log_business_event
from .inventory_store import InventoryStore

logger = logging.getLogger(__name__)


@dataclass
class EventStats:
    """Ticket statistics for one event."""

    event_id: UUID
    total_booked: int
    total_available: int
    capacity_total: int
    revenue: Decimal
    validated_count: int
    utilization: float


def _event_to_cache(event: Event) -> Dict[str, Any]:
    return {
        "id": str(event.id),
        "name": event.name,
        "description": event.description,
        "venue": event.venue,
        "organizer_id": event.organizer_id,
        "starts_at": event.starts_at.isoformat(),
        "capacity_total": event.capacity_total,
        "capacity_remaining": event.capacity_remaining,
        "price": str(event.price),
        "created_at": event.created_at.isoformat(),
        "updated_at": event.updated_at.isoformat(),
    }


def _event_from_cache(data: Dict[str, Any]) -> Event:
    return Event(
        id=UUID(data["id"]),
        name=data["name"],
        description=data.get("description"),
        venue=data.get("venue", ""),
        organizer_id=data["organizer_id"],
        starts_at=datetime.fromisoformat(data["starts_at"]),
        capacity_total=data["capacity_total"],
        capacity_remaining=data["capacity_remaining"],
        price=Decimal(data["price"]),
        created_at=datetime.fromisoformat(data["created_at"]),
        updated_at=datetime.fromisoformat(data["updated_at"]),
    )


class EventService:
    """Service class for event lookups and capacity management."""

    def __init__(self, store: InventoryStore, cache: Optional[RedisCache] = None):
        self.store = store
        self.cache = cache or get_cache()
        self.invalidator = CacheInvalidator(self.cache)

    async def get_event_by_id(self, event_id: Union[str, UUID]) -> Optional[Event]:
        """
        Get event by ID with caching.

        The cached snapshot is for display only; its remaining capacity may
        lag behind the database by up to the cache TTL.

        Returns:
            Event instance, or None if unknown
        """
        parsed_event_id = parse_identifier(event_id)
        if parsed_event_id is None:
            return None

        cache_key = CacheKeyBuilder.event_detail(str(parsed_event_id))
        cached_event = await self.cache.get(cache_key)
        if cached_event:
            try:
                return _event_from_cache(cached_event)
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Discarding malformed cache entry {cache_key}: {e}")

        event = await self.store.get_event(parsed_event_id)
        if event is None:
            return None

        await self.cache.set(cache_key, _event_to_cache(event), CacheTTL.EVENT_DETAIL)
        return event

    async def _get_owned_event(self, event_id: Union[str, UUID], organizer_id: str) -> Event:
        parsed_event_id = parse_identifier(event_id)
        if parsed_event_id is None:
            raise EventNotFoundError(str(event_id))

        event = await self.store.get_event(parsed_event_id)
        if event is None:
            raise EventNotFoundError(str(parsed_event_id))
        if event.organizer_id != organizer_id:
            raise AuthorizationError(
                "Only the event's organizer can manage its tickets",
                required_permission="event_owner"
            )
        return event

    async def adjust_capacity(self, event_id: Union[str, UUID], delta: int, organizer_id: str) -> Event:
        """
        Grow or shrink an event's capacity.

        Raises:
            EventNotFoundError: If event is not found
            AuthorizationError: If the caller does not own the event
            InvalidCapacityAdjustmentError: If a counter would go negative
        """
        event = await self._get_owned_event(event_id, organizer_id)

        updated = await self.store.adjust_capacity(event.id, delta)
        await self.invalidator.invalidate_event(str(event.id))

        log_business_event(
            "capacity_adjusted",
            {
                "event_id": str(event.id),
                "delta": delta,
                "capacity_total": updated.capacity_total,
                "capacity_remaining": updated.capacity_remaining,
            },
            holder_id=organizer_id
        )
        return updated

    async def get_event_stats(self, event_id: Union[str, UUID], organizer_id: str) -> EventStats:
        """Booked, available and validated counts for an event."""
        event = await self._get_owned_event(event_id, organizer_id)
        return await self._stats_for(event)

    async def list_organizer_events(self, organizer_id: str) -> List[Tuple[Event, EventStats]]:
        """The organizer's own events, soonest first, each with its stats."""
        events = await self.store.list_organizer_events(organizer_id)
        return [(event, await self._stats_for(event)) for event in events]

    async def _stats_for(self, event: Event) -> EventStats:
        # Validated count is the only figure not on the event row
        cache_key = CacheKeyBuilder.event_stats(str(event.id))
        cached = await self.cache.get(cache_key)
        if cached:
            validated_count = cached["validated_count"]
        else:
            validated_count = await self.store.count_validated(event.id)
            await self.cache.set(
                cache_key,
                {"validated_count": validated_count},
                CacheTTL.EVENT_STATS
            )

        total_booked = event.tickets_issued
        return EventStats(
            event_id=event.id,
            total_booked=total_booked,
            total_available=event.capacity_remaining,
            capacity_total=event.capacity_total,
            revenue=Decimal(total_booked) * event.price,
            validated_count=validated_count,
            utilization=round(event.capacity_utilization, 2),
        )

    async def list_attendees(self, event_id: Union[str, UUID], organizer_id: str) -> List[Ticket]:
        """Every ticket issued for an event, in booking order."""
        event = await self._get_owned_event(event_id, organizer_id)
        return await self.store.list_event_tickets(event.id)
