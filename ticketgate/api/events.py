"""
FastAPI routes for event lookup and organizer inventory management.
"""

from fastapi import APIRouter, Depends

from ..schemas.event import (
    AttendeeListResponse,
    CapacityAdjustRequest,
    EventResponse,
    EventStatsResponse,
    OrganizerEventListResponse,
    OrganizerEventSummary,
)
from ..schemas.ticket import TicketResponse
from ..services.event_service import EventService
from ..utils.auth import Principal
from ..utils.dependencies import get_current_organizer, get_event_service
from ..utils.exceptions import EventNotFoundError
from ..utils.identifiers import parse_identifier

router = APIRouter(prefix="/events", tags=["events"])


@router.get("/mine", response_model=OrganizerEventListResponse)
async def list_my_events(
    principal: Principal = Depends(get_current_organizer),
    event_service: EventService = Depends(get_event_service)
):
    """The calling organizer's events, soonest first, with ticket statistics."""
    rows = await event_service.list_organizer_events(principal.holder_id)
    return OrganizerEventListResponse(
        events=[
            OrganizerEventSummary(
                event=EventResponse.model_validate(event),
                stats=EventStatsResponse.model_validate(stats, from_attributes=True)
            )
            for event, stats in rows
        ],
        total=len(rows)
    )


@router.get("/{event_id}", response_model=EventResponse)
async def get_event(
    event_id: str,
    event_service: EventService = Depends(get_event_service)
):
    """Get event details, including remaining capacity."""
    event = await event_service.get_event_by_id(event_id)
    if event is None:
        raise EventNotFoundError(event_id)
    return EventResponse.model_validate(event)


@router.patch("/{event_id}/capacity", response_model=EventResponse)
async def adjust_capacity(
    event_id: str,
    request: CapacityAdjustRequest,
    principal: Principal = Depends(get_current_organizer),
    event_service: EventService = Depends(get_event_service)
):
    """
    Grow or shrink an event (owning organizer only).

    Both total and remaining capacity move by ``delta``; a shrink that would
    take back already issued tickets is rejected.
    """
    event = await event_service.adjust_capacity(event_id, request.delta, principal.holder_id)
    return EventResponse.model_validate(event)


@router.get("/{event_id}/stats", response_model=EventStatsResponse)
async def get_event_stats(
    event_id: str,
    principal: Principal = Depends(get_current_organizer),
    event_service: EventService = Depends(get_event_service)
):
    """Ticket statistics for an event (owning organizer only)."""
    stats = await event_service.get_event_stats(event_id, principal.holder_id)
    return EventStatsResponse.model_validate(stats, from_attributes=True)


@router.get("/{event_id}/attendees", response_model=AttendeeListResponse)
async def list_attendees(
    event_id: str,
    principal: Principal = Depends(get_current_organizer),
    event_service: EventService = Depends(get_event_service)
):
    """Attendee list in booking order (owning organizer only)."""
    tickets = await event_service.list_attendees(event_id, principal.holder_id)
    return AttendeeListResponse(
        event_id=parse_identifier(event_id),
        attendees=[TicketResponse.model_validate(ticket) for ticket in tickets],
        total=len(tickets)
    )
