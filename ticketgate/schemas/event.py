"""
Pydantic schemas for event lookup and organizer operations.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from .ticket import TicketResponse


class EventResponse(BaseModel):
    """Schema for event responses."""

    id: UUID
    name: str
    description: Optional[str] = None
    venue: str
    organizer_id: str
    starts_at: datetime
    capacity_total: int
    capacity_remaining: int
    price: Decimal
    is_sold_out: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class CapacityAdjustRequest(BaseModel):
    """Schema for resizing an event."""

    delta: int = Field(..., description="Seats to add (positive) or remove (negative)")


class EventStatsResponse(BaseModel):
    """Schema for organizer ticket statistics."""

    event_id: UUID
    total_booked: int
    total_available: int
    capacity_total: int
    revenue: Decimal
    validated_count: int
    utilization: float = Field(..., description="Percentage of capacity booked")

    model_config = {"from_attributes": True}


class AttendeeListResponse(BaseModel):
    """Schema for the attendee list of an event."""

    event_id: UUID
    attendees: List[TicketResponse]
    total: int


class OrganizerEventSummary(BaseModel):
    """One row of the organizer dashboard."""

    event: EventResponse
    stats: EventStatsResponse


class OrganizerEventListResponse(BaseModel):
    """Schema for the organizer's own events."""

    events: List[OrganizerEventSummary]
    total: int
