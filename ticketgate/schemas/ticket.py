"""
Pydantic schemas for ticket booking and validation.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from ..services.booking_service import BookingErrorKind
from ..services.validation_service import ValidationOutcome


class BookTicketRequest(BaseModel):
    """Schema for booking one ticket."""

    # Kept as text so an unparsable id is reported as an unknown event
    event_id: str = Field(..., min_length=1, description="ID of the event to book")
    holder_name: Optional[str] = Field(None, max_length=255, description="Name printed on the ticket")
    holder_email: Optional[str] = Field(None, max_length=255, description="Contact email for the ticket")


class TicketResponse(BaseModel):
    """Schema for ticket responses."""

    id: UUID
    event_id: UUID
    holder_id: str
    holder_name: str
    holder_email: str
    event_name: str
    event_starts_at: datetime
    price: Decimal
    issued_at: datetime
    validated: bool
    validated_at: Optional[datetime] = None
    credential: str = Field(..., description="Payload encoded into the admission QR code")

    model_config = {"from_attributes": True}


class TicketListResponse(BaseModel):
    """Schema for a holder's tickets."""

    tickets: List[TicketResponse]
    total: int


class BookingResponse(BaseModel):
    """Schema for the outcome of a booking request."""

    success: bool
    ticket: Optional[TicketResponse] = None
    error_kind: Optional[BookingErrorKind] = None
    message: str

    model_config = {"from_attributes": True}


class ValidateTicketRequest(BaseModel):
    """Schema for a scanned ticket presented at the gate."""

    ticket_id: str = Field(..., description="Scanned QR payload or ticket ID")
    event_id: Optional[str] = Field(None, description="Event the gate is admitting to")


class ValidationResponse(BaseModel):
    """Schema for validation and status-check results."""

    valid: bool
    already_used: bool
    outcome: ValidationOutcome
    message: str
    ticket: Optional[TicketResponse] = None

    model_config = {"from_attributes": True}
