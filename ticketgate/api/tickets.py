"""
FastAPI routes for booking tickets and reading them back.
"""

import logging

from fastapi import APIRouter, Depends, Response, status

from ..schemas.ticket import (
    BookTicketRequest,
    BookingResponse,
    TicketListResponse,
    TicketResponse,
    ValidationResponse,
)
from ..services.booking_service import BookingErrorKind, BookingService
from ..services.validation_service import TicketValidationService
from ..utils.auth import Principal
from ..utils.dependencies import (
    get_booking_service,
    get_current_organizer,
    get_current_principal,
    get_validation_service,
)
from ..utils.exceptions import AuthorizationError, TicketNotFoundError

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/tickets", tags=["tickets"])


BOOKING_STATUS = {
    BookingErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    BookingErrorKind.EXPIRED: status.HTTP_410_GONE,
    BookingErrorKind.SOLD_OUT: status.HTTP_409_CONFLICT,
    BookingErrorKind.LIMIT_REACHED: status.HTTP_409_CONFLICT,
    BookingErrorKind.TRANSIENT_FAILURE: status.HTTP_503_SERVICE_UNAVAILABLE,
}


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def book_ticket(
    request: BookTicketRequest,
    response: Response,
    principal: Principal = Depends(get_current_principal),
    booking_service: BookingService = Depends(get_booking_service)
):
    """
    Book one ticket for the authenticated holder.

    Name and email default to the claims in the bearer token. A holder may
    own at most the configured number of tickets per event.
    """
    result = await booking_service.book_ticket(
        request.event_id,
        principal.holder_id,
        holder_name=request.holder_name or principal.name,
        holder_email=request.holder_email or principal.email,
    )

    if not result.success:
        logger.info(f"Booking by {principal.holder_id} refused: {result.error_kind.value}")
        response.status_code = BOOKING_STATUS[result.error_kind]
        if result.error_kind == BookingErrorKind.TRANSIENT_FAILURE:
            response.headers["Retry-After"] = "1"

    return BookingResponse.model_validate(result, from_attributes=True)


@router.get("/me", response_model=TicketListResponse)
async def get_my_tickets(
    principal: Principal = Depends(get_current_principal),
    booking_service: BookingService = Depends(get_booking_service)
):
    """List the authenticated holder's tickets, newest first."""
    tickets = await booking_service.get_holder_tickets(principal.holder_id)
    return TicketListResponse(
        tickets=[TicketResponse.model_validate(ticket) for ticket in tickets],
        total=len(tickets)
    )


@router.get("/{ticket_id}", response_model=TicketResponse)
async def get_ticket(
    ticket_id: str,
    principal: Principal = Depends(get_current_principal),
    booking_service: BookingService = Depends(get_booking_service)
):
    """Get one ticket. Holders see their own tickets; organizers see any."""
    ticket = await booking_service.get_ticket(ticket_id)
    if ticket is None:
        raise TicketNotFoundError(ticket_id)

    if ticket.holder_id != principal.holder_id and not principal.is_organizer:
        raise AuthorizationError("You can only view your own tickets")

    return TicketResponse.model_validate(ticket)


@router.get("/{ticket_id}/status", response_model=ValidationResponse)
async def check_ticket_status(
    ticket_id: str,
    principal: Principal = Depends(get_current_organizer),
    validation_service: TicketValidationService = Depends(get_validation_service)
):
    """Preview whether a ticket would be admitted, without marking it used."""
    result = await validation_service.check_ticket_status(ticket_id)
    return ValidationResponse.model_validate(result, from_attributes=True)
