"""
FastAPI route for admitting ticket holders at the gate.
"""

import logging

from fastapi import APIRouter, Depends

from ..schemas.ticket import ValidateTicketRequest, ValidationResponse
from ..services.validation_service import TicketValidationService, extract_ticket_id
from ..utils.auth import Principal
from ..utils.dependencies import get_current_organizer, get_validation_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/validations", tags=["validations"])


@router.post("", response_model=ValidationResponse)
async def validate_ticket(
    request: ValidateTicketRequest,
    principal: Principal = Depends(get_current_organizer),
    validation_service: TicketValidationService = Depends(get_validation_service)
):
    """
    Validate a scanned ticket and mark it used.

    Always answers 200; the outcome field says whether to admit. A second
    scan of the same ticket reports when it was first used.
    """
    result = await validation_service.validate_ticket(
        extract_ticket_id(request.ticket_id),
        request.event_id
    )
    logger.info(f"Gate scan by {principal.holder_id}: {result.outcome.value}")
    return ValidationResponse.model_validate(result, from_attributes=True)
