"""
FastAPI dependencies for identity and service wiring.
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from ..cache import get_cache
from ..database import get_session_factory
from ..services.booking_service import BookingService
from ..services.event_service import EventService
from ..services.inventory_store import InventoryStore
from ..services.validation_service import TicketValidationService
from .auth import Principal, verify_token


# HTTP Bearer token scheme
security = HTTPBearer()


def get_inventory_store() -> InventoryStore:
    """Inventory store bound to the global session factory."""
    return InventoryStore(get_session_factory())


def get_booking_service(store: InventoryStore = Depends(get_inventory_store)) -> BookingService:
    return BookingService(store, get_cache())


def get_validation_service(store: InventoryStore = Depends(get_inventory_store)) -> TicketValidationService:
    return TicketValidationService(store, get_cache())


def get_event_service(store: InventoryStore = Depends(get_inventory_store)) -> EventService:
    return EventService(store, get_cache())


async def get_current_principal(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> Principal:
    """
    Get the caller's identity from the bearer token.

    Raises:
        HTTPException: If the token is invalid
    """
    principal = verify_token(credentials.credentials)
    if principal is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return principal


async def get_current_organizer(
    principal: Principal = Depends(get_current_principal)
) -> Principal:
    """
    Get the caller's identity, requiring the organizer role.

    Raises:
        HTTPException: If the caller is not an organizer
    """
    if not principal.is_organizer:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not enough permissions"
        )
    return principal
