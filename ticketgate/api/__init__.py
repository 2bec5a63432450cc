"""API endpoints for Ticketgate."""

from fastapi import APIRouter
from .events import router as events_router
from .tickets import router as tickets_router
from .validations import router as validations_router

# Create main API router
api_router = APIRouter(prefix="/api/v1")

api_router.include_router(events_router)
api_router.include_router(tickets_router)
api_router.include_router(validations_router)

__all__ = ["api_router"]
