"""
Database models for the Ticketgate service.
"""

from .base import Base
from .event import Event
from .ticket import Ticket

__all__ = [
    "Base",
    "Event",
    "Ticket",
]
