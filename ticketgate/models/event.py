"""
Event model holding the shared ticket inventory.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, TYPE_CHECKING

from sqlalchemy import DateTime, Integer, Numeric, String, Text, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base
from ..utils.clock import ensure_utc

if TYPE_CHECKING:
    from .ticket import Ticket


class Event(Base):
    """Event model with its capacity counters."""

    __tablename__ = "events"

    # Display metadata (owned by the catalog)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=True)
    venue: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    organizer_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)

    starts_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True
    )

    # Capacity management
    capacity_total: Mapped[int] = mapped_column(Integer, nullable=False)
    capacity_remaining: Mapped[int] = mapped_column(Integer, nullable=False)

    # Informational only, never charged
    price: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
        default=Decimal('0.00')
    )

    tickets: Mapped[List["Ticket"]] = relationship(
        "Ticket",
        back_populates="event",
        lazy="raise"
    )

    __table_args__ = (
        CheckConstraint("capacity_total >= 0", name="ck_events_capacity_total_non_negative"),
        CheckConstraint("capacity_remaining >= 0", name="ck_events_capacity_remaining_non_negative"),
        CheckConstraint("capacity_remaining <= capacity_total", name="ck_events_capacity_consistency"),
        CheckConstraint("price >= 0", name="ck_events_price_non_negative"),
    )

    @property
    def is_sold_out(self) -> bool:
        """Check if the event has no tickets left."""
        return self.capacity_remaining <= 0

    @property
    def tickets_issued(self) -> int:
        """Number of tickets handed out so far."""
        return self.capacity_total - self.capacity_remaining

    @property
    def capacity_utilization(self) -> float:
        """Get the capacity utilization percentage."""
        if self.capacity_total == 0:
            return 0.0
        return (self.tickets_issued / self.capacity_total) * 100

    def has_started(self, now: datetime) -> bool:
        """Booking closes at the start time itself, not after it."""
        return ensure_utc(now) >= ensure_utc(self.starts_at)

    def __repr__(self) -> str:
        """String representation of the event."""
        return (
            f"<Event(id={self.id}, name='{self.name}', "
            f"starts_at={self.starts_at}, capacity={self.capacity_remaining}/{self.capacity_total})>"
        )
