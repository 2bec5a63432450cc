"""
Ticket model: one admission credential per row.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional, TYPE_CHECKING

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Index, Numeric, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base

if TYPE_CHECKING:
    from .event import Event


class Ticket(Base):
    """Ticket issued to a holder for a single event."""

    __tablename__ = "tickets"

    event_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("events.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )

    # Holder identity comes from the identity provider; stored as an opaque id
    holder_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    holder_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    holder_email: Mapped[str] = mapped_column(String(255), nullable=False, default="")

    # Snapshot of the event at issue time
    event_name: Mapped[str] = mapped_column(String(255), nullable=False)
    event_starts_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    price: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
        default=Decimal('0.00')
    )

    issued_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    validated: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False, index=True)
    validated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True
    )

    event: Mapped["Event"] = relationship("Event", back_populates="tickets", lazy="raise")

    __table_args__ = (
        Index("ix_tickets_event_holder", "event_id", "holder_id"),
        CheckConstraint(
            "(validated = false AND validated_at IS NULL) OR "
            "(validated = true AND validated_at IS NOT NULL)",
            name="ck_tickets_validated_at_consistency"
        ),
        CheckConstraint("price >= 0", name="ck_tickets_price_non_negative"),
    )

    @property
    def credential(self) -> str:
        """Payload encoded into the admission QR code."""
        return str(self.id)

    def __repr__(self) -> str:
        """String representation of the ticket."""
        return (
            f"<Ticket(id={self.id}, event_id={self.event_id}, "
            f"holder_id={self.holder_id}, validated={self.validated})>"
        )
