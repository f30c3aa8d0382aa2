"""
Booking model
"""

from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint

from devevents.core.db import Base
from devevents.models.event import new_id, utcnow


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(String(32), primary_key=True, default=new_id)
    # Non-owning reference; deleting an event does not touch its booking
    event_id = Column(String(32), ForeignKey("events.id"), nullable=False, index=True)
    email = Column(String(320), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    # One booking per event
    __table_args__ = (UniqueConstraint("event_id", name="uq_bookings_event_id"),)
