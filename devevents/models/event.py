"""
Event model
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, String, Text, DateTime, JSON, UniqueConstraint

from devevents.core.db import Base


def new_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Event(Base):
    __tablename__ = "events"

    id = Column(String(32), primary_key=True, default=new_id)
    title = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=False)
    overview = Column(Text, nullable=False)
    image = Column(String(1024), nullable=False)
    venue = Column(String(255), nullable=False)
    location = Column(String(255), nullable=False)
    date = Column(String(10), nullable=False)  # YYYY-MM-DD
    time = Column(String(5), nullable=False)  # HH:MM
    mode = Column(String(50), nullable=False)
    audience = Column(String(255), nullable=False)
    agenda = Column(JSON, nullable=False)
    organizer = Column(String(255), nullable=False)
    tags = Column(JSON, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    # Final arbiter for slug uniqueness
    __table_args__ = (UniqueConstraint("slug", name="uq_events_slug"),)
