"""
Booking-related Pydantic schemas
"""

from datetime import datetime
from pydantic import BaseModel

class BookingCreate(BaseModel):
    """Schema for booking an event"""
    event_id: str
    email: str

class BookingRecord(BaseModel):
    """A persisted booking"""
    id: str
    event_id: str
    email: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
