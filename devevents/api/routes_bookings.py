"""
Booking API routes
"""

from fastapi import APIRouter, Depends

from devevents.api.dependencies import get_booking_service, get_event_service
from devevents.schemas.booking import BookingCreate
from devevents.services.booking_service import BookingService
from devevents.services.event_service import EventService
from devevents.utils.responses import success_response

router = APIRouter()

@router.post("/bookings")
def create_booking(
    booking_data: BookingCreate,
    service: BookingService = Depends(get_booking_service)
):
    """Book the single slot of an event"""
    booking = service.create(booking_data.event_id, booking_data.email)
    return success_response(
        message="Booking created successfully",
        booking=booking,
        status_code=201
    )

@router.get("/events/{slug}/booking")
def get_event_booking(
    slug: str,
    events: EventService = Depends(get_event_service),
    bookings: BookingService = Depends(get_booking_service)
):
    """Get the booking held on an event"""
    event = events.get_by_slug(slug)
    return success_response(
        message="Booking fetched successfully",
        booking=bookings.get_for_event(event.id)
    )
