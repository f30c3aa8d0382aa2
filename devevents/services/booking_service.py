"""
Booking record manager
"""

import logging

from devevents.core.exceptions import (
    BookingNotFoundError,
    DuplicateBookingError,
    DuplicateKeyError,
    EventNotFoundError,
)
from devevents.schemas.booking import BookingRecord
from devevents.services.normalization import normalize_email

logger = logging.getLogger(__name__)


class BookingService:
    """Service for booking events, at most one booking per event

    The existing-booking check only gives an early, friendly error. The store's
    unique key on the event id is what actually prevents a second booking.
    """

    def __init__(self, event_repo, booking_repo):
        self.event_repo = event_repo
        self.booking_repo = booking_repo

    def create(self, event_id: str, email: str) -> BookingRecord:
        """Book an event for an email address"""
        email = normalize_email(email)

        if not event_id or not self.event_repo.exists(event_id):
            logger.warning(f"Booking rejected: event {event_id!r} does not exist")
            raise EventNotFoundError("Cannot create booking: referenced event does not exist")

        if self.booking_repo.exists_for_event(event_id):
            logger.warning(f"Booking rejected: event {event_id} is already booked")
            raise DuplicateBookingError()

        try:
            booking = self.booking_repo.insert(event_id, email)
        except DuplicateKeyError as e:
            logger.warning(f"Booking rejected by store: event {event_id} is already booked")
            raise DuplicateBookingError() from e

        logger.info(f"Booking created for event {event_id}")
        return booking

    def get_for_event(self, event_id: str) -> BookingRecord:
        booking = self.booking_repo.get_by_event(event_id)
        if not booking:
            raise BookingNotFoundError()
        return booking
