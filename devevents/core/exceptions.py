"""
Application error taxonomy.

Every error carries the HTTP status and machine-readable code the API layer
renders it with, so services raise domain errors and never touch HTTP.
"""

from typing import Optional


class DevEventsError(Exception):
    """Base class for all application errors."""

    status_code = 500
    default_message = "Unexpected error"
    error_code = "internal_error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ConfigurationError(DevEventsError):
    """Required configuration (connection string, credentials) is missing."""

    default_message = "Application is not configured"
    error_code = "configuration_error"


class ValidationError(DevEventsError):
    """Input is missing, empty or malformed."""

    status_code = 400
    default_message = "Validation failed"
    error_code = "validation_error"


class EventNotFoundError(DevEventsError):
    """Referenced event does not exist."""

    status_code = 404
    default_message = "Event not found"
    error_code = "event_not_found"


class BookingNotFoundError(DevEventsError):
    status_code = 404
    default_message = "Booking not found"
    error_code = "booking_not_found"


class DuplicateRecordError(DevEventsError):
    """A record satisfying a uniqueness predicate already exists."""

    status_code = 409
    default_message = "Record already exists"
    error_code = "duplicate_record"


class DuplicateKeyError(DuplicateRecordError):
    """Raised by repositories when the store rejects a write on a unique key."""

    error_code = "duplicate_key"

    def __init__(self, field: str, message: Optional[str] = None):
        self.field = field
        super().__init__(message or f"Duplicate value for unique field '{field}'")


class SlugGenerationError(DuplicateRecordError):
    default_message = "Could not generate a unique slug"
    error_code = "slug_generation_failed"


class DuplicateBookingError(DuplicateRecordError):
    default_message = "This event has already been booked"
    error_code = "duplicate_booking"


class StoreUnavailableError(DevEventsError):
    """The document store could not be reached."""

    default_message = "Database connection failed"
    error_code = "store_unavailable"


class AssetUploadError(DevEventsError):
    """The asset host rejected or failed an upload."""

    status_code = 502
    default_message = "Image upload failed"
    error_code = "asset_upload_failed"
