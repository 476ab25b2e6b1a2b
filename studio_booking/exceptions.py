"""
Domain errors raised by the booking core.

Services raise these and never touch HTTP; ``studio_booking.main`` maps each
one to a response through ``status_code``.
"""


class StudioBookingError(Exception):
    """Base exception for all booking core errors."""

    status_code = 400
    default_detail = "Request could not be processed"

    def __init__(self, detail=None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class NotFound(StudioBookingError):
    status_code = 404
    default_detail = "Resource not found"


class StudioNotFound(NotFound):
    default_detail = "Studio not found"


class PackageNotFound(NotFound):
    default_detail = "Package not found"


class SlotNotFound(NotFound):
    default_detail = "Slot not found"


class BookingNotFound(NotFound):
    default_detail = "Booking not found"


class SlotUnavailable(StudioBookingError):
    """Raised when a slot is held or its range conflicts with another slot."""

    status_code = 409
    default_detail = "The selected time slot is no longer available"


class InvalidStatus(StudioBookingError):
    default_detail = "Invalid booking status"


class InvalidTransition(StudioBookingError):
    """Raised when a status change is not an edge of the booking lifecycle."""

    default_detail = "Booking status transition not allowed"


class AlreadyCancelled(StudioBookingError):
    default_detail = "Booking is already cancelled"


class Forbidden(StudioBookingError):
    status_code = 403
    default_detail = "Not authorized to access this booking"


class ResourceInUse(StudioBookingError):
    status_code = 409
    default_detail = "Resource is referenced by other records"
