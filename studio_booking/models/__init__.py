from studio_booking.models.studio import Studio
from studio_booking.models.package import Package
from studio_booking.models.slot import Slot
from studio_booking.models.booking import Booking, BookingStatus

__all__ = ["Studio", "Package", "Slot", "Booking", "BookingStatus"]
