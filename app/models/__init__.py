from app.models.availability_override import (
    AvailabilityOverride,
    AvailabilityOverrideCreate,
    AvailabilityOverridePublic,
)
from app.models.booking import Booking, BookingCreate, BookingPublic
from app.models.schedule import BlockedInterval, BusinessSettings, DateOverride, DayHours, ExistingBooking
from app.models.setting import Setting

__all__ = [
    "AvailabilityOverride",
    "AvailabilityOverrideCreate",
    "AvailabilityOverridePublic",
    "Booking",
    "BookingCreate",
    "BookingPublic",
    "BlockedInterval",
    "BusinessSettings",
    "DateOverride",
    "DayHours",
    "ExistingBooking",
    "Setting",
]
