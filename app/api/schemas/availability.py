from datetime import date

from pydantic import BaseModel, Field

from app.models.availability_override import AvailabilityOverridePublic


class AvailabilityResponse(BaseModel):
    # Key names match what the booking UI already reads
    availableSlots: list[str]


class OverrideDatesResponse(BaseModel):
    dates: list[date]


class OverrideListResponse(BaseModel):
    overrides: list[AvailabilityOverridePublic]


class BusinessHoursEntry(BaseModel):
    day_of_week: int = Field(ge=0, le=6)
    day_name: str | None = None
    is_open: bool
    open_time: str = ""
    close_time: str = ""
    timezone: str | None = None


class BusinessHoursResponse(BaseModel):
    businessHours: list[BusinessHoursEntry]
    booking_available_from_date: date | None = None


class BusinessHoursUpdate(BaseModel):
    businessHours: list[BusinessHoursEntry]
