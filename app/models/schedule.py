"""Plain value shapes handed to the slot engine. Built fresh per request."""
from datetime import date

from sqlmodel import Field, SQLModel

DAY_KEYS = ["sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday"]


class DayHours(SQLModel):
    day_of_week: int = Field(ge=0, le=6)  # 0 = Sunday
    is_open: bool = False
    open_time: str = ""
    close_time: str = ""
    timezone: str = "America/Los_Angeles"


class DateOverride(SQLModel):
    date: str  # YYYY-MM-DD
    open_time: str
    close_time: str


class ExistingBooking(SQLModel):
    date: str
    start_time: str  # HH:MM, HH:MM:SS or H:MM AM/PM
    duration_minutes: int = Field(default=0, ge=0)


class BlockedInterval(SQLModel):
    date: str
    start_time: str
    end_time: str


class BusinessSettings(SQLModel):
    """Typed view of the settings key/value rows, assembled once per request."""

    business_hours: list[DayHours] = Field(default_factory=list)
    timezone: str = "America/Los_Angeles"
    buffer_minutes: int = 0
    booking_available_from: date | None = None

    @property
    def open_days(self) -> list[DayHours]:
        return [h for h in self.business_hours if h.is_open]
