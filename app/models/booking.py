from datetime import UTC, date, datetime

from sqlmodel import Field, SQLModel

# Statuses that occupy time on the schedule
ACTIVE_STATUSES = ("pending", "confirmed")
BOOKING_STATUSES = ("pending", "confirmed", "completed", "cancelled", "no-show")


def _utc_naive_now() -> datetime:
    """Naive UTC for TIMESTAMP WITHOUT TIME ZONE columns."""
    return datetime.now(UTC).replace(tzinfo=None)


class Booking(SQLModel, table=True):
    __tablename__ = "bookings"
    id: int | None = Field(default=None, primary_key=True)
    customer_name: str
    customer_email: str = Field(index=True)
    customer_phone: str | None = None
    service_name: str
    booking_date: date = Field(index=True)
    booking_time: str  # HH:MM, 24-hour
    duration_minutes: int = 60
    status: str = Field(default="pending", index=True)
    customer_notes: str | None = None
    created_at: datetime = Field(default_factory=_utc_naive_now)


class BookingCreate(SQLModel):
    customer_name: str
    customer_email: str
    customer_phone: str | None = None
    service_name: str
    booking_date: date
    booking_time: str  # label as offered by the availability endpoint, e.g. "1:30 PM"
    duration_minutes: int = Field(gt=0)
    customer_notes: str | None = None


class BookingPublic(SQLModel):
    id: int
    customer_name: str
    customer_email: str
    customer_phone: str | None = None
    service_name: str
    booking_date: date
    booking_time: str
    duration_minutes: int
    status: str
    customer_notes: str | None = None
    created_at: datetime
