from datetime import UTC, date as date_type, datetime

from sqlmodel import Field, SQLModel


def _utc_naive_now() -> datetime:
    """Naive UTC for TIMESTAMP WITHOUT TIME ZONE columns."""
    return datetime.now(UTC).replace(tzinfo=None)


class AvailabilityOverride(SQLModel, table=True):
    __tablename__ = "availability_overrides"
    id: int | None = Field(default=None, primary_key=True)
    date: date_type = Field(unique=True, index=True)  # one override per date
    open_time: str
    close_time: str
    created_at: datetime = Field(default_factory=_utc_naive_now)


class AvailabilityOverrideCreate(SQLModel):
    date: date_type
    open_time: str | None = None
    close_time: str | None = None


class AvailabilityOverridePublic(SQLModel):
    id: int
    date: date_type
    open_time: str
    close_time: str
    created_at: datetime
