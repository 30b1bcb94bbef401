from datetime import date

from pydantic import BaseModel, EmailStr, Field


class CreateBookingRequest(BaseModel):
    customer_name: str = Field(min_length=1)
    customer_email: EmailStr
    customer_phone: str | None = None
    service_name: str = Field(min_length=1)
    booking_date: date
    booking_time: str  # e.g. "1:30 PM" as returned by /availability
    duration_minutes: int = Field(gt=0)
    customer_notes: str | None = None
