from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.booking import ACTIVE_STATUSES, Booking, BookingCreate
from app.models.schedule import ExistingBooking
from app.services.slot_engine import minutes_to_clock, parse_time_to_minutes


async def get_active_bookings(session: AsyncSession, start: date, end: date) -> list[ExistingBooking]:
    """Pending and confirmed bookings in [start, end], shaped for the slot engine."""
    result = await session.execute(
        select(Booking.booking_date, Booking.booking_time, Booking.duration_minutes).where(
            Booking.booking_date >= start,
            Booking.booking_date <= end,
            Booking.status.in_(ACTIVE_STATUSES),
        )
    )
    return [
        ExistingBooking(
            date=booking_date.isoformat(),
            start_time=booking_time or "",
            duration_minutes=duration or 0,
        )
        for booking_date, booking_time, duration in result.all()
    ]


async def list_bookings_by_date(session: AsyncSession, d: date) -> list[Booking]:
    result = await session.execute(
        select(Booking).where(Booking.booking_date == d).order_by(Booking.booking_time)
    )
    return list(result.scalars().all())


async def create_booking(session: AsyncSession, data: BookingCreate) -> Booking | None:
    """Insert a pending booking if its start time is still offered for that day.

    Returns None when the time is unreadable or no longer available. Two
    requests racing for the same slot can both pass this check.
    """
    # Imported here: availability_service depends on this module
    from app.services.availability_service import get_available_slots

    requested = parse_time_to_minutes(data.booking_time)
    if requested is None:
        return None
    offered = await get_available_slots(
        session, data.booking_date, data.booking_date, data.duration_minutes
    )
    if requested not in {parse_time_to_minutes(label) for label in offered}:
        return None
    booking = Booking(
        customer_name=data.customer_name,
        customer_email=data.customer_email,
        customer_phone=data.customer_phone,
        service_name=data.service_name,
        booking_date=data.booking_date,
        booking_time=minutes_to_clock(requested),
        duration_minutes=data.duration_minutes,
        status="pending",
        customer_notes=data.customer_notes,
    )
    session.add(booking)
    await session.flush()
    await session.refresh(booking)
    return booking
