import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_session
from app.api.schemas.booking import CreateBookingRequest
from app.models.booking import BookingCreate, BookingPublic
from app.services.booking_service import create_booking
from app.services.email_service import send_booking_confirmation_email
from app.services.slot_engine import format_time_label, time_to_minutes

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.post("", response_model=BookingPublic, status_code=status.HTTP_201_CREATED)
async def book(
    body: CreateBookingRequest,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_session),
) -> BookingPublic:
    data = BookingCreate(**body.model_dump())
    booking = await create_booking(session, data)
    if not booking:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="That time is no longer available. Please choose another slot.",
        )
    logger.info("Booking %s created for %s %s", booking.id, booking.booking_date, booking.booking_time)
    # Send confirmation email in background (uses sync SMTP)
    background_tasks.add_task(
        send_booking_confirmation_email,
        to_email=booking.customer_email,
        recipient_name=booking.customer_name,
        service_name=booking.service_name,
        booking_date=booking.booking_date,
        time_label=format_time_label(time_to_minutes(booking.booking_time)),
        duration_minutes=booking.duration_minutes,
        notes=booking.customer_notes,
    )
    return BookingPublic.model_validate(booking, from_attributes=True)
