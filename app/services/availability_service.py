import logging
from datetime import date

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.schedule import BlockedInterval, BusinessSettings
from app.services.booking_service import get_active_bookings
from app.services.calendar_service import GoogleCalendarService
from app.services.override_service import get_date_overrides
from app.services.settings_service import load_business_settings
from app.services.slot_engine import generate_available_slots

logger = logging.getLogger(__name__)


def clamp_to_available_from(
    start: date, end: date, available_from: date | None
) -> tuple[date, date] | None:
    """Apply the "booking available from" setting. None when the whole range precedes it."""
    if available_from is None:
        return start, end
    if end < available_from:
        return None
    return max(start, available_from), end


async def get_blocked_time_fail_open(
    session: AsyncSession, start: date, end: date, timezone: str
) -> list[BlockedInterval]:
    """Calendar outages must not block bookings: any failure means nothing is blocked."""
    try:
        calendar = GoogleCalendarService(session)
        if not await calendar.is_connected():
            return []
        return await calendar.get_blocked_time(start, end, timezone)
    except Exception as e:
        logger.warning("Google Calendar blocked time unavailable, continuing without it: %s", e)
        return []


async def get_available_slots(
    session: AsyncSession,
    start: date,
    end: date,
    service_duration: int,
    apply_available_from: bool = True,
    business: BusinessSettings | None = None,
) -> list[str]:
    """Fetch everything the slot engine needs for the range and run it.

    Settings and booking failures propagate (the request fails); calendar
    failures do not.
    """
    if business is None:
        business = await load_business_settings(session)
    if apply_available_from:
        clamped = clamp_to_available_from(start, end, business.booking_available_from)
        if clamped is None:
            return []
        start, end = clamped

    bookings = await get_active_bookings(session, start, end)
    blocked = await get_blocked_time_fail_open(session, start, end, business.timezone)
    overrides = await get_date_overrides(session, start, end)

    slots = generate_available_slots(
        start,
        end,
        business.open_days,
        bookings,
        blocked,
        service_duration,
        business.buffer_minutes,
        overrides,
    )
    logger.debug(
        "Availability %s..%s duration=%d: %d slot(s), %d booking(s), %d blocked, %d override(s)",
        start, end, service_duration, len(slots), len(bookings), len(blocked), len(overrides),
    )
    return slots
