import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_admin_claims, get_session
from app.api.routes.availability import resolve_range
from app.api.schemas.availability import (
    AvailabilityResponse,
    BusinessHoursEntry,
    BusinessHoursResponse,
    BusinessHoursUpdate,
    OverrideListResponse,
)
from app.core.config import settings
from app.models.availability_override import AvailabilityOverrideCreate, AvailabilityOverridePublic
from app.models.booking import BookingPublic
from app.models.schedule import DAY_KEYS, DayHours
from app.services.availability_service import get_available_slots
from app.services.booking_service import list_bookings_by_date
from app.services.override_service import delete_override, list_overrides, upsert_override
from app.services.settings_service import load_business_settings, save_business_hours
from app.services.slot_engine import parse_clock

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(get_admin_claims)])


@router.get("/availability", response_model=AvailabilityResponse)
async def admin_availability(
    start_date_param: date | None = Query(None, alias="startDate"),
    start_date: date | None = Query(None),
    end_date_param: date | None = Query(None, alias="endDate"),
    end_date: date | None = Query(None),
    service_duration: int | None = Query(None, alias="serviceDuration", gt=0),
    duration: int | None = Query(None, gt=0),
    session: AsyncSession = Depends(get_session),
) -> AvailabilityResponse:
    """Same slots as the public endpoint, without the "available from" cutoff."""
    start, end = resolve_range(start_date_param or start_date, end_date_param or end_date)
    minutes = service_duration or duration or settings.default_service_duration_minutes
    slots = await get_available_slots(session, start, end, minutes, apply_available_from=False)
    return AvailabilityResponse(availableSlots=slots)


@router.get("/business-hours", response_model=BusinessHoursResponse)
async def get_business_hours(session: AsyncSession = Depends(get_session)) -> BusinessHoursResponse:
    business = await load_business_settings(session)
    entries = [
        BusinessHoursEntry(
            day_of_week=h.day_of_week,
            day_name=DAY_KEYS[h.day_of_week].capitalize(),
            is_open=h.is_open,
            open_time=h.open_time,
            close_time=h.close_time,
            timezone=h.timezone,
        )
        for h in business.business_hours
    ]
    return BusinessHoursResponse(
        businessHours=entries,
        booking_available_from_date=business.booking_available_from,
    )


@router.post("/business-hours", response_model=BusinessHoursUpdate)
async def update_business_hours(
    body: BusinessHoursUpdate,
    session: AsyncSession = Depends(get_session),
) -> BusinessHoursUpdate:
    for entry in body.businessHours:
        if entry.is_open and (parse_clock(entry.open_time) is None or parse_clock(entry.close_time) is None):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="open_time and close_time (HH:MM) required when is_open is true",
            )
    hours = [
        DayHours(
            day_of_week=entry.day_of_week,
            is_open=entry.is_open,
            open_time=entry.open_time,
            close_time=entry.close_time,
            timezone=entry.timezone or settings.default_timezone,
        )
        for entry in body.businessHours
    ]
    await save_business_hours(session, hours)
    return body


@router.get("/availability-overrides", response_model=OverrideListResponse)
async def get_overrides(
    start_date_param: date | None = Query(None, alias="startDate"),
    start_date: date | None = Query(None),
    end_date_param: date | None = Query(None, alias="endDate"),
    end_date: date | None = Query(None),
    session: AsyncSession = Depends(get_session),
) -> OverrideListResponse:
    overrides = await list_overrides(session, start_date_param or start_date, end_date_param or end_date)
    return OverrideListResponse(
        overrides=[AvailabilityOverridePublic.model_validate(o, from_attributes=True) for o in overrides]
    )


@router.post("/availability-overrides", response_model=AvailabilityOverridePublic)
async def create_override(
    body: AvailabilityOverrideCreate,
    session: AsyncSession = Depends(get_session),
) -> AvailabilityOverridePublic:
    """Open (or change the hours of) a single date. Missing times default to 11:00-21:00."""
    for value in (body.open_time, body.close_time):
        if value and parse_clock(value) is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="open_time and close_time must be HH:MM",
            )
    override = await upsert_override(session, body)
    logger.info("Availability override saved for %s (%s-%s)", override.date, override.open_time, override.close_time)
    return AvailabilityOverridePublic.model_validate(override, from_attributes=True)


@router.delete("/availability-overrides/{override_id}")
async def remove_override(
    override_id: int,
    session: AsyncSession = Depends(get_session),
) -> dict:
    ok = await delete_override(session, override_id)
    if not ok:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Override not found",
        )
    return {"success": True}


@router.get("/bookings/by-date", response_model=list[BookingPublic])
async def bookings_by_date(
    date_param: date = Query(..., alias="date"),
    session: AsyncSession = Depends(get_session),
) -> list[BookingPublic]:
    bookings = await list_bookings_by_date(session, date_param)
    return [BookingPublic.model_validate(b, from_attributes=True) for b in bookings]
