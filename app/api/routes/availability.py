from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_session
from app.api.schemas.availability import AvailabilityResponse, OverrideDatesResponse
from app.core.config import settings
from app.services.availability_service import get_available_slots
from app.services.override_service import list_override_dates

router = APIRouter(prefix="/availability", tags=["availability"])


def resolve_range(start: date | None, end: date | None) -> tuple[date, date]:
    if start is None or end is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="start_date and end_date are required",
        )
    if end < start:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="end_date must not be before start_date",
        )
    return start, end


@router.get("", response_model=AvailabilityResponse)
async def public_availability(
    start_date_param: date | None = Query(None, alias="startDate"),
    start_date: date | None = Query(None),
    end_date_param: date | None = Query(None, alias="endDate"),
    end_date: date | None = Query(None),
    service_duration: int | None = Query(None, alias="serviceDuration", gt=0),
    duration: int | None = Query(None, gt=0),
    session: AsyncSession = Depends(get_session),
) -> AvailabilityResponse:
    """Bookable start times for the customer booking and reschedule flows.

    Accepts startDate/endDate or start_date/end_date, and serviceDuration or
    duration (minutes, default from settings). Dates before the configured
    "booking available from" date are never offered.
    """
    start, end = resolve_range(start_date_param or start_date, end_date_param or end_date)
    minutes = service_duration or duration or settings.default_service_duration_minutes
    slots = await get_available_slots(session, start, end, minutes, apply_available_from=True)
    return AvailabilityResponse(availableSlots=slots)


@router.get("/override-dates", response_model=OverrideDatesResponse)
async def override_dates(
    start_date_param: date | None = Query(None, alias="startDate"),
    start_date: date | None = Query(None),
    end_date_param: date | None = Query(None, alias="endDate"),
    end_date: date | None = Query(None),
    session: AsyncSession = Depends(get_session),
) -> OverrideDatesResponse:
    """Dates opened by one-time overrides, so the booking calendar can enable them."""
    dates = await list_override_dates(session, start_date_param or start_date, end_date_param or end_date)
    return OverrideDatesResponse(dates=dates)
