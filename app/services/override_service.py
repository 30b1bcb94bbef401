from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.models.availability_override import AvailabilityOverride, AvailabilityOverrideCreate
from app.models.schedule import DateOverride


def _in_range(q, start: date | None, end: date | None):
    if start:
        q = q.where(AvailabilityOverride.date >= start)
    if end:
        q = q.where(AvailabilityOverride.date <= end)
    return q


async def list_overrides(
    session: AsyncSession, start: date | None = None, end: date | None = None
) -> list[AvailabilityOverride]:
    q = _in_range(select(AvailabilityOverride), start, end).order_by(AvailabilityOverride.date)
    result = await session.execute(q)
    return list(result.scalars().all())


async def list_override_dates(
    session: AsyncSession, start: date | None = None, end: date | None = None
) -> list[date]:
    q = _in_range(select(AvailabilityOverride.date), start, end).order_by(AvailabilityOverride.date)
    result = await session.execute(q)
    return [row[0] for row in result.all()]


async def get_date_overrides(session: AsyncSession, start: date, end: date) -> list[DateOverride]:
    """Overrides in range, shaped for the slot engine."""
    return [
        DateOverride(
            date=o.date.isoformat(),
            open_time=o.open_time or settings.default_override_open_time,
            close_time=o.close_time or settings.default_override_close_time,
        )
        for o in await list_overrides(session, start, end)
    ]


async def upsert_override(session: AsyncSession, data: AvailabilityOverrideCreate) -> AvailabilityOverride:
    """One override per date: an existing row for the date is updated in place."""
    result = await session.execute(select(AvailabilityOverride).where(AvailabilityOverride.date == data.date))
    override = result.scalar_one_or_none()
    open_time = data.open_time or settings.default_override_open_time
    close_time = data.close_time or settings.default_override_close_time
    if override is None:
        override = AvailabilityOverride(date=data.date, open_time=open_time, close_time=close_time)
    else:
        override.open_time = open_time
        override.close_time = close_time
    session.add(override)
    await session.flush()
    await session.refresh(override)
    return override


async def delete_override(session: AsyncSession, override_id: int) -> bool:
    override = await session.get(AvailabilityOverride, override_id)
    if not override:
        return False
    await session.delete(override)
    await session.flush()
    return True
