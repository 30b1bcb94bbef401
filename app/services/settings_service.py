import logging
from datetime import UTC, date, datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.models.schedule import DAY_KEYS, BusinessSettings, DayHours
from app.models.setting import Setting

logger = logging.getLogger(__name__)

BUSINESS_HOURS_KEY = "business_hours"
TIMEZONE_KEY = "business_hours_timezone"
BUFFER_KEY = "buffer_time_minutes"
AVAILABLE_FROM_KEY = "booking_available_from_date"

AVAILABILITY_KEYS = (BUSINESS_HOURS_KEY, TIMEZONE_KEY, BUFFER_KEY, AVAILABLE_FROM_KEY)


async def get_setting_values(session: AsyncSession, keys: tuple[str, ...] | list[str]) -> dict[str, Any]:
    result = await session.execute(select(Setting.key, Setting.value).where(Setting.key.in_(keys)))
    return {key: value for key, value in result.all()}


async def get_setting(session: AsyncSession, key: str) -> Any:
    values = await get_setting_values(session, [key])
    return values.get(key)


async def set_setting(session: AsyncSession, key: str, value: Any) -> None:
    """Upsert a single key/value row."""
    row = await session.get(Setting, key)
    now = datetime.now(UTC).replace(tzinfo=None)
    if row is None:
        session.add(Setting(key=key, value=value, updated_at=now))
    else:
        row.value = value
        row.updated_at = now
        session.add(row)
    await session.flush()


def _parse_buffer(value: Any) -> int:
    try:
        return max(int(value or 0), 0)
    except (TypeError, ValueError):
        logger.warning("Ignoring non-numeric %s setting: %r", BUFFER_KEY, value)
        return 0


def _parse_available_from(value: Any) -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        logger.warning("Ignoring malformed %s setting: %r", AVAILABLE_FROM_KEY, value)
        return None


def business_settings_from_values(values: dict[str, Any]) -> BusinessSettings:
    """Build the typed settings struct from raw key/value rows.

    business_hours is stored as {"monday": {"start": "11:00", "end": "21:00", "is_open": true}, ...}.
    """
    raw_hours = values.get(BUSINESS_HOURS_KEY)
    if not isinstance(raw_hours, dict):
        raw_hours = {}
    timezone = values.get(TIMEZONE_KEY) or settings.default_timezone
    business_hours = []
    for day_of_week, day_key in enumerate(DAY_KEYS):
        day_data = raw_hours.get(day_key)
        if not isinstance(day_data, dict):
            day_data = {}
        business_hours.append(
            DayHours(
                day_of_week=day_of_week,
                is_open=bool(day_data.get("is_open", False)),
                open_time=day_data.get("start") or "",
                close_time=day_data.get("end") or "",
                timezone=timezone,
            )
        )
    return BusinessSettings(
        business_hours=business_hours,
        timezone=timezone,
        buffer_minutes=_parse_buffer(values.get(BUFFER_KEY)),
        booking_available_from=_parse_available_from(values.get(AVAILABLE_FROM_KEY)),
    )


async def load_business_settings(session: AsyncSession) -> BusinessSettings:
    values = await get_setting_values(session, AVAILABILITY_KEYS)
    return business_settings_from_values(values)


async def save_business_hours(session: AsyncSession, hours: list[DayHours]) -> None:
    """Persist weekly hours; the timezone is taken from the first entry."""
    data: dict[str, dict[str, Any]] = {}
    for h in hours:
        data[DAY_KEYS[h.day_of_week]] = {
            "start": h.open_time if h.is_open else "",
            "end": h.close_time if h.is_open else "",
            "is_open": h.is_open,
        }
    await set_setting(session, BUSINESS_HOURS_KEY, data)
    timezone = hours[0].timezone if hours else settings.default_timezone
    await set_setting(session, TIMEZONE_KEY, timezone)
    logger.info("Business hours updated for %d day(s), timezone %s", len(hours), timezone)
