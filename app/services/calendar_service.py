"""Google Calendar adapter: turns events on the owner's calendar into blocked time."""
import logging
import time
from datetime import date, datetime, timedelta
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.models.schedule import BlockedInterval
from app.services.settings_service import get_setting, get_setting_values, set_setting

logger = logging.getLogger(__name__)

GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_EVENTS_URL = "https://www.googleapis.com/calendar/v3/calendars/{calendar_id}/events"

CONNECTED_KEY = "google_calendar_connected"
CALENDAR_ID_KEY = "google_calendar_id"
ACCESS_TOKEN_KEY = "google_access_token"
REFRESH_TOKEN_KEY = "google_refresh_token"
EXPIRES_AT_KEY = "google_token_expires_at"

# Refresh when the token has less than this left (milliseconds, as stored)
REFRESH_MARGIN_MS = 5 * 60 * 1000

# Events created for our own bookings carry this marker in the description
BOOKING_MARKER = "Booking ID:"


def _zone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r, falling back to %s", name, settings.default_timezone)
        return ZoneInfo(settings.default_timezone)


def _event_point(point: dict[str, Any], tz: ZoneInfo) -> datetime | None:
    """Event start/end as a datetime in the business timezone. All-day events use midnight."""
    if point.get("dateTime"):
        value = datetime.fromisoformat(point["dateTime"].replace("Z", "+00:00"))
        if value.tzinfo is None:
            value = value.replace(tzinfo=tz)
        return value.astimezone(tz)
    if point.get("date"):
        return datetime.combine(date.fromisoformat(point["date"]), datetime.min.time(), tzinfo=tz)
    return None


def _split_by_day(start: datetime, end: datetime) -> list[BlockedInterval]:
    """One interval per calendar date the event touches.

    Dates after the first start at 00:00, dates before the last run to 23:59.
    A last date reached exactly at midnight is not blocked.
    """
    first_day, last_day = start.date(), end.date()
    last_clock = end.strftime("%H:%M")
    if last_day > first_day and last_clock == "00:00":
        last_day -= timedelta(days=1)
        last_clock = "23:59"
    intervals = []
    day = first_day
    while day <= last_day:
        intervals.append(
            BlockedInterval(
                date=day.isoformat(),
                start_time=start.strftime("%H:%M") if day == first_day else "00:00",
                end_time=last_clock if day == last_day else "23:59",
            )
        )
        day += timedelta(days=1)
    return intervals


def events_to_blocked_intervals(events: list[dict[str, Any]], timezone: str) -> list[BlockedInterval]:
    """Map calendar events to same-day blocked intervals in the business timezone.

    Cancelled events and events created for our own bookings are skipped (the
    bookings themselves are already checked). Events spanning several days
    block every date they cover.
    """
    tz = _zone(timezone)
    blocked: list[BlockedInterval] = []
    for event in events:
        if event.get("status") == "cancelled":
            continue
        if BOOKING_MARKER in (event.get("description") or ""):
            continue
        start = _event_point(event.get("start") or {}, tz)
        end = _event_point(event.get("end") or {}, tz)
        if start is None or end is None:
            continue
        blocked.extend(_split_by_day(start, end))
    return blocked


class GoogleCalendarService:
    def __init__(self, session: AsyncSession, client: httpx.AsyncClient | None = None) -> None:
        self.session = session
        self._client = client

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        if self._client is not None:
            return await self._client.request(method, url, **kwargs)
        async with httpx.AsyncClient(timeout=settings.google_calendar_timeout_seconds) as client:
            return await client.request(method, url, **kwargs)

    async def is_connected(self) -> bool:
        return bool(await get_setting(self.session, CONNECTED_KEY))

    async def get_access_token(self) -> str | None:
        values = await get_setting_values(self.session, [ACCESS_TOKEN_KEY, REFRESH_TOKEN_KEY, EXPIRES_AT_KEY])
        access_token = values.get(ACCESS_TOKEN_KEY)
        if not access_token:
            return None
        expires_at = values.get(EXPIRES_AT_KEY) or 0
        refresh_token = values.get(REFRESH_TOKEN_KEY)
        if time.time() * 1000 < float(expires_at) - REFRESH_MARGIN_MS or not refresh_token:
            return access_token
        return await self._refresh_access_token(refresh_token) or access_token

    async def _refresh_access_token(self, refresh_token: str) -> str | None:
        if not settings.google_client_id or not settings.google_client_secret:
            logger.warning("Google OAuth not configured; cannot refresh calendar token")
            return None
        resp = await self._request(
            "POST",
            GOOGLE_TOKEN_URL,
            data={
                "client_id": settings.google_client_id,
                "client_secret": settings.google_client_secret,
                "refresh_token": refresh_token,
                "grant_type": "refresh_token",
            },
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )
        if resp.status_code != 200:
            logger.warning("Google token refresh failed: status=%s body=%s", resp.status_code, resp.text[:500])
            return None
        token_data = resp.json()
        access_token = token_data["access_token"]
        await set_setting(self.session, ACCESS_TOKEN_KEY, access_token)
        await set_setting(
            self.session, EXPIRES_AT_KEY, int(time.time() * 1000) + int(token_data.get("expires_in", 3600)) * 1000
        )
        return access_token

    async def get_blocked_time(self, start: date, end: date, timezone: str) -> list[BlockedInterval]:
        """Blocked intervals between start and end inclusive. Empty when not configured."""
        access_token = await self.get_access_token()
        if not access_token:
            return []
        calendar_id = await get_setting(self.session, CALENDAR_ID_KEY)
        if not calendar_id:
            return []
        tz = _zone(timezone)
        time_min = datetime.combine(start, datetime.min.time(), tzinfo=tz)
        time_max = datetime.combine(end + timedelta(days=1), datetime.min.time(), tzinfo=tz)
        resp = await self._request(
            "GET",
            GOOGLE_EVENTS_URL.format(calendar_id=calendar_id),
            params={
                "timeMin": time_min.isoformat(),
                "timeMax": time_max.isoformat(),
                "singleEvents": "true",
                "orderBy": "startTime",
            },
            headers={"Authorization": f"Bearer {access_token}"},
        )
        if resp.status_code != 200:
            logger.warning("Google Calendar events fetch failed: status=%s body=%s", resp.status_code, resp.text[:500])
            return []
        return events_to_blocked_intervals(resp.json().get("items") or [], timezone)
