"""Bookable start times for a date range.

Callers fetch business hours, bookings, blocked calendar time and one-time
overrides; this module only computes. Times arrive as strings in whatever
shape upstream storage uses and are converted to minutes since midnight
straight away. Nothing here raises on bad data: a day with unreadable hours
yields no slots, and an unreadable booking or blocked time counts as 00:00.
"""
import logging
import re
from collections.abc import Iterable, Sequence
from datetime import date, timedelta

from app.models.schedule import BlockedInterval, DateOverride, DayHours, ExistingBooking

logger = logging.getLogger(__name__)

SLOT_INTERVAL_MINUTES = 30
DEFAULT_BUFFER_MINUTES = 15

_CLOCK_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})(?::\d{2})?\s*$")
_FLEXIBLE_TIME_RE = re.compile(r"(\d{1,2}):(\d{2})(?::\d{2})?\s*(AM|PM)?", re.IGNORECASE)

Interval = tuple[int, int]


def parse_clock(value: str | None) -> int | None:
    """Parse business hours ("HH:MM" or "HH:MM:SS") to minutes. None when empty or malformed."""
    if not value:
        return None
    match = _CLOCK_RE.match(value)
    if not match:
        return None
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 24 or minutes > 59:
        return None
    return hours * 60 + minutes


def parse_time_to_minutes(value: str | None) -> int | None:
    """Tolerant parse of "HH:MM", "HH:MM:SS" and "H:MM AM/PM". None when nothing matches."""
    if not value:
        return None
    match = _FLEXIBLE_TIME_RE.search(value)
    if not match:
        return None
    hours = int(match.group(1))
    minutes = int(match.group(2))
    period = (match.group(3) or "").upper()
    if period == "PM" and hours != 12:
        hours += 12
    elif period == "AM" and hours == 12:
        hours = 0
    return hours * 60 + minutes


def time_to_minutes(value: str | None) -> int:
    """Like parse_time_to_minutes, but an unreadable time is treated as midnight."""
    minutes = parse_time_to_minutes(value)
    if minutes is None:
        logger.debug("Unreadable time %r treated as 00:00", value)
        return 0
    return minutes


def format_time_label(minutes: int) -> str:
    """9:00 AM, 1:30 PM, 12:00 AM for midnight, 12:00 PM for noon."""
    hours, mins = divmod(minutes, 60)
    period = "PM" if hours >= 12 else "AM"
    if hours == 0:
        display_hours = 12
    elif hours > 12:
        display_hours = hours - 12
    else:
        display_hours = hours
    return f"{display_hours}:{mins:02d} {period}"


def minutes_to_clock(minutes: int) -> str:
    hours, mins = divmod(minutes, 60)
    return f"{hours:02d}:{mins:02d}"


def day_of_week(d: date) -> int:
    """Weekday with Sunday = 0, matching DayHours.day_of_week."""
    return d.isoweekday() % 7


def _to_date(value: str | date) -> date | None:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value[:10])
    except (TypeError, ValueError):
        return None


def _date_key(value: str | date) -> str:
    if isinstance(value, date):
        return value.isoformat()
    return value[:10]


def _overlaps(start: int, end: int, other: Interval) -> bool:
    # Half-open intervals: touching ends are not a conflict
    return start < other[1] and end > other[0]


def _intervals_by_date(rows: Iterable[tuple[str, int, int]]) -> dict[str, list[Interval]]:
    by_date: dict[str, list[Interval]] = {}
    for key, start, end in rows:
        by_date.setdefault(key, []).append((start, end))
    return by_date


def _effective_hours(
    day: date,
    hours_by_day: dict[int, DayHours],
    overrides: dict[str, DateOverride],
) -> Interval | None:
    """(open, close) minutes for the date, or None when nothing can be booked."""
    override = overrides.get(day.isoformat())
    if override is not None:
        open_time, close_time = override.open_time, override.close_time
    else:
        hours = hours_by_day.get(day_of_week(day))
        if hours is None or not hours.is_open:
            return None
        open_time, close_time = hours.open_time, hours.close_time
    open_minutes = parse_clock(open_time)
    close_minutes = parse_clock(close_time)
    if open_minutes is None or close_minutes is None:
        logger.debug("Skipping %s: unreadable hours %r-%r", day, open_time, close_time)
        return None
    return open_minutes, close_minutes


def _slots_for_day(
    open_minutes: int,
    close_minutes: int,
    occupancy_minutes: int,
    booked: Sequence[Interval],
    blocked: Sequence[Interval],
) -> list[str]:
    slots: list[str] = []
    for minutes in range(open_minutes, close_minutes, SLOT_INTERVAL_MINUTES):
        slot_end = minutes + occupancy_minutes
        if slot_end > close_minutes:
            # Candidates only grow from here, so none of the rest fit either
            break
        if any(_overlaps(minutes, slot_end, b) for b in booked):
            logger.debug("Slot %s conflicts with a booking", format_time_label(minutes))
            continue
        if any(_overlaps(minutes, slot_end, b) for b in blocked):
            logger.debug("Slot %s conflicts with blocked calendar time", format_time_label(minutes))
            continue
        slots.append(format_time_label(minutes))
    return slots


def generate_available_slots(
    start_date: str | date,
    end_date: str | date,
    business_hours: Sequence[DayHours],
    existing_bookings: Sequence[ExistingBooking],
    blocked_intervals: Sequence[BlockedInterval],
    service_duration: int,
    buffer_minutes: int = DEFAULT_BUFFER_MINUTES,
    date_overrides: Sequence[DateOverride] | None = None,
) -> list[str]:
    """Return the start times (e.g. "9:00 AM") that can be offered between
    start_date and end_date inclusive, as one flat list in date order.

    Each candidate occupies [start, start + service_duration + buffer_minutes)
    and must end by closing time without overlapping a booking or a blocked
    interval on the same date. Candidates are spaced SLOT_INTERVAL_MINUTES
    apart from the effective opening time. An override for a date replaces
    that weekday's hours completely.

    Positive service_duration is the caller's responsibility. An unreadable
    or inverted date range yields an empty list.
    """
    first = _to_date(start_date)
    last = _to_date(end_date)
    if first is None or last is None:
        logger.debug("Unreadable date range %r..%r", start_date, end_date)
        return []

    hours_by_day: dict[int, DayHours] = {}
    for hours in business_hours:
        hours_by_day.setdefault(hours.day_of_week, hours)

    overrides: dict[str, DateOverride] = {}
    for override in date_overrides or ():
        overrides.setdefault(_date_key(override.date), override)

    booked = _intervals_by_date(
        (
            _date_key(b.date),
            time_to_minutes(b.start_time),
            time_to_minutes(b.start_time) + b.duration_minutes,
        )
        for b in existing_bookings
    )
    blocked = _intervals_by_date(
        (_date_key(b.date), time_to_minutes(b.start_time), time_to_minutes(b.end_time))
        for b in blocked_intervals
    )

    occupancy = service_duration + buffer_minutes
    slots: list[str] = []
    current = first
    while current <= last:
        window = _effective_hours(current, hours_by_day, overrides)
        if window is not None:
            key = current.isoformat()
            slots.extend(
                _slots_for_day(window[0], window[1], occupancy, booked.get(key, ()), blocked.get(key, ()))
            )
        current += timedelta(days=1)
    return slots
