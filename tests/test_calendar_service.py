from datetime import date

import httpx
import pytest

from app.models.schedule import DayHours
from app.services import calendar_service
from app.services.calendar_service import GoogleCalendarService, events_to_blocked_intervals
from app.services.slot_engine import generate_available_slots

TZ = "America/Los_Angeles"


@pytest.fixture
def store(monkeypatch):
    values = {
        "google_calendar_connected": True,
        "google_calendar_id": "owner@example.com",
        "google_access_token": "old-token",
        "google_refresh_token": "refresh-token",
        "google_token_expires_at": 32503680000000,  # year 3000
    }

    async def fake_get_setting_values(session, keys):
        return {k: values[k] for k in keys if k in values}

    async def fake_get_setting(session, key):
        return values.get(key)

    async def fake_set_setting(session, key, value):
        values[key] = value

    monkeypatch.setattr(calendar_service, "get_setting_values", fake_get_setting_values)
    monkeypatch.setattr(calendar_service, "get_setting", fake_get_setting)
    monkeypatch.setattr(calendar_service, "set_setting", fake_set_setting)
    monkeypatch.setattr(calendar_service.settings, "google_client_id", "client-id")
    monkeypatch.setattr(calendar_service.settings, "google_client_secret", "client-secret")
    return values


def _event(start, end, **extra):
    return {"start": start, "end": end, "status": "confirmed", **extra}


def test_events_convert_to_business_timezone():
    events = [_event({"dateTime": "2025-03-03T18:00:00Z"}, {"dateTime": "2025-03-03T19:30:00Z"})]
    blocked = events_to_blocked_intervals(events, TZ)
    assert [(b.date, b.start_time, b.end_time) for b in blocked] == [("2025-03-03", "10:00", "11:30")]


def test_own_bookings_and_cancelled_events_are_skipped():
    events = [
        _event({"dateTime": "2025-03-03T10:00:00-08:00"}, {"dateTime": "2025-03-03T11:00:00-08:00"}, status="cancelled"),
        _event(
            {"dateTime": "2025-03-03T12:00:00-08:00"},
            {"dateTime": "2025-03-03T13:00:00-08:00"},
            description="Service: Cut\nBooking ID: 42",
        ),
        _event({"dateTime": "2025-03-03T14:00:00-08:00"}, {"dateTime": "2025-03-03T15:00:00-08:00"}),
    ]
    blocked = events_to_blocked_intervals(events, TZ)
    assert [(b.start_time, b.end_time) for b in blocked] == [("14:00", "15:00")]


def test_all_day_event_blocks_the_whole_day():
    blocked = events_to_blocked_intervals([_event({"date": "2025-03-04"}, {"date": "2025-03-05"})], TZ)
    assert [(b.date, b.start_time, b.end_time) for b in blocked] == [("2025-03-04", "00:00", "23:59")]


def test_multi_day_all_day_event_blocks_every_date():
    blocked = events_to_blocked_intervals([_event({"date": "2025-03-03"}, {"date": "2025-03-06"})], TZ)
    assert [(b.date, b.start_time, b.end_time) for b in blocked] == [
        ("2025-03-03", "00:00", "23:59"),
        ("2025-03-04", "00:00", "23:59"),
        ("2025-03-05", "00:00", "23:59"),
    ]
    hours = [DayHours(day_of_week=2, is_open=True, open_time="11:00", close_time="12:00")]
    assert generate_available_slots("2025-03-04", "2025-03-04", hours, [], blocked, 30, buffer_minutes=0) == []


def test_overnight_event_blocks_both_dates():
    events = [_event({"dateTime": "2025-03-03T22:00:00-08:00"}, {"dateTime": "2025-03-04T10:30:00-08:00"})]
    blocked = events_to_blocked_intervals(events, TZ)
    assert [(b.date, b.start_time, b.end_time) for b in blocked] == [
        ("2025-03-03", "22:00", "23:59"),
        ("2025-03-04", "00:00", "10:30"),
    ]


async def test_get_blocked_time_lists_calendar_events(store):
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(
            200,
            json={"items": [_event({"dateTime": "2025-03-03T09:00:00-08:00"}, {"dateTime": "2025-03-03T10:00:00-08:00"})]},
        )

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        service = GoogleCalendarService(session=None, client=client)
        assert await service.is_connected()
        blocked = await service.get_blocked_time(date(2025, 3, 3), date(2025, 3, 4), TZ)

    assert [(b.date, b.start_time, b.end_time) for b in blocked] == [("2025-03-03", "09:00", "10:00")]
    (request,) = requests
    assert request.headers["Authorization"] == "Bearer old-token"
    assert "owner@example.com" in request.url.path
    assert request.url.params["singleEvents"] == "true"
    assert request.url.params["timeMin"] == "2025-03-03T00:00:00-08:00"


async def test_expiring_token_is_refreshed_and_saved(store):
    store["google_token_expires_at"] = 0
    seen_tokens = []

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "oauth2.googleapis.com":
            assert b"grant_type=refresh_token" in request.content
            return httpx.Response(200, json={"access_token": "new-token", "expires_in": 3600})
        seen_tokens.append(request.headers["Authorization"])
        return httpx.Response(200, json={"items": []})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        service = GoogleCalendarService(session=None, client=client)
        assert await service.get_blocked_time(date(2025, 3, 3), date(2025, 3, 3), TZ) == []

    assert seen_tokens == ["Bearer new-token"]
    assert store["google_access_token"] == "new-token"
    assert store["google_token_expires_at"] > 0


async def test_provider_error_yields_no_blocked_time(store):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="backend error")

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        service = GoogleCalendarService(session=None, client=client)
        assert await service.get_blocked_time(date(2025, 3, 3), date(2025, 3, 3), TZ) == []


async def test_no_token_means_no_request(store):
    del store["google_access_token"]

    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        service = GoogleCalendarService(session=None, client=client)
        assert await service.get_blocked_time(date(2025, 3, 3), date(2025, 3, 3), TZ) == []
