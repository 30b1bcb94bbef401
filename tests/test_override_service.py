from datetime import date

from app.models.availability_override import AvailabilityOverride, AvailabilityOverrideCreate
from app.services.override_service import (
    delete_override,
    get_date_overrides,
    list_override_dates,
    upsert_override,
)


class FakeScalars:
    def __init__(self, rows):
        self._rows = rows

    def all(self):
        return self._rows


class FakeResult:
    def __init__(self, rows):
        self._rows = rows

    def scalars(self):
        return FakeScalars(self._rows)

    def scalar_one_or_none(self):
        return self._rows[0] if self._rows else None

    def all(self):
        return self._rows


class FakeSession:
    def __init__(self, rows=()):
        self.rows = list(rows)
        self.added = []
        self.deleted = []
        self.statements = []

    async def execute(self, statement):
        self.statements.append(statement)
        return FakeResult(self.rows)

    async def get(self, model, ident):
        return next((row for row in self.rows if row.id == ident), None)

    def add(self, obj):
        self.added.append(obj)

    async def delete(self, obj):
        self.deleted.append(obj)

    async def flush(self):
        pass

    async def refresh(self, obj):
        if obj.id is None:
            obj.id = len(self.added)


def _override(id, day, open_time="10:00", close_time="14:00"):
    return AvailabilityOverride(id=id, date=day, open_time=open_time, close_time=close_time)


async def test_new_override_defaults_to_regular_hours():
    session = FakeSession()
    override = await upsert_override(session, AvailabilityOverrideCreate(date=date(2025, 3, 4)))
    assert (override.date, override.open_time, override.close_time) == (date(2025, 3, 4), "11:00", "21:00")
    assert override.id == 1
    assert session.added == [override]


async def test_existing_date_is_updated_in_place():
    existing = _override(7, date(2025, 3, 4))
    session = FakeSession(rows=[existing])
    data = AvailabilityOverrideCreate(date=date(2025, 3, 4), open_time="12:00", close_time="16:00")
    override = await upsert_override(session, data)
    assert override is existing
    assert (override.id, override.open_time, override.close_time) == (7, "12:00", "16:00")


async def test_engine_overrides_use_iso_dates_and_fill_blank_times():
    session = FakeSession(rows=[_override(1, date(2025, 3, 4), open_time="", close_time="13:00")])
    overrides = await get_date_overrides(session, date(2025, 3, 1), date(2025, 3, 31))
    assert [(o.date, o.open_time, o.close_time) for o in overrides] == [("2025-03-04", "11:00", "13:00")]


async def test_override_dates_are_listed():
    session = FakeSession(rows=[(date(2025, 3, 4),), (date(2025, 3, 9),)])
    assert await list_override_dates(session, date(2025, 3, 1), None) == [date(2025, 3, 4), date(2025, 3, 9)]
    assert "availability_overrides.date >=" in str(session.statements[0])


async def test_delete_override():
    existing = _override(3, date(2025, 3, 4))
    session = FakeSession(rows=[existing])
    assert await delete_override(session, 3) is True
    assert session.deleted == [existing]


async def test_delete_missing_override_returns_false():
    session = FakeSession(rows=[_override(3, date(2025, 3, 4))])
    assert await delete_override(session, 99) is False
    assert session.deleted == []
