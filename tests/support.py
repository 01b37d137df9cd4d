from datetime import date, datetime, timedelta, timezone

from academy.core.time_provider import TimeProvider
from academy.schemas import Student, Teacher
from academy.store import RecordStore
from academy.store.collections import CHILDREN, TEACHERS


MONDAY = date(2025, 3, 3)


class FixedTimeProvider(TimeProvider):
    def __init__(self, instant: datetime):
        self.instant = instant

    def now(self) -> datetime:
        return self.instant

    def advance(self, **kwargs) -> None:
        self.instant = self.instant + timedelta(**kwargs)


def fixed_clock(year: int, month: int, day: int, hour: int = 9, minute: int = 0) -> FixedTimeProvider:
    return FixedTimeProvider(datetime(year, month, day, hour, minute, tzinfo=timezone.utc))


def add_teacher(
    store: RecordStore,
    name: str = 'Ahmed',
    *,
    timezone_name: str | None = 'Africa/Cairo',
    rate: float | None = 20.0,
    active: bool | None = True,
) -> str:
    return store.create(TEACHERS, Teacher(name=name, timezone=timezone_name, hourly_rate=rate, is_active=active).to_record())


def add_student(
    store: RecordStore,
    name: str = 'Omar',
    *,
    timezone_name: str | None = 'America/New_York',
    active: bool | None = True,
) -> str:
    return store.create(CHILDREN, Student(name=name, timezone=timezone_name, is_active=active).to_record())
