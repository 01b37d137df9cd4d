"""Wall-clock <-> UTC conversion for class slots.

Every stored appointment is a UTC (date, HH:MM) pair; every read path converts
back to the viewer's zone. Offsets are resolved for the target date, so a slot
in July uses summer time even when converted in January. The only inputs that
do not round-trip are wall-clock times inside a DST gap or fold.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from academy.core.errors import ConversionError
from academy.core.time_provider import TimeProvider, default_time_provider


DATE_FORMAT = '%Y-%m-%d'
TIME_FORMAT = '%H:%M'


@dataclass(frozen=True)
class UtcSlot:
    utc_date: str
    utc_time: str

    @property
    def utc_datetime(self) -> datetime:
        return datetime.combine(parse_date(self.utc_date), parse_hhmm(self.utc_time), tzinfo=timezone.utc)


@dataclass(frozen=True)
class LocalSlot:
    local_date: str
    local_time: str


def get_zone(name: str) -> ZoneInfo:
    clean = (name or '').strip()
    if not clean:
        raise ConversionError('Timezone is required')
    try:
        return ZoneInfo(clean)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ConversionError(f'Unknown timezone: {name}') from exc


def is_valid_timezone(name: str) -> bool:
    try:
        get_zone(name)
    except ConversionError:
        return False
    return True


def parse_date(value: str | date) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value).strip(), DATE_FORMAT).date()
    except ValueError as exc:
        raise ConversionError(f'Invalid date (expected YYYY-MM-DD): {value!r}') from exc


def parse_hhmm(value: str | time) -> time:
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0)
    raw = str(value or '').strip()
    # Accept HH:MM:SS from older records; seconds are dropped.
    parts = raw.split(':')
    if len(parts) not in (2, 3):
        raise ConversionError(f'Invalid time (expected HH:MM): {value!r}')
    try:
        hour, minute = int(parts[0]), int(parts[1])
    except ValueError as exc:
        raise ConversionError(f'Invalid time (expected HH:MM): {value!r}') from exc
    if hour < 0 or hour > 23 or minute < 0 or minute > 59:
        raise ConversionError(f'Invalid time (expected HH:MM): {value!r}')
    return time(hour=hour, minute=minute)


def minutes_between(start_time: str | None, end_time: str | None) -> int | None:
    """Minutes from start to end on the same day, or None when either side is unusable."""
    if not start_time or not end_time:
        return None
    try:
        start = parse_hhmm(start_time)
        end = parse_hhmm(end_time)
    except ConversionError:
        return None
    return (end.hour * 60 + end.minute) - (start.hour * 60 + start.minute)


def local_to_utc(local_date: str | date, local_time: str | time, zone: str) -> UtcSlot:
    tz = get_zone(zone)
    local_dt = datetime.combine(parse_date(local_date), parse_hhmm(local_time), tzinfo=tz)
    utc_dt = local_dt.astimezone(timezone.utc)
    return UtcSlot(utc_date=utc_dt.strftime(DATE_FORMAT), utc_time=utc_dt.strftime(TIME_FORMAT))


def utc_to_local(utc_date: str | date, utc_time: str | time, zone: str) -> LocalSlot:
    tz = get_zone(zone)
    utc_dt = datetime.combine(parse_date(utc_date), parse_hhmm(utc_time), tzinfo=timezone.utc)
    local_dt = utc_dt.astimezone(tz)
    return LocalSlot(local_date=local_dt.strftime(DATE_FORMAT), local_time=local_dt.strftime(TIME_FORMAT))


def local_datetime(utc_date: str | date, utc_time: str | time, zone: str) -> datetime:
    utc_dt = datetime.combine(parse_date(utc_date), parse_hhmm(utc_time), tzinfo=timezone.utc)
    return utc_dt.astimezone(get_zone(zone))


def add_minutes(hhmm: str, minutes: int) -> str:
    start = parse_hhmm(hhmm)
    shifted = datetime.combine(date(2000, 1, 1), start) + timedelta(minutes=minutes)
    return shifted.strftime(TIME_FORMAT)


def _reference_instant(at: datetime | None, time_provider: TimeProvider) -> datetime:
    if at is None:
        return time_provider.utc_now()
    if at.tzinfo is None:
        return at.replace(tzinfo=timezone.utc)
    return at


def timezone_offset_label(
    zone: str,
    *,
    at: datetime | None = None,
    time_provider: TimeProvider = default_time_provider,
) -> str:
    tz = get_zone(zone)
    offset = _reference_instant(at, time_provider).astimezone(tz).utcoffset() or timedelta(0)
    total_minutes = int(offset.total_seconds() // 60)
    sign = '+' if total_minutes >= 0 else '-'
    hours, minutes = divmod(abs(total_minutes), 60)
    return f'UTC{sign}{hours:02d}:{minutes:02d}'


def timezone_abbreviation(
    zone: str,
    *,
    at: datetime | None = None,
    time_provider: TimeProvider = default_time_provider,
) -> str:
    tz = get_zone(zone)
    return _reference_instant(at, time_provider).astimezone(tz).tzname() or 'UTC'


def display_name(
    zone: str,
    *,
    at: datetime | None = None,
    time_provider: TimeProvider = default_time_provider,
) -> str:
    """Label for selectors, e.g. ``Africa/Cairo (EET)``."""
    abbreviation = timezone_abbreviation(zone, at=at, time_provider=time_provider)
    return f'{zone} ({abbreviation})'


def city_label(
    zone: str,
    *,
    at: datetime | None = None,
    time_provider: TimeProvider = default_time_provider,
) -> str:
    city = zone.split('/')[-1].replace('_', ' ') or zone
    return f'{city} ({timezone_offset_label(zone, at=at, time_provider=time_provider)})'


def format_local_time(utc_date: str, utc_time: str, zone: str) -> str:
    return local_datetime(utc_date, utc_time, zone).strftime('%I:%M %p')


def format_local_date(utc_date: str, utc_time: str, zone: str) -> str:
    return local_datetime(utc_date, utc_time, zone).strftime('%b %d, %Y')


def current_local_slot(zone: str, *, time_provider: TimeProvider = default_time_provider) -> LocalSlot:
    now = time_provider.utc_now().astimezone(get_zone(zone))
    return LocalSlot(local_date=now.strftime(DATE_FORMAT), local_time=now.strftime(TIME_FORMAT))


def month_bounds(month: int, year: int) -> tuple[date, date]:
    if month < 1 or month > 12:
        raise ConversionError(f'Invalid month: {month}')
    first = date(year, month, 1)
    next_first = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
    return first, next_first - timedelta(days=1)
