from __future__ import annotations

from datetime import date
import logging
from typing import Any, Callable

import holidays as pyholidays
import httpx

from academy.config import settings
from academy.core.errors import ConversionError, ValidationError
from academy.core.time_provider import TimeProvider, default_time_provider
from academy.schemas import PublicHoliday
from academy.services.records import load_all, load_one
from academy.store import RecordStore
from academy.store.collections import PUBLIC_HOLIDAYS
from academy.utils.timezone import parse_date


NAGER_HOLIDAY_PATH = '/api/v3/PublicHolidays/{year}/{country_code}'

logger = logging.getLogger(__name__)


def _clean_date(value: str | date) -> str:
    try:
        return parse_date(value).isoformat()
    except ConversionError as exc:
        raise ValidationError(str(exc)) from exc


def list_holidays(store: RecordStore, *, year: int | None = None) -> list[PublicHoliday]:
    rows = load_all(store, PUBLIC_HOLIDAYS, PublicHoliday)
    if year is not None:
        rows = [row for row in rows if row.date.startswith(f'{year:04d}-')]
    return sorted(rows, key=lambda row: (row.date, row.name))


def holiday_dates(store: RecordStore, start_date: date, end_date: date) -> set[str]:
    start, end = start_date.isoformat(), end_date.isoformat()
    return {row.date for row in load_all(store, PUBLIC_HOLIDAYS, PublicHoliday) if start <= row.date <= end}


def is_holiday(store: RecordStore, day: date) -> bool:
    return bool(holiday_dates(store, day, day))


def add_holiday(
    store: RecordStore,
    *,
    name: str,
    date: str | date,
    country_code: str | None = None,
    time_provider: TimeProvider = default_time_provider,
) -> PublicHoliday:
    clean_name = (name or '').strip()
    if not clean_name:
        raise ValidationError('Holiday name is required')
    clean_date = _clean_date(date)
    for row in load_all(store, PUBLIC_HOLIDAYS, PublicHoliday):
        if row.date == clean_date and row.name.lower() == clean_name.lower():
            raise ValidationError(f'Holiday already exists: {clean_name} on {clean_date}')

    row = PublicHoliday(name=clean_name, date=clean_date, country_code=country_code, created_at=time_provider.stamp())
    row.id = store.create(PUBLIC_HOLIDAYS, row.to_record())
    return row


def update_holiday(
    store: RecordStore,
    holiday_id: str,
    *,
    name: str | None = None,
    date: str | date | None = None,
    time_provider: TimeProvider = default_time_provider,
) -> PublicHoliday:
    load_one(store, PUBLIC_HOLIDAYS, PublicHoliday, holiday_id)
    patch: dict[str, Any] = {'updated_at': time_provider.stamp()}
    if name is not None:
        if not name.strip():
            raise ValidationError('Holiday name is required')
        patch['name'] = name.strip()
    if date is not None:
        patch['date'] = _clean_date(date)
    return PublicHoliday.from_record(holiday_id, store.update(PUBLIC_HOLIDAYS, holiday_id, patch))


def remove_holiday(store: RecordStore, holiday_id: str) -> None:
    load_one(store, PUBLIC_HOLIDAYS, PublicHoliday, holiday_id)
    store.remove(PUBLIC_HOLIDAYS, holiday_id)


def _fetch_public_holidays(country_code: str, year: int) -> list[dict[str, Any]]:
    url = settings.holiday_api_base.rstrip('/') + NAGER_HOLIDAY_PATH.format(year=year, country_code=country_code)
    try:
        response = httpx.get(url, timeout=12.0)
        response.raise_for_status()
        payload = response.json()
        rows = [row for row in payload if isinstance(row, dict)] if isinstance(payload, list) else []
        if rows:
            return rows
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning('holiday_api_failed country=%s year=%s error=%s', country_code, year, exc)

    try:
        holiday_items = pyholidays.country_holidays(country_code, years=[year])
    except NotImplementedError:
        logger.warning('holiday_country_unsupported country=%s', country_code)
        return []
    return [
        {'date': holiday_date.isoformat(), 'name': name, 'localName': name}
        for holiday_date, name in sorted(holiday_items.items())
    ]


def sync_public_holidays(
    store: RecordStore,
    *,
    country_code: str | None = None,
    year: int,
    fetcher: Callable[[str, int], list[dict[str, Any]]] = _fetch_public_holidays,
    time_provider: TimeProvider = default_time_provider,
) -> dict[str, Any]:
    """Replace the imported holidays of one country/year; manually added ones are kept."""
    clean_country = (country_code or settings.holiday_country_code or '').upper().strip()
    if len(clean_country) != 2:
        raise ValidationError('country_code must be a 2-letter ISO country code')

    rows = fetcher(clean_country, year)

    for existing in load_all(store, PUBLIC_HOLIDAYS, PublicHoliday):
        if existing.country_code == clean_country and existing.date.startswith(f'{year:04d}-'):
            store.remove(PUBLIC_HOLIDAYS, existing.id)

    created = 0
    seen: set[tuple[str, str]] = set()
    for row in rows:
        raw_date = row.get('date')
        raw_name = (row.get('name') or '').strip()
        if not raw_date or not raw_name:
            continue
        try:
            holiday_date = parse_date(str(raw_date)).isoformat()
        except ConversionError:
            continue
        dedupe_key = (holiday_date, raw_name.lower())
        if dedupe_key in seen:
            continue
        seen.add(dedupe_key)
        holiday = PublicHoliday(
            name=raw_name,
            date=holiday_date,
            country_code=clean_country,
            created_at=time_provider.stamp(),
        )
        store.create(PUBLIC_HOLIDAYS, holiday.to_record())
        created += 1

    logger.info('public_holidays_synced country=%s year=%s total=%s', clean_country, year, created)
    return {'country_code': clean_country, 'year': year, 'total_rows': created}
