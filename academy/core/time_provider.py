from __future__ import annotations

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

from academy.config import settings


APP_TIMEZONE = settings.app_timezone or 'Africa/Cairo'
APP_ZONEINFO = ZoneInfo(APP_TIMEZONE)


class TimeProvider:
    def now(self) -> datetime:
        return datetime.now(APP_ZONEINFO)

    def today(self) -> date:
        return self.now().date()

    def utc_now(self) -> datetime:
        return self.now().astimezone(timezone.utc)

    def local_now(self, tz: str) -> datetime:
        return self.now().astimezone(ZoneInfo(tz))

    def stamp(self) -> str:
        # ISO-8601 UTC, second precision; stored in created_at/updated_at fields.
        return self.utc_now().replace(microsecond=0).isoformat().replace('+00:00', 'Z')

    def history_stamp(self) -> str:
        return self.utc_now().strftime('%Y-%m-%d %H:%M:%S UTC')


def ensure_aware(dt: datetime) -> datetime:
    if dt.tzinfo is None or dt.tzinfo.utcoffset(dt) is None:
        raise ValueError('Naive datetime not allowed in business logic')
    return dt


default_time_provider = TimeProvider()
