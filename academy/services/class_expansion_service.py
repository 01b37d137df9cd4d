from __future__ import annotations

from datetime import date, timedelta
import logging

from academy.config import settings
from academy.core.errors import AcademyError, ValidationError
from academy.core.time_provider import TimeProvider, default_time_provider
from academy.metrics import timed_service
from academy.schemas import ClassStatus, DailyClass, DayOfWeek, Teacher, WeeklyClass
from academy.services.daily_class_service import create_daily_class
from academy.services.holiday_service import holiday_dates
from academy.services.records import load_all
from academy.store import RecordStore
from academy.store.collections import DAILY_CLASSES, TEACHERS, WEEKLY_CLASSES
from academy.utils.timezone import minutes_between


logger = logging.getLogger(__name__)


def _existing_occurrences(store: RecordStore) -> set[tuple[str, str]]:
    keys = set()
    for row in load_all(store, DAILY_CLASSES, DailyClass):
        if row.weekly_class_id and row.occurrence_date:
            keys.add((row.weekly_class_id, row.occurrence_date))
    return keys


@timed_service('weekly_expansion')
def expand_weekly_classes(
    store: RecordStore,
    start_date: date,
    end_date: date,
    *,
    time_provider: TimeProvider = default_time_provider,
) -> dict[str, int]:
    """Create one daily class per active template occurrence between the dates, inclusive.

    Re-running over the same window is a no-op: an occurrence is keyed on
    (weekly_class_id, local occurrence date), which survives rescheduling.
    Public holidays are skipped.
    """
    if end_date < start_date:
        raise ValidationError('end_date must be on or after start_date')

    templates = [row for row in load_all(store, WEEKLY_CLASSES, WeeklyClass) if row.active]
    teachers = {row.id: row for row in load_all(store, TEACHERS, Teacher)}
    holidays = holiday_dates(store, start_date, end_date)
    existing = _existing_occurrences(store)

    created = skipped_existing = skipped_holiday = skipped_invalid = 0
    day = start_date
    while day <= end_date:
        day_key = day.isoformat()
        weekday = DayOfWeek.from_date(day)
        for template in templates:
            if template.day_of_week != weekday:
                continue
            if day_key in holidays:
                skipped_holiday += 1
                continue
            if (template.id, day_key) in existing:
                skipped_existing += 1
                continue
            teacher = teachers.get(template.teacher_id)
            zone = (teacher.timezone if teacher else None) or settings.app_timezone
            duration = minutes_between(template.start_time, template.end_time)
            try:
                create_daily_class(
                    store,
                    teacher_id=template.teacher_id,
                    student_id=template.student_id,
                    date=day,
                    time=template.start_time,
                    timezone=zone,
                    duration=duration if duration and duration > 0 else None,
                    status=ClassStatus.SCHEDULED,
                    weekly_class_id=template.id,
                    occurrence_date=day_key,
                    start_time=template.start_time,
                    end_time=template.end_time,
                    time_provider=time_provider,
                )
            except AcademyError as exc:
                skipped_invalid += 1
                logger.warning('expansion_template_skipped weekly_class_id=%s date=%s error=%s', template.id, day_key, exc)
                continue
            existing.add((template.id, day_key))
            created += 1
        day += timedelta(days=1)

    summary = {
        'created': created,
        'skipped_existing': skipped_existing,
        'skipped_holiday': skipped_holiday,
        'skipped_invalid': skipped_invalid,
    }
    logger.info(
        'weekly_expansion_done start=%s end=%s created=%s skipped_existing=%s skipped_holiday=%s skipped_invalid=%s',
        start_date,
        end_date,
        created,
        skipped_existing,
        skipped_holiday,
        skipped_invalid,
    )
    return summary


def expand_upcoming(
    store: RecordStore,
    *,
    days: int | None = None,
    time_provider: TimeProvider = default_time_provider,
) -> dict[str, int]:
    horizon = days if days is not None else settings.expansion_horizon_days
    start = time_provider.today()
    return expand_weekly_classes(store, start, start + timedelta(days=max(horizon, 1) - 1), time_provider=time_provider)
