from __future__ import annotations

from datetime import date, timedelta
import logging
from typing import Any

from academy.config import settings
from academy.core.errors import ConversionError, ValidationError
from academy.core.time_provider import TimeProvider, default_time_provider
from academy.metrics import timed_service
from academy.schemas import AdvanceClass, AdvanceStatus, ClassStatus, DailyClass, Student, Teacher, WeeklyClass
from academy.services.daily_class_service import filter_daily_classes, present_daily_class
from academy.services.records import load_all, name_lookup, safe_load_all
from academy.store import RecordStore
from academy.store.collections import ADVANCE_CLASSES, CHILDREN, DAILY_CLASSES, TEACHERS, WEEKLY_CLASSES
from academy.utils.timezone import get_zone, month_bounds, parse_date, utc_to_local


logger = logging.getLogger(__name__)

ATTENDANCE_BUCKETS = (ClassStatus.TAKEN, ClassStatus.ABSENT, ClassStatus.LEAVE)


def _zone(timezone: str | None) -> str:
    zone = timezone or settings.app_timezone
    try:
        get_zone(zone)
    except ConversionError as exc:
        raise ValidationError(str(exc)) from exc
    return zone


def _classes_on_local_day(classes: list[DailyClass], day: date, zone: str) -> list[DailyClass]:
    # A local day spans at most the UTC day before and after.
    window = filter_daily_classes(classes, start_date=day - timedelta(days=1), end_date=day + timedelta(days=1))
    key = day.isoformat()
    return [row for row in window if utc_to_local(row.appointment_date, row.appointment_time, zone).local_date == key]


def daily_report(
    store: RecordStore,
    day: date | str,
    *,
    timezone: str | None = None,
) -> dict[str, Any]:
    zone = _zone(timezone)
    try:
        target = parse_date(day)
    except ConversionError as exc:
        raise ValidationError(str(exc)) from exc

    classes = _classes_on_local_day(load_all(store, DAILY_CLASSES, DailyClass), target, zone)
    teachers = load_all(store, TEACHERS, Teacher)
    students = load_all(store, CHILDREN, Student)
    rows = [present_daily_class(row, teachers=teachers, students=students, timezone=zone) for row in classes]
    rows.sort(key=lambda item: (item['local_time'], item['teacher_name']))

    counts: dict[str, int] = {}
    for row in classes:
        counts[row.status.value] = counts.get(row.status.value, 0) + 1
    return {'date': target.isoformat(), 'timezone': zone, 'total': len(rows), 'counts': counts, 'classes': rows}


def attendance_report(
    store: RecordStore,
    month: int,
    year: int,
    *,
    student_id: str | None = None,
) -> list[dict[str, Any]]:
    try:
        first, last = month_bounds(month, year)
    except ConversionError as exc:
        raise ValidationError(str(exc)) from exc
    classes = filter_daily_classes(
        load_all(store, DAILY_CLASSES, DailyClass),
        start_date=first,
        end_date=last,
        student_id=student_id,
    )
    names = name_lookup(load_all(store, CHILDREN, Student))

    per_student: dict[str, dict[str, Any]] = {}
    for row in classes:
        entry = per_student.setdefault(
            row.student_id,
            {
                'student_id': row.student_id,
                'student_name': names.get(row.student_id, 'Unknown'),
                'taken': 0,
                'absent': 0,
                'leave': 0,
                'other': 0,
                'total': 0,
            },
        )
        bucket = row.status.value if row.status in ATTENDANCE_BUCKETS else 'other'
        entry[bucket] += 1
        entry['total'] += 1

    report = sorted(per_student.values(), key=lambda item: (item['student_name'], item['student_id']))
    for entry in report:
        entry['attendance_rate'] = round(entry['taken'] / entry['total'], 4) if entry['total'] else 0.0
    return report


@timed_service('admin_dashboard')
def admin_dashboard(
    store: RecordStore,
    *,
    timezone: str | None = None,
    time_provider: TimeProvider = default_time_provider,
) -> dict[str, Any]:
    """Headline counts for the admin home.

    A collection whose read is rejected contributes zero and is listed under
    ``degraded``; the rest of the dashboard is still served.
    """
    zone = _zone(timezone)
    today = time_provider.local_now(zone).date()
    degraded: list[str] = []

    def _load(collection, model):
        rows, ok = safe_load_all(store, collection, model)
        if not ok:
            degraded.append(collection)
        return rows

    teachers = _load(TEACHERS, Teacher)
    students = _load(CHILDREN, Student)
    templates = _load(WEEKLY_CLASSES, WeeklyClass)
    advances = _load(ADVANCE_CLASSES, AdvanceClass)
    classes = _load(DAILY_CLASSES, DailyClass)

    todays = _classes_on_local_day(classes, today, zone)
    today_counts: dict[str, int] = {}
    for row in todays:
        today_counts[row.status.value] = today_counts.get(row.status.value, 0) + 1

    if degraded:
        logger.warning('admin_dashboard_degraded collections=%s', ','.join(degraded))
    return {
        'date': today.isoformat(),
        'timezone': zone,
        'active_teachers': sum(1 for row in teachers if row.active),
        'active_students': sum(1 for row in students if row.active),
        'active_weekly_classes': sum(1 for row in templates if row.active),
        'pending_advance_classes': sum(1 for row in advances if row.status is AdvanceStatus.SCHEDULED),
        'today_classes': len(todays),
        'today_counts': today_counts,
        'degraded': degraded,
    }
