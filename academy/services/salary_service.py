from __future__ import annotations

import logging
from typing import Iterable

from academy.config import settings
from academy.core.errors import ConversionError, ValidationError
from academy.core.time_provider import TimeProvider, default_time_provider
from academy.metrics import timed_service
from academy.schemas import ClassStatus, DailyClass, SalaryReport, Teacher
from academy.services.records import load_all
from academy.store import RecordStore
from academy.store.collections import DAILY_CLASSES, SALARY_REPORTS, TEACHERS
from academy.utils.timezone import minutes_between, month_bounds


logger = logging.getLogger(__name__)

DEFAULT_CLASS_HOURS = 1.0


def class_hours(row: DailyClass) -> float:
    """Hours billed for one completed class.

    Taken from the class's ``start_time``/``end_time`` window. Missing,
    unparseable, zero or negative windows count as one hour.
    """
    minutes = minutes_between(row.start_time, row.end_time)
    if minutes is None or minutes <= 0:
        return DEFAULT_CLASS_HOURS
    return minutes / 60.0


def _period_bounds(month: int, year: int) -> tuple[str, str]:
    try:
        first, last = month_bounds(month, year)
    except ConversionError as exc:
        raise ValidationError(str(exc)) from exc
    return first.isoformat(), last.isoformat()


def build_salary_report(
    teacher: Teacher,
    classes: Iterable[DailyClass],
    *,
    month: int,
    year: int,
    created_at: str = '',
) -> SalaryReport:
    first, last = _period_bounds(month, year)
    matching = [
        row
        for row in classes
        if row.active and row.teacher_id == teacher.id and first <= row.appointment_date <= last
    ]
    completed = [row for row in matching if row.status is ClassStatus.TAKEN]
    total_hours = round(sum(class_hours(row) for row in completed), 2)
    rate = teacher.hourly_rate if teacher.hourly_rate is not None else settings.default_hourly_rate
    return SalaryReport(
        teacher_id=teacher.id,
        teacher_name=teacher.name,
        month=month,
        year=year,
        total_classes=len(matching),
        completed_classes=len(completed),
        total_hours=total_hours,
        rate_per_hour=float(rate),
        total_salary=round(total_hours * float(rate), 2),
        created_at=created_at,
    )


def list_salary_reports(
    store: RecordStore,
    *,
    month: int | None = None,
    year: int | None = None,
    teacher_id: str | None = None,
) -> list[SalaryReport]:
    rows = load_all(store, SALARY_REPORTS, SalaryReport)
    if month is not None:
        rows = [row for row in rows if row.month == month]
    if year is not None:
        rows = [row for row in rows if row.year == year]
    if teacher_id:
        rows = [row for row in rows if row.teacher_id == teacher_id]
    rows.sort(key=lambda row: (row.year, row.month, row.teacher_name, row.created_at))
    return rows


@timed_service('salary_generate_for_period')
def generate_for_period(
    store: RecordStore,
    month: int,
    year: int,
    *,
    policy: str | None = None,
    time_provider: TimeProvider = default_time_provider,
) -> list[SalaryReport]:
    """Write one report per active teacher for the UTC calendar month.

    With the ``unique`` policy an existing (teacher, month, year) report is
    returned as-is instead of writing a second one. ``append`` always writes.
    """
    selected = (policy or settings.salary_report_policy or 'unique').strip().lower()
    if selected not in ('unique', 'append'):
        raise ValidationError(f'Unknown salary report policy: {policy}')
    _period_bounds(month, year)

    teachers = [row for row in load_all(store, TEACHERS, Teacher) if row.active]
    classes = load_all(store, DAILY_CLASSES, DailyClass)
    existing = {}
    if selected == 'unique':
        existing = {row.teacher_id: row for row in list_salary_reports(store, month=month, year=year)}

    reports: list[SalaryReport] = []
    created = 0
    for teacher in sorted(teachers, key=lambda row: (row.name, row.id)):
        if teacher.id in existing:
            reports.append(existing[teacher.id])
            continue
        report = build_salary_report(teacher, classes, month=month, year=year, created_at=time_provider.stamp())
        report.id = store.create(SALARY_REPORTS, report.to_record())
        reports.append(report)
        created += 1

    logger.info(
        'salary_reports_generated month=%s year=%s policy=%s created=%s reused=%s',
        month,
        year,
        selected,
        created,
        len(reports) - created,
    )
    return reports
