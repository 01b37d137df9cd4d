from __future__ import annotations

import logging

from academy.core.errors import ConversionError, ValidationError
from academy.core.time_provider import TimeProvider, default_time_provider
from academy.schemas import DayOfWeek, Student, Teacher, WeeklyClass
from academy.services.records import load_all, load_one, name_lookup, resolve_student, resolve_teacher
from academy.store import RecordStore
from academy.store.collections import CHILDREN, TEACHERS, WEEKLY_CLASSES
from academy.utils.timezone import minutes_between, parse_hhmm


logger = logging.getLogger(__name__)


def _validate_window(start_time: str, end_time: str) -> None:
    try:
        parse_hhmm(start_time)
        parse_hhmm(end_time)
    except ConversionError as exc:
        raise ValidationError(str(exc)) from exc
    minutes = minutes_between(start_time, end_time)
    if minutes is None or minutes <= 0:
        raise ValidationError('end_time must be after start_time')


def _slot_key(row: WeeklyClass) -> tuple[str, str, DayOfWeek, str]:
    return (row.teacher_id, row.student_id, row.day_of_week, parse_hhmm(row.start_time).strftime('%H:%M'))


def _assert_unique_slot(store: RecordStore, candidate: WeeklyClass) -> None:
    key = _slot_key(candidate)
    for row in load_all(store, WEEKLY_CLASSES, WeeklyClass):
        if row.id == candidate.id or not row.active:
            continue
        if _slot_key(row) == key:
            raise ValidationError(
                f'An active weekly class already exists for this teacher, student and slot ({row.id})'
            )


def get_weekly_class(store: RecordStore, weekly_class_id: str) -> WeeklyClass:
    return load_one(store, WEEKLY_CLASSES, WeeklyClass, weekly_class_id)


def create_weekly_class(
    store: RecordStore,
    *,
    teacher_id: str,
    student_id: str,
    day_of_week: DayOfWeek | str,
    start_time: str,
    end_time: str,
    subject: str = '',
    time_provider: TimeProvider = default_time_provider,
) -> WeeklyClass:
    teacher = resolve_teacher(store, teacher_id)
    student = resolve_student(store, student_id)
    try:
        day = DayOfWeek(day_of_week)
    except ValueError as exc:
        raise ValidationError(f'Invalid day_of_week: {day_of_week}') from exc
    _validate_window(start_time, end_time)

    row = WeeklyClass(
        teacher_id=teacher.id,
        teacher_name=teacher.name,
        student_id=student.id,
        student_name=student.name,
        day_of_week=day,
        start_time=start_time,
        end_time=end_time,
        subject=subject.strip(),
        is_active=True,
        created_at=time_provider.stamp(),
    )
    _assert_unique_slot(store, row)
    row.id = store.create(WEEKLY_CLASSES, row.to_record())
    logger.info('weekly_class_created id=%s teacher_id=%s student_id=%s day=%s', row.id, teacher.id, student.id, day.value)
    return row


def update_weekly_class(
    store: RecordStore,
    weekly_class_id: str,
    *,
    teacher_id: str | None = None,
    student_id: str | None = None,
    day_of_week: DayOfWeek | str | None = None,
    start_time: str | None = None,
    end_time: str | None = None,
    subject: str | None = None,
    time_provider: TimeProvider = default_time_provider,
) -> WeeklyClass:
    current = get_weekly_class(store, weekly_class_id)
    updated = current.model_copy(deep=True)

    if teacher_id is not None and teacher_id != current.teacher_id:
        teacher = resolve_teacher(store, teacher_id)
        updated.teacher_id, updated.teacher_name = teacher.id, teacher.name
    if student_id is not None and student_id != current.student_id:
        student = resolve_student(store, student_id)
        updated.student_id, updated.student_name = student.id, student.name
    if day_of_week is not None:
        try:
            updated.day_of_week = DayOfWeek(day_of_week)
        except ValueError as exc:
            raise ValidationError(f'Invalid day_of_week: {day_of_week}') from exc
    if start_time is not None:
        updated.start_time = start_time
    if end_time is not None:
        updated.end_time = end_time
    if subject is not None:
        updated.subject = subject.strip()
    _validate_window(updated.start_time, updated.end_time)
    if updated.active:
        _assert_unique_slot(store, updated)

    updated.updated_at = time_provider.stamp()
    store.update(WEEKLY_CLASSES, weekly_class_id, updated.to_record())
    return updated


def deactivate_weekly_class(
    store: RecordStore,
    weekly_class_id: str,
    *,
    time_provider: TimeProvider = default_time_provider,
) -> WeeklyClass:
    """Soft delete; daily classes keep a valid back-reference."""
    current = get_weekly_class(store, weekly_class_id)
    if current.is_active is False:
        return current
    patch = {'is_active': False, 'updated_at': time_provider.stamp()}
    record = store.update(WEEKLY_CLASSES, weekly_class_id, patch)
    logger.info('weekly_class_deactivated id=%s', weekly_class_id)
    return WeeklyClass.from_record(weekly_class_id, record)


def with_current_names(
    rows: list[WeeklyClass],
    teachers: list[Teacher],
    students: list[Student],
) -> list[WeeklyClass]:
    teacher_names = name_lookup(teachers)
    student_names = name_lookup(students)
    return [
        row.model_copy(
            update={
                'teacher_name': teacher_names.get(row.teacher_id, row.teacher_name),
                'student_name': student_names.get(row.student_id, row.student_name),
            }
        )
        for row in rows
    ]


def list_weekly_classes(
    store: RecordStore,
    *,
    active_only: bool = True,
    day: DayOfWeek | str | None = None,
    search: str = '',
) -> list[WeeklyClass]:
    rows = load_all(store, WEEKLY_CLASSES, WeeklyClass)
    if active_only:
        rows = [row for row in rows if row.active]
    if day:
        wanted = DayOfWeek(day)
        rows = [row for row in rows if row.day_of_week == wanted]
    rows = with_current_names(rows, load_all(store, TEACHERS, Teacher), load_all(store, CHILDREN, Student))

    needle = (search or '').strip().lower()
    if needle:
        rows = [
            row
            for row in rows
            if needle in row.teacher_name.lower() or needle in row.student_name.lower() or needle in row.subject.lower()
        ]
    rows.sort(key=lambda row: (row.day_of_week.weekday, parse_hhmm(row.start_time), row.teacher_name))
    return rows
