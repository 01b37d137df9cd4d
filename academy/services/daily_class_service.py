"""Lifecycle of dated class occurrences.

A daily class is created from a weekly template, an advance booking or an
admin action, and then moves through status changes. Each status change is a
single store ``apply`` that sets the status, appends one history line, stamps
``updated_at`` and, for ``running``/``taken``, records the online/completion
time. History is only ever appended to.

Transition checking has two policies. The permissive one (default) lets any
status follow any other, which is how the academy has always operated. The
strict one uses ``STRICT_TRANSITIONS`` and is switched on with
``STRICT_STATUS_TRANSITIONS=true``.
"""

from __future__ import annotations

from datetime import date
import logging
from typing import Any, Iterable

from pydantic import ValidationError as SchemaError

from academy.config import settings
from academy.core.errors import ValidationError
from academy.core.time_provider import TimeProvider, default_time_provider
from academy.schemas import (
    INITIAL_STATUSES,
    ClassStatus,
    Course,
    DailyClass,
    RescheduleEntry,
    Student,
    Teacher,
    TeacherShift,
)
from academy.services.records import find_one, load_all, load_one, name_lookup, resolve_student, resolve_teacher
from academy.store import Record, RecordStore
from academy.store.collections import COURSES, DAILY_CLASSES, TEACHERS
from academy.utils.timezone import TIME_FORMAT, add_minutes, format_local_time, local_to_utc, parse_date, parse_hhmm, utc_to_local


logger = logging.getLogger(__name__)

S = ClassStatus
_OPEN_TARGETS = frozenset({S.RUNNING, S.TAKEN, S.ABSENT, S.LEAVE, S.DECLINED, S.SUSPENDED, S.RESCHEDULED, S.REFUSED})

STRICT_TRANSITIONS: dict[ClassStatus, frozenset[ClassStatus]] = {
    S.SCHEDULED: _OPEN_TARGETS,
    S.TRIAL: _OPEN_TARGETS,
    S.ADVANCE: _OPEN_TARGETS,
    S.RESCHEDULED: _OPEN_TARGETS,
    S.RUNNING: frozenset({S.TAKEN, S.ABSENT, S.LEAVE, S.DECLINED, S.SUSPENDED, S.REFUSED}),
    S.SUSPENDED: frozenset({S.SCHEDULED, S.RESCHEDULED}),
    S.ABSENT: frozenset({S.RESCHEDULED}),
    S.LEAVE: frozenset({S.RESCHEDULED}),
    S.DECLINED: frozenset({S.RESCHEDULED}),
    S.REFUSED: frozenset({S.RESCHEDULED}),
    S.TAKEN: frozenset(),
}


def _coerce_status(value: ClassStatus | str) -> ClassStatus:
    try:
        return ClassStatus(value)
    except ValueError as exc:
        raise ValidationError(f'Unknown class status: {value}') from exc


def validate_transition(current: ClassStatus, new: ClassStatus, *, strict: bool | None = None) -> None:
    use_strict = settings.strict_status_transitions if strict is None else strict
    if not use_strict:
        return
    if new not in STRICT_TRANSITIONS.get(current, frozenset()):
        raise ValidationError(f'Transition {current.value} -> {new.value} is not allowed')


def _zone_for(teacher: Teacher, timezone: str | None) -> str:
    return timezone or teacher.timezone or settings.app_timezone


def get_daily_class(store: RecordStore, class_id: str) -> DailyClass:
    return load_one(store, DAILY_CLASSES, DailyClass, class_id)


def create_daily_class(
    store: RecordStore,
    *,
    teacher_id: str,
    student_id: str,
    date: str | date,
    time: str,
    timezone: str | None = None,
    duration: int | None = None,
    course_id: str | None = None,
    zoom_link: str = '',
    notes: str = '',
    status: ClassStatus | str = ClassStatus.SCHEDULED,
    weekly_class_id: str | None = None,
    advance_class_id: str | None = None,
    occurrence_date: str | None = None,
    start_time: str | None = None,
    end_time: str | None = None,
    time_provider: TimeProvider = default_time_provider,
) -> DailyClass:
    """Convert the local slot to UTC and store a new class; validation happens before any write."""
    teacher = resolve_teacher(store, teacher_id)
    student = resolve_student(store, student_id)
    initial = _coerce_status(status)
    if initial not in INITIAL_STATUSES:
        raise ValidationError(f'A class cannot be created as {initial.value}')
    clean_duration = int(duration or settings.default_class_duration_minutes)
    if clean_duration <= 0:
        raise ValidationError('duration must be positive')

    course_name = None
    if course_id:
        course = find_one(store, COURSES, Course, course_id)
        if course is None:
            raise ValidationError(f'Course not found: {course_id}')
        course_name = course.title

    slot = local_to_utc(date, time, _zone_for(teacher, timezone))
    window_start = start_time or parse_hhmm(time).strftime(TIME_FORMAT)
    window_end = end_time or add_minutes(window_start, clean_duration)
    row = DailyClass(
        teacher_id=teacher.id,
        student_id=student.id,
        weekly_class_id=weekly_class_id,
        advance_class_id=advance_class_id,
        occurrence_date=occurrence_date,
        course_id=course_id or None,
        course_name=course_name,
        appointment_date=slot.utc_date,
        appointment_time=slot.utc_time,
        duration=clean_duration,
        start_time=window_start,
        end_time=window_end,
        status=initial,
        history=[f'Class created at {time_provider.history_stamp()}'],
        created_at=time_provider.stamp(),
        zoom_link=zoom_link or None,
        notes=notes or None,
        is_active=True,
    )
    row.id = store.create(DAILY_CLASSES, row.to_record())
    logger.info(
        'daily_class_created id=%s teacher_id=%s student_id=%s utc=%s %s status=%s',
        row.id,
        teacher.id,
        student.id,
        slot.utc_date,
        slot.utc_time,
        initial.value,
    )
    return row


def _parse_stored(class_id: str, record: Record) -> DailyClass:
    try:
        return DailyClass.from_record(class_id, record)
    except SchemaError as exc:
        raise ValidationError(f'Daily class {class_id} is malformed') from exc


def _assert_active(class_id: str, row: DailyClass) -> None:
    if not row.active:
        raise ValidationError(f'Daily class {class_id} is archived')


def transition_status(
    store: RecordStore,
    class_id: str,
    new_status: ClassStatus | str,
    *,
    strict: bool | None = None,
    time_provider: TimeProvider = default_time_provider,
) -> DailyClass:
    target = _coerce_status(new_status)

    def _mutate(record: Record) -> Record:
        current = _parse_stored(class_id, record)
        _assert_active(class_id, current)
        validate_transition(current.status, target, strict=strict)
        stamp = time_provider.stamp()
        record['status'] = target.value
        record['history'] = list(record.get('history') or []) + [
            f'Status changed to {target.value} at {time_provider.history_stamp()}'
        ]
        record['updated_at'] = stamp
        if target is ClassStatus.RUNNING:
            record['online_time'] = stamp
        elif target is ClassStatus.TAKEN:
            record['completed_at'] = stamp
        return record

    updated = store.apply(DAILY_CLASSES, class_id, _mutate)
    logger.info('daily_class_status_changed id=%s status=%s', class_id, target.value)
    return DailyClass.from_record(class_id, updated)


def soft_delete_daily_class(
    store: RecordStore,
    class_id: str,
    *,
    time_provider: TimeProvider = default_time_provider,
) -> DailyClass:
    """Archive a class. History stays; archived classes accept no further status changes."""

    def _mutate(record: Record) -> Record:
        if record.get('is_active') is not False:
            record['is_active'] = False
            record['updated_at'] = time_provider.stamp()
        return record

    updated = store.apply(DAILY_CLASSES, class_id, _mutate)
    logger.info('daily_class_archived id=%s', class_id)
    return DailyClass.from_record(class_id, updated)


def reschedule_daily_class(
    store: RecordStore,
    class_id: str,
    *,
    new_date: str | date,
    new_time: str,
    reason: str,
    timezone: str | None = None,
    rescheduled_by: str = 'Admin',
    strict: bool | None = None,
    time_provider: TimeProvider = default_time_provider,
) -> DailyClass:
    if not (reason or '').strip():
        raise ValidationError('A reason is required to reschedule a class')
    current = get_daily_class(store, class_id)
    teacher = find_one(store, TEACHERS, Teacher, current.teacher_id)
    zone = timezone or (teacher.timezone if teacher else None) or settings.app_timezone
    slot = local_to_utc(new_date, new_time, zone)

    def _mutate(record: Record) -> Record:
        row = _parse_stored(class_id, record)
        _assert_active(class_id, row)
        validate_transition(row.status, ClassStatus.RESCHEDULED, strict=strict)
        stamp = time_provider.stamp()
        entry = RescheduleEntry(
            old_date=row.appointment_date,
            old_time=row.appointment_time,
            new_date=slot.utc_date,
            new_time=slot.utc_time,
            reason=reason.strip(),
            rescheduled_at=stamp,
            rescheduled_by=rescheduled_by,
        )
        record['appointment_date'] = slot.utc_date
        record['appointment_time'] = slot.utc_time
        record['status'] = ClassStatus.RESCHEDULED.value
        record['reschedule_history'] = list(record.get('reschedule_history') or []) + [entry.model_dump(mode='json')]
        record['history'] = list(record.get('history') or []) + [
            f'Status changed to rescheduled at {time_provider.history_stamp()}: '
            f'{entry.old_date} {entry.old_time} -> {entry.new_date} {entry.new_time} UTC - Reason: {entry.reason}'
        ]
        record['updated_at'] = stamp
        return record

    updated = store.apply(DAILY_CLASSES, class_id, _mutate)
    logger.info('daily_class_rescheduled id=%s utc=%s %s', class_id, slot.utc_date, slot.utc_time)
    return DailyClass.from_record(class_id, updated)


def shift_teacher(
    store: RecordStore,
    class_id: str,
    *,
    new_teacher_id: str,
    reason: str,
    shifted_by: str = 'Admin',
    time_provider: TimeProvider = default_time_provider,
) -> DailyClass:
    if not (reason or '').strip():
        raise ValidationError('A reason is required to shift a class')
    new_teacher = resolve_teacher(store, new_teacher_id)
    current = get_daily_class(store, class_id)
    old_teacher = find_one(store, TEACHERS, Teacher, current.teacher_id)
    old_name = old_teacher.name if old_teacher else 'Unknown'

    def _mutate(record: Record) -> Record:
        row = _parse_stored(class_id, record)
        _assert_active(class_id, row)
        stamp = time_provider.stamp()
        shift = TeacherShift(
            from_teacher_id=row.teacher_id,
            to_teacher_id=new_teacher.id,
            reason=reason.strip(),
            shifted_at=stamp,
            shifted_by=shifted_by,
        )
        record['teacher_id'] = new_teacher.id
        record['shift_history'] = list(record.get('shift_history') or []) + [shift.model_dump(mode='json')]
        record['history'] = list(record.get('history') or []) + [
            f'Teacher changed from {old_name} to {new_teacher.name} - Reason: {shift.reason}'
        ]
        record['updated_at'] = stamp
        return record

    updated = store.apply(DAILY_CLASSES, class_id, _mutate)
    logger.info('daily_class_teacher_shifted id=%s to_teacher_id=%s', class_id, new_teacher.id)
    return DailyClass.from_record(class_id, updated)


def rate_daily_class(
    store: RecordStore,
    class_id: str,
    *,
    rating: int,
    feedback: str = '',
    time_provider: TimeProvider = default_time_provider,
) -> DailyClass:
    if rating < 1 or rating > 5:
        raise ValidationError('rating must be between 1 and 5')
    stamp = time_provider.stamp()
    _assert_active(class_id, get_daily_class(store, class_id))
    patch = {'rating': int(rating), 'feedback': feedback.strip() or None, 'rated_at': stamp, 'updated_at': stamp}
    return DailyClass.from_record(class_id, store.update(DAILY_CLASSES, class_id, patch))


def filter_daily_classes(
    classes: Iterable[DailyClass],
    *,
    start_date: date | str | None = None,
    end_date: date | str | None = None,
    status: ClassStatus | str | None = None,
    course_id: str | None = None,
    teacher_id: str | None = None,
    student_id: str | None = None,
    include_inactive: bool = False,
) -> list[DailyClass]:
    """Pure filter over UTC appointment dates, sorted by (date, time) ascending."""
    start = parse_date(start_date).isoformat() if start_date else None
    end = parse_date(end_date).isoformat() if end_date else None
    wanted_status = _coerce_status(status) if status else None

    rows = []
    for row in classes:
        if not include_inactive and not row.active:
            continue
        if start and row.appointment_date < start:
            continue
        if end and row.appointment_date > end:
            continue
        if wanted_status and row.status != wanted_status:
            continue
        if course_id and row.course_id != course_id:
            continue
        if teacher_id and row.teacher_id != teacher_id:
            continue
        if student_id and row.student_id != student_id:
            continue
        rows.append(row)
    rows.sort(key=lambda row: (row.appointment_date, row.appointment_time, row.id))
    return rows


def list_daily_classes(store: RecordStore, **filters: Any) -> list[DailyClass]:
    return filter_daily_classes(load_all(store, DAILY_CLASSES, DailyClass), **filters)


def daily_class_stats(classes: Iterable[DailyClass], *, today: date) -> dict[str, int]:
    active = [row for row in classes if row.active]
    today_prefix = today.isoformat()
    counts: dict[str, int] = {status.value: 0 for status in ClassStatus}
    for row in active:
        counts[row.status.value] += 1
    counts['total'] = len(active)
    counts['remaining'] = counts[ClassStatus.SCHEDULED.value]
    counts['students'] = len({row.student_id for row in active})
    counts['created'] = sum(1 for row in active if row.created_at.startswith(today_prefix))
    return counts


def present_daily_class(
    row: DailyClass,
    *,
    teachers: list[Teacher],
    students: list[Student],
    timezone: str,
) -> dict[str, Any]:
    """Viewer-facing dict: names joined from the source records, slot converted to ``timezone``."""
    local = utc_to_local(row.appointment_date, row.appointment_time, timezone)
    payload = row.model_dump(mode='json')
    payload.update(
        {
            'teacher_name': name_lookup(teachers).get(row.teacher_id, 'Unknown'),
            'student_name': name_lookup(students).get(row.student_id, 'Unknown'),
            'timezone': timezone,
            'local_date': local.local_date,
            'local_time': local.local_time,
            'display_time': format_local_time(row.appointment_date, row.appointment_time, timezone),
        }
    )
    return payload
