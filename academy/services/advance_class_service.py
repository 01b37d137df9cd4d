from __future__ import annotations

from datetime import date
import logging

from academy.config import settings
from academy.core.errors import ConversionError, NotFoundError, ValidationError
from academy.core.time_provider import TimeProvider, default_time_provider
from academy.schemas import AdvanceClass, AdvanceStatus, ClassStatus, DailyClass
from academy.services.daily_class_service import create_daily_class, soft_delete_daily_class, transition_status
from academy.services.records import find_one, load_all, load_one, resolve_student, resolve_teacher
from academy.services.weekly_class_service import get_weekly_class
from academy.store import RecordStore
from academy.store.collections import ADVANCE_CLASSES, DAILY_CLASSES
from academy.utils.timezone import add_minutes, get_zone, minutes_between, parse_date, parse_hhmm


logger = logging.getLogger(__name__)

TERMINAL_ADVANCE_STATUSES = frozenset({AdvanceStatus.COMPLETED, AdvanceStatus.CANCELLED})


def get_advance_class(store: RecordStore, advance_id: str) -> AdvanceClass:
    return load_one(store, ADVANCE_CLASSES, AdvanceClass, advance_id)


def schedule_advance_class(
    store: RecordStore,
    *,
    weekly_class_id: str,
    date: str | date,
    time: str,
    reason: str = '',
    timezone: str | None = None,
    time_provider: TimeProvider = default_time_provider,
) -> AdvanceClass:
    """Book a make-up for a template, active or not.

    The template's names and subject are copied onto the booking. A linked
    daily class with status ``advance`` is created so the make-up shows up in
    daily views and salary.
    """
    template = get_weekly_class(store, weekly_class_id)
    teacher = resolve_teacher(store, template.teacher_id)
    resolve_student(store, template.student_id)
    try:
        scheduled_date = parse_date(date).isoformat()
        scheduled_time = parse_hhmm(time).strftime('%H:%M')
    except ConversionError as exc:
        raise ValidationError(str(exc)) from exc

    duration = minutes_between(template.start_time, template.end_time)
    if not duration or duration <= 0:
        duration = settings.default_class_duration_minutes
    zone = timezone or teacher.timezone or settings.app_timezone
    try:
        get_zone(zone)
    except ConversionError as exc:
        raise ValidationError(str(exc)) from exc

    row = AdvanceClass(
        weekly_class_id=template.id,
        scheduled_date=scheduled_date,
        scheduled_time=scheduled_time,
        reason=(reason or '').strip(),
        status=AdvanceStatus.SCHEDULED,
        teacher_name=template.teacher_name or 'N/A',
        student_name=template.student_name or 'N/A',
        subject=template.subject or 'N/A',
        created_at=time_provider.stamp(),
    )
    row.id = store.create(ADVANCE_CLASSES, row.to_record())

    daily = create_daily_class(
        store,
        teacher_id=template.teacher_id,
        student_id=template.student_id,
        date=scheduled_date,
        time=scheduled_time,
        timezone=zone,
        duration=duration,
        notes=row.reason,
        status=ClassStatus.ADVANCE,
        weekly_class_id=template.id,
        advance_class_id=row.id,
        start_time=scheduled_time,
        end_time=add_minutes(scheduled_time, duration),
        time_provider=time_provider,
    )
    row.daily_class_id = daily.id
    store.set_field(ADVANCE_CLASSES, row.id, 'daily_class_id', daily.id)
    logger.info('advance_class_scheduled id=%s weekly_class_id=%s daily_class_id=%s', row.id, template.id, daily.id)
    return row


def _finish(
    store: RecordStore,
    advance_id: str,
    target: AdvanceStatus,
    time_provider: TimeProvider,
) -> AdvanceClass:
    def _mutate(record: dict) -> dict:
        current = AdvanceClass.from_record(advance_id, record)
        if current.status in TERMINAL_ADVANCE_STATUSES:
            raise ValidationError(f'Advance class {advance_id} is already {current.status.value}')
        record['status'] = target.value
        record['updated_at'] = time_provider.stamp()
        return record

    updated = AdvanceClass.from_record(advance_id, store.apply(ADVANCE_CLASSES, advance_id, _mutate))
    logger.info('advance_class_finished id=%s status=%s', advance_id, target.value)
    return updated


def _linked_daily_class(store: RecordStore, row: AdvanceClass) -> DailyClass | None:
    linked = find_one(store, DAILY_CLASSES, DailyClass, row.daily_class_id)
    if linked is None or not linked.active:
        return None
    return linked


def mark_advance_completed(
    store: RecordStore,
    advance_id: str,
    *,
    time_provider: TimeProvider = default_time_provider,
) -> AdvanceClass:
    row = _finish(store, advance_id, AdvanceStatus.COMPLETED, time_provider)
    linked = _linked_daily_class(store, row)
    if linked is not None and linked.status is not ClassStatus.TAKEN:
        transition_status(store, linked.id, ClassStatus.TAKEN, strict=False, time_provider=time_provider)
    return row


def mark_advance_cancelled(
    store: RecordStore,
    advance_id: str,
    *,
    time_provider: TimeProvider = default_time_provider,
) -> AdvanceClass:
    row = _finish(store, advance_id, AdvanceStatus.CANCELLED, time_provider)
    linked = _linked_daily_class(store, row)
    if linked is not None:
        try:
            soft_delete_daily_class(store, linked.id, time_provider=time_provider)
        except NotFoundError:
            logger.warning('advance_linked_class_missing id=%s daily_class_id=%s', advance_id, linked.id)
    return row


def list_advance_classes(store: RecordStore, *, status: AdvanceStatus | str | None = None) -> list[AdvanceClass]:
    rows = load_all(store, ADVANCE_CLASSES, AdvanceClass)
    if status:
        try:
            wanted = AdvanceStatus(status)
        except ValueError as exc:
            raise ValidationError(f'Unknown advance status: {status}') from exc
        rows = [row for row in rows if row.status == wanted]
    rows.sort(key=lambda row: (row.scheduled_date, row.scheduled_time), reverse=True)
    return rows
