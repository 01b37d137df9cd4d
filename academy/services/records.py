from __future__ import annotations

import logging
from typing import TypeVar

from pydantic import ValidationError as SchemaError

from academy.core.errors import NotFoundError, PersistenceError, ValidationError
from academy.schemas import Student, StoredModel, Teacher
from academy.store import RecordStore
from academy.store.collections import CHILDREN, TEACHERS


ModelT = TypeVar('ModelT', bound=StoredModel)

logger = logging.getLogger(__name__)


def parse_records(collection: str, snapshot: dict, model: type[ModelT]) -> list[ModelT]:
    rows: list[ModelT] = []
    for record_id, payload in snapshot.items():
        try:
            rows.append(model.from_record(record_id, payload or {}))
        except SchemaError:
            logger.warning('record_skipped_malformed collection=%s id=%s', collection, record_id)
    return rows


def load_all(store: RecordStore, collection: str, model: type[ModelT]) -> list[ModelT]:
    return parse_records(collection, store.get_all(collection), model)


def safe_load_all(store: RecordStore, collection: str, model: type[ModelT]) -> tuple[list[ModelT], bool]:
    """Like load_all, but a rejected read degrades to an empty list. Returns (rows, ok)."""
    try:
        return load_all(store, collection, model), True
    except PersistenceError:
        logger.warning('record_read_degraded collection=%s', collection)
        return [], False


def find_one(store: RecordStore, collection: str, model: type[ModelT], record_id: str | None) -> ModelT | None:
    if not record_id:
        return None
    payload = store.get(collection, record_id)
    if payload is None:
        return None
    try:
        return model.from_record(record_id, payload)
    except SchemaError as exc:
        raise ValidationError(f'{collection} record {record_id} is malformed') from exc


def load_one(store: RecordStore, collection: str, model: type[ModelT], record_id: str) -> ModelT:
    row = find_one(store, collection, model, record_id)
    if row is None:
        raise NotFoundError(collection, record_id)
    return row


def resolve_teacher(store: RecordStore, teacher_id: str | None) -> Teacher:
    if not teacher_id:
        raise ValidationError('teacher_id is required')
    teacher = find_one(store, TEACHERS, Teacher, teacher_id)
    if teacher is None or not teacher.active:
        raise ValidationError(f'Teacher not found: {teacher_id}')
    return teacher


def resolve_student(store: RecordStore, student_id: str | None) -> Student:
    if not student_id:
        raise ValidationError('student_id is required')
    student = find_one(store, CHILDREN, Student, student_id)
    if student is None or not student.active:
        raise ValidationError(f'Student not found: {student_id}')
    return student


def name_lookup(rows: list[Teacher] | list[Student]) -> dict[str, str]:
    return {row.id: row.name for row in rows}
