from __future__ import annotations

import json
import logging
import threading

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from academy.core.errors import NotFoundError, PersistenceError
from academy.models import StoredRecord
from academy.store.base import Mutator, Record, RecordStore, Snapshot, new_record_id


logger = logging.getLogger(__name__)


class SqlRecordStore(RecordStore):
    """Documents kept as JSON text in the ``records`` table, one row per (collection, id)."""

    def __init__(self, session_factory: sessionmaker) -> None:
        super().__init__()
        self._session_factory = session_factory
        # SQLite ignores FOR UPDATE; serialize read-modify-write inside this process.
        self._apply_lock = threading.Lock()

    def _find(self, db: Session, collection: str, record_id: str, *, for_update: bool = False) -> StoredRecord | None:
        query = db.query(StoredRecord).filter(
            StoredRecord.collection == collection,
            StoredRecord.record_id == record_id,
        )
        if for_update:
            query = query.with_for_update()
        return query.first()

    def _fail(self, op: str, collection: str, exc: SQLAlchemyError) -> PersistenceError:
        logger.warning('record_store_failed op=%s collection=%s error=%s', op, collection, exc.__class__.__name__)
        return PersistenceError(f'{op} on {collection} failed: {exc}')

    def get_all(self, collection: str) -> Snapshot:
        try:
            with self._session_factory() as db:
                rows = (
                    db.query(StoredRecord)
                    .filter(StoredRecord.collection == collection)
                    .order_by(StoredRecord.id.asc())
                    .all()
                )
                return {row.record_id: json.loads(row.payload) for row in rows}
        except SQLAlchemyError as exc:
            raise self._fail('get_all', collection, exc) from exc

    def get(self, collection: str, record_id: str) -> Record | None:
        try:
            with self._session_factory() as db:
                row = self._find(db, collection, record_id)
                return json.loads(row.payload) if row else None
        except SQLAlchemyError as exc:
            raise self._fail('get', collection, exc) from exc

    def create(self, collection: str, value: Record) -> str:
        record_id = new_record_id()
        try:
            with self._session_factory() as db:
                db.add(StoredRecord(collection=collection, record_id=record_id, payload=json.dumps(value)))
                db.commit()
        except SQLAlchemyError as exc:
            raise self._fail('create', collection, exc) from exc
        self._publish(collection)
        return record_id

    def update(self, collection: str, record_id: str, patch: Record) -> Record:
        def _merge(current: Record) -> Record:
            current.update(patch)
            return current

        return self.apply(collection, record_id, _merge)

    def remove(self, collection: str, record_id: str) -> None:
        try:
            with self._session_factory() as db:
                row = self._find(db, collection, record_id)
                if row is None:
                    return
                db.delete(row)
                db.commit()
        except SQLAlchemyError as exc:
            raise self._fail('remove', collection, exc) from exc
        self._publish(collection)

    def apply(self, collection: str, record_id: str, mutator: Mutator) -> Record:
        try:
            with self._apply_lock, self._session_factory() as db:
                row = self._find(db, collection, record_id, for_update=True)
                if row is None:
                    raise NotFoundError(collection, record_id)
                updated = mutator(json.loads(row.payload))
                row.payload = json.dumps(updated)
                db.commit()
        except SQLAlchemyError as exc:
            raise self._fail('apply', collection, exc) from exc
        self._publish(collection)
        return updated
