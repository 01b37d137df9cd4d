from __future__ import annotations

import copy
import threading

from academy.core.errors import NotFoundError
from academy.store.base import Mutator, Record, RecordStore, Snapshot, new_record_id


class MemoryRecordStore(RecordStore):
    def __init__(self, seed: dict[str, Snapshot] | None = None) -> None:
        super().__init__()
        self._lock = threading.RLock()
        self._data: dict[str, Snapshot] = copy.deepcopy(seed or {})

    def get_all(self, collection: str) -> Snapshot:
        with self._lock:
            return copy.deepcopy(self._data.get(collection, {}))

    def get(self, collection: str, record_id: str) -> Record | None:
        with self._lock:
            row = self._data.get(collection, {}).get(record_id)
            return copy.deepcopy(row) if row is not None else None

    def create(self, collection: str, value: Record) -> str:
        record_id = new_record_id()
        with self._lock:
            self._data.setdefault(collection, {})[record_id] = copy.deepcopy(value)
        self._publish(collection)
        return record_id

    def update(self, collection: str, record_id: str, patch: Record) -> Record:
        with self._lock:
            row = self._data.get(collection, {}).get(record_id)
            if row is None:
                raise NotFoundError(collection, record_id)
            row.update(copy.deepcopy(patch))
            result = copy.deepcopy(row)
        self._publish(collection)
        return result

    def remove(self, collection: str, record_id: str) -> None:
        with self._lock:
            removed = self._data.get(collection, {}).pop(record_id, None)
        if removed is not None:
            self._publish(collection)

    def apply(self, collection: str, record_id: str, mutator: Mutator) -> Record:
        with self._lock:
            rows = self._data.get(collection, {})
            if record_id not in rows:
                raise NotFoundError(collection, record_id)
            updated = mutator(copy.deepcopy(rows[record_id]))
            rows[record_id] = copy.deepcopy(updated)
        self._publish(collection)
        return copy.deepcopy(updated)
