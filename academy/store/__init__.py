from __future__ import annotations

import threading

from academy.config import settings
from academy.store.base import Record, RecordStore, Snapshot
from academy.store.memory import MemoryRecordStore


_lock = threading.Lock()
_store: RecordStore | None = None


def build_record_store(backend: str | None = None) -> RecordStore:
    selected = (backend or settings.store_backend or 'sql').strip().lower()
    if selected == 'memory':
        return MemoryRecordStore()
    if selected == 'sql':
        from academy.db import Base, SessionLocal, engine
        from academy.store.sql import SqlRecordStore

        Base.metadata.create_all(bind=engine)
        return SqlRecordStore(SessionLocal)
    raise ValueError(f'Unknown store backend: {backend}')


def get_store() -> RecordStore:
    global _store
    with _lock:
        if _store is None:
            _store = build_record_store()
        return _store


def set_store(store: RecordStore | None) -> None:
    global _store
    with _lock:
        _store = store


__all__ = ['MemoryRecordStore', 'Record', 'RecordStore', 'Snapshot', 'build_record_store', 'get_store', 'set_store']
