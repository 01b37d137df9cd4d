from __future__ import annotations

import logging
import threading
from typing import Callable, Generic

from academy.services.records import ModelT, parse_records
from academy.store import RecordStore, Snapshot


logger = logging.getLogger(__name__)


class LiveCollection(Generic[ModelT]):
    """A typed, self-refreshing view of one store collection.

    Subscribes on construction and holds the latest parsed snapshot. After
    ``close()`` the view is detached and late callbacks are ignored.
    """

    def __init__(
        self,
        store: RecordStore,
        collection: str,
        model: type[ModelT],
        *,
        on_update: Callable[[list[ModelT]], None] | None = None,
    ) -> None:
        self.collection = collection
        self.model = model
        self._on_update = on_update
        self._lock = threading.Lock()
        self._closed = False
        self._rows: list[ModelT] = []
        self.updates = 0
        self._unsubscribe = store.subscribe(collection, self._handle_snapshot)

    def _handle_snapshot(self, snapshot: Snapshot) -> None:
        rows = parse_records(self.collection, snapshot, self.model)
        with self._lock:
            if self._closed:
                return
            self._rows = rows
            self.updates += 1
        if self._on_update is not None:
            self._on_update(list(rows))

    @property
    def rows(self) -> list[ModelT]:
        with self._lock:
            return list(self._rows)

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self._unsubscribe()
        logger.debug('live_view_closed collection=%s', self.collection)

    def __enter__(self) -> 'LiveCollection[ModelT]':
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
