from __future__ import annotations

import copy
import logging
import threading
import uuid
from typing import Any, Callable


Record = dict[str, Any]
Snapshot = dict[str, Record]
Listener = Callable[[Snapshot], None]
Mutator = Callable[[Record], Record]

logger = logging.getLogger(__name__)


def new_record_id() -> str:
    return uuid.uuid4().hex


class _ListenerRegistry:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._listeners: dict[str, list[tuple[int, Listener]]] = {}
        self._next_token = 0

    def add(self, collection: str, listener: Listener) -> int:
        with self._lock:
            self._next_token += 1
            token = self._next_token
            self._listeners.setdefault(collection, []).append((token, listener))
            return token

    def discard(self, collection: str, token: int) -> None:
        with self._lock:
            rows = self._listeners.get(collection, [])
            self._listeners[collection] = [(t, fn) for t, fn in rows if t != token]

    def listeners(self, collection: str) -> list[Listener]:
        with self._lock:
            return [fn for _, fn in self._listeners.get(collection, [])]


class RecordStore:
    """Keyed-record store: collections of JSON documents addressed by id.

    Subscribers receive the full collection snapshot once on subscribe and
    again after every committed write to that collection, in write order.
    Nothing is promised about ordering across collections.
    """

    def __init__(self) -> None:
        self._registry = _ListenerRegistry()

    def get_all(self, collection: str) -> Snapshot:
        raise NotImplementedError

    def get(self, collection: str, record_id: str) -> Record | None:
        raise NotImplementedError

    def create(self, collection: str, value: Record) -> str:
        raise NotImplementedError

    def update(self, collection: str, record_id: str, patch: Record) -> Record:
        raise NotImplementedError

    def remove(self, collection: str, record_id: str) -> None:
        raise NotImplementedError

    def apply(self, collection: str, record_id: str, mutator: Mutator) -> Record:
        """Read-modify-write one record atomically; the mutator gets a private copy."""
        raise NotImplementedError

    def set_field(self, collection: str, record_id: str, field: str, value: Any) -> Record:
        return self.update(collection, record_id, {field: value})

    def subscribe(self, collection: str, on_change: Listener) -> Callable[[], None]:
        token = self._registry.add(collection, on_change)
        detached = threading.Event()

        def unsubscribe() -> None:
            if detached.is_set():
                return
            detached.set()
            self._registry.discard(collection, token)

        on_change(self.get_all(collection))
        return unsubscribe

    def _publish(self, collection: str) -> None:
        listeners = self._registry.listeners(collection)
        if not listeners:
            return
        snapshot = self.get_all(collection)
        for listener in listeners:
            try:
                listener(copy.deepcopy(snapshot))
            except Exception:
                logger.exception('store_listener_failed collection=%s', collection)
