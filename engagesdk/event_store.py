from __future__ import annotations

import threading
from pathlib import Path

from engagesdk.logging_setup import get_logger
from engagesdk.storage import JsonFile


class EventStore:
    """Double-buffered queue of serialized event records.

    Producers ``push`` into the active buffer. An upload ``swap``s the active
    buffer onto the end of the drain buffer, ``read``s the drain buffer and
    ``clear``s it once the batch is acknowledged. A batch that is never
    acknowledged stays in the drain buffer and is sent again, ahead of newer
    events, on the next swap.

    Every mutation is written through to ``path`` before it returns.
    """

    def __init__(self, path: str | Path | None, *, max_events: int, reset: bool = False) -> None:
        self.max_events = max_events
        self._lock = threading.RLock()
        self._logger = get_logger(self.__class__.__name__)
        self._file = JsonFile(path, label="event store")
        self._active: list[str] = []
        self._drain: list[str] = []

        if reset:
            self._file.delete()
        else:
            self._load()

    # Public API -----------------------------------------------------------------
    @property
    def durable(self) -> bool:
        return self._file.durable

    @property
    def count(self) -> int:
        with self._lock:
            return len(self._active) + len(self._drain)

    @property
    def active_count(self) -> int:
        with self._lock:
            return len(self._active)

    @property
    def drain_count(self) -> int:
        with self._lock:
            return len(self._drain)

    def push(self, serialized_event: str) -> bool:
        with self._lock:
            if len(self._active) + len(self._drain) >= self.max_events:
                return False
            self._active.append(serialized_event)
            self._persist()
            return True

    def swap(self) -> None:
        with self._lock:
            if not self._active:
                return
            self._drain.extend(self._active)
            self._active = []
            self._persist()

    def read(self) -> list[str]:
        with self._lock:
            return list(self._drain)

    def clear(self) -> None:
        with self._lock:
            self._drain = []
            self._persist()

    def reset(self) -> None:
        with self._lock:
            self._active = []
            self._drain = []
            self._file.delete()

    # Internals -----------------------------------------------------------------
    def _load(self) -> None:
        data = self._file.load()
        if not isinstance(data, dict):
            return
        active = data.get("active", [])
        drain = data.get("drain", [])
        self._active = [e for e in active if isinstance(e, str)]
        self._drain = [e for e in drain if isinstance(e, str)]
        if self._active or self._drain:
            self._logger.debug(
                "Loaded %d queued and %d undelivered events from %s",
                len(self._active),
                len(self._drain),
                self._file.path,
            )

    def _persist(self) -> None:
        self._file.write({"active": self._active, "drain": self._drain})
