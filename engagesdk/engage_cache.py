from __future__ import annotations

import threading
from pathlib import Path

from engagesdk.storage import JsonFile


class EngagementCache:
    """Last successful Engage response per decision point, kept on disk."""

    def __init__(self, path: str | Path | None, *, reset: bool = False) -> None:
        self._lock = threading.Lock()
        self._file = JsonFile(path, label="engagement cache")
        self._entries: dict[str, str] = {}
        if reset:
            self._file.delete()
        else:
            data = self._file.load()
            if isinstance(data, dict):
                self._entries = {k: v for k, v in data.items() if isinstance(v, str)}

    @property
    def durable(self) -> bool:
        return self._file.durable

    def get(self, decision_point: str) -> str | None:
        with self._lock:
            return self._entries.get(decision_point)

    def put(self, decision_point: str, response: str) -> None:
        with self._lock:
            self._entries[decision_point] = response
            self._file.write(self._entries)

    def has(self, decision_point: str) -> bool:
        with self._lock:
            return decision_point in self._entries

    def clear(self) -> None:
        with self._lock:
            self._entries = {}
            self._file.delete()

    def save(self) -> None:
        with self._lock:
            self._file.write(self._entries)

    def __contains__(self, decision_point: object) -> bool:
        return isinstance(decision_point, str) and self.has(decision_point)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
