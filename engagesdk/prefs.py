from __future__ import annotations

import threading
from pathlib import Path

from engagesdk.storage import JsonFile

KEY_USER_ID = "DDSDK_USER_ID"
KEY_FIRST_RUN = "DDSDK_FIRST_RUN"
KEY_HASH_SECRET = "DDSDK_HASH_SECRET"
KEY_CLIENT_VERSION = "DDSDK_CLIENT_VERSION"
KEY_PUSH_NOTIFICATION_TOKEN = "DDSDK_PUSH_NOTIFICATION_TOKEN"
KEY_ANDROID_REGISTRATION_ID = "DDSDK_ANDROID_REGISTRATION_ID"

ALL_KEYS = (
    KEY_USER_ID,
    KEY_FIRST_RUN,
    KEY_HASH_SECRET,
    KEY_CLIENT_VERSION,
    KEY_PUSH_NOTIFICATION_TOKEN,
    KEY_ANDROID_REGISTRATION_ID,
)


class Preferences:
    """Small persistent key/value store for per-install settings.

    Setting an empty string is ignored, so a stored value can only be removed
    with ``delete``.
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self._lock = threading.Lock()
        self._file = JsonFile(path, label="preferences")
        data = self._file.load()
        self._values: dict[str, str | int] = dict(data) if isinstance(data, dict) else {}

    def get(self, key: str, default: str | None = None) -> str | None:
        with self._lock:
            value = self._values.get(key)
        if value is None or value == "":
            return default
        return str(value)

    def set(self, key: str, value: str | None) -> None:
        if not value:
            return
        with self._lock:
            self._values[key] = value
            self._file.write(self._values)

    def get_int(self, key: str, default: int) -> int:
        with self._lock:
            value = self._values.get(key)
        try:
            return int(value) if value is not None else default
        except (TypeError, ValueError):
            return default

    def set_int(self, key: str, value: int) -> None:
        with self._lock:
            self._values[key] = int(value)
            self._file.write(self._values)

    def delete(self, *keys: str) -> None:
        with self._lock:
            for key in keys:
                self._values.pop(key, None)
            self._file.write(self._values)

    def save(self) -> None:
        with self._lock:
            self._file.write(self._values)
