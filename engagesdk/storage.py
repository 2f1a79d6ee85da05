from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any

from engagesdk.logging_setup import get_logger


class JsonFile:
    """Whole-file JSON persistence with atomic replace.

    A ``None`` path, or any ``OSError`` while reading or writing, switches the
    file to memory-only mode: writes become no-ops and ``durable`` is False.
    """

    def __init__(self, path: str | Path | None, *, label: str) -> None:
        self.path = Path(path) if path is not None else None
        self.label = label
        self._logger = get_logger("storage")
        self._durable = self.path is not None
        if self.path is None:
            self._logger.info("%s is memory-only (no storage path)", label)

    @property
    def durable(self) -> bool:
        return self._durable

    def load(self) -> Any | None:
        if not self._durable or self.path is None or not self.path.exists():
            return None
        try:
            return json.loads(self.path.read_text(encoding="utf-8"))
        except OSError as e:
            self._degrade(e)
        except ValueError as e:
            self._logger.warning("Discarding unreadable %s at %s: %s", self.label, self.path, e)
        return None

    def write(self, data: Any) -> bool:
        if not self._durable or self.path is None:
            return False
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(prefix=f".{self.path.name}.", dir=self.path.parent)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    json.dump(data, fh, ensure_ascii=False)
                    fh.flush()
                    os.fsync(fh.fileno())
                os.replace(tmp, self.path)
            except BaseException:
                Path(tmp).unlink(missing_ok=True)
                raise
        except OSError as e:
            self._degrade(e)
            return False
        return True

    def delete(self) -> None:
        if self.path is None:
            return
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            self._degrade(e)

    def _degrade(self, err: OSError) -> None:
        self._durable = False
        self._logger.warning("%s storage unavailable (%s); continuing in memory only", self.label, err)
