from __future__ import annotations

import json
import threading
import time
import uuid
from collections.abc import Callable
from pathlib import Path

from engagesdk.adapters.base import Transport
from engagesdk.domain import IdentityState
from engagesdk.errors import IdentityUnavailable
from engagesdk.logging_setup import get_logger
from engagesdk.prefs import KEY_USER_ID, Preferences
from engagesdk.retry import send_with_retry
from engagesdk.signing import format_uri


class IdentityResolver:
    """Owns the persisted user id and its remote issuance.

    At most one issuance request is in flight at a time. Callers that ask for
    an id while a request is running wait for it and share its result.
    """

    def __init__(
        self,
        prefs: Preferences,
        transport: Transport,
        *,
        url_pattern: str,
        max_attempts: int,
        retry_delay_s: float,
        sleep_fn: Callable[[float], None] | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self.prefs = prefs
        self.transport = transport
        self.url_pattern = url_pattern
        self.max_attempts = max_attempts
        self.retry_delay_s = retry_delay_s
        self.collect_url = ""
        self.env_key = ""
        self._sleep = sleep_fn or time.sleep
        self._clock = clock or time.time
        self._cond = threading.Condition()
        self._in_progress = False
        self._remote = False
        self._logger = get_logger(self.__class__.__name__)

    def configure(self, *, collect_url: str, env_key: str) -> None:
        self.collect_url = collect_url
        self.env_key = env_key

    # Public API -----------------------------------------------------------------
    @property
    def state(self) -> IdentityState:
        with self._cond:
            if self._in_progress:
                return IdentityState.RESOLUTION_IN_PROGRESS
            if not self.current_id():
                return IdentityState.UNRESOLVED
            return IdentityState.RESOLVED_REMOTE if self._remote else IdentityState.RESOLVED_LOCAL

    def current_id(self) -> str | None:
        return self.prefs.get(KEY_USER_ID)

    def assign(self, user_id: str) -> None:
        """Store a locally known user id."""
        with self._cond:
            self.prefs.set(KEY_USER_ID, user_id)
            self._remote = False

    def generate_local(self, legacy_settings_path: str | Path | None = None) -> str:
        user_id = self._legacy_user_id(legacy_settings_path) or str(uuid.uuid4())
        self.assign(user_id)
        return user_id

    def resolve(self) -> str | None:
        with self._cond:
            existing = self.current_id()
            if existing:
                return existing
            if self._in_progress:
                self._logger.debug("User id request already in progress, waiting")
                while self._in_progress:
                    self._cond.wait()
                return self.current_id()
            self._in_progress = True

        user_id: str | None = None
        try:
            user_id = self._request_remote()
        finally:
            with self._cond:
                if user_id:
                    self.prefs.set(KEY_USER_ID, user_id)
                    self._remote = True
                self._in_progress = False
                self._cond.notify_all()
        return user_id

    def require(self) -> str:
        user_id = self.resolve()
        if not user_id:
            raise IdentityUnavailable("No user id available")
        return user_id

    def reset(self) -> None:
        with self._cond:
            self.prefs.delete(KEY_USER_ID)
            self._remote = False

    # Internals -----------------------------------------------------------------
    def _request_remote(self) -> str | None:
        # millisecond query string defeats intermediate caches
        base = format_uri(self.url_pattern, self.collect_url, self.env_key)
        url = f"{base}?{int(self._clock() * 1000)}"
        self._logger.debug("Requesting user id from %s", url)

        resp = send_with_retry(
            lambda: self.transport.get(url),
            max_attempts=self.max_attempts,
            delay_s=self.retry_delay_s,
            sleep_fn=self._sleep,
            logger=self._logger,
            what="requesting user id",
        )
        if resp is None:
            self._logger.warning("User id request failed after %d attempts", self.max_attempts)
            return None
        try:
            user_id = json.loads(resp.body or "")["userID"]
        except (ValueError, KeyError, TypeError) as e:
            self._logger.warning("Malformed user id response: %s", e)
            return None
        return str(user_id) if user_id else None

    def _legacy_user_id(self, path: str | Path | None) -> str | None:
        if path is None:
            return None
        legacy = Path(path)
        if not legacy.exists():
            return None
        self._logger.debug("Found a legacy settings file at %s", legacy)
        try:
            settings = json.loads(legacy.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            self._logger.warning("Problem reading legacy user id: %s", e)
            return None
        if isinstance(settings, dict) and settings.get("userID"):
            self._logger.debug("Found a legacy user id")
            return str(settings["userID"])
        return None
