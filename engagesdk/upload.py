from __future__ import annotations

import threading
import time
from collections.abc import Callable

from engagesdk.adapters.base import Transport
from engagesdk.config import Settings
from engagesdk.domain import UploadOutcome, UploadState
from engagesdk.errors import IdentityUnavailable
from engagesdk.event_store import EventStore
from engagesdk.identity import IdentityResolver
from engagesdk.logging_setup import get_logger
from engagesdk.retry import send_with_retry
from engagesdk.signing import RequestSigner


def bulk_envelope(events: list[str]) -> str:
    """Wrap already-serialized events in a Collect bulk body without re-parsing."""
    return '{"eventList":[' + ",".join(events) + "]}"


class UploadPipeline:
    """Drains the event store to Collect, one batch at a time."""

    def __init__(
        self,
        store: EventStore,
        identity: IdentityResolver,
        transport: Transport,
        signer: RequestSigner,
        settings: Settings,
        *,
        collect_url: str,
        env_key: str,
        sleep_fn: Callable[[float], None] | None = None,
    ) -> None:
        self.store = store
        self.identity = identity
        self.transport = transport
        self.signer = signer
        self.settings = settings
        self.collect_url = collect_url
        self.env_key = env_key
        self._sleep = sleep_fn or time.sleep
        self._guard = threading.Lock()
        self._logger = get_logger(self.__class__.__name__)

    @property
    def state(self) -> UploadState:
        return UploadState.UPLOADING if self._guard.locked() else UploadState.IDLE

    @property
    def is_uploading(self) -> bool:
        return self._guard.locked()

    def upload(self) -> UploadOutcome:
        if not self._guard.acquire(blocking=False):
            self._logger.warning("Event upload already in progress, aborting")
            return UploadOutcome.BUSY
        try:
            return self._run()
        finally:
            self._guard.release()

    # Internals -----------------------------------------------------------------
    def _run(self) -> UploadOutcome:
        self._logger.debug("Starting event upload")
        try:
            self.identity.require()
        except IdentityUnavailable:
            self._logger.debug("Upload failed to get a user id, can not continue")
            return UploadOutcome.NO_IDENTITY

        self.store.swap()
        events = self.store.read()
        if not events:
            return UploadOutcome.EMPTY

        if self._post(bulk_envelope(events)):
            self._logger.debug("Upload successful (%d events)", len(events))
            self.store.clear()
            return UploadOutcome.DELIVERED

        self._logger.warning("Upload failed - try again later")
        return UploadOutcome.DEFERRED

    def _post(self, body: str) -> bool:
        url = self.signer.select(
            self.settings.COLLECT_URL_PATTERN,
            self.settings.COLLECT_HASH_URL_PATTERN,
            self.collect_url,
            self.env_key,
            body,
        )
        resp = send_with_retry(
            lambda: self.transport.post(url, body),
            max_attempts=self.settings.HTTP_REQUEST_MAX_RETRIES,
            delay_s=self.settings.HTTP_REQUEST_RETRY_DELAY_S,
            sleep_fn=self._sleep,
            logger=self._logger,
            what="uploading events",
        )
        return resp is not None
