from __future__ import annotations

import json
import threading
from collections.abc import Callable
from typing import Any

from pydantic import ValidationError

from engagesdk.adapters.base import Transport
from engagesdk.config import Settings
from engagesdk.domain import ClientInfo, EngagementResult, EngagementSource, EngageRequest
from engagesdk.engage_cache import EngagementCache
from engagesdk.errors import NetworkFailure, SerializationError
from engagesdk.identity import IdentityResolver
from engagesdk.logging_setup import get_logger
from engagesdk.signing import RequestSigner

EngagementCallback = Callable[[EngagementResult], None]


def serialize_request(request: EngageRequest) -> str:
    try:
        return json.dumps(request.model_dump(by_alias=True, exclude_none=True), allow_nan=False)
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Problem serialising engage request data: {e}") from e


class EngagementClient:
    """Requests Engage decisions, falling back to the last cached response.

    Only one request is in flight at a time, across all decision points.
    """

    def __init__(
        self,
        cache: EngagementCache,
        identity: IdentityResolver,
        transport: Transport,
        signer: RequestSigner,
        settings: Settings,
        *,
        engage_url: str | None,
        env_key: str,
        session_id: str,
        client_info: ClientInfo,
    ) -> None:
        self.cache = cache
        self.identity = identity
        self.transport = transport
        self.signer = signer
        self.settings = settings
        self.engage_url = engage_url
        self.env_key = env_key
        self.session_id = session_id
        self.client_info = client_info
        self._guard = threading.Lock()
        self._logger = get_logger(self.__class__.__name__)

    @property
    def is_requesting(self) -> bool:
        return self._guard.locked()

    def request_engagement(
        self,
        decision_point: str,
        params: dict[str, Any] | None = None,
        callback: EngagementCallback | None = None,
    ) -> EngagementResult | None:
        """Run one engagement and hand the result to ``callback``.

        Returns None without calling back when the request is refused: no
        engage URL, no decision point, or another engagement still running.
        """
        if not self.engage_url:
            self._logger.warning("Engage URL not configured, can not make engagement.")
            return None
        if not decision_point:
            self._logger.warning("No decision point set, can not make engagement.")
            return None
        if not self._guard.acquire(blocking=False):
            self._logger.warning("Only one engage request at a time is currently supported.")
            return None
        try:
            result = self._run(decision_point, params)
        finally:
            self._guard.release()

        if callback is not None:
            callback(result)
        return result

    # Internals -----------------------------------------------------------------
    def _run(self, decision_point: str, params: dict[str, Any] | None) -> EngagementResult:
        self._logger.debug("Starting engagement for '%s'", decision_point)

        user_id = self.identity.resolve()
        if not user_id:
            self._logger.warning("Failed to get a user id, sending engagement without one.")

        try:
            body = serialize_request(self._build_request(user_id or "", decision_point, params))
        except (SerializationError, ValidationError) as e:
            self._logger.warning("Engagement for '%s' aborted: %s", decision_point, e)
            return EngagementResult(decision_point=decision_point, source=EngagementSource.EMPTY)

        live = self._post(body)
        if live is not None:
            parsed = _parse_object(live)
            if parsed is not None:
                self._logger.debug("Using live engagement: %s", live)
                self.cache.put(decision_point, live)
                return EngagementResult(decision_point=decision_point, source=EngagementSource.LIVE, response=parsed)
            self._logger.warning("Engage returned a malformed response for '%s'", decision_point)

        cached = self.cache.get(decision_point)
        if cached is not None:
            parsed = _parse_object(cached)
            if parsed is not None:
                self._logger.warning("Engage request failed, using cached response.")
                return EngagementResult(decision_point=decision_point, source=EngagementSource.CACHED, response=parsed)

        self._logger.warning("Engage request failed")
        return EngagementResult(decision_point=decision_point, source=EngagementSource.EMPTY)

    def _build_request(self, user_id: str, decision_point: str, params: dict[str, Any] | None) -> EngageRequest:
        return EngageRequest(
            user_id=user_id,
            decision_point=decision_point,
            session_id=self.session_id,
            version=self.settings.ENGAGE_API_VERSION,
            sdk_version=self.settings.SDK_VERSION,
            platform=self.client_info.platform,
            timezone_offset=self.client_info.timezone_offset,
            locale=self.client_info.locale,
            parameters=params,
        )

    def _post(self, body: str) -> str | None:
        url = self.signer.select(
            self.settings.ENGAGE_URL_PATTERN,
            self.settings.ENGAGE_HASH_URL_PATTERN,
            self.engage_url or "",
            self.env_key,
            body,
        )
        try:
            resp = self.transport.post(url, body)
        except NetworkFailure as e:
            self._logger.debug("Error requesting engagement: %s", e)
            return None
        if not resp.ok:
            self._logger.debug("Error requesting engagement, Engage returned: %d", resp.status)
            return None
        return resp.body or ""


def _parse_object(text: str) -> dict[str, Any] | None:
    try:
        obj = json.loads(text)
    except ValueError:
        return None
    return obj if isinstance(obj, dict) else None
