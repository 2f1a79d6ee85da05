from __future__ import annotations

import json
import threading
import uuid
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from typing import Union

from engagesdk.adapters.base import Transport
from engagesdk.domain import HttpResponse
from engagesdk.errors import NetworkFailure
from engagesdk.logging_setup import get_logger


@dataclass
class Request:
    method: str
    url: str
    body: str | None = None


# A scripted reply is a response, an exception to raise, or a callable
# producing a response from the request.
Reply = Union[HttpResponse, NetworkFailure, Callable[[Request], HttpResponse]]


class MockTransport(Transport):
    """In-memory transport with scripted replies.

    - Replies queued with ``script`` are consumed in order, one per request
    - Once the queue is empty, requests get ``default`` (or the built-in
      behaviour: a fresh user id for ``/uuid`` GETs, ``{}`` otherwise)
    - Every request is recorded in ``requests`` for inspection
    """

    def __init__(self, default: HttpResponse | None = None) -> None:
        self.default = default
        self.requests: list[Request] = []
        self._replies: deque[Reply] = deque()
        self._lock = threading.Lock()
        self._logger = get_logger(self.__class__.__name__)

    # Public API -----------------------------------------------------------------
    def script(self, *replies: Reply) -> "MockTransport":
        with self._lock:
            self._replies.extend(replies)
        return self

    def get(self, url: str) -> HttpResponse:
        return self._handle(Request(method="GET", url=url))

    def post(self, url: str, body: str) -> HttpResponse:
        return self._handle(Request(method="POST", url=url, body=body))

    # Introspection helpers for tests -------------------------------------------
    def calls(self, method: str | None = None) -> list[Request]:
        with self._lock:
            return [r for r in self.requests if method is None or r.method == method]

    # Internals -----------------------------------------------------------------
    def _handle(self, request: Request) -> HttpResponse:
        with self._lock:
            self.requests.append(request)
            reply = self._replies.popleft() if self._replies else None

        self._logger.debug("%s %s", request.method, request.url)
        if reply is None:
            return self._default_reply(request)
        if isinstance(reply, NetworkFailure):
            raise reply
        if isinstance(reply, HttpResponse):
            return reply
        return reply(request)

    def _default_reply(self, request: Request) -> HttpResponse:
        if self.default is not None:
            return self.default
        if request.method == "GET" and "/uuid" in request.url:
            return HttpResponse(status=200, body=json.dumps({"userID": str(uuid.uuid4())}))
        return HttpResponse(status=200, body="{}")
