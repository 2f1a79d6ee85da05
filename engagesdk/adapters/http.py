from __future__ import annotations

import requests

from engagesdk.adapters.base import Transport
from engagesdk.domain import HttpResponse
from engagesdk.errors import NetworkFailure
from engagesdk.logging_setup import get_logger


class RequestsTransport(Transport):
    """Transport backed by a shared ``requests.Session``."""

    def __init__(self, *, timeout_s: float = 10.0, session: requests.Session | None = None) -> None:
        self.timeout_s = timeout_s
        self._session = session or requests.Session()
        self._logger = get_logger(self.__class__.__name__)

    def get(self, url: str) -> HttpResponse:
        self._logger.debug("HTTP GET %s", url)
        try:
            resp = self._session.get(url, timeout=self.timeout_s)
        except requests.RequestException as e:
            raise NetworkFailure(f"GET {url} failed: {e}") from e
        return HttpResponse(status=resp.status_code, body=resp.text)

    def post(self, url: str, body: str) -> HttpResponse:
        self._logger.debug("HTTP POST %s %s", url, body)
        try:
            resp = self._session.post(
                url,
                data=body.encode("utf-8"),
                headers={"Content-Type": "application/json"},
                timeout=self.timeout_s,
            )
        except requests.RequestException as e:
            raise NetworkFailure(f"POST {url} failed: {e}") from e
        return HttpResponse(status=resp.status_code, body=resp.text)
