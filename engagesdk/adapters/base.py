from __future__ import annotations

from abc import ABC, abstractmethod

from engagesdk.domain import HttpResponse


class Transport(ABC):
    """HTTP collaborator used by the upload, engage and user id flows.

    Implementations return the status and body of any completed exchange,
    including non-200 answers, and raise ``NetworkFailure`` when no response
    was received at all. Timeouts are the transport's concern.
    """

    @abstractmethod
    def get(self, url: str) -> HttpResponse:  # pragma: no cover - interface
        ...

    @abstractmethod
    def post(self, url: str, body: str) -> HttpResponse:  # pragma: no cover - interface
        ...
