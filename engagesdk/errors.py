from __future__ import annotations


class EngageSDKError(Exception):
    """Base class for all errors raised by engagesdk."""


class NotInitialisedError(EngageSDKError):
    """An SDK operation was invoked before ``init``."""


class NetworkFailure(EngageSDKError):
    """A request did not complete with a usable response.

    ``status`` is the HTTP status when the server answered, otherwise None.
    """

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class SerializationError(EngageSDKError):
    """A payload could not be encoded to JSON."""


class IdentityUnavailable(EngageSDKError):
    """No user id is known and remote issuance gave none."""
