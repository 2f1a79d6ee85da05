from .base import Transport
from .http import RequestsTransport
from .mock import MockTransport

__all__ = ["Transport", "RequestsTransport", "MockTransport"]
