from __future__ import annotations

import hashlib


def sign(body: str, secret: str) -> str:
    """Return the upper-case hex MD5 of ``body`` followed by ``secret``."""
    return hashlib.md5((body + secret).encode("utf-8")).hexdigest().upper()


def format_uri(pattern: str, host: str, env_key: str, hash: str | None = None) -> str:
    uri = pattern.replace("{host}", host)
    uri = uri.replace("{env_key}", env_key)
    return uri.replace("{hash}", hash or "")


class RequestSigner:
    """Chooses between the plain and hashed URL variants of an endpoint."""

    def __init__(self, secret: str | None) -> None:
        self.secret = secret or None

    @property
    def enabled(self) -> bool:
        return self.secret is not None

    def sign(self, body: str) -> str | None:
        if self.secret is None:
            return None
        return sign(body, self.secret)

    def select(self, plain_pattern: str, signed_pattern: str, host: str, env_key: str, body: str) -> str:
        digest = self.sign(body)
        if digest is None:
            return format_uri(plain_pattern, host, env_key)
        return format_uri(signed_pattern, host, env_key, digest)
