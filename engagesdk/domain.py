from __future__ import annotations

import locale as _locale
import platform as _platform
from datetime import datetime, timedelta
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class EventRecord(BaseModel):
    """A single analytics event as sent to Collect."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: str = Field(alias="eventName")
    user_id: str = Field(alias="userID")
    session_id: str = Field(alias="sessionID")
    timestamp_utc: str = Field(alias="eventTimestamp")
    params: dict[str, Any] = Field(default_factory=dict, alias="eventParams")


class EngageRequest(BaseModel):
    """Body of an Engage decision point request."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(alias="userID")
    decision_point: str = Field(alias="decisionPoint")
    session_id: str = Field(alias="sessionID")
    version: str
    sdk_version: str = Field(alias="sdkVersion")
    platform: str
    timezone_offset: int = Field(alias="timezoneOffset")
    locale: str | None = None
    parameters: dict[str, Any] | None = None


class HttpResponse(BaseModel):
    """Status and body returned by a transport."""

    status: int
    body: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == 200


class ClientInfo(BaseModel):
    """Platform facts reported with events and engagements."""

    platform: str
    locale: str | None = None
    timezone_offset: int = 0
    country_code: str | None = None

    @classmethod
    def detect(cls, platform_name: str = "") -> "ClientInfo":
        hours = offset_hours(datetime.now().astimezone().utcoffset())
        lang = _locale.getlocale()[0]
        country = lang.split("_", 1)[1] if lang and "_" in lang else None
        return cls(
            platform=platform_name or f"PYTHON_{_platform.system().upper() or 'UNKNOWN'}",
            locale=lang,
            timezone_offset=hours,
            country_code=country,
        )


def offset_hours(offset: timedelta | None) -> int:
    """Whole hours of a UTC offset, truncated toward zero."""
    if offset is None:
        return 0
    return int(offset.total_seconds() / 3600)


class IdentityState(str, Enum):
    UNRESOLVED = "unresolved"
    RESOLVED_LOCAL = "resolved_local"
    RESOLVED_REMOTE = "resolved_remote"
    RESOLUTION_IN_PROGRESS = "resolution_in_progress"


class UploadState(str, Enum):
    IDLE = "idle"
    UPLOADING = "uploading"


class UploadOutcome(str, Enum):
    BUSY = "busy"
    NO_IDENTITY = "no_identity"
    EMPTY = "empty"
    DELIVERED = "delivered"
    DEFERRED = "deferred"


class EngagementSource(str, Enum):
    LIVE = "live"
    CACHED = "cached"
    EMPTY = "empty"


class EngagementResult(BaseModel):
    """Outcome of an engagement request handed to the caller."""

    decision_point: str
    source: EngagementSource
    response: dict[str, Any] | None = None

    @property
    def ok(self) -> bool:
        return self.response is not None
