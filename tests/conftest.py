from __future__ import annotations

import pytest

from engagesdk.config import Settings
from engagesdk.domain import ClientInfo


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        EVENT_STORAGE_PATH=str(tmp_path / "events.json"),
        ENGAGE_STORAGE_PATH=str(tmp_path / "engagements.json"),
        PREFS_PATH=str(tmp_path / "prefs.json"),
        LEGACY_SETTINGS_PATH=str(tmp_path / "legacy.json"),
        BACKGROUND_EVENT_UPLOAD=False,
        HTTP_REQUEST_MAX_RETRIES=3,
        HTTP_REQUEST_RETRY_DELAY_S=1.5,
        USERID_MAX_RETRIES=3,
        USERID_RETRY_DELAY_S=0.5,
        HASH_SECRET=None,
        SDK_VERSION="Python SDK v0.1.0",
    )


@pytest.fixture
def client_info() -> ClientInfo:
    return ClientInfo(platform="PYTHON_TEST", locale="en_GB", timezone_offset=1, country_code="GB")
