from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # Connection defaults used by the CLI (the library takes these via init)
    ENV_KEY: str = Field(default="")
    COLLECT_URL: str = Field(default="")
    ENGAGE_URL: str = Field(default="")
    TRANSPORT: str = Field(default="http")

    # Persistence
    EVENT_STORAGE_PATH: str = Field(default=".engagesdk/events.json")
    ENGAGE_STORAGE_PATH: str = Field(default=".engagesdk/engagements.json")
    PREFS_PATH: str = Field(default=".engagesdk/prefs.json")
    LEGACY_SETTINGS_PATH: str = Field(default=".engagesdk/settings.json")
    USE_PERSISTENCE: bool = Field(default=True)

    # Event queue capacity, in records across both buffers
    EVENT_STORE_MAX_EVENTS: int = Field(default=10000)

    # Upload retry policy
    HTTP_REQUEST_MAX_RETRIES: int = Field(default=5)
    HTTP_REQUEST_RETRY_DELAY_S: float = Field(default=2.0)
    HTTP_TIMEOUT_S: float = Field(default=10.0)

    # User id issuance retry policy
    USERID_MAX_RETRIES: int = Field(default=5)
    USERID_RETRY_DELAY_S: float = Field(default=2.0)

    # Background upload
    BACKGROUND_EVENT_UPLOAD: bool = Field(default=True)
    BACKGROUND_UPLOAD_START_DELAY_S: float = Field(default=60.0)
    BACKGROUND_UPLOAD_REPEAT_S: float = Field(default=60.0)

    # Signing; a secret stored in preferences takes precedence
    HASH_SECRET: str | None = Field(default=None)

    ENGAGE_API_VERSION: str = Field(default="4")
    SDK_VERSION: str = Field(default="Python SDK v0.1.0")
    PLATFORM: str = Field(default="")

    DEBUG_MODE: bool = Field(default=False)
    LOG_JSON: bool = Field(default=False)

    COLLECT_URL_PATTERN: str = Field(default="{host}/{env_key}/bulk")
    COLLECT_HASH_URL_PATTERN: str = Field(default="{host}/{env_key}/bulk/hash/{hash}")
    ENGAGE_URL_PATTERN: str = Field(default="{host}/{env_key}")
    ENGAGE_HASH_URL_PATTERN: str = Field(default="{host}/{env_key}/hash/{hash}")
    USERID_URL_PATTERN: str = Field(default="{host}/uuid")

    # strftime format; %f is truncated to milliseconds
    EVENT_TIMESTAMP_FORMAT: str = Field(default="%Y-%m-%d %H:%M:%S.%f")

    # Default events and identity
    ON_FIRST_RUN_SEND_NEW_PLAYER_EVENT: bool = Field(default=True)
    ON_INIT_SEND_GAME_STARTED_EVENT: bool = Field(default=True)
    AUTO_GENERATE_USER_ID: bool = Field(default=True)

    @field_validator("HTTP_REQUEST_MAX_RETRIES", "USERID_MAX_RETRIES", "EVENT_STORE_MAX_EVENTS")
    @classmethod
    def _validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be at least 1")
        return v

    @field_validator("HTTP_REQUEST_RETRY_DELAY_S", "USERID_RETRY_DELAY_S")
    @classmethod
    def _validate_delay(cls, v: float) -> float:
        return max(0.0, v)

    @field_validator("HASH_SECRET", mode="before")
    @classmethod
    def _validate_secret(cls, v):  # type: ignore[override]
        if v is None or str(v).strip() == "":
            return None
        return str(v)


def load_settings() -> Settings:
    return Settings()
