from __future__ import annotations

import json
import time
import uuid
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError

from engagesdk.adapters.base import Transport
from engagesdk.config import Settings
from engagesdk.domain import ClientInfo, EngagementResult, EventRecord, UploadOutcome
from engagesdk.engage_cache import EngagementCache
from engagesdk.engagement import EngagementCallback, EngagementClient
from engagesdk.errors import NotInitialisedError, SerializationError
from engagesdk.event_store import EventStore
from engagesdk.events import EventBuilder, TransactionBuilder
from engagesdk.identity import IdentityResolver
from engagesdk.logging_setup import get_logger
from engagesdk.prefs import (
    ALL_KEYS,
    KEY_ANDROID_REGISTRATION_ID,
    KEY_CLIENT_VERSION,
    KEY_FIRST_RUN,
    KEY_HASH_SECRET,
    KEY_PUSH_NOTIFICATION_TOKEN,
    Preferences,
)
from engagesdk.scheduler import start_background_upload
from engagesdk.signing import RequestSigner
from engagesdk.upload import UploadPipeline

EP_KEY_PLATFORM = "platform"
EP_KEY_SDK_VERSION = "sdkVersion"


class EngageSDK:
    """Owns the event store, engagement cache and identity for one app.

    Construct it, optionally adjust preferences, then call ``init`` before
    recording events, uploading or requesting engagements.
    """

    def __init__(
        self,
        settings: Settings,
        transport: Transport,
        *,
        prefs: Preferences | None = None,
        sleep_fn: Callable[[float], None] | None = None,
        clock: Callable[[], float] | None = None,
        client_info: ClientInfo | None = None,
    ) -> None:
        self.settings = settings
        self.transport = transport
        if prefs is None:
            prefs = Preferences(settings.PREFS_PATH if settings.USE_PERSISTENCE else None)
        self.prefs = prefs
        self.client_info = client_info or ClientInfo.detect(settings.PLATFORM)
        self.transaction = TransactionBuilder(self)
        self._sleep = sleep_fn or time.sleep
        self._clock = clock or time.time
        self._logger = get_logger(self.__class__.__name__)

        self.identity = IdentityResolver(
            self.prefs,
            transport,
            url_pattern=settings.USERID_URL_PATTERN,
            max_attempts=settings.USERID_MAX_RETRIES,
            retry_delay_s=settings.USERID_RETRY_DELAY_S,
            sleep_fn=self._sleep,
            clock=self._clock,
        )

        self.env_key = ""
        self.collect_url = ""
        self.engage_url: str | None = None
        self.session_id = ""
        self.store: EventStore | None = None
        self.cache: EngagementCache | None = None
        self._pipeline: UploadPipeline | None = None
        self._engagement: EngagementClient | None = None
        self._scheduler = None
        self._reset = False
        self._initialised = False

    # Lifecycle -----------------------------------------------------------------
    def init(self, env_key: str, collect_url: str, engage_url: str | None = None, user_id: str | None = None) -> None:
        if self._initialised:
            self._logger.warning("SDK already initialised, ignoring init")
            return

        self.env_key = env_key
        self.collect_url = collect_url
        self.engage_url = engage_url or None
        self.identity.configure(collect_url=collect_url, env_key=env_key)

        if user_id:
            self.identity.assign(user_id)
        elif not self.identity.current_id() and self.settings.AUTO_GENERATE_USER_ID:
            self.identity.generate_local(self.settings.LEGACY_SETTINGS_PATH if self.settings.USE_PERSISTENCE else None)

        self.session_id = str(uuid.uuid4())

        persist = self.settings.USE_PERSISTENCE
        self.store = EventStore(
            self.settings.EVENT_STORAGE_PATH if persist else None,
            max_events=self.settings.EVENT_STORE_MAX_EVENTS,
            reset=self._reset,
        )
        self.cache = EngagementCache(self.settings.ENGAGE_STORAGE_PATH if persist else None, reset=self._reset)
        self._reset = False

        signer = RequestSigner(self.hash_secret)
        self._pipeline = UploadPipeline(
            self.store,
            self.identity,
            self.transport,
            signer,
            self.settings,
            collect_url=collect_url,
            env_key=env_key,
            sleep_fn=self._sleep,
        )
        self._engagement = EngagementClient(
            self.cache,
            self.identity,
            self.transport,
            signer,
            self.settings,
            engage_url=self.engage_url,
            env_key=env_key,
            session_id=self.session_id,
            client_info=self.client_info,
        )
        self._initialised = True

        self._trigger_default_events()

        if self.settings.BACKGROUND_EVENT_UPLOAD:
            self._scheduler = start_background_upload(self.upload, settings=self.settings)

    def close(self) -> None:
        if self._scheduler is not None:
            self._scheduler.shutdown(wait=False)
            self._scheduler = None
        if self.cache is not None:
            self.cache.save()
        self.prefs.save()

    # Client interface ----------------------------------------------------------
    @property
    def is_initialised(self) -> bool:
        return self._initialised

    @property
    def user_id(self) -> str | None:
        return self.identity.current_id()

    @property
    def is_uploading(self) -> bool:
        return self._pipeline is not None and self._pipeline.is_uploading

    @property
    def is_requesting_engagement(self) -> bool:
        return self._engagement is not None and self._engagement.is_requesting

    def record_event(self, event_name: str, params: dict[str, Any] | EventBuilder | None = None) -> bool:
        """Queue an event for the next upload.

        Returns False when the event was not queued: no user id yet, the
        parameters are not JSON serializable, or the store is full.
        """
        store = self._require(self.store)

        if isinstance(params, EventBuilder):
            event_params = params.to_dict()
        else:
            event_params = dict(params or {})
        event_params.setdefault(EP_KEY_PLATFORM, self.client_info.platform)
        event_params.setdefault(EP_KEY_SDK_VERSION, self.settings.SDK_VERSION)

        user_id = self.identity.current_id()
        if not user_id:
            self._logger.warning("No user id yet, dropping event '%s'", event_name)
            return False

        try:
            record = EventRecord(
                name=event_name,
                user_id=user_id,
                session_id=self.session_id,
                timestamp_utc=self._timestamp(),
                params=event_params,
            )
            serialized = serialize_event(record)
        except (SerializationError, ValidationError) as e:
            self._logger.warning("Dropping event '%s': %s", event_name, e)
            return False

        if not store.push(serialized):
            self._logger.warning("Event Store full, unable to handle event")
            return False
        return True

    def upload(self) -> UploadOutcome:
        return self._require(self._pipeline).upload()

    def request_engagement(
        self,
        decision_point: str,
        params: dict[str, Any] | None = None,
        callback: EngagementCallback | None = None,
    ) -> EngagementResult | None:
        return self._require(self._engagement).request_engagement(decision_point, params, callback)

    def clear_persistent_data(self) -> None:
        """Forget the user id and settings, and empty the event store and cache.

        Before ``init`` the stores are opened empty; after it they are emptied
        in place.
        """
        self.prefs.delete(*ALL_KEYS)
        self.identity.reset()
        if self.store is not None and self.cache is not None:
            self.store.reset()
            self.cache.clear()
        else:
            self._reset = True

    # Client configuration ------------------------------------------------------
    @property
    def hash_secret(self) -> str | None:
        return self.prefs.get(KEY_HASH_SECRET) or self.settings.HASH_SECRET

    @hash_secret.setter
    def hash_secret(self, value: str | None) -> None:
        self.prefs.set(KEY_HASH_SECRET, value)
        if self._pipeline is not None and self._engagement is not None:
            signer = RequestSigner(self.hash_secret)
            self._pipeline.signer = signer
            self._engagement.signer = signer

    @property
    def client_version(self) -> str | None:
        value = self.prefs.get(KEY_CLIENT_VERSION)
        if value is None:
            self._logger.debug("No client version set.")
        return value

    @client_version.setter
    def client_version(self, value: str | None) -> None:
        self.prefs.set(KEY_CLIENT_VERSION, value)

    @property
    def push_notification_token(self) -> str | None:
        return self.prefs.get(KEY_PUSH_NOTIFICATION_TOKEN)

    @push_notification_token.setter
    def push_notification_token(self, value: str | None) -> None:
        self.prefs.set(KEY_PUSH_NOTIFICATION_TOKEN, value)

    @property
    def android_registration_id(self) -> str | None:
        return self.prefs.get(KEY_ANDROID_REGISTRATION_ID)

    @android_registration_id.setter
    def android_registration_id(self, value: str | None) -> None:
        self.prefs.set(KEY_ANDROID_REGISTRATION_ID, value)

    # Internals -----------------------------------------------------------------
    def _require(self, component):
        if not self._initialised or component is None:
            raise NotInitialisedError("You must first initialise the SDK via the init method")
        return component

    def _timestamp(self) -> str:
        now = datetime.fromtimestamp(self._clock(), tz=timezone.utc)
        fmt = self.settings.EVENT_TIMESTAMP_FORMAT.replace("%f", f"{now.microsecond // 1000:03d}")
        return now.strftime(fmt)

    def _trigger_default_events(self) -> None:
        if self.settings.ON_FIRST_RUN_SEND_NEW_PLAYER_EVENT and self.prefs.get_int(KEY_FIRST_RUN, 1) > 0:
            self._logger.debug("Sending 'newPlayer' event")
            params = EventBuilder().add_param("userCountry", self.client_info.country_code)
            self.record_event("newPlayer", params)
            self.prefs.set_int(KEY_FIRST_RUN, 0)

        if self.settings.ON_INIT_SEND_GAME_STARTED_EVENT:
            self._logger.debug("Sending 'gameStarted' event")
            params = (
                EventBuilder()
                .add_param("clientVersion", self.client_version)
                .add_param("pushNotificationToken", self.push_notification_token)
                .add_param("androidRegistrationID", self.android_registration_id)
            )
            self.record_event("gameStarted", params)


def serialize_event(record: EventRecord) -> str:
    try:
        return json.dumps(record.model_dump(by_alias=True), ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Problem serialising event '{record.name}': {e}") from e
