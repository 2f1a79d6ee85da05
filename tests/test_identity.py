from __future__ import annotations

import json
import threading

from engagesdk.adapters.mock import MockTransport
from engagesdk.domain import HttpResponse, IdentityState
from engagesdk.errors import NetworkFailure
from engagesdk.identity import IdentityResolver
from engagesdk.prefs import KEY_USER_ID, Preferences


def _resolver(transport: MockTransport, prefs: Preferences | None = None, sleeps: list[float] | None = None):
    resolver = IdentityResolver(
        prefs or Preferences(None),
        transport,
        url_pattern="{host}/uuid",
        max_attempts=3,
        retry_delay_s=0.5,
        sleep_fn=(sleeps.append if sleeps is not None else lambda s: None),
        clock=lambda: 1700000000.5,
    )
    resolver.configure(collect_url="http://collect.test", env_key="env")
    return resolver


def test_existing_id_returns_without_network():
    transport = MockTransport()
    prefs = Preferences(None)
    prefs.set(KEY_USER_ID, "known")
    resolver = _resolver(transport, prefs)

    assert resolver.resolve() == "known"
    assert resolver.state == IdentityState.RESOLVED_LOCAL
    assert transport.requests == []


def test_remote_issuance_persists_id(tmp_path):
    transport = MockTransport().script(HttpResponse(status=200, body=json.dumps({"userID": "remote-1"})))
    prefs = Preferences(tmp_path / "prefs.json")
    resolver = _resolver(transport, prefs)

    assert resolver.state == IdentityState.UNRESOLVED
    assert resolver.resolve() == "remote-1"
    assert resolver.state == IdentityState.RESOLVED_REMOTE
    assert transport.calls("GET")[0].url == "http://collect.test/uuid?1700000000500"
    assert Preferences(tmp_path / "prefs.json").get(KEY_USER_ID) == "remote-1"


def test_retries_with_fixed_delay_then_succeeds():
    sleeps: list[float] = []
    transport = MockTransport().script(
        HttpResponse(status=500),
        NetworkFailure("connection refused"),
        HttpResponse(status=200, body='{"userID": "third-time"}'),
    )
    resolver = _resolver(transport, sleeps=sleeps)

    assert resolver.resolve() == "third-time"
    assert len(transport.calls("GET")) == 3
    assert sleeps == [0.5, 0.5]


def test_exhausted_retries_leave_identity_unresolved():
    transport = MockTransport(default=HttpResponse(status=503))
    resolver = _resolver(transport)

    assert resolver.resolve() is None
    assert resolver.state == IdentityState.UNRESOLVED
    assert len(transport.calls("GET")) == 3

    transport.script(HttpResponse(status=200, body='{"userID": "later"}'))
    assert resolver.resolve() == "later"


def test_malformed_issuance_response_is_a_failure():
    transport = MockTransport().script(HttpResponse(status=200, body="<html>"))
    resolver = _resolver(transport)
    assert resolver.resolve() is None
    assert resolver.current_id() is None


def test_concurrent_callers_share_one_issuance_request():
    started = threading.Event()
    release = threading.Event()

    def slow_issue(request):
        started.set()
        release.wait(timeout=5)
        return HttpResponse(status=200, body='{"userID": "shared"}')

    transport = MockTransport().script(slow_issue)
    resolver = _resolver(transport)
    results: list[str | None] = []
    lock = threading.Lock()

    def caller() -> None:
        value = resolver.resolve()
        with lock:
            results.append(value)

    first = threading.Thread(target=caller)
    first.start()
    assert started.wait(timeout=5)
    assert resolver.state == IdentityState.RESOLUTION_IN_PROGRESS

    others = [threading.Thread(target=caller) for _ in range(7)]
    for t in others:
        t.start()
    release.set()
    for t in [first, *others]:
        t.join(timeout=5)

    assert results == ["shared"] * 8
    assert len(transport.calls("GET")) == 1


def test_generate_local_prefers_legacy_user_id(tmp_path):
    legacy = tmp_path / "legacy.json"
    legacy.write_text(json.dumps({"userID": "legacy-user"}), encoding="utf-8")
    resolver = _resolver(MockTransport())

    assert resolver.generate_local(legacy) == "legacy-user"
    assert resolver.state == IdentityState.RESOLVED_LOCAL


def test_generate_local_without_legacy_creates_uuid(tmp_path):
    resolver = _resolver(MockTransport())
    user_id = resolver.generate_local(tmp_path / "missing.json")
    assert len(user_id) == 36
    assert resolver.current_id() == user_id
