from __future__ import annotations

import json

import typer

from engagesdk.adapters.base import Transport
from engagesdk.adapters.http import RequestsTransport
from engagesdk.adapters.mock import MockTransport
from engagesdk.config import Settings, load_settings
from engagesdk.engage_cache import EngagementCache
from engagesdk.event_store import EventStore
from engagesdk.logging_setup import setup_logging
from engagesdk.scheduler import run_schedule
from engagesdk.sdk import EngageSDK

app = typer.Typer(help="engagesdk - analytics event queue and Engage client")


def _build_transport(settings: Settings) -> Transport:
    key = settings.TRANSPORT.lower()
    if key == "http":
        return RequestsTransport(timeout_s=settings.HTTP_TIMEOUT_S)
    if key == "mock":
        return MockTransport()
    raise typer.BadParameter("TRANSPORT must be 'http' or 'mock'.")


def _open_sdk(settings: Settings, *, user_id: str | None = None) -> EngageSDK:
    if not settings.ENV_KEY or not settings.COLLECT_URL:
        raise typer.BadParameter("ENV_KEY and COLLECT_URL must be configured.")
    # commands are one-shot; uploads happen explicitly
    settings = settings.model_copy(
        update={"BACKGROUND_EVENT_UPLOAD": False, "ON_INIT_SEND_GAME_STARTED_EVENT": False}
    )
    sdk = EngageSDK(settings, _build_transport(settings))
    sdk.init(settings.ENV_KEY, settings.COLLECT_URL, settings.ENGAGE_URL or None, user_id)
    return sdk


def _parse_params(raw: str) -> dict:
    try:
        value = json.loads(raw)
    except ValueError as e:
        raise typer.BadParameter(f"--params is not valid JSON: {e}") from e
    if not isinstance(value, dict):
        raise typer.BadParameter("--params must be a JSON object")
    return value


@app.callback()
def main(
    json_logs: bool = typer.Option(False, "--json-logs", help="Enable JSON logs"),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
):
    settings = load_settings()
    setup_logging(json_logs=json_logs or settings.LOG_JSON, debug=debug or settings.DEBUG_MODE)


@app.command()
def record(
    name: str = typer.Argument(..., help="Event name"),
    params: str = typer.Option("{}", "--params", help="Event parameters as a JSON object"),
    user_id: str | None = typer.Option(None, "--user-id"),
):
    """Queue an event in the local store."""
    event_params = _parse_params(params)

    sdk = _open_sdk(load_settings(), user_id=user_id)
    try:
        queued = sdk.record_event(name, event_params)
    finally:
        sdk.close()
    typer.echo(json.dumps({"queued": queued, "stored": sdk.store.count if sdk.store else 0}))
    if not queued:
        raise typer.Exit(code=1)


@app.command()
def upload():
    """Upload queued events to Collect."""
    sdk = _open_sdk(load_settings())
    try:
        outcome = sdk.upload()
    finally:
        sdk.close()
    typer.echo(json.dumps({"outcome": outcome.value, "stored": sdk.store.count if sdk.store else 0}))


@app.command()
def engage(
    decision_point: str = typer.Argument(..., help="Decision point name"),
    params: str | None = typer.Option(None, "--params", help="Engage parameters as a JSON object"),
):
    """Request an engagement and print the result."""
    engage_params = _parse_params(params) if params else None
    sdk = _open_sdk(load_settings())
    try:
        result = sdk.request_engagement(decision_point, engage_params)
    finally:
        sdk.close()
    if result is None:
        typer.echo("Engagement was not requested; see log output.")
        raise typer.Exit(code=1)
    typer.echo(result.model_dump_json(indent=2))


@app.command("user-id")
def user_id():
    """Print the stored user id, requesting one if none is known."""
    settings = load_settings().model_copy(update={"AUTO_GENERATE_USER_ID": False})
    sdk = _open_sdk(settings)
    try:
        resolved = sdk.identity.resolve()
        state = sdk.identity.state
    finally:
        sdk.close()
    typer.echo(json.dumps({"userID": resolved, "state": state.value}))


@app.command()
def clear():
    """Forget the user id and drop queued events and cached engagements."""
    settings = load_settings()
    sdk = EngageSDK(settings, _build_transport(settings))
    sdk.clear_persistent_data()
    EventStore(settings.EVENT_STORAGE_PATH, max_events=settings.EVENT_STORE_MAX_EVENTS, reset=True)
    EngagementCache(settings.ENGAGE_STORAGE_PATH, reset=True)
    typer.echo("Persistent data cleared.")


@app.command("run-schedule")
def run_schedule_cmd(enable: bool = typer.Option(False, "--enable")):
    """Upload queued events periodically until interrupted."""
    settings = load_settings()
    sdk = _open_sdk(settings)
    try:
        run_schedule(sdk.upload, settings=settings, enable=enable)
    finally:
        sdk.close()
