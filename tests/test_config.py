from datetime import timedelta

import pytest
from pydantic import ValidationError

from engagesdk.config import Settings
from engagesdk.domain import offset_hours
from engagesdk.prefs import Preferences
from engagesdk.scheduler import start_background_upload


def test_retry_counts_must_be_positive():
    with pytest.raises(ValidationError):
        Settings(HTTP_REQUEST_MAX_RETRIES=0)
    with pytest.raises(ValidationError):
        Settings(USERID_MAX_RETRIES=0)


def test_blank_secret_disables_signing():
    assert Settings(HASH_SECRET="  ").HASH_SECRET is None
    assert Settings(HASH_SECRET="s3cr3t").HASH_SECRET == "s3cr3t"


def test_preferences_ignore_empty_values(tmp_path):
    prefs = Preferences(tmp_path / "prefs.json")
    prefs.set("k", "v")
    prefs.set("k", "")
    prefs.set_int("n", 0)
    assert prefs.get("k") == "v"

    reopened = Preferences(tmp_path / "prefs.json")
    assert reopened.get("k") == "v"
    assert reopened.get_int("n", 1) == 0
    reopened.delete("k")
    assert Preferences(tmp_path / "prefs.json").get("k") is None


def test_background_upload_job_is_registered():
    scheduler = start_background_upload(lambda: None, settings=Settings(), start_delay_s=3600, repeat_s=60)
    try:
        [job] = scheduler.get_jobs()
        assert job.name == "engagesdk_upload"
        assert job.max_instances == 1
    finally:
        scheduler.shutdown(wait=False)


def test_offset_hours_truncates_toward_zero():
    assert offset_hours(timedelta(hours=-3, minutes=-30)) == -3
    assert offset_hours(timedelta(hours=5, minutes=45)) == 5
    assert offset_hours(timedelta(hours=-8)) == -8
    assert offset_hours(None) == 0
