import logging

import pytest
from typer.testing import CliRunner

from engagesdk import logging_setup
from engagesdk.cli import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def _isolated_logging(monkeypatch):
    monkeypatch.setattr(logging_setup, "_configured", False)
    yield
    logger = logging.getLogger(logging_setup.ROOT_LOGGER)
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


def test_engage_rejects_invalid_json_params():
    result = runner.invoke(app, ["engage", "shop", "--params", "{not json"])
    assert result.exit_code == 2
    assert "not valid JSON" in result.output


def test_engage_rejects_non_object_params():
    result = runner.invoke(app, ["engage", "shop", "--params", "[1, 2]"])
    assert result.exit_code == 2
    assert "must be a JSON object" in result.output


def test_record_rejects_non_object_params():
    result = runner.invoke(app, ["record", "levelUp", "--params", '"text"'])
    assert result.exit_code == 2
    assert "must be a JSON object" in result.output
