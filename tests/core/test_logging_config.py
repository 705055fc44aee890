from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from ItzoLauncher.core.logging_config import (
    LOGGER_NAME,
    JSONFormatter,
    mask_sensitive_data,
    setup_logging,
)
from ItzoLauncher.core.settings import LauncherSettings


@pytest.fixture
def launcher_logger():
    logger = logging.getLogger(LOGGER_NAME)
    original = list(logger.handlers)
    yield logger
    for handler in list(logger.handlers):
        if handler not in original:
            logger.removeHandler(handler)
            handler.close()


def _managed(logger: logging.Logger):
    return [h for h in logger.handlers if getattr(h, "_itzo_managed", False)]


def test_mask_sensitive_data_masks_secret_like_keys() -> None:
    masked = mask_sensitive_data(
        {"Authorization": "Bearer x", "db_password": "hunter2", "awsCWAgentRegion": "us-east-1"}
    )

    assert masked == {
        "Authorization": "***masked***",
        "db_password": "***masked***",
        "awsCWAgentRegion": "us-east-1",
    }


def test_json_formatter_includes_extra_fields_and_masks_them() -> None:
    record = logging.makeLogRecord(
        {
            "msg": "resolved %d keys",
            "args": (3,),
            "levelname": "INFO",
            "name": "ItzoLauncher.test",
            "extra_fields": {"source": "waagent", "token": "abc"},
        }
    )

    payload = json.loads(JSONFormatter().format(record))

    assert payload["message"] == "resolved 3 keys"
    assert payload["level"] == "INFO"
    assert payload["source"] == "waagent"
    assert payload["token"] == "***masked***"
    assert payload["timestamp"].endswith("Z")


def test_setup_logging_writes_jsonl_file(tmp_path: Path, launcher_logger) -> None:
    settings = LauncherSettings(log_dir=tmp_path / "logs", log_level="DEBUG")

    logger = setup_logging(settings)
    logging.getLogger(f"{LOGGER_NAME}.CloudInit").info("datasource %s is available", "waagent")
    for handler in logger.handlers:
        handler.flush()

    lines = (tmp_path / "logs" / "launcher.jsonl").read_text().splitlines()
    assert json.loads(lines[-1])["message"] == "datasource waagent is available"
    assert logger.level == logging.DEBUG


def test_setup_logging_replaces_its_own_handlers(tmp_path: Path, launcher_logger) -> None:
    settings = LauncherSettings(log_dir=tmp_path, log_format="json")

    setup_logging(settings)
    setup_logging(settings)

    managed = _managed(launcher_logger)
    assert len(managed) == 2
    assert isinstance(managed[0].formatter, JSONFormatter)


def test_setup_logging_without_log_dir_only_logs_to_stderr(launcher_logger) -> None:
    setup_logging(LauncherSettings(log_dir=None))

    managed = _managed(launcher_logger)
    assert len(managed) == 1
    assert isinstance(managed[0], logging.StreamHandler)
