import json

import structlog
from structlog.contextvars import clear_contextvars

from adr_rotator.utils.logging import bind_run_context, setup_logging


def test_structured_logs_include_correlation(capsys):
    clear_contextvars()
    setup_logging("INFO", "json")
    bind_run_context("PS1", "run-456")

    logger = structlog.get_logger()
    logger.info("test_event", rule="Windows Monthly")
    out = capsys.readouterr().err.strip().splitlines()[-1]
    data = json.loads(out)
    assert data["event"] == "test_event"
    assert data["siteCode"] == "PS1"
    assert data["runId"] == "run-456"
    assert data["rule"] == "Windows Monthly"
    clear_contextvars()


def test_redaction(capsys):
    clear_contextvars()
    setup_logging("INFO", "json")
    logger = structlog.get_logger()
    logger.info("leak_test", password="secret", sms_password="hunter2", token="abc")
    out = capsys.readouterr().err.strip().splitlines()[-1]
    data = json.loads(out)
    assert data["password"] == "[REDACTED]"
    assert data["sms_password"] == "[REDACTED]"
    assert data["token"] == "[REDACTED]"


def test_level_filtering(capsys):
    setup_logging("WARNING", "json")
    logger = structlog.get_logger()
    logger.info("hidden")
    logger.warning("shown")
    lines = capsys.readouterr().err.strip().splitlines()
    events = [json.loads(line)["event"] for line in lines]
    assert "hidden" not in events
    assert "shown" in events
