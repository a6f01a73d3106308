"""Structured logging helpers."""
import json
import logging

import pytest

from conftest import events
from jsonqr.logging import (
    AUDIT, ConsoleFormatter, JsonFormatter, audit, get_logger, setup_logging, trace, warn,
)

pytestmark = pytest.mark.usefixtures("reset_jsonqr_logging")


def test_get_logger_namespaced():
    assert get_logger("compositor").name == "jsonqr.compositor"


def test_audit_and_warn_records(caplog):
    log = get_logger("test")
    audit("thing.done", logger=log, size="10x10")
    warn("thing.degraded", logger=log, reason="icon")

    (a,) = events(caplog, "thing.done")
    (w,) = events(caplog, "thing.degraded")
    assert a.levelno == AUDIT and a.ctx == {"size": "10x10"}
    assert w.levelno == logging.WARNING and w.ctx == {"reason": "icon"}


def test_warnings_can_be_silenced(caplog):
    logging.getLogger("jsonqr").setLevel(logging.ERROR)
    warn("thing.degraded", logger=get_logger("test"))
    assert not events(caplog, "thing.degraded")


def test_json_formatter_emits_event():
    log = get_logger("test")
    record = log.makeRecord(log.name, logging.WARNING, "", 0, "", (), None)
    record.event = "footer.icon_skipped"
    record.ctx = {"icon": "bad.png"}
    entry = json.loads(JsonFormatter().format(record))
    assert entry["event"] == "footer.icon_skipped"
    assert entry["ctx"] == {"icon": "bad.png"}
    assert entry["level"] == "WARNING"
    assert entry["src"] == "jsonqr.test"


def test_trace_reraises_and_logs(caplog):
    @trace(logger_name="test")
    def explode():
        raise RuntimeError("nope")

    with pytest.raises(RuntimeError):
        explode()
    assert any(getattr(r, "event", "").endswith("explode.error") for r in caplog.records)


def test_trace_expected_errors_logged_quietly(caplog):
    caplog.set_level(logging.DEBUG, logger="jsonqr")

    @trace(logger_name="test", expected=(ValueError,))
    def reject():
        raise ValueError("bad input")

    with pytest.raises(ValueError):
        reject()
    (record,) = [r for r in caplog.records if getattr(r, "event", "").endswith("reject.rejected")]
    assert record.levelno == logging.DEBUG
    assert record.ctx == {"error": "ValueError", "message": "bad input"}
    assert not record.exc_info
    assert not [r for r in caplog.records if r.levelno >= logging.ERROR]


def test_console_formatter_line():
    log = get_logger("test")
    record = log.makeRecord(log.name, AUDIT, "", 0, "", (), None)
    record.event = "qr.generated"
    record.ctx = {"format": "raster"}
    line = ConsoleFormatter().format(record)
    assert "AUDIT" in line
    assert "jsonqr.test qr.generated format=raster" in line


def test_setup_logging_accepts_audit_level():
    setup_logging(level="audit")
    assert logging.getLogger("jsonqr").level == AUDIT


def test_setup_logging_writes_json_file(tmp_path):
    log_file = tmp_path / "jsonqr.log"
    setup_logging(level="INFO", log_file=str(log_file))
    audit("cli.start", logger=get_logger("cli"), command="generate")
    for handler in logging.getLogger("jsonqr").handlers:
        handler.flush()
    lines = log_file.read_text().splitlines()
    assert json.loads(lines[-1])["event"] == "cli.start"
