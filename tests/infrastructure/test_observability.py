"""Structured Logging — tests for the JSON formatter."""

import json
import logging

from roomcast.infrastructure.observability import JSONFormatter, setup_logging


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        "roomcast.services.chat_commands", logging.INFO, __file__, 1,
        "login committed", None, None,
    )
    record.__dict__.update(extra)
    return record


def test_json_formatter_includes_core_fields():
    log = json.loads(JSONFormatter().format(_record()))
    assert log["level"] == "INFO"
    assert log["logger"] == "roomcast.services.chat_commands"
    assert log["message"] == "login committed"
    assert "timestamp" in log


def test_json_formatter_surfaces_known_extras_only():
    log = json.loads(JSONFormatter().format(
        _record(command="login", event_type="USER_UPDATE", secret="nope"),
    ))
    assert log["command"] == "login"
    assert log["event_type"] == "USER_UPDATE"
    assert "secret" not in log


def test_setup_logging_installs_handler():
    previous = logging.root.level
    handler = setup_logging("debug", "text")
    try:
        assert handler in logging.root.handlers
        assert logging.root.level == logging.DEBUG
    finally:
        logging.root.removeHandler(handler)
        logging.root.setLevel(previous)


def test_json_timestamp_is_the_record_creation_time():
    record = _record()
    record.created = 0
    assert json.loads(JSONFormatter().format(record))["timestamp"].startswith(
        "1970-01-01T00:00:00",
    )


def test_setup_logging_replaces_its_previous_handler():
    previous = logging.root.level
    first = setup_logging("info", "json")
    second = setup_logging("info", "json")
    try:
        assert first not in logging.root.handlers
        assert second in logging.root.handlers
        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
    finally:
        logging.root.removeHandler(second)
        logging.root.setLevel(previous)


def test_text_format_tolerates_records_without_command():
    previous = logging.root.level
    handler = setup_logging("info", "text")
    try:
        line = handler.formatter.format(_record())
        assert "[-]: login committed" in line
        assert "[login]" in handler.formatter.format(_record(command="login"))
    finally:
        logging.root.removeHandler(handler)
        logging.root.setLevel(previous)
