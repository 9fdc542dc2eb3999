"""Tests for the logging level system, formatters and JSONL output."""
from __future__ import annotations

import json
import logging

import pytest

from media_proxy.core import logging as mp_logging
from media_proxy.core.logging import (
    ColoredConsoleFormatter,
    JsonlFormatter,
    LogLevel,
    coerce_level,
    configure_logging,
    debug,
    error,
    get_level,
    get_logger,
    get_request_id,
    info,
    set_request_id,
    verbose,
)


class _ListHandler(logging.Handler):
    def __init__(self):
        super().__init__(level=1)
        self.records = []

    def emit(self, record):
        self.records.append(record)


@pytest.fixture
def captured():
    """Attach a collecting handler to the root logger; restore defaults afterwards."""
    handler = _ListHandler()
    logging.getLogger().addHandler(handler)
    yield handler
    logging.getLogger().removeHandler(handler)
    configure_logging(force=True)
    set_request_id("-")


class TestLogLevelEnum:
    """Test LogLevel enum values."""

    def test_level_enum_values(self):
        assert LogLevel.MINIMAL == 1
        assert LogLevel.NORMAL == 2
        assert LogLevel.VERBOSE == 3
        assert LogLevel.DEBUG == 4

    def test_level_enum_ordering(self):
        assert LogLevel.MINIMAL < LogLevel.NORMAL < LogLevel.VERBOSE < LogLevel.DEBUG


class TestLevelCoercion:
    """Test level coercion from various input types."""

    @pytest.mark.parametrize("value, expected", [
        (1, LogLevel.MINIMAL),
        (4, LogLevel.DEBUG),
        ("verbose", LogLevel.VERBOSE),
        ("DEBUG", LogLevel.DEBUG),
        ("TRACE", LogLevel.DEBUG),
        ("3", LogLevel.VERBOSE),
        ("INFO", LogLevel.NORMAL),
        ("WARNING", LogLevel.MINIMAL),
        (logging.WARNING, LogLevel.MINIMAL),
        (logging.INFO, LogLevel.NORMAL),
        (LogLevel.VERBOSE, LogLevel.VERBOSE),
    ])
    def test_coerce(self, value, expected):
        assert coerce_level(value) == expected

    @pytest.mark.parametrize("value", ["invalid", None, 2.5, ""])
    def test_invalid_defaults_to_normal(self, value):
        assert coerce_level(value) == LogLevel.NORMAL


class TestLevelFiltering:
    """Messages above the configured level are dropped."""

    def test_minimal_drops_info(self, captured):
        configure_logging(level=1, force=True)
        logging.getLogger().addHandler(captured)
        log = get_logger("media-proxy.test")

        info(log, "info_message")
        error(log, "error_message")

        messages = [r.getMessage() for r in captured.records]
        assert "error_message" in messages
        assert "info_message" not in messages

    def test_verbose_keeps_verbose(self, captured):
        configure_logging(level=3, force=True)
        logging.getLogger().addHandler(captured)
        log = get_logger("media-proxy.test")

        verbose(log, "verbose_message")
        debug(log, "debug_message")

        messages = [r.getMessage() for r in captured.records]
        assert "verbose_message" in messages
        assert "debug_message" not in messages

    def test_env_level(self, captured, monkeypatch):
        monkeypatch.setenv("MEDIA_PROXY_LOG_LEVEL", "DEBUG")
        configure_logging(force=True)
        assert get_level() == LogLevel.DEBUG

    def test_fields_and_request_id(self, captured):
        configure_logging(level=2, force=True)
        logging.getLogger().addHandler(captured)
        set_request_id("req123456789")

        info(get_logger("media-proxy.test"), "upstream_ok", provider="pixian", status=200,
             seconds=0.25)

        record = captured.records[-1]
        assert record.request_id == "req123456789"
        assert record.extra_data == {"provider": "pixian", "status": 200}
        assert record.seconds == 0.25
        assert record.tag == "INFO"


class TestRequestId:
    def test_default(self):
        set_request_id("-")
        assert get_request_id() == "-"

    def test_set(self):
        set_request_id("abc")
        try:
            assert get_request_id() == "abc"
        finally:
            set_request_id("-")


def _record(**extra):
    record = logging.LogRecord("media-proxy.test", logging.INFO, __file__, 1,
                               "sts_request", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestFormatters:
    """Tests for JsonlFormatter and ColoredConsoleFormatter."""

    def test_jsonl(self):
        line = JsonlFormatter().format(_record(
            tag="INFO", request_id="r1", numeric_level=2, seconds=1.5,
            extra_data={"voice_id": "abc"}, event=None,
        ))
        payload = json.loads(line)
        assert payload["message"] == "sts_request"
        assert payload["request_id"] == "r1"
        assert payload["level"] == 2
        assert payload["seconds"] == 1.5
        assert payload["extra"] == {"voice_id": "abc"}
        assert "event" not in payload

    def test_console_plain(self, monkeypatch):
        monkeypatch.setattr(mp_logging.colors, "USE_COLORS", False)
        line = ColoredConsoleFormatter().format(_record(
            tag="WARN", request_id="r1", extra_data={"status": 401}, seconds=0.5,
        ))
        assert "[ WARN  ]" in line
        assert "(r1)" in line
        assert "sts_request" in line
        assert "status=401" in line
        assert "0.500s" in line
        assert "\033[" not in line

    def test_console_colored(self, monkeypatch):
        monkeypatch.setattr(mp_logging.colors, "USE_COLORS", True)
        line = ColoredConsoleFormatter().format(_record(tag="INFO", request_id="-"))
        assert "\033[" in line
        assert "(-)" not in line


class TestJsonlFile:
    """Tests for the rotating JSONL file handler."""

    def test_writes_jsonl(self, captured, tmp_path, monkeypatch):
        monkeypatch.setenv("MEDIA_PROXY_LOG_DIR", str(tmp_path))
        monkeypatch.setenv("MEDIA_PROXY_JSONL_FILE", "test.jsonl")
        configure_logging(level=2, force=True)
        set_request_id("jsonl-rid")

        info(get_logger("media-proxy.test"), "written", size=3)
        for handler in logging.getLogger().handlers:
            handler.flush()

        lines = (tmp_path / "test.jsonl").read_text(encoding="utf-8").splitlines()
        payload = json.loads(lines[-1])
        assert payload["message"] == "written"
        assert payload["request_id"] == "jsonl-rid"
        assert payload["extra"] == {"size": 3}

        for handler in logging.getLogger().handlers:
            handler.close()
