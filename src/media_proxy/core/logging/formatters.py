"""
Log Formatters for JSON and Console Output.

    JsonlFormatter: one JSON object per line, for files and log shippers.
    ColoredConsoleFormatter: human-readable terminal output.

Output Examples:
    JSONL (file):
        {"ts":"2026-01-15T14:30:05+03:00","level":2,"tag":"INFO","message":"upstream_ok","request_id":"abc123","extra":{"provider":"elevenlabs","status":200}}

    Console:
        14:30:05 [ INFO  ] (abc123) upstream_ok provider=elevenlabs status=200 0.842s

Color Schemes:
    Timing (seconds): < 1s green, 1-5s yellow, > 5s red (upstream calls are slow)
    status: 2xx green, 4xx yellow, 5xx red
"""
from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, Dict

from . import colors
from .colors import Colors, get_tag_color


def _paint(text: str, color: str) -> str:
    # Looked up at call time so configure_logging() and tests can toggle it
    if not colors.USE_COLORS:
        return text
    return f"{color}{text}{Colors.RESET}"


class JsonlFormatter(logging.Formatter):
    """
    Format log records as JSON Lines.

    Output Format:
        {
            "ts": "2026-01-15T14:30:05+03:00",
            "level": 2,
            "tag": "INFO",
            "message": "sts_request",
            "request_id": "abc123",
            "event": "upstream",     # optional
            "seconds": 0.5,          # optional
            "extra": {...}           # optional
        }
    """

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created).astimezone().isoformat()

        payload: Dict[str, Any] = {
            "ts": ts,
            "level": getattr(record, "numeric_level", 2),
            "tag": getattr(record, "tag", record.levelname),
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", "-"),
        }

        event = getattr(record, "event", None)
        if event:
            payload["event"] = event

        seconds = getattr(record, "seconds", None)
        if seconds is not None:
            payload["seconds"] = seconds

        extra_data = getattr(record, "extra_data", None)
        if extra_data:
            payload["extra"] = extra_data

        return json.dumps(payload, ensure_ascii=False, default=str)


class ColoredConsoleFormatter(logging.Formatter):
    """
    Format log records with ANSI colors for console output.

    Output Format:
        HH:MM:SS [ TAG   ] (rid) message key=value 0.123s
    """

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        tag = getattr(record, "tag", record.levelname)
        rid = getattr(record, "request_id", "-")

        parts = [
            _paint(ts, Colors.DIM),
            _paint(f"[{tag:^7}]", get_tag_color(tag)),
        ]
        if rid != "-":
            parts.append(_paint(f"({rid})", Colors.DIM + Colors.CYAN))
        parts.append(record.getMessage())

        event = getattr(record, "event", None)
        if event:
            parts.append(_paint(f"event={event}", Colors.BLUE))

        extra_data = getattr(record, "extra_data", None)
        if extra_data:
            for k, v in extra_data.items():
                parts.append(_paint(f"{k}={v}", self._field_color(k, v)))

        seconds = getattr(record, "seconds", None)
        if seconds is not None:
            if seconds < 1.0:
                time_color = Colors.GREEN
            elif seconds < 5.0:
                time_color = Colors.YELLOW
            else:
                time_color = Colors.RED
            parts.append(_paint(f"{seconds:.3f}s", time_color))

        return " ".join(parts)

    @staticmethod
    def _field_color(key: str, value: Any) -> str:
        """Color HTTP status fields by class, everything else dim."""
        if key in ("status", "upstream_status") and isinstance(value, int):
            if value < 400:
                return Colors.GREEN
            if value < 500:
                return Colors.YELLOW
            return Colors.RED
        return Colors.DIM
