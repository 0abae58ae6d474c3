"""Structured logging for the gateway client.

Each ``APNsLogger`` wraps a stdlib logger. Context passed as ``extra`` rides
on the record as ``extra_data``: the JSON formatter nests it under
``context`` and the human formatter appends it as ``key=value`` pairs. Both
stamp the current correlation ID.

Output is chosen by ``APNS_LOG_FORMAT`` ("human", "json" or "both"),
``APNS_LOG_JSON_FILE`` and ``APNS_LOG_HUMAN_OUTPUT`` ("stderr", "stdout" or
a file path).
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Mapping
from datetime import UTC, datetime
from pathlib import Path
from typing_extensions import override

from apns_gateway.correlation import get_correlation_id

__all__ = [
    "APNsLogger",
    "HumanReadableFormatter",
    "JSONFormatter",
    "get_logger",
    "set_package_level",
]

PACKAGE_LOGGER = "apns_gateway"

HUMAN_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s [%(module)s:%(lineno)d] %(correlation_id)s > %(message)s"
HUMAN_DATE_FORMAT = "%m/%d/%y %H:%M:%S"

# JSON key -> LogRecord attribute
_RECORD_FIELDS = {
    "level": "levelname",
    "logger": "name",
    "module": "module",
    "function": "funcName",
    "line": "lineno",
}

# Frames between the caller and Logger.log: _emit, then debug()/info()/...
_CALLER_STACKLEVEL = 3


def _context_of(record: logging.LogRecord) -> dict[str, object]:
    extra_data = getattr(record, "extra_data", None)
    if isinstance(extra_data, Mapping):
        return {str(key): value for key, value in extra_data.items()}
    return {}


class JSONFormatter(logging.Formatter):
    """One JSON object per line, for log shippers."""

    @override
    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            **{key: getattr(record, attribute) for key, attribute in _RECORD_FIELDS.items()},
            "message": record.getMessage(),
            "correlation_id": get_correlation_id(),
        }
        if context := _context_of(record):
            entry["context"] = context
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class HumanReadableFormatter(logging.Formatter):
    """Single-line text: time, level, source, correlation tail, message, context."""

    def __init__(self) -> None:
        super().__init__(fmt=HUMAN_FORMAT, datefmt=HUMAN_DATE_FORMAT)

    @override
    def format(self, record: logging.LogRecord) -> str:
        correlation_id = get_correlation_id()
        # UUIDv7 IDs start with a timestamp; the tail tells operations apart
        record.correlation_id = f"[{correlation_id[-8:]}]" if correlation_id else "[--------]"
        line = super().format(record)
        context = _context_of(record)
        if not context:
            return line
        return " | ".join([line, *(f"{key}={value}" for key, value in context.items())])


def _open_file(path: str | Path) -> logging.Handler | None:
    try:
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        return logging.FileHandler(target, mode="a")
    except OSError as e:
        print(f"apns_gateway: cannot open log file {path}: {e}", file=sys.stderr)
        return None


def _open_stream(destination: str) -> logging.Handler:
    """Handler for "stdout", "stderr" or a file path (stderr if the file fails)."""
    if destination == "stdout":
        return logging.StreamHandler(sys.stdout)
    if destination != "stderr":
        handler = _open_file(destination)
        if handler is not None:
            return handler
    return logging.StreamHandler(sys.stderr)


class APNsLogger:
    """Logger taking structured ``extra`` context, with JSON and/or human output.

    Handlers are attached once per logger name; later instances for the same
    name share them.
    """

    def __init__(
        self,
        name: str,
        log_format: str = "human",
        json_file: str | Path | None = None,
        human_output: str | None = "stderr",
    ) -> None:
        from apns_gateway.const import APNS_DEBUG

        self.name: str = name
        self.log_format: str = log_format
        self.logger: logging.Logger = logging.getLogger(name)

        level = logging.DEBUG if APNS_DEBUG else logging.INFO
        self.logger.setLevel(level)
        if not self.logger.handlers:
            for handler in self._build_handlers(json_file, human_output):
                handler.setLevel(level)
                self.logger.addHandler(handler)

    def _build_handlers(
        self,
        json_file: str | Path | None,
        human_output: str | None,
    ) -> list[logging.Handler]:
        handlers: list[logging.Handler] = []
        if self.log_format in ("json", "both") and json_file:
            json_handler = _open_file(json_file)
            if json_handler is not None:
                json_handler.setFormatter(JSONFormatter())
                handlers.append(json_handler)
        if self.log_format in ("human", "both"):
            human_handler = _open_stream(human_output or "stderr")
            human_handler.setFormatter(HumanReadableFormatter())
            handlers.append(human_handler)
        return handlers

    def _emit(
        self,
        level: int,
        msg: str,
        args: tuple[object, ...],
        extra: Mapping[str, object] | None,
        exc_info: bool = False,
    ) -> None:
        self.logger.log(
            level,
            msg,
            *args,
            extra={"extra_data": dict(extra)} if extra else None,
            exc_info=exc_info,
            stacklevel=_CALLER_STACKLEVEL,
        )

    def debug(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        self._emit(logging.DEBUG, msg, args, extra)

    def info(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        self._emit(logging.INFO, msg, args, extra)

    def warning(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        self._emit(logging.WARNING, msg, args, extra)

    def error(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        self._emit(logging.ERROR, msg, args, extra)

    def exception(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        """Log at ERROR with the active exception's traceback."""
        self._emit(logging.ERROR, msg, args, extra, exc_info=True)

    def set_level(self, level: int) -> None:
        """Apply ``level`` to the logger and each of its handlers."""
        self.logger.setLevel(level)
        for handler in self.logger.handlers:
            handler.setLevel(level)

    @property
    def handlers(self) -> list[logging.Handler]:
        return self.logger.handlers


def get_logger(
    name: str,
    log_format: str | None = None,
    json_file: str | Path | None = None,
    human_output: str | None = None,
) -> APNsLogger:
    """Logger for ``name``; unset arguments fall back to the APNS_LOG_* settings."""
    from apns_gateway.const import (
        APNS_LOG_FORMAT,
        APNS_LOG_HUMAN_OUTPUT,
        APNS_LOG_JSON_FILE,
    )

    return APNsLogger(
        name=name,
        log_format=log_format or APNS_LOG_FORMAT,
        json_file=json_file or APNS_LOG_JSON_FILE,
        human_output=human_output or APNS_LOG_HUMAN_OUTPUT,
    )


def set_package_level(level: int) -> None:
    """Apply ``level`` to every existing apns_gateway logger and its handlers."""
    for name, candidate in list(logging.root.manager.loggerDict.items()):
        if name.partition(".")[0] == PACKAGE_LOGGER and isinstance(candidate, logging.Logger):
            candidate.setLevel(level)
            for handler in candidate.handlers:
                handler.setLevel(level)
