"""Logger construction and the process-wide logger."""

from __future__ import annotations

import itertools
import json
import logging
import sys
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Union

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
    "dpanic": logging.CRITICAL,
    "panic": logging.CRITICAL,
    "fatal": logging.CRITICAL,
}

_LEVEL_NAMES = {
    logging.DEBUG: "debug",
    logging.INFO: "info",
    logging.WARNING: "warn",
    logging.ERROR: "error",
    logging.CRITICAL: "fatal",
}

_ids = itertools.count(1)
_ids_lock = threading.Lock()


@dataclass
class LogConfig:
    """Logger settings.

    level: debug, info, warn, error, dpanic, panic or fatal (empty is info).
    file: path to append logs to; empty means stderr.
    production: write JSON lines instead of console text.
    """

    level: str = ""
    file: str = ""
    production: bool = False


def _parse_level(s: str) -> int:
    if s == "":
        return logging.INFO
    key = s if s.islower() else (s.lower() if s.isupper() else None)
    if key is None or key not in _LEVELS:
        raise ValueError(f"invalid log level: unrecognized level: {s!r}")
    return _LEVELS[key]


def _level_name(levelno: int) -> str:
    return _LEVEL_NAMES.get(levelno, logging.getLevelName(levelno).lower())


class _ConsoleFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created).astimezone()
        stamp = ts.strftime("%Y-%m-%dT%H:%M:%S.") + f"{int(record.msecs):03d}" + ts.strftime("%z")
        parts = [stamp, _level_name(record.levelno).upper(), record.name, record.getMessage()]
        line = "\t".join(parts)
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class _JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        out = {
            "level": _level_name(record.levelno),
            "ts": record.created,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            out["stacktrace"] = self.formatException(record.exc_info)
        return json.dumps(out)


def new_logger(lc: LogConfig) -> logging.Logger:
    """Build a logger from lc. Raises ValueError or OSError."""
    level = _parse_level(lc.level)

    if lc.file:
        try:
            handler: logging.Handler = logging.FileHandler(lc.file, mode="a", encoding="utf-8")
        except OSError as exc:
            raise OSError(f"open log file: {exc}") from exc
    else:
        handler = logging.StreamHandler()
    handler.setFormatter(_JSONFormatter() if lc.production else _ConsoleFormatter())

    with _ids_lock:
        n = next(_ids)
    lg = logging.getLogger(f"mosdns.logger{n}")
    lg.handlers.clear()
    lg.addHandler(handler)
    lg.setLevel(level)
    lg.propagate = False
    return lg


def _init_global() -> logging.Logger:
    lg = logging.getLogger("mosdns")
    if not lg.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(_ConsoleFormatter())
        lg.addHandler(handler)
    lg.setLevel(logging.INFO)
    lg.propagate = False
    return lg


def _init_nop() -> logging.Logger:
    lg = logging.getLogger("mosdns.nop")
    lg.handlers.clear()
    lg.addHandler(logging.NullHandler())
    lg.propagate = False
    lg.disabled = True
    return lg


_global = _init_global()
_nop = _init_nop()


def logger() -> logging.Logger:
    """Return the process-wide logger."""
    return _global


def set_level(level: Union[int, str]) -> None:
    """Set the level of the process-wide logger."""
    _global.setLevel(_parse_level(level) if isinstance(level, str) else level)


def nop() -> logging.Logger:
    """Return a logger that never writes anything."""
    return _nop