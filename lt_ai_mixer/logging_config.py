"""Leveled logging for LT-AI-mixer.

Local      → Color console (+ optional RotatingFileHandler: mixer.log + error.log)
JSON/Cloud → one JSON object per line on stdout
"""

import json
import logging
import os
import traceback
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOGGER_NAME = "lt_ai_mixer"

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# zerolog-style names accepted by -log-level
_LEVELS = {
    "trace": logging.DEBUG,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "fatal": logging.CRITICAL,
    "panic": logging.CRITICAL,
    "disabled": logging.CRITICAL + 10,
}


def parse_log_level(name: str | None) -> int:
    """Map a level name to a ``logging`` level, falling back to WARNING."""
    if not name:
        return logging.WARNING
    return _LEVELS.get(name.strip().lower(), logging.WARNING)


class JsonFormatter(logging.Formatter):
    """One JSON object per line, ``severity`` mapped from the Python level."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict = {
            "time": self.formatTime(record, DATE_FORMAT),
            "severity": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info and record.exc_info[1] is not None:
            payload["exception"] = "".join(traceback.format_exception(*record.exc_info))
        return json.dumps(payload, ensure_ascii=False)


class ColorConsoleFormatter(logging.Formatter):
    """Console lines in the zerolog ConsoleWriter layout: ``time LVL logger: message``.

    Level tags are three letters (DBG, INF, WRN, ERR, FTL) and colored unless
    ``color`` is off.
    """

    _TAGS = {
        "DEBUG": ("DBG", "\033[36m"),
        "INFO": ("INF", "\033[32m"),
        "WARNING": ("WRN", "\033[33m"),
        "ERROR": ("ERR", "\033[31m"),
        "CRITICAL": ("FTL", "\033[1;31m"),
    }
    _RESET = "\033[0m"

    def __init__(self, datefmt: str = DATE_FORMAT, color: bool = True):
        super().__init__(datefmt=datefmt)
        self._color = color

    def format(self, record: logging.LogRecord) -> str:
        tag, color = self._TAGS.get(record.levelname, (record.levelname[:3], ""))
        if self._color and color:
            tag = f"{color}{tag}{self._RESET}"
        line = f"{self.formatTime(record, self.datefmt)} {tag} {record.name}: {record.getMessage()}"
        if record.exc_info and record.exc_info[1] is not None:
            line += "\n" + "".join(traceback.format_exception(*record.exc_info))
        return line


def setup_logging(
    *,
    log_level: str = "warn",
    log_json: bool = False,
    log_dir: str | None = None,
    max_bytes: int = 10_485_760,
    backup_count: int = 5,
) -> logging.Logger:
    """Configure the package logger and return it.

    Only the ``lt_ai_mixer`` logger and the uvicorn loggers are touched; the
    root logger keeps whatever configuration the host process gave it.
    Cloud Run detection: ``K_SERVICE`` env var is set automatically by Cloud Run.
    """
    level = parse_log_level(log_level)
    use_json = log_json or "K_SERVICE" in os.environ

    handlers: list[logging.Handler] = []

    console = logging.StreamHandler()
    if use_json:
        console.setFormatter(JsonFormatter())
    else:
        console.setFormatter(ColorConsoleFormatter())
    handlers.append(console)

    if log_dir:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        file_format = logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s", datefmt=DATE_FORMAT
        )

        file_handler = RotatingFileHandler(
            log_path / "mixer.log",
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(file_format)
        handlers.append(file_handler)

        error_handler = RotatingFileHandler(
            log_path / "error.log",
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(file_format)
        handlers.append(error_handler)

    logger = logging.getLogger(LOGGER_NAME)
    for name in (LOGGER_NAME, "uvicorn", "uvicorn.error", "uvicorn.access"):
        target = logging.getLogger(name)
        for old in target.handlers:
            old.close()
        target.handlers.clear()
        target.setLevel(level)
        if name in (LOGGER_NAME, "uvicorn"):
            for handler in handlers:
                target.addHandler(handler)
            target.propagate = False
        else:
            # uvicorn.error / uvicorn.access reach the handlers through "uvicorn"
            target.propagate = True

    return logger
