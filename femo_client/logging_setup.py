"""Logging for the Femo client.

Everything goes through one named logger that writes ``[time] [LEVEL] [TAG]``
lines to a size-rotated file, plus stderr unless ``FEMO_LOG_TO_CONSOLE`` is
off. Credentials never reach a handler in clear text: every handler carries a
:class:`TokenRedactionFilter`.
"""

from __future__ import annotations

import inspect
import logging
import re
import sys
import time
from dataclasses import dataclass
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List, Optional

from femo_client.config import get_env, settings

LOGGER_NAME = "femo_client.history"
DEFAULT_MAX_BYTES = 5 * 1024 * 1024  # 5 MB per log file
DEFAULT_BACKUP_COUNT = 7
LOG_LEVEL_ENV_VAR = "FEMO_LOG_LEVEL"
LOG_TO_CONSOLE_ENV_VAR = "FEMO_LOG_TO_CONSOLE"

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] [%(tag)s] %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

# Default tag per module keyword; first match wins.
TAG_MAP = {
    "auth": "AUTH",
    "registration": "AUTH",
    "http": "HTTP",
    "single_flight": "HTTP",
    "store": "STORE",
    "session": "STORE",
    "shell": "NAV",
    "profile": "USER",
    "cli": "CLI",
}

_SECRET_PATTERNS = (
    re.compile(r"(?i)(bearer\s+)[A-Za-z0-9._~+/=-]+"),
    re.compile(r"(?i)((?:access|refresh)[_-]?token['\"]?\s*[:=]\s*['\"]?)[A-Za-z0-9._~+/=-]+"),
    re.compile(r"(?i)(x-refresh-token['\"]?\s*[:=]\s*['\"]?)[A-Za-z0-9._~+/=-]+"),
)
REDACTED = "[REDACTED]"


@dataclass
class _LoggingState:
    logger: Optional[logging.Logger] = None
    configured: bool = False


_state = _LoggingState()


class TaggedLogger(logging.LoggerAdapter):
    """Adapter that stamps every record with a ``tag`` (``GEN`` if unset)."""

    def process(self, msg, kwargs):
        extra = dict(kwargs.get("extra") or {})
        extra.setdefault("tag", self.extra.get("tag", "GEN"))
        kwargs["extra"] = extra
        return msg, kwargs


class TokenRedactionFilter(logging.Filter):
    """Mask bearer tokens and ``access_token``/``refresh_token`` values."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = redact_secrets(message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def redact_secrets(text: str) -> str:
    for pattern in _SECRET_PATTERNS:
        text = pattern.sub(lambda match: f"{match.group(1)}{REDACTED}", text)
    return text


def _warn_stderr(message: str) -> None:
    print(f"femo-client logger: {message}", file=sys.stderr)


def _resolve_level(level: Optional[str]) -> int:
    candidate = str(level or get_env(LOG_LEVEL_ENV_VAR, default=settings.FEMO_LOG_LEVEL)).upper()
    numeric_level = logging.getLevelName(candidate)
    if isinstance(numeric_level, int):
        return numeric_level
    _warn_stderr(f"unknown log level '{candidate}', defaulting to INFO.")
    return logging.INFO


def _console_enabled(console: Optional[bool]) -> bool:
    if console is not None:
        return console
    return bool(get_env(LOG_TO_CONSOLE_ENV_VAR, default=settings.FEMO_LOG_TO_CONSOLE))


def _build_formatter() -> logging.Formatter:
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    formatter.converter = time.gmtime
    return formatter


def _file_handler(path: Path, max_bytes: int, backup_count: int) -> Optional[logging.Handler]:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        return RotatingFileHandler(path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8")
    except OSError as exc:
        _warn_stderr(f"unable to access log file {path}: {exc}")
        return None


def _console_handler() -> logging.Handler:
    return logging.StreamHandler()


def _detach_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


def configure_logging(
    *,
    log_path: Optional[Path] = None,
    level: Optional[str] = None,
    max_bytes: Optional[int] = None,
    backup_count: Optional[int] = None,
    console: Optional[bool] = None,
    force: bool = False,
) -> logging.Logger:
    """Attach the rotating file (and console) handlers to the shared logger.

    Repeat calls only adjust the level unless ``force`` is set or a new
    ``log_path`` is given.
    """

    logger = logging.getLogger(LOGGER_NAME)

    if _state.configured and not force and log_path is None:
        if level is not None:
            logger.setLevel(_resolve_level(level))
        return logger

    if force or _state.configured:
        _detach_handlers(logger)

    logger.setLevel(_resolve_level(level))

    handlers: List[logging.Handler] = []
    file_handler = _file_handler(
        Path(log_path) if log_path is not None else settings.log_path,
        max_bytes or DEFAULT_MAX_BYTES,
        backup_count or DEFAULT_BACKUP_COUNT,
    )
    if file_handler is not None:
        handlers.append(file_handler)
    if _console_enabled(console):
        handlers.append(_console_handler())

    formatter = _build_formatter()
    redaction = TokenRedactionFilter()
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(redaction)
        logger.addHandler(handler)

    logger.propagate = False
    _state.logger = logger
    _state.configured = True
    return logger


def get_logger(tag: str | None = None) -> TaggedLogger:
    """Return the shared logger tagged with ``tag`` or the caller's module tag."""

    if tag is None:
        caller = inspect.currentframe().f_back
        tag = get_tag_for_module(caller.f_globals.get("__name__", "unknown") if caller else "unknown")

    base_logger = _state.logger if _state.configured and _state.logger else configure_logging()
    return TaggedLogger(base_logger, {"tag": tag})


def get_tag_for_module(module_name: str) -> str:
    module_name = module_name.lower()
    return next((tag for key, tag in TAG_MAP.items() if key in module_name), "GEN")


def reset_logging() -> None:
    """Drop every handler so tests can reconfigure from scratch."""

    _detach_handlers(logging.getLogger(LOGGER_NAME))
    _state.logger = None
    _state.configured = False
