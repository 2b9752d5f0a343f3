"""Process logging for the photo story API and CLIs."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from logging.handlers import RotatingFileHandler
from pathlib import Path

DEFAULT_LOG_PATH = "work/logs/photo_story.log"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"
# SDK request logs echo base64 image payloads at DEBUG.
PAYLOAD_ECHOING_LOGGERS = ("openai", "httpx", "botocore")

_CONFIGURED = False


@dataclass(frozen=True)
class LoggingSettings:
    level: int
    log_path: Path
    max_bytes: int
    backup_count: int
    access_level: int


def _level_env(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip().upper()
    level = logging.getLevelName(raw) if raw else default
    return level if isinstance(level, int) else default


def _int_env(name: str, default: int, *, minimum: int, maximum: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return max(minimum, min(maximum, value))


def load_logging_settings() -> LoggingSettings:
    """Read `PHOTO_STORY_*` logging variables, clamping sizes to sane bounds."""
    return LoggingSettings(
        level=_level_env("PHOTO_STORY_LOG_LEVEL", logging.INFO),
        log_path=Path(os.environ.get("PHOTO_STORY_LOG_PATH", "").strip() or DEFAULT_LOG_PATH),
        max_bytes=_int_env(
            "PHOTO_STORY_LOG_MAX_BYTES",
            5 * 1024 * 1024,
            minimum=64 * 1024,
            maximum=100 * 1024 * 1024,
        ),
        backup_count=_int_env("PHOTO_STORY_LOG_BACKUP_COUNT", 5, minimum=1, maximum=120),
        access_level=_level_env("PHOTO_STORY_ACCESS_LOG_LEVEL", logging.WARNING),
    )


def _handlers(settings: LoggingSettings) -> list[logging.Handler]:
    settings.log_path.parent.mkdir(parents=True, exist_ok=True)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    handlers: list[logging.Handler] = [
        logging.StreamHandler(),
        RotatingFileHandler(
            filename=settings.log_path,
            maxBytes=settings.max_bytes,
            backupCount=settings.backup_count,
            encoding="utf-8",
        ),
    ]
    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


def configure_runtime_logging(settings: LoggingSettings | None = None) -> None:
    """Install console and rotating file handlers on the root logger, once."""
    global _CONFIGURED
    if _CONFIGURED:
        return
    resolved = settings or load_logging_settings()

    root = logging.getLogger()
    root.setLevel(resolved.level)
    root.handlers.clear()
    for handler in _handlers(resolved):
        root.addHandler(handler)

    for name in PAYLOAD_ECHOING_LOGGERS:
        logging.getLogger(name).setLevel(max(resolved.level, logging.WARNING))
    logging.getLogger("uvicorn.access").setLevel(resolved.access_level)

    _CONFIGURED = True
    logging.getLogger(__name__).debug(
        "logging.configured path=%s level=%s",
        resolved.log_path,
        logging.getLevelName(resolved.level),
    )
