"""Logging configuration.

loguru sinks for the gateway. Every record passes through ``SanitizingFilter``
first, so data-store credentials and bearer tokens never reach a sink.
"""
import os
import re
import sys
from typing import Any

from loguru import logger

from reservation_api.core.config import Settings, settings as default_settings

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {process} | {name}:{function}:{line} - {message}"

REDACTED = "***REDACTED***"

SENSITIVE_PATTERNS = [
    # user:password@ in MongoDB connection strings
    (re.compile(r"(mongodb(?:\+srv)?://)([^:/@\s]+):([^@\s]+)@", re.IGNORECASE), r"\1\2:***@"),
    (re.compile(r"([?&]password=)[^&\s]+", re.IGNORECASE), r"\1***"),
    (re.compile(r"(authorization)(\"?\s*[:=]\s*\"?)(bearer\s+|basic\s+)?[\w\-.~+/]{8,}=*", re.IGNORECASE),
     rf"\1\2{REDACTED}"),
    (re.compile(r"(password|passwd|pwd|secret|token)(\"?\s*[:=]\s*\"?)[^\"'\s,;&}]{3,}", re.IGNORECASE),
     rf"\1\2{REDACTED}"),
]

SENSITIVE_KEYS = ("password", "passwd", "pwd", "secret", "token", "authorization", "cookie")


def sanitize_log_message(message: str) -> str:
    """Mask credentials in free text."""
    for pattern, replacement in SENSITIVE_PATTERNS:
        message = pattern.sub(replacement, message)
    return message


def sanitize_value(value: Any, key: str = "") -> Any:
    """Mask credentials in structured data: headers, request payloads, ``extra`` fields."""
    if key and any(marker in key.lower() for marker in SENSITIVE_KEYS):
        return REDACTED
    if isinstance(value, str):
        return sanitize_log_message(value)
    if isinstance(value, dict):
        return {k: sanitize_value(v, str(k)) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return type(value)(sanitize_value(item) for item in value)
    return value


class SanitizingFilter:
    """loguru filter rewriting the message and bound extras of each record."""

    def __call__(self, record: dict) -> bool:
        if record.get("message"):
            record["message"] = sanitize_log_message(record["message"])
        if record.get("extra"):
            record["extra"].update(sanitize_value(dict(record["extra"])))
        return True


def setup_logging(settings: Settings = default_settings) -> None:
    """Install the console sink and, when ``LOG_TO_FILE`` is set, a rotating file sink."""
    logger.remove()
    redact = SanitizingFilter()

    logger.add(sys.stderr, format=CONSOLE_FORMAT, level=settings.LOG_LEVEL, colorize=True, filter=redact)

    if settings.LOG_TO_FILE:
        os.makedirs(os.path.dirname(settings.LOG_FILE_PATH) or ".", exist_ok=True)
        logger.add(
            settings.LOG_FILE_PATH,
            format=FILE_FORMAT,
            level=settings.LOG_LEVEL,
            rotation="50 MB",
            retention="14 days",
            compression="zip",
            encoding="utf-8",
            enqueue=True,
            filter=redact,
        )

    logger.debug(f"Logging ready: level={settings.LOG_LEVEL}, file={settings.LOG_FILE_PATH if settings.LOG_TO_FILE else 'off'}")
