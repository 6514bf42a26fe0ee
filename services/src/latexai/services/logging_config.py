"""Structured logging helpers for the LaTeX assistant services."""

from __future__ import annotations

import json
import logging
import logging.config
from datetime import datetime, timezone
from typing import Any, Dict, Mapping

MAX_LOGGED_TEXT_CHARS = 120

_CONTENT_KEYS = {
    "content",
    "content_before",
    "content_after",
    "fragment",
    "full_document",
    "original_text",
    "selected_text",
    "user_request",
}
_SECRET_KEYS = {"authorization", "token", "project_service_token"}


def scrub_payload(payload: Mapping[str, Any]) -> dict[str, Any]:
    """Truncate document text and mask credentials before they reach a log line."""

    scrubbed: dict[str, Any] = {}
    for key, value in payload.items():
        lowered = key.lower()
        if lowered in _SECRET_KEYS:
            scrubbed[key] = "[REDACTED]"
        elif lowered in _CONTENT_KEYS and isinstance(value, str) and len(value) > MAX_LOGGED_TEXT_CHARS:
            scrubbed[key] = f"{value[:MAX_LOGGED_TEXT_CHARS]}… ({len(value)} chars)"
        elif isinstance(value, Mapping):
            scrubbed[key] = scrub_payload(value)
        else:
            scrubbed[key] = value
    return scrubbed


class JsonFormatter(logging.Formatter):
    """Simple JSON formatter for structured logs."""

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        extra = getattr(record, "extra_payload", None)
        if isinstance(extra, dict):
            payload.update(scrub_payload(extra))
        return json.dumps(payload, ensure_ascii=False, default=str)


LOGGING_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "json": {
            "()": "latexai.services.logging_config.JsonFormatter",
        }
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "json",
        }
    },
    "loggers": {
        "uvicorn.access": {"handlers": ["console"], "level": "INFO", "propagate": False},
        "uvicorn.error": {"handlers": ["console"], "level": "INFO", "propagate": False},
        "latexai.services": {"handlers": ["console"], "level": "INFO", "propagate": False},
    },
    "root": {
        "handlers": ["console"],
        "level": "WARNING",
    },
}


def configure_logging() -> None:
    """Apply the structured logging configuration."""

    logging.config.dictConfig(LOGGING_CONFIG)


__all__ = ["JsonFormatter", "configure_logging", "scrub_payload"]
