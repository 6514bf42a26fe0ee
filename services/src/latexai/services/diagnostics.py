"""Per-document incident files written when an endpoint fails."""

from __future__ import annotations

import itertools
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

from .persistence import dump_diagnostic

REDACTED = "[REDACTED]"
DIAGNOSTICS_SUBDIR = Path("history") / "diagnostics"

_SENSITIVE_KEY_PARTS = ("content", "document", "text", "fragment", "token", "path")
_SAFE_KEYS = frozenset({"document_id", "document_length"})
_SLUG_RE = re.compile(r"[^a-z0-9_]+")


@dataclass
class DiagnosticLogger:
    """Write one JSON file per incident under ``<document>/history/diagnostics``.

    Detail values under keys that may carry document text are replaced with
    ``[REDACTED]`` at any nesting depth; offsets and counts are kept.
    """

    def log(
        self,
        document_root: Path,
        *,
        code: str,
        message: str,
        details: Mapping[str, Any] | None = None,
    ) -> Path:
        now = datetime.now(tz=timezone.utc)
        directory = document_root / DIAGNOSTICS_SUBDIR
        directory.mkdir(parents=True, exist_ok=True)
        path = _unused_path(directory, f"{now:%Y%m%dT%H%M%S%f}Z_{_slug(code)}")

        dump_diagnostic(
            path,
            {
                "timestamp": now.isoformat().replace("+00:00", "Z"),
                "document_id": document_root.name,
                "code": code,
                "message": message,
                "details": redact(details or {}),
            },
        )
        return path


def redact(details: Mapping[str, Any]) -> dict[str, Any]:
    return {key: _redact_entry(str(key), value) for key, value in details.items()}


def _redact_entry(key: str, value: Any) -> Any:
    if isinstance(value, Mapping):
        return redact(value)
    if isinstance(value, str) and _is_sensitive(key):
        return REDACTED
    return value


def _is_sensitive(key: str) -> bool:
    lowered = key.lower()
    return lowered not in _SAFE_KEYS and any(part in lowered for part in _SENSITIVE_KEY_PARTS)


def _slug(code: str) -> str:
    """``model/error`` -> ``model-error``; empty codes become ``diagnostic``."""

    return _SLUG_RE.sub("-", code.lower()).strip("-") or "diagnostic"


def _unused_path(directory: Path, stem: str) -> Path:
    candidate = directory / f"{stem}.json"
    for suffix in itertools.count(1):
        if not candidate.exists():
            return candidate
        candidate = directory / f"{stem}_{suffix}.json"
    raise AssertionError("unreachable")


__all__ = ["DIAGNOSTICS_SUBDIR", "DiagnosticLogger", "REDACTED", "redact"]
