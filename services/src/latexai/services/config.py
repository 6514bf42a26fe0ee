"""Service configuration utilities."""

from __future__ import annotations

import os
from pathlib import Path
from typing import ClassVar, cast

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .checkpoints import DEFAULT_CAPACITY
from .persistence.paths import document_root


def _default_data_dir() -> Path:
    """Keep per-document state beside the working directory by default."""

    return Path.cwd() / ".latexai"


class ServiceSettings(BaseModel):
    """Runtime configuration for the edit engine and its HTTP surface."""

    ENV_PREFIX: ClassVar[str] = "LATEXAI_"
    ENV_FILE: ClassVar[str | None] = ".env"
    ENV_FILE_ENCODING: ClassVar[str] = "utf-8"

    model_config: ClassVar[ConfigDict] = cast(
        ConfigDict,
        {
            "extra": "ignore",
            "env_prefix": ENV_PREFIX,
        },
    )

    data_dir: Path = Field(
        default_factory=_default_data_dir,
        description="Directory holding per-document chat, checkpoint and diagnostic files.",
    )
    checkpoint_capacity: int = Field(
        default=DEFAULT_CAPACITY,
        ge=1,
        le=100,
        description="Number of checkpoints retained per document before the oldest is evicted.",
    )
    target_language: str = Field(
        default="latex",
        min_length=1,
        description="Fence label preferred when extracting fragments from model output.",
    )
    preview_min_chars: int = Field(
        default=400,
        ge=0,
        description="Low-confidence fragments up to this size are always previewed.",
    )
    preview_size_ratio: float = Field(
        default=3.0,
        gt=0.0,
        description="Low-confidence fragments larger than this multiple of the anchored text are not previewed.",
    )
    completion_timeout_seconds: float = Field(
        default=60.0,
        ge=0.0,
        description="Maximum duration of one completion attempt in seconds (0 disables the timeout).",
    )
    completion_retry_attempts: int = Field(
        default=1,
        ge=0,
        le=5,
        description="Number of retry attempts for completions after transient failures.",
    )
    completion_circuit_failure_threshold: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Number of consecutive completion failures before opening the circuit breaker.",
    )
    completion_circuit_reset_seconds: float = Field(
        default=30.0,
        ge=0.0,
        description="Seconds before a tripped completion circuit allows new attempts.",
    )

    @field_validator("target_language")
    @classmethod
    def _normalise_language(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("data_dir")
    @classmethod
    def _expand_data_dir(cls, value: Path) -> Path:
        return value.expanduser()

    @classmethod
    def from_environment(cls, env_file: Path | None = None) -> "ServiceSettings":
        """Build settings from ``LATEXAI_*`` variables, falling back to a `.env` file.

        Process environment wins over the file. Without ``env_file`` the
        ``.env`` in the working directory is used when present.
        """

        path = env_file
        if path is None and cls.ENV_FILE:
            path = Path.cwd() / cls.ENV_FILE
        file_values = (
            read_env_file(path, cls.ENV_FILE_ENCODING) if path and path.is_file() else {}
        )

        values: dict[str, str] = {}
        for field_name in cls.model_fields:
            key = f"{cls.ENV_PREFIX}{field_name.upper()}"
            value = os.environ.get(key, file_values.get(key))
            if value is not None:
                values[field_name] = value
        return cls.model_validate(values)

    def document_root(self, document_id: str) -> Path:
        """Directory holding the state of ``document_id``."""

        return document_root(self.data_dir, document_id)


def read_env_file(path: Path, encoding: str = "utf-8") -> dict[str, str]:
    """Parse ``KEY=value`` lines, honouring ``export`` prefixes, quotes and ``#`` comments."""

    parsed: dict[str, str] = {}
    for raw_line in path.read_text(encoding=encoding).splitlines():
        line = raw_line.strip()
        if line.startswith("export "):
            line = line[len("export ") :].lstrip()
        if not line or line.startswith("#") or "=" not in line:
            continue

        key, _, value = line.partition("=")
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
            value = value[1:-1]
        elif " #" in value:
            value = value.split(" #", 1)[0].rstrip()
        parsed[key.strip()] = value
    return parsed


__all__: list[str] = ["ServiceSettings", "read_env_file"]
