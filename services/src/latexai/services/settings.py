"""Pydantic settings for the remote collaborators the engine talks to."""

from __future__ import annotations

from typing import ClassVar, Literal, Optional

from pydantic import AliasChoices, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

Mode = Literal["offline", "live"]
VALID_MODES: tuple[Mode, ...] = ("offline", "live")

class BackendSettings(BaseSettings):
    """Select between the offline backends and the remote project service."""

    model_config: ClassVar[SettingsConfigDict] = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    mode: Mode = Field(
        default="offline",
        validation_alias=AliasChoices("LATEXAI_MODE", "MODE"),
    )
    project_service_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "LATEXAI_PROJECT_SERVICE_URL",
            "PROJECT_SERVICE_URL",
        ),
    )
    project_service_token: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "LATEXAI_PROJECT_SERVICE_TOKEN",
            "PROJECT_SERVICE_TOKEN",
        ),
    )
    request_timeout_seconds: float = Field(
        default=30.0,
        gt=0.0,
        validation_alias=AliasChoices(
            "LATEXAI_REQUEST_TIMEOUT_SECONDS",
            "REQUEST_TIMEOUT_SECONDS",
        ),
    )

    @field_validator("mode", mode="before")
    @classmethod
    def _normalise_mode(cls, value: object) -> Mode | object:
        """Normalise mode strings to recognised literal values."""

        if isinstance(value, str):
            candidate = value.strip().lower()
            if candidate in VALID_MODES:
                return candidate
        return value

    @field_validator("project_service_url")
    @classmethod
    def _strip_trailing_slash(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip().rstrip("/")
        return value or None

    @model_validator(mode="after")
    def _require_url_when_live(self) -> "BackendSettings":
        if self.mode == "live" and not self.project_service_url:
            raise ValueError("LATEXAI_PROJECT_SERVICE_URL is required in live mode.")
        return self


__all__ = ["BackendSettings", "Mode"]
