"""Error envelope returned by the document endpoints."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ErrorResponse(BaseModel):
    """``{code, message, details, trace_id}`` body shared by every failure."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    code: str = Field(min_length=1, description="Stable machine-readable error code.")
    message: str = Field(min_length=1, description="Human-readable summary.")
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Structured context; document text is never included.",
    )
    trace_id: str = Field(min_length=1, description="Identifier echoed in the x-trace-id header.")


__all__ = ["ErrorResponse"]
