"""Per-variant outcomes and the generate response envelope."""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .video_spec import VariantMetadata

_WIRE = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class _VariantBase(BaseModel):
    model_config = _WIRE

    variant_id: str
    style_name: str
    style_brief: str


class VariantSuccess(_VariantBase):
    status: Literal["succeeded"] = "succeeded"
    job_id: str
    video_url: str
    output_path: str
    metadata: VariantMetadata


class VariantFailure(_VariantBase):
    status: Literal["failed"] = "failed"
    error: str


VariantResult = Annotated[VariantSuccess | VariantFailure, Field(discriminator="status")]


class LogEntry(BaseModel):
    """One step of a request's chronological log."""

    model_config = _WIRE

    at: str = Field(description="ISO-8601 UTC timestamp")
    step: str
    detail: str | None = None


class GenerateResponse(BaseModel):
    """Payload returned by the generate route and tool.

    ``job_id``/``video_url``/``metadata`` mirror the first succeeded
    variant and are absent when none succeeded.
    """

    model_config = _WIRE

    ok: bool
    request_id: str
    job_id: str | None = None
    video_url: str | None = None
    metadata: VariantMetadata | None = None
    variants: list[VariantResult] = Field(default_factory=list)
    logs: list[LogEntry] = Field(default_factory=list)
    error: str | None = None

    def to_wire(self) -> dict:
        """Serialize with camelCase keys, dropping unset optionals."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
