"""Shared types for prompt-video-mcp.

Tool parameter aliases (pydantic ``Annotated``) plus the frozen stage
results passed between the spec generator, render invoker, and
orchestrator.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, Literal

from pydantic import Field

from .models.briefs import StyleBrief
from .models.video_spec import VariantMetadata, VideoSpec

VariantCount = Literal[1, 4]

PromptText = Annotated[
    str,
    Field(min_length=10, max_length=2000, description="What the video should show (10-2000 characters)"),
]
ModelName = Annotated[
    str | None,
    Field(description="Model id override, e.g. gemini-3-flash-preview; server default when omitted"),
]
ImageDataUrl = Annotated[
    str | None,
    Field(description="Optional base64 image data URL (png, jpeg, webp, gif) to feature in every variant"),
]


@dataclass(frozen=True)
class GeneratedSpec:
    """Normalized spec plus the raw model text it came from."""

    spec: VideoSpec
    raw_content: str


@dataclass(frozen=True)
class SpecSuccess:
    style: StyleBrief
    generated: GeneratedSpec


@dataclass(frozen=True)
class SpecFailure:
    style: StyleBrief
    error: str


SpecOutcome = SpecSuccess | SpecFailure


@dataclass(frozen=True)
class RenderVariantInput:
    """Everything the render invoker needs for one variant."""

    request_id: str
    style: StyleBrief
    spec: VideoSpec


@dataclass(frozen=True)
class RenderSuccess:
    variant_id: str
    job_id: str
    video_url: str
    output_path: Path
    metadata: VariantMetadata


@dataclass(frozen=True)
class RenderFailure:
    variant_id: str
    error: str


RenderOutcome = RenderSuccess | RenderFailure
