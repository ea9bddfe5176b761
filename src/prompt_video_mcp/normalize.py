"""Clamp a model-authored spec into renderable bounds."""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any

from .models.video_spec import (
    DEFAULT_DURATION_IN_FRAMES,
    DEFAULT_FPS,
    DEFAULT_HEIGHT,
    DEFAULT_TITLE,
    DEFAULT_WIDTH,
    DURATION_RANGE,
    FPS_RANGE,
    HEIGHT_RANGE,
    MIN_SECONDS,
    WIDTH_RANGE,
    VideoSpec,
    VideoSpecDraft,
)

# Accepted key spellings for each field when normalizing a plain mapping.
_KEYS = {
    "title": ("title",),
    "width": ("width",),
    "height": ("height",),
    "fps": ("fps",),
    "duration_in_frames": ("durationInFrames", "duration_in_frames"),
    "input_props": ("inputProps", "input_props"),
    "component_code": ("componentCode", "component_code"),
}


_MODEL_TYPES = (VideoSpecDraft, VideoSpec)


def _get(raw: Mapping[str, Any], field: str) -> Any:
    for key in _KEYS[field]:
        if key in raw:
            return raw[key]
    return None


def _number(value: Any) -> float | None:
    """Numeric value of *value*, or None for missing, boolean, NaN, or junk."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return None
    if not isinstance(value, (int, float)):
        return None
    try:
        number = float(value)
    except OverflowError:
        # integers beyond float range saturate
        return math.inf if value > 0 else -math.inf
    return None if math.isnan(number) else number


def _clamp(value: Any, default: int, bounds: tuple[int, int]) -> int:
    number = _number(value)
    if not number:
        number = float(default)
    low, high = bounds
    return int(min(max(number, low), high))


def normalize_spec(raw: VideoSpecDraft | VideoSpec | Mapping[str, Any]) -> VideoSpec:
    """Return *raw* with every numeric clamped and every gap filled.

    Missing or zero numerics take the defaults (1280x720 at 30 fps for 300
    frames) before clamping. Duration is raised to at least six seconds of
    frames at the normalized fps. Never raises; idempotent.
    """
    if isinstance(raw, _MODEL_TYPES):
        raw = raw.model_dump()

    fps = _clamp(_get(raw, "fps"), DEFAULT_FPS, FPS_RANGE)
    duration = max(
        _clamp(_get(raw, "duration_in_frames"), DEFAULT_DURATION_IN_FRAMES, DURATION_RANGE),
        math.ceil(fps * MIN_SECONDS),
    )

    title = _get(raw, "title")
    props = _get(raw, "input_props")
    code = _get(raw, "component_code")

    return VideoSpec(
        title=title.strip() if isinstance(title, str) and title.strip() else DEFAULT_TITLE,
        width=_clamp(_get(raw, "width"), DEFAULT_WIDTH, WIDTH_RANGE),
        height=_clamp(_get(raw, "height"), DEFAULT_HEIGHT, HEIGHT_RANGE),
        fps=fps,
        duration_in_frames=duration,
        input_props=dict(props) if isinstance(props, Mapping) else {},
        component_code=code if isinstance(code, str) else "",
    )

