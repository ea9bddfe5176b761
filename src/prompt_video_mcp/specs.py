"""Video spec generation: one composition per style brief."""

from __future__ import annotations

import logging
import re

from pydantic import ValidationError

from .concurrency import settle
from .config import get_config
from .errors import GenerationError
from .extraction import extract_json
from .model_service import ModelService, run_prompt
from .models.briefs import StyleBrief
from .models.video_spec import IMAGE_PROP_KEY, VideoSpecDraft
from .normalize import normalize_spec
from .prompts.spec import build_spec_prompt
from .types import GeneratedSpec, SpecFailure, SpecOutcome, SpecSuccess

logger = logging.getLogger(__name__)

DEFAULT_EXPORT_RE = re.compile(r"\bexport\s+default\b|\bas\s+default\b")

PRIMARY_STYLE = StyleBrief(
    variant_id="style-1",
    style_name="Primary",
    style_brief="Create one polished, high-contrast, motion-forward treatment that follows the user prompt directly.",
)


def has_default_export(code: str) -> bool:
    return bool(DEFAULT_EXPORT_RE.search(code))


async def generate_spec(
    prompt: str,
    style: StyleBrief,
    *,
    model_service: ModelService,
    model: str | None = None,
    image_data_url: str | None = None,
) -> GeneratedSpec:
    """Author, validate and normalize the composition for *style*.

    An uploaded image is injected as ``inputProps.imageDataUrl``, replacing
    any value the model put there.

    Raises:
        GenerationError: on model failure, unparseable or malformed output,
            or component code without a default export.
    """
    cfg = get_config()
    model = model or cfg.default_model

    content = await run_prompt(
        model_service,
        build_spec_prompt(prompt, style, image_attached=image_data_url is not None),
        model,
        cfg.generation_timeout,
    )
    payload = extract_json(content)
    try:
        draft = VideoSpecDraft.model_validate(payload)
    except ValidationError as exc:
        first = exc.errors()[0]
        where = ".".join(str(p) for p in first["loc"]) or "spec"
        raise GenerationError(f'Invalid video spec for "{style.style_name}": {where}: {first["msg"]}') from exc

    spec = normalize_spec(draft)
    if image_data_url is not None:
        spec = spec.model_copy(update={"input_props": {**spec.input_props, IMAGE_PROP_KEY: image_data_url}})

    if not has_default_export(spec.component_code):
        raise GenerationError(f'Generated component code is missing a default export for "{style.style_name}".')

    return GeneratedSpec(spec=spec, raw_content=content)


async def generate_primary_spec(
    prompt: str,
    *,
    model_service: ModelService,
    model: str | None = None,
    image_data_url: str | None = None,
) -> GeneratedSpec:
    """Single-variant shortcut that skips the brief stage."""
    return await generate_spec(
        prompt,
        PRIMARY_STYLE,
        model_service=model_service,
        model=model,
        image_data_url=image_data_url,
    )


async def generate_specs_for_styles(
    prompt: str,
    styles: list[StyleBrief],
    *,
    model_service: ModelService,
    model: str | None = None,
    image_data_url: str | None = None,
) -> list[SpecOutcome]:
    """Generate every style's spec concurrently; results follow *styles* order."""
    settled = await settle(
        generate_spec(
            prompt,
            style,
            model_service=model_service,
            model=model,
            image_data_url=image_data_url,
        )
        for style in styles
    )

    outcomes: list[SpecOutcome] = []
    for style, result in zip(styles, settled):
        if result.ok:
            outcomes.append(SpecSuccess(style=style, generated=result.value))
        else:
            logger.warning("Spec generation failed for %s (%s): %s", style.variant_id, style.style_name, result.error)
            outcomes.append(SpecFailure(style=style, error=str(result.error) or type(result.error).__name__))
    return outcomes
