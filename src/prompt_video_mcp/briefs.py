"""Style brief generation: one model call that yields N distinct directions."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from .config import get_config
from .errors import GenerationError
from .extraction import extract_json
from .model_service import ModelService, run_prompt
from .models.briefs import StyleBrief, StyleBriefDraft
from .prompts.briefs import build_brief_prompt

logger = logging.getLogger(__name__)


def dedupe_style_names(names: list[str]) -> list[str]:
    """Make *names* unique, case-insensitively, preserving order.

    A collision is renamed to the first-seen spelling of that name plus
    `` (2)``, `` (3)``... skipping any suffix already in use.

    >>> dedupe_style_names(["Bold", "bold", "Bold"])
    ['Bold', 'Bold (2)', 'Bold (3)']
    """
    first_spelling: dict[str, str] = {}
    used: set[str] = set()
    result: list[str] = []
    for name in names:
        base = first_spelling.setdefault(name.lower(), name)
        resolved = name
        suffix = 2
        while resolved.lower() in used:
            resolved = f"{base} ({suffix})"
            suffix += 1
        used.add(resolved.lower())
        result.append(resolved)
    return result


def _style_items(payload: Any) -> list[Any]:
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict) and isinstance(payload.get("styles"), list):
        return payload["styles"]
    raise GenerationError('Model did not return a valid "styles" array.')


async def generate_briefs(
    prompt: str,
    *,
    model_service: ModelService,
    model: str | None = None,
    image_attached: bool = False,
    count: int | None = None,
) -> list[StyleBrief]:
    """Ask the model for exactly *count* style briefs for *prompt*.

    Args:
        prompt: The user's video prompt.
        model_service: Backend used for the single model call.
        model: Model id; config default when omitted.
        image_attached: Ask each brief to say how the uploaded image is featured.
        count: Number of briefs; config ``default_style_count`` when omitted.

    Returns:
        Briefs in model output order with ids ``style-1``...``style-N`` and
        case-insensitively unique names.

    Raises:
        GenerationError: on model failure, unparseable output, a count
            mismatch, or any malformed brief.
    """
    cfg = get_config()
    count = count or cfg.default_style_count
    model = model or cfg.default_model

    content = await run_prompt(
        model_service,
        build_brief_prompt(prompt, count=count, image_attached=image_attached),
        model,
        cfg.generation_timeout,
    )
    items = _style_items(extract_json(content))
    if len(items) != count:
        raise GenerationError(f"Expected exactly {count} styles but received {len(items)}.")

    try:
        drafts = [StyleBriefDraft.model_validate(item) for item in items]
    except ValidationError as exc:
        raise GenerationError(f"Model returned a malformed style brief: {exc.errors()[0]['msg']}") from exc

    names = dedupe_style_names([d.style_name for d in drafts])
    briefs = [
        StyleBrief(variant_id=f"style-{i}", style_name=name, style_brief=draft.style_brief)
        for i, (draft, name) in enumerate(zip(drafts, names), start=1)
    ]
    logger.info("Generated %d style brief(s) with %s: %s", len(briefs), model, ", ".join(names))
    return briefs
