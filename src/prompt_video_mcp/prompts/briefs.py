"""Instruction prompt for the style brief stage."""

from __future__ import annotations

BRIEF_PROMPT = """\
You are a creative director for Remotion video concepts.
Return ONLY one JSON object with a single key: styles.
styles must be an array with exactly {count} objects.
Each styles item must contain exactly these keys:
styleName, styleBrief

Rules:
- styleName must be short and descriptive.
- styleBrief must be a concrete production direction with motion, tone, typography, and transitions.
- All styles must be clearly distinct from each other.
- Keep all styles aligned to the user prompt intent.
- Do not include markdown fences or extra keys.
"""

IMAGE_NOTE = """\
Uploaded image note:
- The final video variants will receive inputProps.imageDataUrl.
- Include at least one sentence in each styleBrief on how to feature the uploaded image.
"""


def build_brief_prompt(prompt: str, *, count: int, image_attached: bool = False) -> str:
    """Ask for exactly *count* distinct style directions for *prompt*."""
    sections = [BRIEF_PROMPT.format(count=count)]
    if image_attached:
        sections.append(IMAGE_NOTE)
    sections.append(f"User prompt:\n{prompt}")
    return "\n".join(sections)
