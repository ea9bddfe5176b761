"""Instruction prompt for authoring one Remotion composition per style."""

from __future__ import annotations

from ..models.briefs import StyleBrief

SPEC_PROMPT = """\
You are a Remotion video generator.
Return ONLY one JSON object with exactly these keys:
title, width, height, fps, durationInFrames, inputProps, componentCode

Rules:
- componentCode must be valid TSX.
- componentCode must default export a React component named GeneratedVideo.
- Use only imports from react and remotion.
- Do not use external URLs, file system APIs, or third-party packages.
- Keep it visual, animated, and aligned to the user prompt.
- Ensure syntax is valid and ready to compile.
- durationInFrames should match the content timing and be between 6 and 12 seconds.
- Keep visible motion throughout the full clip (no long static freeze).
- Use inline styles only.
- Do not wrap in markdown code fences.
"""

STYLE_SECTION = """\
Creative direction for this variant:
- Style name: {style_name}
- Style brief: {style_brief}
"""

IMAGE_REQUIREMENTS = """\
Uploaded image requirements:
- An uploaded image is available in inputProps.imageDataUrl (data URL).
- The component must read imageDataUrl from props and render it visibly in the video.
- Use Img from remotion or an img element with src={imageDataUrl}.
- Keep the image on screen long enough to be clearly visible.
- Do not add extra thumbnail/watermark-style overlays unless explicitly requested.
"""


def build_spec_prompt(prompt: str, style: StyleBrief, *, image_attached: bool = False) -> str:
    """Compose the authoring prompt for *style*.

    The image data itself is never embedded; the component receives it
    through ``inputProps.imageDataUrl`` at render time.
    """
    sections = [
        SPEC_PROMPT,
        STYLE_SECTION.format(style_name=style.style_name, style_brief=style.style_brief),
    ]
    if image_attached:
        sections.append(IMAGE_REQUIREMENTS)
    sections.append(f"User prompt:\n{prompt}")
    return "\n".join(sections)
