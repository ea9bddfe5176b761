"""Tests for per-style video spec generation."""

from __future__ import annotations

import pytest

from prompt_video_mcp.errors import GenerationError
from prompt_video_mcp.models.briefs import StyleBrief
from prompt_video_mcp.specs import (
    PRIMARY_STYLE,
    generate_primary_spec,
    generate_spec,
    generate_specs_for_styles,
    has_default_export,
)
from prompt_video_mcp.types import SpecFailure, SpecSuccess
from tests.conftest import BRIEF_TEXT, FakeModelService, scripted_responder, spec_json

PROMPT = "A product launch teaser for a coffee brand"
IMAGE = "data:image/png;base64,iVBORw0KGgo="


def _style(n: int, name: str) -> StyleBrief:
    return StyleBrief(variant_id=f"style-{n}", style_name=name, style_brief=BRIEF_TEXT)


class TestHasDefaultExport:
    @pytest.mark.parametrize("code", [
        "export default function GeneratedVideo() {}",
        "const GeneratedVideo = () => null;\nexport   default GeneratedVideo;",
        "export { GeneratedVideo as default };",
    ])
    def test_markers(self, code):
        assert has_default_export(code)

    def test_named_export_only(self):
        assert not has_default_export("export const GeneratedVideo = () => null;")


class TestGenerateSpec:
    async def test_valid_spec_normalized(self):
        service = FakeModelService(lambda _: spec_json(width=99_999, fps=240))

        result = await generate_spec(PROMPT, _style(1, "Noir"), model_service=service)

        assert result.spec.width == 3840
        assert result.spec.fps == 60
        assert result.spec.duration_in_frames >= 360
        assert result.raw_content == spec_json(width=99_999, fps=240)

    async def test_oversized_integers_clamped_not_rejected(self):
        service = FakeModelService(lambda _: spec_json(width=10**400, durationInFrames=-(10**400)))

        result = await generate_spec(PROMPT, _style(1, "Noir"), model_service=service)

        assert result.spec.width == 3840
        assert result.spec.duration_in_frames == 180

    async def test_prompt_carries_style(self):
        service = FakeModelService(lambda _: spec_json())

        await generate_spec(PROMPT, _style(2, "Pastel Dream"), model_service=service)

        prompt = service.prompts[0]
        assert "- Style name: Pastel Dream" in prompt
        assert f"- Style brief: {BRIEF_TEXT}" in prompt
        assert "default export a React component named GeneratedVideo" in prompt
        assert "Uploaded image requirements" not in prompt

    async def test_missing_default_export_names_style(self):
        code = "export const GeneratedVideo = () => { return null; }; // no default here"
        service = FakeModelService(lambda _: spec_json(componentCode=code))

        with pytest.raises(GenerationError, match='missing a default export for "Noir"'):
            await generate_spec(PROMPT, _style(1, "Noir"), model_service=service)

    async def test_short_component_code_rejected(self):
        service = FakeModelService(lambda _: spec_json(componentCode="export default 1"))

        with pytest.raises(GenerationError, match='Invalid video spec for "Noir"'):
            await generate_spec(PROMPT, _style(1, "Noir"), model_service=service)

    async def test_image_overrides_model_value(self):
        service = FakeModelService(lambda _: spec_json(inputProps={"imageDataUrl": "https://example.com/x.png", "a": 1}))

        result = await generate_spec(PROMPT, _style(1, "Noir"), model_service=service, image_data_url=IMAGE)

        assert result.spec.input_props == {"imageDataUrl": IMAGE, "a": 1}
        assert "Uploaded image requirements" in service.prompts[0]
        assert IMAGE not in service.prompts[0]

    async def test_fenced_reply(self):
        service = FakeModelService(lambda _: f"```json\n{spec_json(title='Fenced')}\n```")

        result = await generate_spec(PROMPT, _style(1, "Noir"), model_service=service)

        assert result.spec.title == "Fenced"

    async def test_primary_style(self):
        service = FakeModelService(lambda _: spec_json())

        await generate_primary_spec(PROMPT, model_service=service)

        assert PRIMARY_STYLE.variant_id == "style-1"
        assert "- Style name: Primary" in service.prompts[0]


class TestGenerateSpecsForStyles:
    async def test_failures_isolated_and_ordered(self):
        styles = [_style(1, "Noir"), _style(2, "Pastel"), _style(3, "Glitch")]
        service = FakeModelService(scripted_responder(None, {"Pastel": "no json at all"}))

        outcomes = await generate_specs_for_styles(PROMPT, styles, model_service=service)

        assert [type(o) for o in outcomes] == [SpecSuccess, SpecFailure, SpecSuccess]
        assert [o.style.variant_id for o in outcomes] == ["style-1", "style-2", "style-3"]
        assert "parseable JSON" in outcomes[1].error
        assert all(s.closed for s in service.sessions)
