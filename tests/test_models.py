"""Tests for the pydantic models shared across the pipeline."""

from __future__ import annotations

import pytest
from pydantic import TypeAdapter, ValidationError

from prompt_video_mcp.models.briefs import StyleBrief, StyleBriefDraft
from prompt_video_mcp.models.results import GenerateResponse, LogEntry, VariantFailure, VariantResult, VariantSuccess
from prompt_video_mcp.models.video_spec import VariantMetadata, VideoSpec, VideoSpecDraft
from tests.conftest import BRIEF_TEXT, COMPONENT_CODE


def _spec(**overrides) -> VideoSpec:
    fields = dict(title="Teaser", width=1920, height=1080, fps=30, duration_in_frames=240)
    fields.update(overrides)
    return VideoSpec(**fields)


class TestStyleBrief:
    def test_draft_accepts_camel_case_and_strips(self):
        draft = StyleBriefDraft.model_validate({"styleName": "  Neon Pulse ", "styleBrief": f"  {BRIEF_TEXT}  "})
        assert draft.style_name == "Neon Pulse"
        assert draft.style_brief == BRIEF_TEXT

    @pytest.mark.parametrize("payload", [
        {"styleName": "", "styleBrief": BRIEF_TEXT},
        {"styleName": "x" * 81, "styleBrief": BRIEF_TEXT},
        {"styleName": "Short", "styleBrief": "too short"},
        {"styleName": "Long", "styleBrief": "y" * 801},
        {"styleBrief": BRIEF_TEXT},
    ])
    def test_draft_bounds(self, payload):
        with pytest.raises(ValidationError):
            StyleBriefDraft.model_validate(payload)

    def test_variant_number(self):
        brief = StyleBrief(variant_id="style-3", style_name="Bold", style_brief=BRIEF_TEXT)
        assert brief.variant_number == "3"

    def test_frozen(self):
        brief = StyleBrief(variant_id="style-1", style_name="Bold", style_brief=BRIEF_TEXT)
        with pytest.raises(ValidationError):
            brief.style_name = "Other"


class TestVideoSpec:
    @pytest.mark.parametrize("field,value", [
        ("width", 319), ("width", 3841),
        ("height", 239), ("height", 2161),
        ("fps", 11), ("fps", 61),
        ("duration_in_frames", 44), ("duration_in_frames", 1801),
    ])
    def test_out_of_range_rejected(self, field, value):
        with pytest.raises(ValidationError):
            _spec(**{field: value})

    def test_draft_requires_component_code(self):
        with pytest.raises(ValidationError):
            VideoSpecDraft.model_validate({"title": "No code"})

    def test_draft_rejects_short_code(self):
        with pytest.raises(ValidationError):
            VideoSpecDraft.model_validate({"componentCode": "export default () => null"})

    def test_draft_leaves_numbers_unbounded(self):
        draft = VideoSpecDraft.model_validate({"width": 99999, "fps": 0.5, "componentCode": COMPONENT_CODE})
        assert draft.width == 99999
        assert draft.fps == 0.5

    def test_metadata_from_spec(self):
        metadata = VariantMetadata.from_spec(_spec(input_props={"headline": "Hi"}, component_code=COMPONENT_CODE))
        assert metadata.model_dump(by_alias=True) == {
            "title": "Teaser", "width": 1920, "height": 1080, "fps": 30, "durationInFrames": 240,
        }


class TestVariantResult:
    def test_discriminated_by_status(self):
        adapter = TypeAdapter(VariantResult)
        failed = adapter.validate_python({
            "status": "failed", "variantId": "style-2", "styleName": "Bold",
            "styleBrief": BRIEF_TEXT, "error": "boom",
        })
        assert isinstance(failed, VariantFailure)

        succeeded = adapter.validate_python({
            "status": "succeeded", "variantId": "style-1", "styleName": "Calm",
            "styleBrief": BRIEF_TEXT, "jobId": "abc-style-1-calm", "videoUrl": "/renders/abc-style-1-calm.mp4",
            "outputPath": "/tmp/abc-style-1-calm.mp4",
            "metadata": {"title": "T", "width": 1280, "height": 720, "fps": 30, "durationInFrames": 300},
        })
        assert isinstance(succeeded, VariantSuccess)


class TestGenerateResponse:
    def test_failure_wire_omits_success_fields(self):
        response = GenerateResponse(
            ok=False,
            request_id="r1",
            variants=[VariantFailure(variant_id="style-1", style_name="Bold", style_brief=BRIEF_TEXT, error="boom")],
            logs=[LogEntry(at="2026-01-01T00:00:00.000Z", step="request.received")],
            error="All style variants failed to render.",
        )
        wire = response.to_wire()

        assert wire["requestId"] == "r1"
        assert "jobId" not in wire and "videoUrl" not in wire and "metadata" not in wire
        assert wire["variants"][0] == {
            "variantId": "style-1", "styleName": "Bold", "styleBrief": BRIEF_TEXT,
            "status": "failed", "error": "boom",
        }
        assert wire["logs"] == [{"at": "2026-01-01T00:00:00.000Z", "step": "request.received"}]
