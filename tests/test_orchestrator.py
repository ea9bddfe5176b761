"""End-to-end orchestration tests with fake model and render backends."""

from __future__ import annotations

import pytest

from prompt_video_mcp.errors import GenerationError, TotalFailureError
from prompt_video_mcp.models.briefs import StyleBrief
from prompt_video_mcp.models.results import VariantFailure, VariantSuccess
from prompt_video_mcp.orchestrator import (
    MISSING_RENDER_RESULT,
    MISSING_SPEC_RESULT,
    StepLog,
    _correlate,
    orchestrate,
)
from prompt_video_mcp.types import RenderFailure
from tests.conftest import (
    BRIEF_TEXT,
    FakeModelService,
    FakeRenderEngine,
    briefs_json,
    scripted_responder,
)

PROMPT = "A product launch teaser for a coffee brand"
IMAGE = "data:image/png;base64,iVBORw0KGgo="


class TestOrchestrate:
    async def test_four_variants_mixed_failures(self, layout):
        """GIVEN spec failure for style 2 and render failure for style 3
        WHEN orchestrating four variants
        THEN all four records come back in order and the request succeeds."""
        service = FakeModelService(scripted_responder(
            briefs_json("Noir", "Pastel", "Glitch", "Retro"),
            {"Pastel": "sorry, no JSON today"},
        ))
        engine = FakeRenderEngine(fail_for={"style-3"})

        result = await orchestrate(
            PROMPT,
            model_service=service,
            render_engine=engine,
            layout=layout,
            variant_count=4,
            request_id="req42",
        )

        statuses = [(v.variant_id, v.status) for v in result.variants]
        assert statuses == [
            ("style-1", "succeeded"),
            ("style-2", "failed"),
            ("style-3", "failed"),
            ("style-4", "succeeded"),
        ]
        assert "parseable JSON" in result.variants[1].error
        assert "Bundling failed" in result.variants[2].error
        assert result.ok is True
        assert result.first_success.job_id == "req42-style-1-noir"
        result.raise_for_total_failure()
        assert "error" not in result.to_response().to_wire()

    async def test_total_failure_keeps_every_record(self, layout):
        service = FakeModelService(scripted_responder(briefs_json("A1", "B2", "C3", "D4")))
        engine = FakeRenderEngine(fail_for={"style-"})

        result = await orchestrate(
            PROMPT, model_service=service, render_engine=engine, layout=layout, variant_count=4,
        )

        assert result.ok is False
        assert len(result.variants) == 4
        assert all(isinstance(v, VariantFailure) for v in result.variants)
        with pytest.raises(TotalFailureError, match="All style variants failed to render.") as excinfo:
            result.raise_for_total_failure()
        assert len(excinfo.value.variants) == 4

        response = result.to_response().to_wire()
        assert response["ok"] is False
        assert response["error"] == "All style variants failed to render."
        assert "jobId" not in response

    async def test_brief_failure_is_fatal(self, layout, render_engine):
        service = FakeModelService(scripted_responder(briefs_json("Only")))

        with pytest.raises(GenerationError, match="Expected exactly 4 styles"):
            await orchestrate(
                PROMPT, model_service=service, render_engine=render_engine, layout=layout, variant_count=4,
            )
        assert render_engine.bundled == []

    async def test_single_variant_default(self, layout, render_engine):
        service = FakeModelService(scripted_responder(briefs_json("Primary")))

        result = await orchestrate(PROMPT, model_service=service, render_engine=render_engine, layout=layout)

        assert len(result.variants) == 1
        assert result.variants[0].status == "succeeded"
        assert len(result.request_id) == 32

    async def test_image_reaches_every_render(self, layout, render_engine):
        service = FakeModelService(scripted_responder(briefs_json("A1", "B2", "C3", "D4")))

        await orchestrate(
            PROMPT,
            model_service=service,
            render_engine=render_engine,
            layout=layout,
            variant_count=4,
            image_data_url=IMAGE,
        )

        assert len(render_engine.props) == 4
        assert all(p["imageDataUrl"] == IMAGE for p in render_engine.props)

    async def test_step_log(self, layout):
        service = FakeModelService(scripted_responder(briefs_json("Noir", "Pastel", "Glitch", "Retro"), {"Pastel": "nope"}))
        engine = FakeRenderEngine(fail_for={"style-3"})
        steps = StepLog("req7")

        await orchestrate(
            PROMPT,
            model_service=service,
            render_engine=engine,
            layout=layout,
            variant_count=4,
            request_id="req7",
            steps=steps,
        )

        names = [entry.step for entry in steps.entries]
        assert names[:2] == ["styles.generate.start", "styles.generate.done"]
        assert "variant.2.generate.failed" in names
        assert "variant.2.render.start" not in names
        assert "variant.3.render.failed" in names
        assert "variant.4.render.done" in names
        assert steps.entries[1].detail == "Noir | Pastel | Glitch | Retro"
        assert all(e.at.endswith("Z") for e in steps.entries)

    async def test_two_requests_never_share_outputs(self, layout, render_engine):
        service = FakeModelService(scripted_responder(briefs_json("Same")))

        first = await orchestrate(PROMPT, model_service=service, render_engine=render_engine, layout=layout)
        second = await orchestrate(PROMPT, model_service=service, render_engine=render_engine, layout=layout)

        assert first.request_id != second.request_id
        assert first.variants[0].output_path != second.variants[0].output_path
        assert len(set(render_engine.bundled)) == 2


class TestCorrelate:
    def _briefs(self):
        return [StyleBrief(variant_id=f"style-{n}", style_name=f"S{n}", style_brief=BRIEF_TEXT) for n in (1, 2)]

    def test_missing_spec_result(self):
        variants = _correlate(self._briefs(), [], [])
        assert [v.error for v in variants] == [MISSING_SPEC_RESULT, MISSING_SPEC_RESULT]

    def test_missing_render_result(self):
        from prompt_video_mcp.normalize import normalize_spec
        from prompt_video_mcp.types import GeneratedSpec, SpecSuccess

        briefs = self._briefs()
        generated = GeneratedSpec(spec=normalize_spec({}), raw_content="{}")
        specs = [SpecSuccess(style=b, generated=generated) for b in briefs]

        variants = _correlate(briefs, specs, [RenderFailure(variant_id="style-2", error="")])

        assert variants[0].error == MISSING_RENDER_RESULT
        assert variants[1].error == MISSING_RENDER_RESULT
        assert not any(isinstance(v, VariantSuccess) for v in variants)
