"""Variant generation and render orchestration.

One request flows through three stages:

1. **Briefs**: a single model call producing N style directions. Failure
   here ends the request.
2. **Specs**: one model call per brief, all concurrent.
3. **Renders**: one Remotion job per successful spec, all concurrent.

Stage outcomes are correlated back to the briefs by ``variant_id`` so the
result always holds exactly one record per brief, in brief order, no
matter which stage a variant failed in.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

from .briefs import generate_briefs
from .config import get_config
from .errors import TotalFailureError
from .model_service import ModelService
from .models.briefs import StyleBrief
from .models.results import (
    GenerateResponse,
    LogEntry,
    VariantFailure,
    VariantResult,
    VariantSuccess,
)
from .render.artifacts import JobLayout
from .render.engine import RenderEngine
from .render.invoker import render_variants
from .specs import generate_specs_for_styles
from .types import RenderOutcome, RenderSuccess, RenderVariantInput, SpecOutcome, SpecSuccess

logger = logging.getLogger(__name__)

MISSING_SPEC_RESULT = "Video spec generation did not return a result."
MISSING_RENDER_RESULT = "Render did not complete for this style."


def new_request_id() -> str:
    return uuid.uuid4().hex


class StepLog:
    """Chronological, request-scoped step log mirrored to the module logger."""

    def __init__(self, request_id: str) -> None:
        self.request_id = request_id
        self.entries: list[LogEntry] = []

    def add(self, step: str, detail: str | None = None) -> None:
        at = datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
        self.entries.append(LogEntry(at=at, step=step, detail=detail))
        if detail:
            logger.info("[%s] %s: %s", self.request_id, step, detail)
        else:
            logger.info("[%s] %s", self.request_id, step)


@dataclass
class OrchestrationResult:
    request_id: str
    variants: list[VariantResult]
    steps: StepLog = field(repr=False)

    @property
    def ok(self) -> bool:
        """True when at least one variant rendered."""
        return self.first_success is not None

    @property
    def first_success(self) -> VariantSuccess | None:
        return next((v for v in self.variants if isinstance(v, VariantSuccess)), None)

    def raise_for_total_failure(self) -> None:
        if not self.ok:
            raise TotalFailureError(self.variants)

    def to_response(self) -> GenerateResponse:
        first = self.first_success
        error = None
        try:
            self.raise_for_total_failure()
        except TotalFailureError as exc:
            error = str(exc)
        return GenerateResponse(
            ok=self.ok,
            request_id=self.request_id,
            job_id=first.job_id if first else None,
            video_url=first.video_url if first else None,
            metadata=first.metadata if first else None,
            variants=self.variants,
            logs=self.steps.entries,
            error=error,
        )


def _correlate(
    briefs: list[StyleBrief],
    spec_outcomes: list[SpecOutcome],
    render_outcomes: list[RenderOutcome],
) -> list[VariantResult]:
    specs_by_id = {o.style.variant_id: o for o in spec_outcomes}
    renders_by_id = {o.variant_id: o for o in render_outcomes}

    variants: list[VariantResult] = []
    for brief in briefs:
        common = {
            "variant_id": brief.variant_id,
            "style_name": brief.style_name,
            "style_brief": brief.style_brief,
        }
        spec = specs_by_id.get(brief.variant_id)
        if spec is None:
            variants.append(VariantFailure(**common, error=MISSING_SPEC_RESULT))
            continue
        if not isinstance(spec, SpecSuccess):
            variants.append(VariantFailure(**common, error=spec.error))
            continue
        render = renders_by_id.get(brief.variant_id)
        if not isinstance(render, RenderSuccess):
            error = render.error if render is not None else MISSING_RENDER_RESULT
            variants.append(VariantFailure(**common, error=error or MISSING_RENDER_RESULT))
            continue
        variants.append(
            VariantSuccess(
                **common,
                job_id=render.job_id,
                video_url=render.video_url,
                output_path=str(render.output_path),
                metadata=render.metadata,
            )
        )
    return variants


async def orchestrate(
    prompt: str,
    *,
    model_service: ModelService,
    render_engine: RenderEngine,
    layout: JobLayout,
    model: str | None = None,
    image_data_url: str | None = None,
    variant_count: int = 1,
    request_id: str | None = None,
    steps: StepLog | None = None,
) -> OrchestrationResult:
    """Generate and render *variant_count* style variants of *prompt*.

    Args:
        prompt: Validated user prompt.
        model_service: Backend for every model call of this request.
        render_engine: Engine that bundles and renders each job.
        layout: Workspace/output naming for render jobs.
        model: Model id override.
        image_data_url: Uploaded image, injected into every variant's props.
        variant_count: Number of style variants to produce.
        request_id: Namespace for job workspaces; generated when omitted.
        steps: Step log to append to; a new one is created when omitted.

    Returns:
        One variant record per brief, in brief order. Partial success is
        success; check ``ok`` or call ``raise_for_total_failure()``.

    Raises:
        GenerationError: when the brief stage fails.
    """
    request_id = request_id or new_request_id()
    steps = steps if steps is not None else StepLog(request_id)
    image_attached = image_data_url is not None

    steps.add("styles.generate.start", f"Model: {model or get_config().default_model}. Count: {variant_count}")
    briefs = await generate_briefs(
        prompt,
        model_service=model_service,
        model=model,
        image_attached=image_attached,
        count=variant_count,
    )
    steps.add("styles.generate.done", " | ".join(b.style_name for b in briefs))

    for brief in briefs:
        steps.add(f"variant.{brief.variant_number}.generate.start", brief.style_name)
    spec_outcomes = await generate_specs_for_styles(
        prompt,
        briefs,
        model_service=model_service,
        model=model,
        image_data_url=image_data_url,
    )
    for outcome in spec_outcomes:
        number = outcome.style.variant_number
        if isinstance(outcome, SpecSuccess):
            spec = outcome.generated.spec
            steps.add(
                f"variant.{number}.generate.done",
                f"{spec.width}x{spec.height} @ {spec.fps}fps, {spec.duration_in_frames} frames",
            )
        else:
            steps.add(f"variant.{number}.generate.failed", outcome.error)

    jobs = [
        RenderVariantInput(request_id=request_id, style=o.style, spec=o.generated.spec)
        for o in spec_outcomes
        if isinstance(o, SpecSuccess)
    ]
    for job in jobs:
        steps.add(f"variant.{job.style.variant_number}.render.start", job.style.style_name)
    render_outcomes = await render_variants(jobs, engine=render_engine, layout=layout) if jobs else []
    for job, outcome in zip(jobs, render_outcomes):
        number = job.style.variant_number
        if isinstance(outcome, RenderSuccess):
            steps.add(f"variant.{number}.render.done", f"jobId={outcome.job_id}")
        else:
            steps.add(f"variant.{number}.render.failed", outcome.error)

    variants = _correlate(briefs, spec_outcomes, render_outcomes)
    succeeded = sum(isinstance(v, VariantSuccess) for v in variants)
    logger.info("[%s] %d/%d variant(s) succeeded", request_id, succeeded, len(variants))
    return OrchestrationResult(request_id=request_id, variants=variants, steps=steps)
