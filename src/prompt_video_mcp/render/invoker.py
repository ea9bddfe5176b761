"""Render one normalized spec per variant into an MP4."""

from __future__ import annotations

import asyncio
import logging

from ..concurrency import settle
from ..config import get_config
from ..models.video_spec import VariantMetadata
from ..types import RenderFailure, RenderOutcome, RenderSuccess, RenderVariantInput
from .artifacts import COMPOSITION_ID, JobLayout
from .engine import RenderEngine

logger = logging.getLogger(__name__)

UNKNOWN_RENDER_ERROR = "Unknown render error"


async def render_variant(
    job: RenderVariantInput,
    *,
    engine: RenderEngine,
    layout: JobLayout,
) -> RenderOutcome:
    """Write the job's sources, bundle, resolve the composition, render.

    Never raises for render problems; any failure becomes a
    ``RenderFailure`` for this variant only.
    """
    variant_id = job.style.variant_id
    try:
        job_id = layout.job_id(job.request_id, variant_id, job.style.style_name)
        files = await layout.write_job_files(job.request_id, variant_id, job.spec)
        output_path = layout.output_path(job_id)

        bundle = await engine.bundle(files.entry)
        composition = await engine.select_composition(COMPOSITION_ID, bundle, job.spec.input_props)
        await engine.render(composition, bundle, output_path, job.spec.input_props)
    except asyncio.CancelledError:
        raise
    except Exception as exc:
        logger.warning("Render failed for %s (%s): %s", variant_id, job.style.style_name, exc)
        return RenderFailure(variant_id=variant_id, error=str(exc) or UNKNOWN_RENDER_ERROR)

    return RenderSuccess(
        variant_id=variant_id,
        job_id=job_id,
        video_url=layout.video_url(job_id),
        output_path=output_path,
        metadata=VariantMetadata.from_spec(job.spec),
    )


async def render_variants(
    jobs: list[RenderVariantInput],
    *,
    engine: RenderEngine,
    layout: JobLayout,
    concurrency: int | None = None,
) -> list[RenderOutcome]:
    """Render all *jobs* concurrently, at most ``render_concurrency`` at a time.

    Results follow *jobs* order.
    """
    limit = asyncio.Semaphore(concurrency or get_config().render_concurrency)
    settled = await settle(
        (render_variant(job, engine=engine, layout=layout) for job in jobs),
        limit=limit,
    )
    outcomes: list[RenderOutcome] = []
    for job, result in zip(jobs, settled):
        if result.ok:
            outcomes.append(result.value)
        else:
            outcomes.append(
                RenderFailure(variant_id=job.style.variant_id, error=str(result.error) or UNKNOWN_RENDER_ERROR)
            )
    return outcomes
