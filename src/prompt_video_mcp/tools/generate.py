"""Generate tools — 3 tools on a FastMCP sub-server."""

from __future__ import annotations

from fastmcp import FastMCP
from mcp.types import ToolAnnotations

from ..config import get_config
from ..errors import GenerationError, InputValidationError, TotalFailureError, make_tool_error
from ..prereqs import check_prereqs
from ..request import handle_generate_request, list_available_models
from ..tracing import trace
from ..types import ImageDataUrl, ModelName, PromptText, VariantCount

generate_server = FastMCP("generate")


def _failure_payload(status: int, payload: dict) -> dict:
    """Attach the categorized tool error to a failed generate payload."""
    message = payload.get("error", "")
    if status == 400:
        exc: Exception = InputValidationError(message)
    elif payload.get("variants"):
        exc = TotalFailureError([], message)
    else:
        exc = GenerationError(message)
    return {**payload, **make_tool_error(exc)}


@generate_server.tool(
    annotations=ToolAnnotations(
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=False,
        openWorldHint=True,
    )
)
@trace(name="video_generate", span_type="TOOL")
async def video_generate(
    prompt: PromptText,
    model: ModelName = None,
    variant_count: VariantCount = 1,
    image_data_url: ImageDataUrl = None,
) -> dict:
    """Turn a text prompt into rendered MP4 video variants.

    Gemini drafts ``variant_count`` distinct style directions, authors a
    Remotion composition for each, and every composition is rendered in
    parallel. One working variant is enough for success.

    Args:
        prompt: Description of the video to make.
        model: Gemini model id override.
        variant_count: 1 for a single video, 4 for four style variants.
        image_data_url: Optional image to feature in every variant.

    Returns:
        Dict with ok, requestId, the first video's jobId/videoUrl/metadata,
        per-variant results, and the step log. Failures add category/hint.
    """
    body = {"prompt": prompt, "variantCount": variant_count}
    if model is not None:
        body["model"] = model
    if image_data_url is not None:
        body["imageDataUrl"] = image_data_url

    status, payload = await handle_generate_request(body)
    if status != 200:
        return _failure_payload(status, payload)
    return payload


@generate_server.tool(
    annotations=ToolAnnotations(
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=True,
    )
)
@trace(name="video_models", span_type="TOOL")
async def video_models() -> dict:
    """List Gemini model ids usable for generation.

    Falls back to the configured list when the model service is unreachable.

    Returns:
        Dict with ok, models, and the server's default model.
    """
    models = await list_available_models()
    return {"ok": True, "models": models, "default_model": get_config().default_model}


@generate_server.tool(
    annotations=ToolAnnotations(
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    )
)
@trace(name="video_health", span_type="TOOL")
async def video_health() -> dict:
    """Check that Node.js, Remotion and Gemini credentials are available for rendering."""
    return check_prereqs().model_dump()
