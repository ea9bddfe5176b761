"""Transport-neutral request handling shared by the HTTP routes and MCP tools."""

from __future__ import annotations

import logging
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from typing import Any

from pydantic import ValidationError

from .config import get_config
from .errors import InputValidationError
from .model_service import GeminiModelService, ModelService
from .models.request import GenerateRequest
from .models.results import GenerateResponse
from .orchestrator import StepLog, new_request_id, orchestrate
from .render.artifacts import JobLayout
from .render.engine import RemotionCliEngine, RenderEngine
from .retry import with_retry

logger = logging.getLogger(__name__)

ServiceFactory = Callable[[], AbstractAsyncContextManager[ModelService]]


def _describe_validation_error(exc: ValidationError) -> str:
    problems = []
    for error in exc.errors():
        where = ".".join(str(p) for p in error["loc"])
        problems.append(f"{where}: {error['msg']}" if where else error["msg"])
    return "; ".join(problems)


def parse_generate_request(body: Any) -> GenerateRequest:
    """Validate a raw request body.

    Raises:
        InputValidationError: for anything but a well-formed request.
    """
    if not isinstance(body, dict):
        raise InputValidationError("Request body must be a JSON object")
    try:
        return GenerateRequest.model_validate(
            body,
            context={"max_image_length": get_config().max_image_data_url_length},
        )
    except ValidationError as exc:
        raise InputValidationError(_describe_validation_error(exc)) from exc


async def handle_generate_request(
    body: Any,
    *,
    service_factory: ServiceFactory | None = None,
    render_engine: RenderEngine | None = None,
    layout: JobLayout | None = None,
    request_id: str | None = None,
) -> tuple[int, dict]:
    """Run one generate request end to end.

    Returns:
        ``(status, payload)``: 400 for an invalid body, 500 when the brief
        stage fails or no variant succeeds, 200 otherwise. The payload
        always carries the request id and the step log.
    """
    request_id = request_id or new_request_id()
    steps = StepLog(request_id)
    steps.add("request.received", f"requestId={request_id}")

    steps.add("request.parse.start")
    try:
        request = parse_generate_request(body)
    except InputValidationError as exc:
        steps.add("request.parse.failed", str(exc))
        payload = GenerateResponse(ok=False, request_id=request_id, error=str(exc), logs=steps.entries)
        return 400, payload.to_wire()
    steps.add(
        "request.parse.done",
        f"Prompt length: {len(request.prompt)}. "
        f"Image attached: {'yes' if request.image_data_url else 'no'}. "
        f"Variants: {request.variant_count}",
    )

    factory = service_factory or GeminiModelService
    try:
        async with factory() as service:
            result = await orchestrate(
                request.prompt,
                model_service=service,
                render_engine=render_engine or RemotionCliEngine(),
                layout=layout or JobLayout.from_config(),
                model=request.model,
                image_data_url=request.image_data_url,
                variant_count=request.variant_count,
                request_id=request_id,
                steps=steps,
            )
    except Exception as exc:
        logger.error("[%s] Request failed: %s", request_id, exc)
        steps.add("request.failed", str(exc) or type(exc).__name__)
        payload = GenerateResponse(
            ok=False,
            request_id=request_id,
            error=str(exc) or "Unknown error",
            logs=steps.entries,
        )
        return 500, payload.to_wire()

    return (200 if result.ok else 500), result.to_response().to_wire()


async def list_available_models(service_factory: ServiceFactory | None = None) -> list[str]:
    """Model ids offered by the backend, or the configured fallback list."""
    cfg = get_config()
    factory = service_factory or GeminiModelService
    try:
        async with factory() as service:
            models = await with_retry(service.list_models, label="list models")
    except Exception as exc:
        logger.warning("Model listing failed, using fallback list: %s", exc)
        return list(cfg.fallback_models)
    return models or list(cfg.fallback_models)
