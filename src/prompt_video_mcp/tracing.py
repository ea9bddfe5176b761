"""Optional MLflow tracing.

With ``mlflow-tracing`` installed and ``MLFLOW_TRACKING_URI`` set, every
google-genai chat turn is autologged and the MCP tools open ``TOOL`` spans
that parent those turns. Without it the decorator is a no-op and the server
runs unchanged.

Env vars:
    MLFLOW_TRACKING_URI: Trace store. Empty disables tracing.
    MLFLOW_EXPERIMENT_NAME: Experiment name (default ``prompt-video-mcp``).
    GEMINI_TRACING_ENABLED: ``"false"`` disables tracing even with a URI.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from .config import get_config

logger = logging.getLogger(__name__)

try:
    import mlflow
    import mlflow.gemini

    _HAS_MLFLOW = True
except ImportError:
    _HAS_MLFLOW = False


def is_enabled() -> bool:
    """Return True when mlflow is importable and config turns tracing on."""
    return _HAS_MLFLOW and get_config().tracing_enabled


def trace(
    func: Callable | None = None,
    *,
    name: str | None = None,
    span_type: str | None = None,
    attributes: dict[str, Any] | None = None,
) -> Callable:
    """``@mlflow.trace`` when tracing is on, identity otherwise.

    Usage::

        @trace(name="video_generate", span_type="TOOL")
        async def video_generate(...): ...
    """
    if not is_enabled():
        return func if func is not None else (lambda f: f)
    return mlflow.trace(func, name=name, span_type=span_type, attributes=attributes)


def setup() -> bool:
    """Point MLflow at the configured store and turn on Gemini autolog.

    Returns whether tracing is active. A failing tracking server is logged
    and otherwise ignored so the server still starts.
    """
    if not is_enabled():
        return False

    cfg = get_config()
    try:
        mlflow.set_tracking_uri(cfg.mlflow_tracking_uri)
        mlflow.set_experiment(cfg.mlflow_experiment_name)
        mlflow.gemini.autolog()
    except Exception:
        logger.warning("MLflow setup failed, tracing disabled for this run", exc_info=True)
        return False
    logger.info("Tracing to %s (experiment=%s)", cfg.mlflow_tracking_uri, cfg.mlflow_experiment_name)
    return True


def shutdown() -> None:
    """Flush traces still queued for async upload."""
    if not is_enabled():
        return
    try:
        mlflow.flush_trace_async_logging()
    except Exception:
        logger.warning("MLflow trace flush failed", exc_info=True)
