"""Backoff for transient model-service failures.

Only idempotent calls go through here (model listing, session start). A
prompt send is never retried: each style is authored exactly once.
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from typing import TypeVar

from .config import get_config

logger = logging.getLogger(__name__)

T = TypeVar("T")

TRANSIENT_MARKERS: tuple[str, ...] = (
    "429",
    "quota",
    "resource_exhausted",
    "timeout",
    "503",
    "service unavailable",
)


def is_transient(exc: BaseException) -> bool:
    """True when the error text names a rate limit, timeout, or outage."""
    text = str(exc).lower()
    return any(marker in text for marker in TRANSIENT_MARKERS)


def backoff_delay(attempt: int, base: float, ceiling: float) -> float:
    """Exponential delay for the zero-based *attempt*, with up to 1s of jitter."""
    return min(base * (2**attempt) + random.random(), ceiling)


async def with_retry(call: Callable[[], Awaitable[T]], *, label: str = "model call") -> T:
    """Await ``call()`` until it succeeds or fails permanently.

    Args:
        call: Zero-arg callable producing a fresh awaitable per attempt.
        label: Short description used in retry log lines.

    Raises:
        The final exception once attempts run out, or immediately for
        errors that are not transient.
    """
    cfg = get_config()
    attempts = cfg.retry_max_attempts

    for attempt in range(attempts):
        try:
            return await call()
        except Exception as exc:
            if attempt + 1 >= attempts or not is_transient(exc):
                raise
            delay = backoff_delay(attempt, cfg.retry_base_delay, cfg.retry_max_delay)
            logger.warning("%s failed (attempt %d/%d), retrying in %.1fs: %s", label, attempt + 1, attempts, delay, exc)
            await asyncio.sleep(delay)
    raise RuntimeError(f"{label}: retry loop exited without a result")
