"""Join-all helper for the parallel stages.

``settle`` runs every awaitable to completion and reports each outcome in
input order. One failure never cancels its siblings.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Iterable
from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Settled(Generic[T]):
    """Outcome of one awaitable: a value or the exception it raised."""

    value: T | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def settle(
    awaitables: Iterable[Awaitable[T]],
    *,
    limit: asyncio.Semaphore | None = None,
) -> list[Settled[T]]:
    """Await all of *awaitables* and return their outcomes in order.

    Args:
        awaitables: Coroutines or futures to run concurrently.
        limit: Optional semaphore bounding how many run at once.

    Raises:
        asyncio.CancelledError (or another ``BaseException``) raised by a
        child. Ordinary exceptions are captured, never raised.
    """

    async def _bounded(aw: Awaitable[T]) -> T:
        async with limit:
            return await aw

    tasks = [_bounded(aw) if limit is not None else aw for aw in awaitables]
    results = await asyncio.gather(*tasks, return_exceptions=True)

    settled: list[Settled[T]] = []
    for result in results:
        if isinstance(result, Exception):
            settled.append(Settled(error=result))
        elif isinstance(result, BaseException):
            raise result
        else:
            settled.append(Settled(value=result))
    return settled
