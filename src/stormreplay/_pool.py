"""Bounded worker pool for fan-out fetches.

K workers share one queue and each keeps pulling jobs until it is empty, so
at most K jobs are in flight at any time.  Results come back in completion
order; callers merge by natural key afterwards.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from collections.abc import Awaitable, Callable, Iterable
from typing import TypeVar

_logger = logging.getLogger(__name__)

J = TypeVar("J")
R = TypeVar("R")


def _log_and_drop(job: object, exc: BaseException) -> None:
    _logger.debug("Pool job %r failed; dropping", job, exc_info=exc)


async def run_bounded(
    jobs: Iterable[J],
    worker: Callable[[J], Awaitable[R]],
    *,
    limit: int,
    on_error: Callable[[J, Exception], None] = _log_and_drop,
) -> list[R]:
    """Run ``worker`` over ``jobs`` with at most ``limit`` running concurrently.

    A job that raises is handed to ``on_error`` and contributes no result;
    the pool itself only fails if ``on_error`` raises or the caller is
    cancelled.
    """
    if limit <= 0:
        raise ValueError(f"limit must be positive, got {limit}")

    queue: deque[J] = deque(jobs)
    results: list[R] = []

    async def _drain() -> None:
        while queue:
            job = queue.popleft()
            try:
                results.append(await worker(job))
            except Exception as exc:
                on_error(job, exc)

    workers = min(limit, len(queue))
    await asyncio.gather(*(_drain() for _ in range(workers)))
    return results
