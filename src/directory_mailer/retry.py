"""Bounded fixed-delay retry helper."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import TypeVar

T = TypeVar("T")


def retry_call(
    operation: Callable[[], T],
    *,
    attempts: int,
    delay: float,
    retry_on: tuple[type[BaseException], ...],
    sleep_fn: Callable[[float], None] = time.sleep,
    logger: logging.Logger | None = None,
) -> T:
    """Run ``operation`` up to ``attempts`` times, sleeping ``delay`` between tries.

    Only exceptions listed in ``retry_on`` are retried; the last one is re-raised
    once the attempts are used up. No sleep follows the final attempt.
    """
    if attempts < 1:
        raise ValueError("attempts must be >= 1")
    for attempt in range(1, attempts + 1):
        try:
            return operation()
        except retry_on as exc:
            if attempt == attempts:
                raise
            if logger is not None:
                logger.warning(
                    "Attempt %d/%d failed: %s; retrying in %.1fs", attempt, attempts, exc, delay
                )
            sleep_fn(delay)
    raise AssertionError("unreachable")
