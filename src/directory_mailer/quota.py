"""Persistent daily send quota backed by Redis."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from datetime import date
from typing import TypeVar

from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError
from redis.exceptions import WatchError

from .errors import StoreError
from .models import CounterStore
from .retry import retry_call

T = TypeVar("T")

KEY_PREFIX = "emails_sent"
KEY_TTL_SECONDS = 86400
DEFAULT_ATTEMPTS = 5
DEFAULT_RETRY_DELAY = 0.5

TRANSIENT_ERRORS: tuple[type[BaseException], ...] = (RedisConnectionError, RedisTimeoutError)


def daily_key(day: date) -> str:
    """Return the counter key for a calendar day."""
    return f"{KEY_PREFIX}:{day.isoformat()}"


class QuotaGate:
    """Grants at most ``max_per_day`` reservations per calendar day.

    Each reservation is a WATCH/MULTI/EXEC compare-and-set on the day key, so
    independent processes sharing the store never push the counter past the
    limit. The key expires 24 hours after the first increment of the day.
    """

    def __init__(
        self,
        redis: CounterStore,
        *,
        attempts: int = DEFAULT_ATTEMPTS,
        delay: float = DEFAULT_RETRY_DELAY,
        clock: Callable[[], date] = date.today,
        sleep_fn: Callable[[float], None] = time.sleep,
        logger: logging.Logger,
    ) -> None:
        self._redis = redis
        self._attempts = attempts
        self._delay = delay
        self._clock = clock
        self._sleep_fn = sleep_fn
        self._logger = logger

    def try_reserve(self, max_per_day: int) -> bool:
        """Consume one quota slot for today; False when the day is exhausted."""
        key = daily_key(self._clock())
        return self._with_retry(lambda: self._reserve_once(key, max_per_day))

    def used_today(self) -> int:
        key = daily_key(self._clock())
        return self._with_retry(lambda: int(self._redis.get(key) or 0))

    def remaining(self, max_per_day: int) -> int:
        return max(0, max_per_day - self.used_today())

    def _with_retry(self, operation: Callable[[], T]) -> T:
        try:
            return retry_call(
                operation,
                attempts=self._attempts,
                delay=self._delay,
                retry_on=TRANSIENT_ERRORS,
                sleep_fn=self._sleep_fn,
                logger=self._logger,
            )
        except TRANSIENT_ERRORS as exc:
            raise StoreError(
                f"Quota store unavailable after {self._attempts} attempts: {exc}"
            ) from exc
        except (RedisError, ValueError) as exc:
            raise StoreError(f"Quota store returned an unusable reply: {exc}") from exc

    def _reserve_once(self, key: str, max_per_day: int) -> bool:
        while True:
            with self._redis.pipeline() as p:
                try:
                    p.watch(key)
                    raw = p.get(key)
                    current = int(raw) if raw is not None else 0
                    if current >= max_per_day:
                        p.unwatch()
                        self._logger.debug("Quota %s at %d/%d", key, current, max_per_day)
                        return False
                    p.multi()
                    p.incr(key, 1)
                    if current == 0:
                        p.expire(key, KEY_TTL_SECONDS)
                    p.execute()
                    self._logger.debug("Quota %s now %d/%d", key, current + 1, max_per_day)
                    return True
                except WatchError:
                    # another writer touched the key; re-read and decide again
                    continue
