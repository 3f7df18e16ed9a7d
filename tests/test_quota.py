import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import date, timedelta
from typing import Any

import fakeredis
import pytest
import redis

from directory_mailer.errors import StoreError
from directory_mailer.quota import KEY_TTL_SECONDS, QuotaGate, daily_key
from directory_mailer.store import get_redis

TODAY = date(2026, 3, 14)


class FlakyRedis:
    """Fails the first ``failures`` round-trips with a connection error."""

    def __init__(self, inner: fakeredis.FakeRedis, failures: int) -> None:
        self.inner = inner
        self.failures = failures
        self.calls = 0

    def _maybe_fail(self) -> None:
        self.calls += 1
        if self.calls <= self.failures:
            raise redis.exceptions.ConnectionError("store unreachable")

    def pipeline(self, transaction: bool = True) -> Any:
        self._maybe_fail()
        return self.inner.pipeline(transaction)

    def get(self, name: str) -> Any:
        self._maybe_fail()
        return self.inner.get(name)


def _gate(store: Any, *, day: date = TODAY, sleeps: list[float] | None = None) -> QuotaGate:
    return QuotaGate(
        store,
        clock=lambda: day,
        sleep_fn=(sleeps.append if sleeps is not None else (lambda _d: None)),
        logger=logging.getLogger("test"),
    )


def test_daily_key_format() -> None:
    assert daily_key(TODAY) == "emails_sent:2026-03-14"


def test_first_reservation_creates_key_with_ttl() -> None:
    r = fakeredis.FakeRedis(decode_responses=True)
    gate = _gate(r)
    assert gate.try_reserve(3) is True
    key = daily_key(TODAY)
    assert r.get(key) == "1"
    assert 0 < r.ttl(key) <= KEY_TTL_SECONDS


def test_reservations_never_exceed_daily_max() -> None:
    r = fakeredis.FakeRedis(decode_responses=True)
    gate = _gate(r)
    results = [gate.try_reserve(3) for _ in range(6)]
    assert results == [True, True, True, False, False, False]
    assert r.get(daily_key(TODAY)) == "3"
    assert gate.used_today() == 3
    assert gate.remaining(3) == 0


def test_zero_counter_gets_expiry_reset() -> None:
    r = fakeredis.FakeRedis(decode_responses=True)
    key = daily_key(TODAY)
    r.set(key, 0)
    assert r.ttl(key) == -1
    assert _gate(r).try_reserve(2) is True
    assert r.get(key) == "1"
    assert r.ttl(key) > 0


def test_external_value_above_max_is_left_alone() -> None:
    r = fakeredis.FakeRedis(decode_responses=True)
    key = daily_key(TODAY)
    r.set(key, 15)
    assert _gate(r).try_reserve(10) is False
    assert r.get(key) == "15"


def test_days_are_isolated() -> None:
    r = fakeredis.FakeRedis(decode_responses=True)
    assert _gate(r).try_reserve(1) is True
    assert _gate(r).try_reserve(1) is False
    tomorrow = _gate(r, day=TODAY + timedelta(days=1))
    assert tomorrow.try_reserve(1) is True
    assert r.get(daily_key(TODAY)) == "1"
    assert r.get(daily_key(TODAY + timedelta(days=1))) == "1"


def test_retry_succeeds_on_fifth_attempt() -> None:
    store = FlakyRedis(fakeredis.FakeRedis(decode_responses=True), failures=4)
    sleeps: list[float] = []
    assert _gate(store, sleeps=sleeps).try_reserve(5) is True
    assert store.calls == 5
    assert sleeps == [0.5, 0.5, 0.5, 0.5]


def test_retry_gives_up_after_five_attempts() -> None:
    store = FlakyRedis(fakeredis.FakeRedis(decode_responses=True), failures=6)
    sleeps: list[float] = []
    with pytest.raises(StoreError):
        _gate(store, sleeps=sleeps).try_reserve(5)
    assert store.calls == 5
    assert len(sleeps) == 4
    assert store.inner.get(daily_key(TODAY)) is None


def test_concurrent_reservations_respect_limit() -> None:
    r = fakeredis.FakeRedis(decode_responses=True)
    limit = 7

    def task(_i: int) -> bool:
        return _gate(r).try_reserve(limit)

    with ThreadPoolExecutor(max_workers=16) as pool:
        results = list(pool.map(task, range(40)))

    assert sum(results) == limit
    assert r.get(daily_key(TODAY)) == str(limit)


def test_get_redis_builds_decoding_client() -> None:
    client = get_redis("redis://cache.test:6380/2")
    assert isinstance(client, redis.Redis)
    kwargs = client.connection_pool.connection_kwargs
    assert kwargs["host"] == "cache.test"
    assert kwargs["port"] == 6380
    assert kwargs["decode_responses"] is True


def test_non_integer_counter_raises_store_error_without_retry() -> None:
    r = fakeredis.FakeRedis(decode_responses=True)
    r.set(daily_key(TODAY), "garbage")
    sleeps: list[float] = []
    gate = _gate(r, sleeps=sleeps)
    with pytest.raises(StoreError):
        gate.try_reserve(5)
    with pytest.raises(StoreError):
        gate.used_today()
    assert sleeps == []
    assert r.get(daily_key(TODAY)) == "garbage"


def test_wrong_key_type_raises_store_error() -> None:
    r = fakeredis.FakeRedis(decode_responses=True)
    r.lpush(daily_key(TODAY), "x")
    sleeps: list[float] = []
    with pytest.raises(StoreError) as exc_info:
        _gate(r, sleeps=sleeps).try_reserve(5)
    assert isinstance(exc_info.value.__cause__, redis.exceptions.ResponseError)
    assert sleeps == []
