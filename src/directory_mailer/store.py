"""Redis connection factory for the quota counter."""

from __future__ import annotations

from redis import Redis


def get_redis(url: str) -> Redis:
    return Redis.from_url(url, decode_responses=True, socket_timeout=5.0)
