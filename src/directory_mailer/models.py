"""Protocols and lightweight model types."""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Protocol

EMAIL_REGEX = re.compile(r"[a-zA-Z0-9._%+\-]+@[a-zA-Z0-9.\-]+\.[a-zA-Z]{2,}", re.IGNORECASE)


def normalize_identity(text: str) -> str:
    """Return the dedup key for an extracted email field.

    A value holding a structured address collapses to the lowercase address;
    anything else is kept as the raw stripped text.
    """
    value = (text or "").strip()
    match = EMAIL_REGEX.search(value)
    if match:
        return match.group(0).lower()
    return value


@dataclass(frozen=True)
class ContactRecord:
    """One business contact found on a directory detail page."""

    source_url: str
    email: str

    @property
    def identity(self) -> str:
        return normalize_identity(self.email)

    def to_dict(self) -> dict[str, str]:
        return {"url": self.source_url, "email": self.email}


@dataclass(frozen=True)
class Notification:
    """Rendered message content for one recipient."""

    subject: str
    body: str
    subtype: str = "html"


@dataclass
class CrawlStats:
    """Counters collected during one crawl run."""

    pages: int = 0
    links: int = 0
    records: int = 0
    duplicates: int = 0
    missing: int = 0


@dataclass
class DispatchReport:
    """Per-recipient outcome of one dispatch pass."""

    sent: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    skipped_invalid: list[str] = field(default_factory=list)
    skipped_mx: list[str] = field(default_factory=list)
    quota_exhausted: bool = False

    @property
    def attempted(self) -> int:
        return len(self.sent) + len(self.failed)


class Fetcher(Protocol):
    """Contract for HTML fetchers."""

    def fetch(self, url: str) -> str:
        """Return HTML content for a URL or raise NetworkError."""


class Sender(Protocol):
    """Contract for notification transports."""

    def send(self, recipient: str, notification: Notification) -> None:
        """Deliver one notification or raise SendError."""


class Closable(Protocol):
    """Close contract for network resources."""

    def close(self) -> None:
        """Release associated resources."""


class CounterStore(Protocol):
    """Subset of the redis client used by the quota gate."""

    def get(self, name: str) -> Any:
        """Return the raw value stored under a key."""

    def pipeline(self, transaction: bool = True) -> Any:
        """Return a transactional pipeline."""


Renderer = Callable[[ContactRecord], Notification]
