"""First-seen-wins deduplication of contact identities."""

from __future__ import annotations


class Deduplicator:
    """Tracks identities admitted during one crawl run."""

    def __init__(self) -> None:
        self._seen: set[str] = set()

    def admit(self, identity: str) -> bool:
        """Return True the first time an identity is presented, False afterwards."""
        if identity in self._seen:
            return False
        self._seen.add(identity)
        return True

    def __contains__(self, identity: object) -> bool:
        return identity in self._seen

    def __len__(self) -> int:
        return len(self._seen)
