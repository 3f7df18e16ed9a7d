"""HTTP fetcher for directory pages."""

from __future__ import annotations

import logging

from requests import Session
from requests.adapters import HTTPAdapter
from requests.exceptions import RequestException
from urllib3.util.retry import Retry

from .errors import NetworkError
from .validation import is_supported_url


def make_session(user_agent: str, retries: int = 0) -> Session:
    """Create requests session; transport retries are off unless asked for."""
    session = Session()
    session.headers.update({"User-Agent": user_agent})
    retry = Retry(
        total=retries,
        backoff_factor=0.6,
        status_forcelist=[429, 500, 502, 503, 504],
        allowed_methods=frozenset({"GET"}),
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


class RequestsFetcher:
    """Requests-based fetcher that surfaces failures as NetworkError."""

    def __init__(
        self,
        *,
        session: Session,
        timeout: float,
        logger: logging.Logger,
    ) -> None:
        self._session = session
        self._timeout = timeout
        self._logger = logger

    def fetch(self, url: str) -> str:
        if not is_supported_url(url):
            raise NetworkError(f"Unsupported URL: {url}")
        self._logger.debug("GET %s", url)
        try:
            response = self._session.get(url, timeout=self._timeout)
            response.raise_for_status()
            return str(response.text)
        except RequestException as exc:
            raise NetworkError(f"Fetch failed for {url}: {exc}") from exc

    def close(self) -> None:
        self._session.close()
