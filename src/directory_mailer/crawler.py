"""Pagination-driven directory crawl."""

from __future__ import annotations

import logging
from collections.abc import Callable
from urllib.parse import urlencode

from tqdm import tqdm

from .config import CampaignConfig
from .dedup import Deduplicator
from .extraction import extract_contact, find_listing_links
from .models import ContactRecord, CrawlStats, Fetcher

SleepFn = Callable[[float], None]


def build_search_url(base_url: str, search_terms: str, location: str, page: int) -> str:
    """Build the listing URL for one results page."""
    query = urlencode(
        {"search_terms": search_terms, "geo_location_terms": location, "page": page}
    )
    return f"{base_url.rstrip('/')}/search?{query}"


class DirectoryCrawler:
    """Walks listing pages in order and collects unique contacts.

    The crawl stops at the first listing page without detail links. A
    ``max_pages`` cap and a repeated-listing check guard against sites that
    never return an empty page.
    """

    def __init__(
        self,
        fetcher: Fetcher,
        *,
        config: CampaignConfig,
        deduplicator: Deduplicator | None = None,
        sleep_fn: SleepFn,
        logger: logging.Logger,
    ) -> None:
        self._fetcher = fetcher
        self._config = config
        self._dedup = deduplicator if deduplicator is not None else Deduplicator()
        self._sleep_fn = sleep_fn
        self._logger = logger
        self.stats = CrawlStats()

    def crawl(self) -> list[ContactRecord]:
        records: list[ContactRecord] = []
        previous_links: list[str] | None = None
        page = 1
        progress = tqdm(desc="listing pages", unit="page", disable=not self._config.show_progress)
        try:
            while True:
                if self._config.max_pages is not None and page > self._config.max_pages:
                    self._logger.warning(
                        "Reached page cap (%d); stopping crawl.", self._config.max_pages
                    )
                    break

                listing_url = build_search_url(
                    self._config.base_url, self._config.search_terms, self._config.location, page
                )
                self._logger.info("Fetching listing page %d: %s", page, listing_url)
                html = self._fetcher.fetch(listing_url)
                links = find_listing_links(
                    html, self._config.base_url, selector=self._config.listing_selector
                )
                if not links:
                    self._logger.info("No listings on page %d; crawl complete.", page)
                    break
                if links == previous_links:
                    self._logger.warning(
                        "Page %d repeats the previous listing; stopping crawl.", page
                    )
                    break

                self.stats.pages += 1
                self.stats.links += len(links)
                for detail_url in links:
                    record = self._visit(detail_url)
                    if record is not None:
                        records.append(record)
                    self._sleep_fn(self._config.delay)

                previous_links = links
                progress.update(1)
                page += 1
        finally:
            progress.close()

        self.stats.records = len(records)
        self._logger.info(
            "Crawl finished: %d pages, %d links, %d unique contacts.",
            self.stats.pages,
            self.stats.links,
            len(records),
        )
        return records

    def _visit(self, detail_url: str) -> ContactRecord | None:
        html = self._fetcher.fetch(detail_url)
        record = extract_contact(html, detail_url, selector=self._config.email_selector)
        if record is None:
            self.stats.missing += 1
            self._logger.debug("No email on %s", detail_url)
            return None
        if not self._dedup.admit(record.identity):
            self.stats.duplicates += 1
            self._logger.info("Duplicate contact skipped: %s", record.email)
            return None
        self._logger.info("Business URL: %s", detail_url)
        self._logger.info("Business Email: %s", record.email)
        return record
