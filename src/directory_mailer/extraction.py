"""Pure extraction and URL normalization utilities."""

from __future__ import annotations

from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from .config import EMAIL_SELECTOR, LISTING_LINK_SELECTOR
from .models import ContactRecord


def canonicalize_url(href: str, base: str) -> str:
    """Resolve relative URLs and strip hash fragments."""
    return urljoin(base, href).split("#", maxsplit=1)[0]


def dedupe_preserve_order(items: list[str]) -> list[str]:
    """Dedupe values while preserving first-seen order."""
    output: list[str] = []
    seen: set[str] = set()
    for item in items:
        if item in seen:
            continue
        seen.add(item)
        output.append(item)
    return output


def find_listing_links(
    html: str, base_url: str, selector: str = LISTING_LINK_SELECTOR
) -> list[str]:
    """Return absolute detail-page URLs from a listing page, in document order."""
    soup = BeautifulSoup(html or "", "html.parser")
    links: list[str] = []
    for anchor in soup.select(selector):
        href = str(anchor.get("href") or "").strip()
        if not href or href.lower().startswith(("javascript:", "mailto:")):
            continue
        links.append(canonicalize_url(href, base_url))
    return dedupe_preserve_order(links)


def _email_from_anchor(anchor: Tag) -> str:
    href = str(anchor.get("href") or "").strip()
    if href.lower().startswith("mailto:"):
        address = href.split(":", maxsplit=1)[1].split("?", maxsplit=1)[0].strip()
        if address:
            return address
    return anchor.get_text(strip=True)


def extract_contact(
    html: str, url: str, selector: str = EMAIL_SELECTOR
) -> ContactRecord | None:
    """Return the contact found on a detail page, or None when it has no email field."""
    soup = BeautifulSoup(html or "", "html.parser")
    anchor = soup.select_one(selector)
    if anchor is None:
        return None
    email = _email_from_anchor(anchor)
    if not email:
        return None
    return ContactRecord(source_url=url, email=email)
