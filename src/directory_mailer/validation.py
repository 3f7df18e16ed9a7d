"""Validation and runtime guardrails."""

from __future__ import annotations

import socket
import time
from urllib.parse import urlparse

import dns.resolver

from .errors import ConfigError


def polite_sleep(delay: float) -> None:
    """Sleep for the fixed throttle delay."""
    if delay > 0:
        time.sleep(delay)


def is_supported_url(url: str) -> bool:
    """Allow only absolute HTTP(S) URLs with a hostname."""
    parsed = urlparse(url)
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


def is_valid_recipient(email: str) -> bool:
    """Return True when the address carries the '@' marker."""
    return "@" in (email or "")


def validate_runtime_constraints(
    *,
    base_url: str,
    search_terms: str,
    location: str,
    has_input: bool,
    delay: float,
    max_pages: int | None,
    max_per_day: int,
    http_retries: int,
) -> None:
    """Validate CLI/runtime configuration and raise ConfigError on invalid values."""
    if not has_input:
        if not search_terms.strip() or not location.strip():
            raise ConfigError("Provide --search-terms and --location, or --input.")
        if not is_supported_url(base_url):
            raise ConfigError("--base-url must be an absolute http(s) URL.")
    if delay < 0:
        raise ConfigError("--delay must be >= 0.")
    if max_pages is not None and max_pages < 1:
        raise ConfigError("--max-pages must be >= 1.")
    if max_per_day < 1:
        raise ConfigError("--max-per-day must be >= 1.")
    if http_retries < 0:
        raise ConfigError("--http-retries must be >= 0.")


def mx_check(email: str) -> bool:
    """Return True when target domain has MX or A record."""
    try:
        domain = email.split("@", maxsplit=1)[1]
    except IndexError:
        return False
    try:
        answers = dns.resolver.resolve(domain, "MX", lifetime=8)
        return bool(answers)
    except (dns.resolver.NoAnswer, dns.resolver.NXDOMAIN, dns.resolver.NoNameservers):
        try:
            socket.gethostbyname(domain)
            return True
        except OSError:
            return False
    except dns.exception.DNSException:
        return False
