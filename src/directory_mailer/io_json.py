"""JSON checkpoint of the crawl result."""

from __future__ import annotations

import json
from collections.abc import Sequence
from pathlib import Path

from .errors import OutputError, ParseError
from .models import ContactRecord


def write_records(path: str, records: Sequence[ContactRecord]) -> None:
    """Overwrite ``path`` with a pretty-printed list of {url, email} objects."""
    payload = json.dumps([record.to_dict() for record in records], indent=2)
    try:
        Path(path).write_text(payload, encoding="utf-8")
    except OSError as exc:
        raise OutputError(f"Cannot write crawl result to {path}: {exc}") from exc


def load_records(path: str) -> list[ContactRecord]:
    """Load a crawl result written by write_records."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise OutputError(f"Cannot read crawl result from {path}: {exc}") from exc
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ParseError(f"Malformed JSON in {path}: {exc}") from exc
    if not isinstance(payload, list):
        raise ParseError(f"Expected a JSON list in {path}")

    records: list[ContactRecord] = []
    for index, item in enumerate(payload):
        if not isinstance(item, dict):
            raise ParseError(f"Entry {index} in {path} is not an object")
        url = item.get("url")
        email = item.get("email")
        if not isinstance(url, str) or not isinstance(email, str):
            raise ParseError(f"Entry {index} in {path} needs string 'url' and 'email'")
        records.append(ContactRecord(source_url=url, email=email))
    return records
