"""Quota-gated notification dispatch over a crawl result."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence

from tqdm import tqdm

from .errors import SendError
from .models import ContactRecord, DispatchReport, Renderer, Sender
from .quota import QuotaGate
from .validation import is_valid_recipient

SleepFn = Callable[[float], None]
MxCheckFn = Callable[[str], bool]


class Dispatcher:
    """Sends one notification per record, in crawl order, until the daily quota runs out.

    A failed send still uses its quota slot. Quota exhaustion ends the whole
    pass; store failures propagate as StoreError.
    """

    def __init__(
        self,
        *,
        gate: QuotaGate,
        sender: Sender,
        renderer: Renderer,
        max_per_day: int,
        delay: float,
        sleep_fn: SleepFn,
        logger: logging.Logger,
        mx_checker: MxCheckFn | None = None,
        show_progress: bool = False,
    ) -> None:
        self._gate = gate
        self._sender = sender
        self._renderer = renderer
        self._max_per_day = max_per_day
        self._delay = delay
        self._sleep_fn = sleep_fn
        self._logger = logger
        self._mx_checker = mx_checker
        self._show_progress = show_progress

    def dispatch(self, records: Sequence[ContactRecord]) -> DispatchReport:
        report = DispatchReport()
        iterator = tqdm(
            records, desc="sending", unit="email", disable=not self._show_progress
        )
        for record in iterator:
            email = record.email.strip()
            if not is_valid_recipient(email):
                self._logger.warning("Invalid email skipped: %s", record.email)
                report.skipped_invalid.append(record.email)
                continue
            if self._mx_checker is not None and not self._mx_checker(email):
                self._logger.warning("No mail server for %s; skipped.", email)
                report.skipped_mx.append(email)
                continue

            if not self._gate.try_reserve(self._max_per_day):
                self._logger.warning(
                    "Daily email limit reached (%d). Stopping dispatch.", self._max_per_day
                )
                report.quota_exhausted = True
                break

            try:
                self._sender.send(email, self._renderer(record))
            except SendError as exc:
                self._logger.error("Could not send email to %s: %s", email, exc)
                report.failed.append(email)
            else:
                self._logger.info("Email sent successfully to: %s", email)
                report.sent.append(email)
            self._sleep_fn(self._delay)

        self._logger.info(
            "Dispatch finished: %d sent, %d failed, %d invalid, %d without MX.",
            len(report.sent),
            len(report.failed),
            len(report.skipped_invalid),
            len(report.skipped_mx),
        )
        return report
