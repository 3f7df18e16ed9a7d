"""Core orchestration pipeline."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from .config import CampaignConfig
from .crawler import DirectoryCrawler
from .dedup import Deduplicator
from .dispatcher import Dispatcher, MxCheckFn
from .fetchers import RequestsFetcher, make_session
from .io_json import load_records, write_records
from .mailer import SMTPS_PORT, SmtpSender
from .models import Closable, ContactRecord, DispatchReport, Fetcher, Renderer, Sender
from .quota import QuotaGate
from .store import get_redis
from .templates import NotificationTemplate, load_template
from .validation import mx_check, polite_sleep

SleepFn = Callable[[float], None]
ConfirmFn = Callable[[int], bool]


@dataclass
class CampaignResult:
    """What one campaign run produced."""

    records: list[ContactRecord] = field(default_factory=list)
    report: DispatchReport | None = None
    declined: bool = False


def close_all(*resources: Closable) -> None:
    """Release network resources in order."""
    for resource in resources:
        resource.close()


def crawl_directory(
    config: CampaignConfig,
    *,
    fetcher: Fetcher,
    sleep_fn: SleepFn = polite_sleep,
    logger: logging.Logger,
) -> list[ContactRecord]:
    """Crawl every listing page and return unique contacts in discovery order."""
    crawler = DirectoryCrawler(
        fetcher,
        config=config,
        deduplicator=Deduplicator(),
        sleep_fn=sleep_fn,
        logger=logger,
    )
    return crawler.crawl()


def unique_records(
    records: Sequence[ContactRecord], *, logger: logging.Logger
) -> list[ContactRecord]:
    """Drop records whose identity was already seen, keeping the first."""
    dedup = Deduplicator()
    output: list[ContactRecord] = []
    for record in records:
        if dedup.admit(record.identity):
            output.append(record)
        else:
            logger.info("Duplicate contact skipped: %s", record.email)
    return output


def build_renderer(config: CampaignConfig) -> Renderer:
    fields = {
        "subject": config.subject,
        "your_name": config.your_name,
        "your_position": config.your_position,
        "contact_information": config.contact_information or config.sender_address,
        "website_url": config.website_url,
    }
    if config.template_file:
        return load_template(config.template_file, **fields)
    return NotificationTemplate(**fields)


def dispatch_records(
    records: Sequence[ContactRecord],
    config: CampaignConfig,
    *,
    gate: QuotaGate,
    sender: Sender,
    renderer: Renderer,
    sleep_fn: SleepFn = polite_sleep,
    mx_checker: MxCheckFn | None = None,
    logger: logging.Logger,
) -> DispatchReport:
    """Send the campaign notification to each record while quota lasts."""
    remaining = gate.remaining(config.max_per_day)
    logger.info(
        "Dispatching to %d contacts; %d of %d sends left today.",
        len(records),
        remaining,
        config.max_per_day,
    )
    dispatcher = Dispatcher(
        gate=gate,
        sender=sender,
        renderer=renderer,
        max_per_day=config.max_per_day,
        delay=config.delay,
        sleep_fn=sleep_fn,
        mx_checker=mx_checker,
        logger=logger,
        show_progress=config.show_progress,
    )
    report = dispatcher.dispatch(records)
    if report.quota_exhausted:
        logger.warning("Daily quota exhausted; remaining contacts were not emailed.")
    return report


def run_campaign(
    config: CampaignConfig,
    *,
    logger: logging.Logger,
    confirm_fn: ConfirmFn | None = None,
) -> CampaignResult:
    """Build concrete dependencies, crawl, checkpoint, then dispatch."""
    renderer = None if config.crawl_only else build_renderer(config)
    result = CampaignResult()

    if config.input_path:
        logger.info("Loading contacts from %s", config.input_path)
        result.records = unique_records(load_records(config.input_path), logger=logger)
    else:
        session = make_session(config.user_agent, retries=config.http_retries)
        fetcher = RequestsFetcher(
            session=session, timeout=config.request_timeout, logger=logger
        )
        try:
            result.records = crawl_directory(config, fetcher=fetcher, logger=logger)
        finally:
            close_all(fetcher)
        write_records(config.output, result.records)
        logger.info("Wrote %d contacts to %s", len(result.records), config.output)

    if config.crawl_only or renderer is None:
        return result
    if not result.records:
        logger.info("No contacts to email.")
        return result
    if not config.assume_yes and confirm_fn is not None and not confirm_fn(len(result.records)):
        logger.info("Dispatch declined; no emails sent.")
        result.declined = True
        return result

    redis = get_redis(config.redis_url)
    sender = SmtpSender(
        host=config.smtp_host,
        port=config.smtp_port,
        username=config.smtp_user or "",
        password=config.smtp_password or "",
        sender=config.sender_address,
        logger=logger,
        use_ssl=config.smtp_port == SMTPS_PORT,
    )
    try:
        result.report = dispatch_records(
            result.records,
            config,
            gate=QuotaGate(redis, logger=logger),
            sender=sender,
            renderer=renderer,
            mx_checker=mx_check if config.check_mx else None,
            logger=logger,
        )
    finally:
        close_all(sender, redis)
    return result
