"""CLI entrypoint for directory-mailer."""

from __future__ import annotations

import argparse
import os
from collections.abc import Sequence

from dotenv import load_dotenv

from .config import (
    DEFAULT_BASE_URL,
    DEFAULT_DELAY,
    DEFAULT_MAX_PAGES,
    DEFAULT_MAX_PER_DAY,
    DEFAULT_OUTPUT,
    DEFAULT_REDIS_URL,
    DEFAULT_SMTP_HOST,
    DEFAULT_SMTP_PORT,
    DEFAULT_SUBJECT,
    CampaignConfig,
)
from .errors import ConfigError, MailerError
from .logging_utils import configure_logging, get_logger
from .pipeline import run_campaign


def build_parser() -> argparse.ArgumentParser:
    """Build CLI parser."""
    parser = argparse.ArgumentParser(
        description="Directory Mailer - crawl a business directory and email each contact "
        "within a daily quota."
    )
    parser.add_argument("--search-terms", default="", help='Search terms, e.g. "event planning".')
    parser.add_argument("--location", default="", help='City and state, e.g. "Columbus, OH".')
    parser.add_argument("--base-url", default=DEFAULT_BASE_URL, help="Directory base URL.")
    parser.add_argument(
        "--input", help="Dispatch from a previously written crawl result instead of crawling."
    )
    parser.add_argument("--output", default=DEFAULT_OUTPUT, help="Crawl result JSON path.")
    parser.add_argument(
        "--max-pages",
        type=int,
        default=DEFAULT_MAX_PAGES,
        help="Safety cap on listing pages (0 disables the cap).",
    )
    parser.add_argument(
        "--delay",
        type=float,
        default=DEFAULT_DELAY,
        help="Fixed delay in seconds after each detail fetch and each send.",
    )
    parser.add_argument(
        "--max-per-day", type=int, default=DEFAULT_MAX_PER_DAY, help="Daily send quota."
    )
    parser.add_argument("--redis-url", help="Quota store URL (or set REDIS_URL env var).")
    parser.add_argument("--subject", default=DEFAULT_SUBJECT, help="Email subject line.")
    parser.add_argument(
        "--template-file", help="Body template (.html sends HTML, anything else plain text)."
    )
    parser.add_argument("--your-name", default="", help="Sender name for the template.")
    parser.add_argument("--your-position", default="", help="Sender position for the template.")
    parser.add_argument(
        "--contact-info", default="", help="Contact line for the template (defaults to sender)."
    )
    parser.add_argument("--website-url", default="", help="Website URL for the template.")
    parser.add_argument(
        "--check-mx", action="store_true", help="Skip recipients whose domain has no mail server."
    )
    parser.add_argument(
        "--crawl-only", action="store_true", help="Write the crawl result without sending."
    )
    parser.add_argument("--yes", action="store_true", help="Send without asking for confirmation.")
    parser.add_argument(
        "--http-retries", type=int, default=0, help="Transport-level retries per HTTP request."
    )
    parser.add_argument("--no-progress", action="store_true", help="Disable tqdm progress bars.")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse and pre-validate CLI input."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.input and not (args.search_terms and args.location):
        parser.error("Provide --search-terms and --location, or --input.")
    return args


def namespace_to_config(args: argparse.Namespace) -> CampaignConfig:
    """Convert CLI args and environment to validated CampaignConfig."""
    smtp_port = os.getenv("SMTP_PORT", str(DEFAULT_SMTP_PORT))
    try:
        port = int(smtp_port)
    except ValueError as exc:
        raise ConfigError(f"SMTP_PORT must be an integer, got {smtp_port!r}") from exc

    return CampaignConfig(
        search_terms=args.search_terms,
        location=args.location,
        base_url=args.base_url,
        input_path=args.input,
        output=args.output,
        max_pages=args.max_pages or None,
        delay=args.delay,
        max_per_day=args.max_per_day,
        redis_url=args.redis_url or os.getenv("REDIS_URL") or DEFAULT_REDIS_URL,
        smtp_host=os.getenv("SMTP_HOST") or DEFAULT_SMTP_HOST,
        smtp_port=port,
        smtp_user=os.getenv("SMTP_USER"),
        smtp_password=os.getenv("SMTP_PASSWORD"),
        sender=os.getenv("SMTP_FROM"),
        subject=args.subject,
        template_file=args.template_file,
        your_name=args.your_name,
        your_position=args.your_position,
        contact_information=args.contact_info,
        website_url=args.website_url,
        check_mx=args.check_mx,
        crawl_only=args.crawl_only,
        assume_yes=args.yes,
        http_retries=args.http_retries,
        show_progress=not args.no_progress,
    )


def prompt_confirmation(count: int) -> bool:
    """Ask on stdin before emailing; anything but y/yes declines."""
    try:
        answer = input(f"Send emails to {count} contacts? [y/N] ")
    except EOFError:
        return False
    return answer.strip().lower() in {"y", "yes"}


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entrypoint."""
    load_dotenv()
    args = parse_args(argv)
    configure_logging(args.verbose)
    logger = get_logger()
    try:
        config = namespace_to_config(args)
    except ConfigError as exc:
        logger.error("Invalid configuration: %s", exc)
        return 2

    try:
        result = run_campaign(config, logger=logger, confirm_fn=prompt_confirmation)
    except ConfigError as exc:
        logger.error("Invalid configuration: %s", exc)
        return 2
    except MailerError as exc:
        logger.error("Run aborted: %s", exc)
        return 1

    if result.report is not None:
        logger.info(
            "Sent %d emails (%d failed).", len(result.report.sent), len(result.report.failed)
        )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
