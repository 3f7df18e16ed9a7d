"""Runtime configuration model."""

from __future__ import annotations

from dataclasses import dataclass

from .errors import ConfigError
from .validation import validate_runtime_constraints

DEFAULT_BASE_URL = "https://www.yellowpages.com"
DEFAULT_USER_AGENT = "DirectoryMailer/1.0 (+https://coffeecodestudio.com/)"
DEFAULT_REQUEST_TIMEOUT = 15.0
DEFAULT_DELAY = 1.0
DEFAULT_MAX_PAGES = 100
DEFAULT_MAX_PER_DAY = 100
DEFAULT_OUTPUT = "business_emails.json"
DEFAULT_REDIS_URL = "redis://127.0.0.1:6379/0"
DEFAULT_SMTP_HOST = "smtp.gmail.com"
DEFAULT_SMTP_PORT = 587
DEFAULT_SUBJECT = "Grow Your Business with Coffee Code Studio - Special Offer Inside!"
LISTING_LINK_SELECTOR = "a.business-name"
EMAIL_SELECTOR = "a.email-business"


@dataclass(frozen=True)
class CampaignConfig:
    """Validated configuration used by the crawl and dispatch pipeline."""

    search_terms: str = ""
    location: str = ""
    base_url: str = DEFAULT_BASE_URL
    input_path: str | None = None
    output: str = DEFAULT_OUTPUT
    max_pages: int | None = DEFAULT_MAX_PAGES
    delay: float = DEFAULT_DELAY
    max_per_day: int = DEFAULT_MAX_PER_DAY
    redis_url: str = DEFAULT_REDIS_URL
    smtp_host: str = DEFAULT_SMTP_HOST
    smtp_port: int = DEFAULT_SMTP_PORT
    smtp_user: str | None = None
    smtp_password: str | None = None
    sender: str | None = None
    subject: str = DEFAULT_SUBJECT
    template_file: str | None = None
    your_name: str = ""
    your_position: str = ""
    contact_information: str = ""
    website_url: str = ""
    check_mx: bool = False
    crawl_only: bool = False
    assume_yes: bool = False
    http_retries: int = 0
    listing_selector: str = LISTING_LINK_SELECTOR
    email_selector: str = EMAIL_SELECTOR
    user_agent: str = DEFAULT_USER_AGENT
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    show_progress: bool = True

    def __post_init__(self) -> None:
        validate_runtime_constraints(
            base_url=self.base_url,
            search_terms=self.search_terms,
            location=self.location,
            has_input=bool(self.input_path),
            delay=self.delay,
            max_pages=self.max_pages,
            max_per_day=self.max_per_day,
            http_retries=self.http_retries,
        )
        if not self.crawl_only and not (self.smtp_user and self.smtp_password):
            raise ConfigError(
                "SMTP_USER and SMTP_PASSWORD must be set to send notifications "
                "(or pass --crawl-only)."
            )

    @property
    def sender_address(self) -> str:
        """Envelope and header sender, defaulting to the relay login."""
        return self.sender or self.smtp_user or ""
