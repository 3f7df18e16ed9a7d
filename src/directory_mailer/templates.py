"""
Notification templates rendered with str.format placeholders.

Available fields: subject, your_name, your_position, contact_information,
website_url, plus the per-recipient email and source_url.
"""

from __future__ import annotations

from pathlib import Path

from .errors import ConfigError
from .models import ContactRecord, Notification

DEFAULT_BODY = """<html>
<body>
<p>Hello,</p>
<p>I came across your business listing and wanted to reach out. I'm {your_name},
{your_position} at Coffee Code Studio. We build fast, modern websites that help
local businesses turn visitors into customers.</p>
<p>For a limited time we're offering a free site review and a discounted first
project. You can see our work at <a href="{website_url}">{website_url}</a>.</p>
<p>If you'd like to chat, just reply to this email or reach me at
{contact_information}.</p>
<p>Best regards,<br>{your_name}<br>{your_position}</p>
</body>
</html>
"""

SAMPLE_RECORD = ContactRecord(source_url="https://example.com/listing", email="owner@example.com")


class NotificationTemplate:
    """Subject and body template shared by every recipient of a campaign."""

    def __init__(
        self,
        *,
        subject: str,
        body: str = DEFAULT_BODY,
        subtype: str = "html",
        your_name: str = "",
        your_position: str = "",
        contact_information: str = "",
        website_url: str = "",
    ) -> None:
        self.subject = subject
        self.body = body
        self.subtype = subtype
        self._fields = {
            "subject": subject,
            "your_name": your_name,
            "your_position": your_position,
            "contact_information": contact_information,
            "website_url": website_url,
        }
        # placeholder errors surface at load time
        self.render(SAMPLE_RECORD)

    def render(self, record: ContactRecord) -> Notification:
        fields = dict(self._fields, email=record.email, source_url=record.source_url)
        try:
            subject = self.subject.format(**fields)
            body = self.body.format(**fields)
        except (AttributeError, KeyError, IndexError, ValueError) as exc:
            raise ConfigError(f"Template placeholder error: {exc}") from exc
        return Notification(subject=subject, body=body, subtype=self.subtype)

    __call__ = render


def load_template(path: str, **kwargs: str) -> NotificationTemplate:
    """Load a body template from disk; .html files are sent as HTML, others as plain text."""
    template_path = Path(path)
    try:
        body = template_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read template {path}: {exc}") from exc
    subtype = "html" if template_path.suffix.lower() in {".html", ".htm"} else "plain"
    return NotificationTemplate(body=body, subtype=subtype, **kwargs)
