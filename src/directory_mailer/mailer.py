"""
Authenticated SMTP relay sender.

Credentials come from the environment (SMTP_USER / SMTP_PASSWORD), e.g. a
Gmail app password.
"""

from __future__ import annotations

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from .errors import ConfigError, SendError
from .models import Notification

SMTPS_PORT = 465


def build_message(sender: str, recipient: str, notification: Notification) -> MIMEMultipart:
    msg = MIMEMultipart("alternative")
    msg["From"] = sender
    msg["To"] = recipient
    msg["Subject"] = notification.subject
    msg["Reply-To"] = sender
    msg.attach(MIMEText(notification.body, notification.subtype, "utf-8"))
    return msg


class SmtpSender:
    """Relays messages over one logged-in connection, reopened after a failure."""

    def __init__(
        self,
        *,
        host: str,
        port: int,
        username: str,
        password: str,
        sender: str,
        logger: logging.Logger,
        timeout: float = 30.0,
        use_ssl: bool = False,
    ) -> None:
        self._host = host
        self._port = port
        self._username = username
        self._password = password
        self._sender = sender
        self._logger = logger
        self._timeout = timeout
        self._use_ssl = use_ssl
        self._server: smtplib.SMTP | None = None

    def _open(self) -> smtplib.SMTP:
        if self._use_ssl:
            server: smtplib.SMTP = smtplib.SMTP_SSL(self._host, self._port, timeout=self._timeout)
        else:
            server = smtplib.SMTP(self._host, self._port, timeout=self._timeout)
            server.ehlo()
            server.starttls()
            server.ehlo()
        try:
            server.login(self._username, self._password.replace(" ", ""))
        except smtplib.SMTPException:
            server.close()
            raise
        self._logger.debug("Connected to %s:%d as %s", self._host, self._port, self._username)
        return server

    def _connection(self) -> smtplib.SMTP:
        if self._server is None:
            self._server = self._open()
        return self._server

    def _drop_connection(self) -> None:
        server, self._server = self._server, None
        if server is not None:
            server.close()

    def send(self, recipient: str, notification: Notification) -> None:
        msg = build_message(self._sender, recipient, notification)
        try:
            self._connection().sendmail(self._sender, [recipient], msg.as_string())
        except smtplib.SMTPAuthenticationError as exc:
            self._drop_connection()
            raise ConfigError("SMTP login rejected. Check SMTP_USER and SMTP_PASSWORD.") from exc
        except smtplib.SMTPRecipientsRefused as exc:
            raise SendError(f"Recipient refused: {recipient}") from exc
        except (smtplib.SMTPException, OSError) as exc:
            self._drop_connection()
            raise SendError(f"Could not send email to {recipient}: {exc}") from exc
        self._logger.debug("Relayed message to %s via %s:%d", recipient, self._host, self._port)

    def close(self) -> None:
        """Say QUIT on the open connection, if any."""
        server, self._server = self._server, None
        if server is None:
            return
        try:
            server.quit()
        except (smtplib.SMTPException, OSError) as exc:
            self._logger.debug("SMTP quit failed: %s", exc)
            server.close()
