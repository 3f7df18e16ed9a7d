import logging
import smtplib

import pytest

from directory_mailer.errors import ConfigError, SendError
from directory_mailer.mailer import SmtpSender, build_message
from directory_mailer.models import Notification

NOTE = Notification(subject="Offer", body="<p>Hi</p>", subtype="html")


class FakeSMTP:
    instances: list["FakeSMTP"] = []
    send_error: Exception | None = None
    login_error: Exception | None = None

    def __init__(self, host: str, port: int, timeout: float = 0) -> None:
        self.host = host
        self.port = port
        self.actions: list[str] = []
        self.sent: list[tuple[str, list[str], str]] = []
        FakeSMTP.instances.append(self)

    def ehlo(self) -> None:
        self.actions.append("ehlo")

    def starttls(self) -> None:
        self.actions.append("starttls")

    def login(self, user: str, password: str) -> None:
        self.actions.append(f"login:{user}:{password}")
        if FakeSMTP.login_error is not None:
            raise FakeSMTP.login_error

    def sendmail(self, sender: str, recipients: list[str], message: str) -> None:
        if FakeSMTP.send_error is not None:
            raise FakeSMTP.send_error
        self.sent.append((sender, recipients, message))

    def quit(self) -> None:
        self.actions.append("quit")

    def close(self) -> None:
        self.actions.append("close")


@pytest.fixture(autouse=True)
def fake_smtp(monkeypatch: pytest.MonkeyPatch) -> None:
    FakeSMTP.instances = []
    FakeSMTP.send_error = None
    FakeSMTP.login_error = None
    monkeypatch.setattr("directory_mailer.mailer.smtplib.SMTP", FakeSMTP)
    monkeypatch.setattr("directory_mailer.mailer.smtplib.SMTP_SSL", FakeSMTP)


def _sender(port: int = 587, use_ssl: bool = False) -> SmtpSender:
    return SmtpSender(
        host="smtp.test",
        port=port,
        username="me@studio.test",
        password="abcd efgh",
        sender="me@studio.test",
        logger=logging.getLogger("test"),
        use_ssl=use_ssl,
    )


def test_build_message_headers() -> None:
    msg = build_message("me@studio.test", "you@biz.test", NOTE)
    assert msg["From"] == "me@studio.test"
    assert msg["To"] == "you@biz.test"
    assert msg["Subject"] == "Offer"
    assert msg["Reply-To"] == "me@studio.test"
    assert msg.get_payload()[0].get_content_type() == "text/html"


def test_send_uses_starttls_and_login() -> None:
    _sender().send("you@biz.test", NOTE)
    server = FakeSMTP.instances[0]
    assert server.actions[:4] == ["ehlo", "starttls", "ehlo", "login:me@studio.test:abcdefgh"]
    assert server.sent[0][:2] == ("me@studio.test", ["you@biz.test"])


def test_connection_is_reused_until_close() -> None:
    sender = _sender()
    sender.send("one@biz.test", NOTE)
    sender.send("two@biz.test", NOTE)
    assert len(FakeSMTP.instances) == 1
    server = FakeSMTP.instances[0]
    assert [recipients for _, recipients, _ in server.sent] == [["one@biz.test"], ["two@biz.test"]]

    sender.close()
    assert server.actions[-1] == "quit"
    sender.close()
    assert server.actions.count("quit") == 1


def test_use_ssl_skips_starttls() -> None:
    _sender(port=465, use_ssl=True).send("you@biz.test", NOTE)
    assert "starttls" not in FakeSMTP.instances[0].actions


def test_broken_connection_is_reopened_on_next_send() -> None:
    sender = _sender()
    FakeSMTP.send_error = smtplib.SMTPServerDisconnected("gone")
    with pytest.raises(SendError):
        sender.send("one@biz.test", NOTE)
    assert FakeSMTP.instances[0].actions[-1] == "close"

    FakeSMTP.send_error = None
    sender.send("two@biz.test", NOTE)
    assert len(FakeSMTP.instances) == 2
    assert FakeSMTP.instances[1].sent[0][1] == ["two@biz.test"]


def test_refused_recipient_keeps_connection() -> None:
    sender = _sender()
    FakeSMTP.send_error = smtplib.SMTPRecipientsRefused({"you@biz.test": (550, b"nope")})
    with pytest.raises(SendError):
        sender.send("you@biz.test", NOTE)
    FakeSMTP.send_error = None
    sender.send("next@biz.test", NOTE)
    assert len(FakeSMTP.instances) == 1


def test_os_error_raises_send_error() -> None:
    FakeSMTP.send_error = OSError("connection reset")
    with pytest.raises(SendError):
        _sender().send("you@biz.test", NOTE)


def test_auth_failure_is_a_config_error() -> None:
    FakeSMTP.login_error = smtplib.SMTPAuthenticationError(535, b"bad credentials")
    with pytest.raises(ConfigError):
        _sender().send("you@biz.test", NOTE)
    assert FakeSMTP.instances[0].actions[-1] == "close"
