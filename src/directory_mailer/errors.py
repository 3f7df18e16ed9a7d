"""Custom exceptions for the directory mailer domain."""


class MailerError(Exception):
    """Base exception for this project."""


class ConfigError(MailerError):
    """Raised when runtime configuration or credentials are invalid."""


class NetworkError(MailerError):
    """Raised when fetching a directory page fails."""


class ParseError(MailerError):
    """Raised when a stored crawl result cannot be decoded."""


class OutputError(MailerError):
    """Raised when the crawl result cannot be written or read from disk."""


class SendError(MailerError):
    """Raised when a notification could not be delivered to one recipient."""


class StoreError(MailerError):
    """Raised when the quota counter store stays unreachable after retries."""
