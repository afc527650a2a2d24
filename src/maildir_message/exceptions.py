"""Custom exceptions for the Maildir message layer.

These are raised by the low-level helpers and caught at the public
``Message``/``AttachmentAssembler``/``Outbox`` boundary, which reports
failures to its callers as booleans, ``None`` or empty results.
"""


class MaildirMessageError(Exception):
    """Base exception for all message-layer errors."""


class MessageParseError(MaildirMessageError):
    """Exception raised when a message cannot be read or decoded."""


class FilterCommandError(MaildirMessageError):
    """Exception raised when an external filter command cannot be run."""


class InvalidMaildirError(MaildirMessageError):
    """Exception raised when a folder lacks the cur/, new/ and tmp/ layout."""


class AttachmentError(MaildirMessageError):
    """Exception raised when a draft or attachment file cannot be read or written."""


class ConfigurationError(MaildirMessageError):
    """Exception raised for configuration related errors."""
