"""Data models for the Maildir message layer.

This module contains the enumerations shared across the package and
re-exports the Pydantic attachment model.
"""

from enum import Enum

from maildir_message.models.attachment import Attachment


class ParseState(str, Enum):
    """Outcome of the lazy MIME parse of a message."""

    UNPARSED = "unparsed"
    VALID = "valid"
    INVALID = "invalid"


class DateFormat(str, Enum):
    """Representation returned by ``Message.date()``."""

    FULL = "full"
    YEAR = "year"
    MONTH = "month"
    MON = "mon"
    DAY = "day"


__all__ = ["Attachment", "DateFormat", "ParseState"]
