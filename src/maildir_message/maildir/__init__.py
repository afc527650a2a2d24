"""Maildir filename protocol and folder helpers."""

from .flags import (
    FLAG_SEPARATOR,
    Flag,
    FlagSet,
    canonicalize_flags,
    decode_flags,
    encode_flags,
    in_new_directory,
)
from .folder import is_maildir, list_messages, message_in, sort_by_date

__all__ = [
    "FLAG_SEPARATOR",
    "Flag",
    "FlagSet",
    "canonicalize_flags",
    "decode_flags",
    "encode_flags",
    "in_new_directory",
    "is_maildir",
    "list_messages",
    "message_in",
    "sort_by_date",
]
