"""Maildir Message - lazily parsed messages stored in Maildir folders.

This package models a single mail message on disk: Maildir flags encoded
in the filename, MIME headers, body text and attachments decoded on
demand, and draft assembly for outgoing mail.
"""

__version__ = "0.1.0"

from maildir_message.config import Settings, get_settings
from maildir_message.context import MessageContext
from maildir_message.message import Message

__all__ = ["Message", "MessageContext", "Settings", "get_settings", "__version__"]
