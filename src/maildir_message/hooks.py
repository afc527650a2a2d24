"""Capability interface for the application hooks.

The message layer never talks to a scripting engine directly. Anything it
needs from the outside (notifications, MIME classification, signatures,
reply subjects, user-visible alerts) goes through a :class:`MessageHooks`
instance carried by the :class:`~maildir_message.context.MessageContext`.
"""

import mimetypes
import re
from abc import ABC, abstractmethod

import structlog

logger = structlog.get_logger()

HOOK_READ = "on_read_message"
HOOK_DELETE = "on_delete_message"
HOOK_EDIT = "on_edit_message"
HOOK_ABORT = "on_message_aborted"
HOOK_SEND = "on_send_message"

DEFAULT_MIME_TYPE = "application/octet-stream"

RE_REPLY_PREFIX = re.compile(r"^\s*re:", re.IGNORECASE)


class MessageHooks(ABC):
    """Callbacks the message layer dispatches into the host application."""

    @abstractmethod
    def notify(self, hook_name: str, path: str) -> None:
        """Fire-and-forget notification about the message at ``path``.

        Args:
            hook_name: One of the ``HOOK_*`` names.
            path: Path of the affected message or draft file.
        """

    @abstractmethod
    def classify_mime(self, path: str) -> str:
        """Return the MIME type (``type/subtype``) of the file at ``path``."""

    @abstractmethod
    def get_signature(self, from_addr: str, to_addr: str, subject: str) -> str:
        """Return signature text for a draft, or an empty string for the default."""

    @abstractmethod
    def transform_subject(self, subject: str) -> str:
        """Return the subject to use when replying to ``subject``."""

    @abstractmethod
    def alert(self, text: str) -> None:
        """Show a user-visible diagnostic."""


class DefaultHooks(MessageHooks):
    """Hooks used when the host application does not provide its own."""

    def notify(self, hook_name: str, path: str) -> None:
        logger.debug("message_hook", hook=hook_name, path=path)

    def classify_mime(self, path: str) -> str:
        mime_type, _ = mimetypes.guess_type(path, strict=False)
        return mime_type or DEFAULT_MIME_TYPE

    def get_signature(self, from_addr: str, to_addr: str, subject: str) -> str:
        return ""

    def transform_subject(self, subject: str) -> str:
        if RE_REPLY_PREFIX.match(subject):
            return subject
        return f"Re: {subject}"

    def alert(self, text: str) -> None:
        logger.warning("message_alert", text=text)
