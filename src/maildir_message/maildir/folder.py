"""Maildir folder helpers.

Delivery filenames follow the usual ``<time>.<pid>_<counter>.<host>``
convention; seen mail goes straight into ``cur/`` with a ``:2,S`` suffix.
"""

from __future__ import annotations

import itertools
import os
import socket
import time
from collections.abc import Iterable
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from maildir_message.exceptions import InvalidMaildirError
from maildir_message.maildir.flags import CUR_DIRECTORY, FLAG_SEPARATOR, NEW_DIRECTORY, Flag

if TYPE_CHECKING:
    from maildir_message.context import MessageContext
    from maildir_message.message import Message

logger = structlog.get_logger()

MAILDIR_SUBDIRS = (CUR_DIRECTORY, NEW_DIRECTORY, "tmp")

_delivery_counter = itertools.count(1)


def is_maildir(folder: str | Path) -> bool:
    """Whether ``folder`` has the ``cur/``, ``new/`` and ``tmp/`` subdirectories."""
    root = Path(folder)
    return all((root / sub).is_dir() for sub in MAILDIR_SUBDIRS)


def _hostname() -> str:
    # "/" and ":" are reserved in Maildir filenames.
    return socket.gethostname().replace("/", r"\057").replace(":", r"\072")


def message_in(folder: str | Path, is_new: bool) -> str:
    """Return a fresh, unused filename for a message delivered into ``folder``.

    Args:
        folder: Maildir folder receiving the message.
        is_new: Deliver into ``new/`` when true, otherwise into ``cur/`` as seen.

    Returns:
        Absolute-or-relative path (matching ``folder``) of the new file.

    Raises:
        InvalidMaildirError: If ``folder`` is not a Maildir.
    """
    if not is_maildir(folder):
        raise InvalidMaildirError(f"Not a Maildir folder: {folder}")

    subdir = NEW_DIRECTORY if is_new else CUR_DIRECTORY
    suffix = "" if is_new else f"{FLAG_SEPARATOR}{Flag.SEEN.value}"

    while True:
        name = f"{int(time.time())}.{os.getpid()}_{next(_delivery_counter)}.{_hostname()}"
        candidate = os.path.join(str(folder), subdir, name + suffix)
        if not os.path.exists(candidate):
            return candidate


def list_messages(folder: str | Path, context: MessageContext | None = None) -> list[Message]:
    """Return a ``Message`` handle for every file in ``new/`` and ``cur/``.

    Dotfiles are skipped. No message is opened; parsing stays lazy.

    Raises:
        InvalidMaildirError: If ``folder`` is not a Maildir.
    """
    from maildir_message.message import Message

    if not is_maildir(folder):
        raise InvalidMaildirError(f"Not a Maildir folder: {folder}")

    messages: list[Message] = []
    for subdir in (NEW_DIRECTORY, CUR_DIRECTORY):
        directory = os.path.join(str(folder), subdir)
        for name in sorted(os.listdir(directory)):
            if name.startswith("."):
                continue
            path = os.path.join(directory, name)
            if os.path.isfile(path):
                messages.append(Message(path, context=context))

    logger.debug("maildir_listed", folder=str(folder), message_count=len(messages))
    return messages


def sort_by_date(messages: Iterable[Message], reverse: bool = False) -> list[Message]:
    """Order messages by their parsed Date header (file mtime when absent)."""
    return sorted(messages, key=lambda m: m.get_date_field(), reverse=reverse)
