"""A single message stored as one file in a Maildir folder.

The filename is the message's only identity and also carries its mutable
state (see :mod:`maildir_message.maildir.flags`). Nothing is read from disk
until a header, the body, the date or the attachments are asked for; the
results are cached until the path changes.

The parsed MIME tree is only held for the duration of the accessor that
needed it and is released before control returns to the caller.
"""

from __future__ import annotations

import os
import re
import shutil
from collections.abc import Iterator
from contextlib import contextmanager
from email.message import Message as MimeTree
from pathlib import Path

import structlog

from maildir_message.context import MessageContext
from maildir_message.dates import DATE_INVALID, DATE_UNSET, DateParser, format_date_field
from maildir_message.exceptions import FilterCommandError, InvalidMaildirError, MessageParseError
from maildir_message.filters.pipeline import ExternalFilterPipeline
from maildir_message.filters.predicate import FilterPredicate, matches_filter
from maildir_message.hooks import HOOK_DELETE, HOOK_READ
from maildir_message.maildir.flags import (
    CUR_DIRECTORY,
    Flag,
    FlagSet,
    decode_flags,
    encode_flags,
    in_new_directory,
)
from maildir_message.maildir.folder import message_in
from maildir_message.mime.decoder import MimeDecoder
from maildir_message.models import Attachment, DateFormat, ParseState

logger = structlog.get_logger()

FORMAT_TOKENS = ("FLAGS", "FROM", "TO", "SUBJECT", "DATE", "YEAR", "MONTH", "MON", "DAY")

# MONTH is listed before MON so the longer token wins.
RE_FORMAT_TOKEN = re.compile(r"\$(" + "|".join(FORMAT_TOKENS) + ")")

UNSET_VALUE = "[unset]"
FLAGS_WIDTH = 4


class Message:
    """A Maildir message with lazily parsed headers, body and attachments."""

    def __init__(self, path: str | os.PathLike[str], context: MessageContext | None = None) -> None:
        """Create a handle; no I/O is performed.

        Args:
            path: Path of the message file.
            context: Settings and hooks. If None, uses the default context.
        """
        self.context = context or MessageContext.default()
        self._path = os.fspath(path)
        self._read_hook_fired = False
        self._reset()

    def __repr__(self) -> str:
        return f"Message({self._path!r})"

    def __enter__(self) -> Message:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _reset(self) -> None:
        self._tree: MimeTree | None = None
        self._parse_state = ParseState.UNPARSED
        self._headers: dict[str, str] = {}
        self._body: list[str] | None = None
        self._attachments: list[Attachment] | None = None
        self._date = DATE_UNSET
        self._mtime = 0

    def close(self) -> None:
        """Release the parsed tree and any attachment buffers."""
        self._tree = None
        self._attachments = None

    @property
    def path(self) -> str:
        return self._path

    @path.setter
    def path(self, new_path: str | os.PathLike[str]) -> None:
        self._path = os.fspath(new_path)
        self._reset()

    def size(self) -> int:
        """Size of the message file in bytes, or -1 if it cannot be stat()ed."""
        try:
            return os.path.getsize(self._path)
        except OSError:
            return -1

    def mtime(self) -> int:
        """Cached modification time of the file, 0 if unavailable."""
        if self._mtime == 0:
            try:
                self._mtime = int(os.stat(self._path).st_mtime)
            except OSError:
                return 0
        return self._mtime

    def copy(self, dest_dir: str | Path) -> str | None:
        """Copy the message into the Maildir ``dest_dir``.

        The copy lands in ``new/`` or ``cur/`` according to whether this
        message is new.

        Returns:
            Path of the copy, or None if the copy failed.
        """
        try:
            destination = message_in(dest_dir, self.is_new())
            shutil.copyfile(self._path, destination)
        except (InvalidMaildirError, OSError) as exc:
            logger.warning("message_copy_failed", path=self._path, dest=str(dest_dir), error=str(exc))
            return None

        logger.info("message_copied", path=self._path, destination=destination)
        return destination

    def move(self, dest_dir: str | Path) -> str | None:
        """Copy the message into ``dest_dir`` and delete the original.

        On success this handle follows the message to its new location.
        """
        destination = self.copy(dest_dir)
        if destination is None:
            return None

        try:
            os.unlink(self._path)
        except OSError as exc:
            logger.warning("message_move_cleanup_failed", path=self._path, error=str(exc))
        self.path = destination
        return destination

    def remove(self) -> bool:
        """Delete the message file, firing the delete hook first."""
        self.context.hooks.notify(HOOK_DELETE, self._path)
        try:
            os.unlink(self._path)
        except OSError as exc:
            logger.warning("message_remove_failed", path=self._path, error=str(exc))
            return False

        logger.info("message_removed", path=self._path)
        return True

    @property
    def flags(self) -> str:
        """Sorted, duplicate-free flags, always recomputed from the path."""
        return decode_flags(self._path)

    @property
    def flag_set(self) -> FlagSet:
        return FlagSet.from_path(self._path)

    def set_flags(self, new_flags: str) -> bool:
        """Rename the file so its suffix carries exactly ``new_flags``.

        Returns:
            False if the rename failed; the path is then left unchanged.
        """
        current = self._path
        destination = encode_flags(current, new_flags)
        if destination == current:
            return True

        try:
            os.rename(current, destination)
        except OSError as exc:
            logger.warning("message_rename_failed", path=current, destination=destination, error=str(exc))
            return False

        logger.debug("message_flags_updated", path=current, destination=destination)
        self.path = destination
        return True

    def has_flag(self, flag: str | Flag) -> bool:
        return flag in self.flag_set

    def add_flag(self, flag: str | Flag) -> bool:
        """Add a flag; False if it was already present or the rename failed."""
        if self.has_flag(flag):
            return False
        return self.set_flags(str(self.flag_set.with_flag(flag)))

    def remove_flag(self, flag: str | Flag) -> bool:
        """Remove a flag; False if it was absent or the rename failed."""
        if not self.has_flag(flag):
            return False
        return self.set_flags(str(self.flag_set.without_flag(flag)))

    def is_new(self) -> bool:
        """New unless explicitly marked seen (or still flagged ``N``)."""
        return self.has_flag(Flag.NEW) or not self.has_flag(Flag.SEEN)

    def is_flagged(self) -> bool:
        return self.has_flag(Flag.FLAGGED)

    def mark_read(self) -> bool:
        """Mark the message seen, moving it from ``new/`` to ``cur/`` if needed.

        Returns:
            Whether the message's state changed.
        """
        if in_new_directory(self._path):
            directory, name = os.path.split(self._path)
            destination = os.path.join(os.path.dirname(directory), CUR_DIRECTORY, name)
            try:
                os.rename(self._path, destination)
            except OSError as exc:
                logger.warning("message_rename_failed", path=self._path, destination=destination, error=str(exc))
                return False

            self.path = destination
            self.set_flags(str(self.flag_set.without_flag(Flag.NEW).with_flag(Flag.SEEN)))
            return True

        removed = self.remove_flag(Flag.NEW)
        added = self.add_flag(Flag.SEEN)
        return removed or added

    def mark_unread(self) -> bool:
        if self.has_flag(Flag.SEEN):
            return self.remove_flag(Flag.SEEN)
        return False

    def mark_flagged(self) -> bool:
        if not self.has_flag(Flag.FLAGGED):
            return self.add_flag(Flag.FLAGGED)
        return False

    def mark_unflagged(self) -> bool:
        if self.has_flag(Flag.FLAGGED):
            return self.remove_flag(Flag.FLAGGED)
        return False

    def _decoder(self) -> MimeDecoder:
        return MimeDecoder(view_inline_attachments=self.context.settings.view_inline_attachments)

    def _pipeline(self, command: str | None, prefix: str) -> ExternalFilterPipeline:
        return ExternalFilterPipeline(command, tmp_dir=self.context.settings.tmp_dir, prefix=prefix)

    def parse(self) -> bool:
        """Parse the message, unless it is already known to be invalid.

        When an inbound filter command is configured, the raw bytes are
        piped through it first and the filter's output is what gets parsed.
        The parsed tree is released before returning.

        Returns:
            Whether the message is valid.
        """
        with self._parsed() as tree:
            return tree is not None

    def _acquire_tree(self) -> bool:
        if self._parse_state is ParseState.INVALID:
            return False
        if self._tree is not None:
            return True

        decoder = self._decoder()
        try:
            raw = decoder.read(self._path)
            raw = self._pipeline(self.context.settings.mail_filter, "body.filter.").run(raw)
            self._tree = decoder.parse(raw)
        except (MessageParseError, FilterCommandError) as exc:
            logger.warning("message_parse_failed", path=self._path, error=str(exc))
            self._parse_state = ParseState.INVALID
            return False

        self._parse_state = ParseState.VALID
        return True

    @property
    def parse_state(self) -> ParseState:
        return self._parse_state

    @contextmanager
    def _parsed(self) -> Iterator[MimeTree | None]:
        """Yield the MIME tree (None if invalid) and release it afterwards."""
        try:
            yield self._tree if self._acquire_tree() else None
        finally:
            self._tree = None

    def headers(self) -> dict[str, str]:
        """Every header, keyed by lower-cased name."""
        if not self._headers:
            with self._parsed() as tree:
                if tree is not None:
                    self._headers = self._decoder().headers(tree)
        return dict(self._headers)

    def header(self, name: str) -> str:
        """Case-insensitive header lookup; empty string when absent."""
        if not self._headers:
            self.headers()
        value = self._headers.get(name.lower(), "")
        return value.replace("\r", "").replace("\n", "")

    def body(self) -> list[str]:
        """The plain-text body as a list of lines.

        A configured display filter is applied to the rendered text before
        it is split.
        """
        if self._body is not None:
            return list(self._body)

        with self._parsed() as tree:
            if tree is None:
                return []
            text = self._decoder().body(tree)

        try:
            text = self._pipeline(self.context.settings.display_filter, "msg.filter.").run_text(text)
        except FilterCommandError as exc:
            logger.warning("display_filter_failed", path=self._path, error=str(exc))

        lines = [line.rstrip("\r") for line in text.split("\n")]
        if lines and not lines[-1]:
            lines.pop()
        self._body = lines
        return list(self._body)

    def date(self, fmt: DateFormat = DateFormat.FULL) -> str:
        """The message date in the representation ``fmt`` selects.

        The instant is computed on first use: from the Date header when one is
        present, otherwise from the file's modification time. A Date header
        nothing can parse raises an alert; the header is still returned
        verbatim for ``FULL`` and the derived fields become placeholders.
        """
        if self._date == DATE_UNSET:
            value = self.header("Date")
            if not value:
                self._date = self.mtime()
            else:
                instant = DateParser(self.context.settings.date_formats).parse(value)
                if instant is None:
                    self._date = DATE_INVALID
                    logger.warning("message_date_unparsable", path=self._path, date=value)
                    self.context.hooks.alert(f"Failed to parse date: {value}")
                else:
                    self._date = instant

        if fmt is DateFormat.FULL:
            return self.header("Date")
        return format_date_field(self._date, fmt)

    def get_date_field(self) -> int:
        """The cached instant, for sorting."""
        if self._date == DATE_UNSET:
            self.date()
        return self._date

    def format(self, template: str | None = None) -> str:
        """Expand ``$TOKEN`` references in ``template``.

        Uses the configured index format when no template is given. A
        template that is just ``$Name`` for any other header expands to that
        header's value, or ``[unset]``.
        """
        if not template:
            template = self.context.settings.index_format

        expanders = {
            "FLAGS": lambda: self.flags.ljust(FLAGS_WIDTH),
            "FROM": lambda: self.header("From"),
            "TO": lambda: self.header("To"),
            "SUBJECT": lambda: self.header("Subject"),
            "DATE": lambda: self.date(),
            "YEAR": lambda: self.date(DateFormat.YEAR),
            "MONTH": lambda: self.date(DateFormat.MONTH),
            "MON": lambda: self.date(DateFormat.MON),
            "DAY": lambda: self.date(DateFormat.DAY),
        }

        result, substitutions = RE_FORMAT_TOKEN.subn(lambda m: expanders[m.group(1)](), template)

        if substitutions == 0 and len(result) > 1 and result.startswith("$"):
            return self.header(result[1:]) or UNSET_VALUE
        return result

    def matches_filter(self, predicate: str | FilterPredicate) -> bool:
        return matches_filter(self, predicate)

    def body_mime_parts(self) -> list[str]:
        """Content types of every leaf MIME part."""
        with self._parsed() as tree:
            if tree is None:
                return []
            return self._decoder().mime_parts(tree)

    def get_body_part(self, index: int) -> bytes | None:
        """Content of the ``index``-th (1-based) leaf MIME part."""
        with self._parsed() as tree:
            if tree is None:
                return None
            return self._decoder().body_part(tree, index)

    def _load_attachments(self) -> list[Attachment]:
        if self._attachments is None:
            with self._parsed() as tree:
                self._attachments = [] if tree is None else self._decoder().attachments(tree)
        return self._attachments

    def attachments(self) -> list[str]:
        """Names of the attachments, in order."""
        return [attachment.name for attachment in self._load_attachments()]

    def get_attachment(self, index: int) -> Attachment | None:
        """The ``index``-th (1-based) attachment, or None if out of range."""
        attachments = self._load_attachments()
        if index < 1 or index > len(attachments):
            return None
        return attachments[index - 1]

    def save_attachment(self, index: int, output_path: str | Path) -> bool:
        """Write the ``index``-th (1-based) attachment to ``output_path``."""
        attachment = self.get_attachment(index)
        if attachment is None:
            return False

        try:
            attachment.save(output_path)
        except OSError as exc:
            logger.warning("attachment_save_failed", path=self._path, output=str(output_path), error=str(exc))
            return False
        return True

    def on_read_message(self) -> bool:
        """Fire the read hook, once per handle.

        Returns:
            True the first time, False on every later call.
        """
        if self._read_hook_fired:
            return False

        self._read_hook_fired = True
        self.context.hooks.notify(HOOK_READ, self._path)
        return True
