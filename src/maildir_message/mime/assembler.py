"""Turn a plain draft into a ``multipart/mixed`` message with attachments.

A draft is what the user edited: header lines, a blank line and a body.
Before sending, the body is normalised to ``text/plain; charset=utf-8``,
wrapped in a ``multipart/mixed`` container (always, even without
attachments) and every attachment file is appended as a base64 part.

The result is written to a fresh temporary file that then replaces the
draft. Nothing touches the draft until that final move, so any failure
leaves it exactly as it was.
"""

from __future__ import annotations

import os
import shutil
import tempfile
from collections.abc import Sequence
from email import policy
from email.message import EmailMessage, MIMEPart
from email.parser import BytesParser
from pathlib import Path

import structlog

from maildir_message.context import MessageContext
from maildir_message.exceptions import AttachmentError
from maildir_message.hooks import DEFAULT_MIME_TYPE
from maildir_message.mime.decoder import part_to_text

logger = structlog.get_logger()


class AttachmentAssembler:
    """Rewrite draft files on disk into multipart messages."""

    def __init__(self, context: MessageContext | None = None) -> None:
        """Initialize the assembler.

        Args:
            context: Settings and hooks. If None, uses the default context.
        """
        self.context = context or MessageContext.default()

    def add_attachments(self, draft_path: str | Path, attachments: Sequence[str | Path] = ()) -> bool:
        """Rewrite ``draft_path`` to carry ``attachments``.

        Args:
            draft_path: Existing single-part draft file.
            attachments: Files to attach, in order.

        Returns:
            True if the draft was replaced, False if anything failed (the
            draft is then left untouched).
        """
        draft_path = Path(draft_path)
        try:
            message = self.build(draft_path, attachments)
            self._replace(draft_path, message)
        except AttachmentError as exc:
            logger.warning("attachments_not_added", draft=str(draft_path), error=str(exc))
            return False

        logger.info("attachments_added", draft=str(draft_path), attachment_count=len(attachments))
        return True

    def build(self, draft_path: str | Path, attachments: Sequence[str | Path] = ()) -> EmailMessage:
        """Return the assembled message without writing anything.

        Raises:
            AttachmentError: If the draft or any attachment cannot be read.
        """
        try:
            with open(draft_path, "rb") as handle:
                message = BytesParser(policy=policy.default).parse(handle)
        except OSError as exc:
            raise AttachmentError(f"Failed to open draft {draft_path}: {exc.strerror}") from exc

        body = message.get_body(preferencelist=("plain",)) if message.is_multipart() else message
        if body is None:
            raise AttachmentError(f"Draft {draft_path} has no text/plain body")

        text = part_to_text(body)
        message.clear_content()
        message.set_content(text, subtype="plain", charset="utf-8")
        message.make_mixed()

        for name in attachments:
            message.attach(self._attachment_part(Path(name)))

        return message

    def _attachment_part(self, path: Path) -> MIMEPart:
        try:
            data = path.read_bytes()
        except OSError as exc:
            raise AttachmentError(f"Failed to open attachment {path}: {exc.strerror}") from exc

        mime_type = self.context.hooks.classify_mime(str(path)) or DEFAULT_MIME_TYPE
        maintype, _, subtype = mime_type.strip().partition("/")
        if not maintype or not subtype:
            maintype, _, subtype = DEFAULT_MIME_TYPE.partition("/")

        part = MIMEPart(policy=policy.default)
        part.set_content(
            data,
            maintype=maintype,
            subtype=subtype,
            cte="base64",
            disposition="attachment",
            filename=path.name,
        )
        return part

    def _replace(self, draft_path: Path, message: EmailMessage) -> None:
        tmp_dir = self.context.settings.tmp_dir
        try:
            fd, tmp_path = tempfile.mkstemp(prefix="attach.", dir=str(tmp_dir))
        except OSError as exc:
            raise AttachmentError(f"Failed to create temporary file in {tmp_dir}: {exc}") from exc

        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(message.as_bytes())
            shutil.move(tmp_path, draft_path)
        except OSError as exc:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise AttachmentError(f"Failed to write {draft_path}: {exc}") from exc
