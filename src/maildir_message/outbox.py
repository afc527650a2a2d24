"""Drafting and sending mail.

Drafts are plain files in the temporary directory: a few header lines, a
blank line, the body and a signature. The user edits them with an external
editor; :meth:`Outbox.send` then turns the draft into a MIME message, hands
it to the mail transfer command, archives a copy and removes the draft.
"""

from __future__ import annotations

import os
import re
import shutil
import subprocess
import tempfile
from collections.abc import Callable, Sequence
from pathlib import Path

import structlog

from maildir_message.context import MessageContext
from maildir_message.exceptions import ConfigurationError, InvalidMaildirError
from maildir_message.hooks import HOOK_ABORT, HOOK_EDIT, HOOK_SEND
from maildir_message.maildir.flags import Flag
from maildir_message.maildir.folder import message_in
from maildir_message.message import Message
from maildir_message.mime.assembler import AttachmentAssembler

logger = structlog.get_logger()

DEFAULT_SUBJECT = "No subject"
SIGNATURE_SEPARATOR = "\n-- \n"

RE_COMMENT = re.compile(r"\([^)]*\)")


class Outbox:
    """Compose, reply to and send messages."""

    def __init__(
        self,
        context: MessageContext | None = None,
        assembler: AttachmentAssembler | None = None,
    ) -> None:
        """Initialize the outbox.

        Args:
            context: Settings and hooks. If None, uses the default context.
            assembler: Draft assembler. If None, creates one for ``context``.
        """
        self.context = context or MessageContext.default()
        self.assembler = assembler or AttachmentAssembler(self.context)

    def compose(self, to: str, subject: str = "", body: str = "") -> Path:
        """Write a new draft addressed to ``to`` and return its path.

        Raises:
            OSError: If the draft file cannot be created.
        """
        subject = subject or DEFAULT_SUBJECT
        from_addr = self.context.settings.from_address
        headers = [("To", to), ("Subject", subject), ("From", from_addr)]
        signature = self.context.hooks.get_signature(from_addr, to, subject)
        return self._write_draft("compose.", headers, body, signature)

    def reply(self, message: Message) -> Path:
        """Write a reply draft to ``message``, quoting its body.

        Raises:
            OSError: If the draft file cannot be created.
        """
        to = message.header("From")
        subject = self.context.hooks.transform_subject(message.header("Subject"))
        from_addr = self.context.settings.from_address

        headers = [("To", to), ("Subject", subject), ("From", from_addr)]
        reference = RE_COMMENT.sub("", message.header("Message-ID")).strip()
        if reference:
            headers.append(("In-Reply-To", reference))
            headers.append(("References", reference))

        quoted = "".join(f"> {line}\n" for line in message.body())
        signature = self.context.hooks.get_signature(from_addr, to, subject)
        return self._write_draft("reply.", headers, quoted, signature)

    def _write_draft(
        self,
        prefix: str,
        headers: Sequence[tuple[str, str]],
        body: str,
        signature: str,
    ) -> Path:
        lines = [f"{name}: {value}\n" for name, value in headers]
        text = "".join(lines) + "\n" + body
        if body and not body.endswith("\n"):
            text += "\n"
        text += signature if signature else SIGNATURE_SEPARATOR

        fd, path = tempfile.mkstemp(prefix=prefix, dir=str(self.context.settings.tmp_dir))
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(text)

        logger.info("draft_written", path=path)
        return Path(path)

    def edit(self, draft: str | Path, editor: Callable[[str], object]) -> None:
        """Run ``editor`` on the draft, then fire the edit hook."""
        editor(str(draft))
        self.context.hooks.notify(HOOK_EDIT, str(draft))

    def abort(self, draft: str | Path) -> None:
        """Discard a draft, firing the abort hook first."""
        self.context.hooks.notify(HOOK_ABORT, str(draft))
        Path(draft).unlink(missing_ok=True)
        logger.info("draft_aborted", path=str(draft))

    def send(
        self,
        draft: str | Path,
        attachments: Sequence[str | Path] = (),
        replying_to: Message | None = None,
    ) -> bool:
        """Attach files to ``draft``, send it, archive it and delete it.

        Args:
            draft: Draft file written by :meth:`compose` or :meth:`reply`.
            attachments: Files to attach.
            replying_to: Message being answered; it gains the ``R`` flag.

        Returns:
            True if the mail transfer command accepted the message. On
            failure the draft is kept so nothing is lost.
        """
        draft = Path(draft)
        if not self.assembler.add_attachments(draft, attachments):
            return False

        self.context.hooks.notify(HOOK_SEND, str(draft))

        try:
            self._transfer(draft)
        except (ConfigurationError, OSError, subprocess.CalledProcessError) as exc:
            logger.exception("message_send_failed", draft=str(draft), error=str(exc))
            return False

        self._archive(draft)
        draft.unlink(missing_ok=True)

        if replying_to is not None:
            replying_to.add_flag(Flag.REPLIED)

        logger.info("message_sent", draft=str(draft))
        return True

    def _transfer(self, draft: Path) -> None:
        command = self.context.settings.sendmail_path.strip()
        if not command:
            raise ConfigurationError("No mail transfer command configured (sendmail_path)")

        subprocess.run(command, shell=True, input=draft.read_bytes(), check=True)

    def _archive(self, draft: Path) -> None:
        sent_mail = self.context.settings.sent_mail
        if sent_mail is None:
            return

        try:
            destination = message_in(sent_mail, is_new=False)
            shutil.copyfile(draft, destination)
        except (InvalidMaildirError, OSError) as exc:
            logger.warning("sent_mail_archive_failed", folder=str(sent_mail), error=str(exc))
            return

        logger.info("sent_mail_archived", destination=destination)
