"""Integration tests that run real shell commands.

These tests need a POSIX shell with ``cat``, ``tr`` and ``sed`` on PATH.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from conftest import make_maildir

from maildir_message.filters.pipeline import ExternalFilterPipeline
from maildir_message.hooks import HOOK_SEND
from maildir_message.message import Message
from maildir_message.outbox import Outbox


@pytest.mark.integration
class TestExternalFilterPipeline:
    """Filter commands run through the shell."""

    def test_output_replaces_payload(self, tmp_path: Path) -> None:
        pipeline = ExternalFilterPipeline("tr a-z A-Z", tmp_dir=tmp_path)

        assert pipeline.run(b"hello\n") == b"HELLO\n"
        assert pipeline.run_text("quiet") == "QUIET"

    def test_temporary_file_is_removed(self, tmp_path: Path) -> None:
        ExternalFilterPipeline("cat", tmp_dir=tmp_path, prefix="body.filter.").run(b"payload")

        assert list(tmp_path.iterdir()) == []

    def test_nonzero_exit_still_returns_output(self, tmp_path: Path) -> None:
        pipeline = ExternalFilterPipeline("cat; exit 3", tmp_dir=tmp_path)

        assert pipeline.run(b"partial") == b"partial"


@pytest.mark.integration
class TestMessageFilters:
    """Inbound and display filters applied by Message."""

    def test_mail_filter_rewrites_raw_message(self, write_message, context) -> None:
        context.settings.mail_filter = "sed 's/^Subject: Hi$/Subject: Filtered/'"
        message = Message(write_message(), context=context)

        assert message.header("Subject") == "Filtered"

    def test_display_filter_changes_rendered_body(self, write_message, context) -> None:
        context.settings.display_filter = "tr a-z A-Z"
        message = Message(write_message(), context=context)

        assert message.body() == ["HELLO BOB,", "SEE YOU SOON."]
        assert message.header("Subject") == "Hi"

    def test_filter_temporary_files_are_removed(self, write_message, context) -> None:
        context.settings.mail_filter = "cat"
        context.settings.display_filter = "cat"
        message = Message(write_message(), context=context)

        message.body()

        assert list(context.settings.tmp_dir.iterdir()) == []


@pytest.mark.integration
class TestSend:
    """Sending through a stand-in transfer command."""

    def test_send_pipes_archives_and_flags_reply(self, write_message, context, hooks, tmp_path: Path) -> None:
        outbox_file = tmp_path / "sent.eml"
        sent_mail = make_maildir(tmp_path / "Sent")
        context.settings.sendmail_path = f"cat > '{outbox_file}'"
        context.settings.sent_mail = sent_mail

        original = Message(write_message(flags="S"), context=context)
        outbox = Outbox(context)
        draft = outbox.reply(original)
        notes = tmp_path / "notes.txt"
        notes.write_text("see attached")

        assert outbox.send(draft, [notes], replying_to=original) is True

        delivered = outbox_file.read_bytes()
        assert b"multipart/mixed" in delivered
        assert b"Subject: Re: Hi" in delivered
        assert b'filename="notes.txt"' in delivered

        archived = list((sent_mail / "cur").iterdir())
        assert len(archived) == 1
        assert archived[0].name.endswith(":2,S")
        assert archived[0].read_bytes() == delivered

        assert not draft.exists()
        assert original.path.endswith(":2,RS")
        assert hooks.notifications == [(HOOK_SEND, str(draft))]

    def test_failing_transfer_command_keeps_draft(self, context) -> None:
        context.settings.sendmail_path = "exit 1"
        outbox = Outbox(context)
        draft = outbox.compose("bob@example.com", "Hi", "Hello")

        assert outbox.send(draft) is False
        assert draft.exists()
