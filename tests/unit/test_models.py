"""Unit tests for data models and default hooks."""

from __future__ import annotations

from pathlib import Path

import pytest

from maildir_message.hooks import DEFAULT_MIME_TYPE, DefaultHooks
from maildir_message.models import Attachment, DateFormat, ParseState


def test_attachment_size_and_save(tmp_path: Path) -> None:
    attachment = Attachment(name="notes.txt", content=b"abc", content_type="text/plain")

    attachment.save(tmp_path / "out.txt")

    assert attachment.size == 3
    assert attachment.inline is False
    assert (tmp_path / "out.txt").read_bytes() == b"abc"


def test_attachment_save_propagates_os_errors(tmp_path: Path) -> None:
    attachment = Attachment(name="notes.txt", content=b"abc")

    with pytest.raises(OSError):
        attachment.save(tmp_path / "missing" / "out.txt")


def test_enum_values() -> None:
    assert ParseState("invalid") is ParseState.INVALID
    assert DateFormat("mon") is DateFormat.MON


class TestDefaultHooks:
    """Test suite for DefaultHooks."""

    @pytest.mark.parametrize(
        ("subject", "expected"),
        [
            ("Lunch", "Re: Lunch"),
            ("Re: Lunch", "Re: Lunch"),
            ("re: lunch", "re: lunch"),
            ("", "Re: "),
        ],
    )
    def test_transform_subject(self, subject: str, expected: str) -> None:
        assert DefaultHooks().transform_subject(subject) == expected

    def test_classify_mime(self) -> None:
        hooks = DefaultHooks()

        assert hooks.classify_mime("/tmp/report.pdf") == "application/pdf"
        assert hooks.classify_mime("/tmp/no-extension") == DEFAULT_MIME_TYPE

    def test_default_signature_is_empty(self) -> None:
        assert DefaultHooks().get_signature("me@example.com", "bob@example.com", "Hi") == ""
