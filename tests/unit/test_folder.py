"""Unit tests for Maildir folder helpers."""

from __future__ import annotations

from pathlib import Path

import pytest
from conftest import SIMPLE_MESSAGE

from maildir_message.exceptions import InvalidMaildirError
from maildir_message.maildir.folder import is_maildir, list_messages, message_in, sort_by_date


def test_is_maildir(maildir: Path, tmp_path: Path) -> None:
    assert is_maildir(maildir)
    assert not is_maildir(tmp_path)


def test_message_in_new(maildir: Path) -> None:
    path = Path(message_in(maildir, is_new=True))

    assert path.parent == maildir / "new"
    assert ":2," not in path.name
    assert not path.exists()


def test_message_in_cur_is_seen(maildir: Path) -> None:
    path = Path(message_in(maildir, is_new=False))

    assert path.parent == maildir / "cur"
    assert path.name.endswith(":2,S")


def test_message_in_returns_unique_names(maildir: Path) -> None:
    assert message_in(maildir, is_new=True) != message_in(maildir, is_new=True)


def test_message_in_rejects_non_maildir(tmp_path: Path) -> None:
    with pytest.raises(InvalidMaildirError):
        message_in(tmp_path / "nowhere", is_new=True)


def test_list_messages_skips_dotfiles(write_message, maildir: Path, context) -> None:
    new_path = write_message(subdir="new", name="1.1.host")
    cur_path = write_message(name="2.2.host", flags="S")
    (maildir / "cur" / ".hidden").write_text("ignored")

    messages = list_messages(maildir, context=context)

    assert [m.path for m in messages] == [new_path, cur_path]
    assert all(m.context is context for m in messages)


def test_list_messages_rejects_non_maildir(tmp_path: Path) -> None:
    with pytest.raises(InvalidMaildirError):
        list_messages(tmp_path)


def test_sort_by_date(write_message, maildir: Path, context) -> None:
    write_message(name="1.1.host")
    write_message(
        SIMPLE_MESSAGE.replace("Tue, 1 Jul 2003", "Mon, 1 Jan 2001"),
        name="2.2.host",
    )

    messages = list_messages(maildir, context=context)

    assert [m.header("Date") for m in sort_by_date(messages)] == [
        "Mon, 1 Jan 2001 10:52:37 +0200",
        "Tue, 1 Jul 2003 10:52:37 +0200",
    ]
    assert sort_by_date(messages, reverse=True)[0].path.endswith("1.1.host")
