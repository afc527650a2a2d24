"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from email.message import EmailMessage
from pathlib import Path

import pytest

from maildir_message.config import Settings
from maildir_message.context import MessageContext
from maildir_message.hooks import DefaultHooks

MESSAGE_NAME = "1000000000.1_1.testhost"

SIMPLE_MESSAGE = (
    "From: Alice <alice@example.com>\n"
    "To: bob@example.com\n"
    "Subject: Hi\n"
    "Date: Tue, 1 Jul 2003 10:52:37 +0200\n"
    "Message-ID: <abc@example.com>\n"
    "\n"
    "Hello Bob,\n"
    "See you soon.\n"
)


class RecordingHooks(DefaultHooks):
    """Hooks that remember what the message layer asked of them."""

    def __init__(self, signature: str = "") -> None:
        self.notifications: list[tuple[str, str]] = []
        self.alerts: list[str] = []
        self.signature = signature

    def notify(self, hook_name: str, path: str) -> None:
        self.notifications.append((hook_name, path))

    def get_signature(self, from_addr: str, to_addr: str, subject: str) -> str:
        return self.signature

    def alert(self, text: str) -> None:
        self.alerts.append(text)


def make_maildir(root: Path) -> Path:
    for sub in ("cur", "new", "tmp"):
        (root / sub).mkdir(parents=True, exist_ok=True)
    return root


def build_multipart_message() -> bytes:
    """A text body plus one PDF attachment."""
    message = EmailMessage()
    message["From"] = "Carol <carol@example.com>"
    message["To"] = "bob@example.com"
    message["Subject"] = "Quarterly report"
    message["Date"] = "Mon, 3 Mar 2014 09:00:00 +0000"
    message.set_content("Please find the report attached.\n")
    message.add_attachment(
        b"%PDF-1.4 fake report",
        maintype="application",
        subtype="pdf",
        filename="report.pdf",
    )
    return message.as_bytes()


@pytest.fixture
def maildir(tmp_path: Path) -> Path:
    """Provide an empty Maildir folder."""
    return make_maildir(tmp_path / "Maildir")


@pytest.fixture
def write_message(maildir: Path):
    """Provide a factory writing message files into the Maildir fixture."""

    def _write(
        content: str | bytes = SIMPLE_MESSAGE,
        name: str = MESSAGE_NAME,
        subdir: str = "cur",
        flags: str | None = None,
    ) -> str:
        if flags is not None:
            name = f"{name}:2,{flags}"
        path = maildir / subdir / name
        path.write_bytes(content.encode("utf-8") if isinstance(content, str) else content)
        return str(path)

    return _write


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Provide settings with a private temporary directory."""
    tmp_dir = tmp_path / "tmp-files"
    tmp_dir.mkdir()
    return Settings(
        tmp_dir=tmp_dir,
        sendmail_path="",
        from_address="me@example.com",
        log_level="DEBUG",
        debug=True,
    )


@pytest.fixture
def hooks() -> RecordingHooks:
    return RecordingHooks()


@pytest.fixture
def context(settings: Settings, hooks: RecordingHooks) -> MessageContext:
    """Provide a message context wired to the recording hooks."""
    return MessageContext(settings=settings, hooks=hooks)
