"""MIME decoding of on-disk messages.

Messages are parsed with the standard library ``email`` package into a
tree of parts. From that tree we derive:

* a header table keyed by lower-cased name, with RFC 2047 encoded words
  decoded to text;
* a best-effort plain-text body;
* the list of attachment parts.

Charset handling is forgiving: a part whose declared charset
is unknown or wrong still yields text, decoded as UTF-8 with replacement
characters, instead of failing the whole extraction.
"""

from __future__ import annotations

import re
from email import policy
from email.errors import HeaderParseError
from email.header import decode_header
from email.message import EmailMessage, Message
from email.parser import BytesParser
from email.utils import collapse_rfc2231_value
from pathlib import Path

import structlog

from maildir_message.exceptions import MessageParseError
from maildir_message.models import Attachment

logger = structlog.get_logger()

RE_FOLDING = re.compile(r"\r?\n(?=[ \t])")

UTF8_CHARSETS = {"utf-8", "utf8"}


def _unescape_surrogates(value: str) -> str:
    # Raw 8-bit header bytes come back from the parser as surrogate escapes.
    try:
        value.encode("utf-8")
    except UnicodeEncodeError:
        return value.encode("utf-8", "surrogateescape").decode("utf-8", errors="replace")
    return value


def decode_header_value(header_value: str) -> str:
    """
    Decode a raw (possibly folded, possibly RFC 2047 encoded) header value.

    Args:
        header_value: Raw header value as found in the message

    Returns:
        Unfolded, decoded Unicode string

    Examples:
        >>> decode_header_value("=?UTF-8?B?5Lit5paH?=")
        '中文'
        >>> decode_header_value("Hello\\r\\n world")
        'Hello world'
    """
    if not header_value:
        return ""

    unfolded = RE_FOLDING.sub("", header_value)
    try:
        chunks = decode_header(unfolded)
    except HeaderParseError:
        return _unescape_surrogates(unfolded)

    decoded_parts = []
    for content, encoding in chunks:
        if isinstance(content, bytes):
            if encoding and encoding != "unknown-8bit":
                try:
                    decoded_parts.append(content.decode(encoding))
                except (UnicodeDecodeError, LookupError):
                    decoded_parts.append(content.decode("utf-8", errors="replace"))
            else:
                try:
                    decoded_parts.append(content.decode("ascii"))
                except UnicodeDecodeError:
                    decoded_parts.append(content.decode("utf-8", errors="replace"))
        else:
            decoded_parts.append(str(content))

    return _unescape_surrogates("".join(decoded_parts))


def decode_payload(payload: bytes, charset: str | None) -> str:
    """Convert part content to text, honouring a declared non-UTF-8 charset."""
    if charset and charset.lower() not in UTF8_CHARSETS:
        try:
            return payload.decode(charset)
        except (LookupError, UnicodeDecodeError) as exc:
            logger.debug("charset_conversion_failed", charset=charset, error=str(exc))
    return payload.decode("utf-8", errors="replace")


def part_to_text(part: Message) -> str:
    """Transfer-decode a leaf part and convert it to text."""
    payload = part.get_payload(decode=True)
    if not payload:
        return ""
    return decode_payload(payload, part.get_content_charset())


def _disposition_param(part: Message, name: str) -> str | None:
    value = part.get_param(name, header="content-disposition")
    if value is None:
        return None
    return collapse_rfc2231_value(value)


class MimeDecoder:
    """Turn raw message bytes into headers, body text and attachments."""

    def __init__(self, view_inline_attachments: bool = True) -> None:
        """Create a decoder.

        Args:
            view_inline_attachments: Whether unnamed parts are listed as
                ``inline-part-N`` attachments.
        """
        self.view_inline_attachments = view_inline_attachments

    def read(self, path: str | Path) -> bytes:
        """Read the raw bytes of the message at ``path``.

        Raises:
            MessageParseError: If the file cannot be read.
        """
        try:
            with open(path, "rb") as handle:
                return handle.read()
        except OSError as exc:
            raise MessageParseError(f"Failed to open file {path}: {exc.strerror}") from exc

    def parse(self, raw: bytes) -> EmailMessage:
        """Parse ``raw`` into a MIME tree.

        Raises:
            MessageParseError: If the data is empty or carries no header fields.
        """
        if not raw.strip():
            raise MessageParseError("Message is empty")

        tree = BytesParser(policy=policy.default).parsebytes(raw)
        if not tree.keys():
            raise MessageParseError("Message has no header fields")
        return tree

    def headers(self, tree: Message) -> dict[str, str]:
        """Return every header, keyed by lower-cased name (the last occurrence wins)."""
        return {name.lower(): decode_header_value(value) for name, value in tree.raw_items()}

    def body(self, tree: Message) -> str:
        """Return the best plain-text rendering of the message.

        The first non-empty ``text/plain`` part wins; failing that the last
        ``text/html`` part seen; failing that the library's own notion of the
        message body.
        """
        text = ""
        html_part: Message | None = None

        for part in tree.walk():
            if part.is_multipart():
                continue

            content_type = part.get_content_type()
            if content_type == "text/plain" and not text:
                text = part_to_text(part)
            if content_type == "text/html":
                html_part = part

        if not text and html_part is not None:
            text = part_to_text(html_part)

        if not text:
            logger.debug("body_fallback_used")
            text = self._fallback_body(tree)

        return text

    def _fallback_body(self, tree: Message) -> str:
        best: Message | None = None
        if isinstance(tree, EmailMessage):
            best = tree.get_body(preferencelist=("plain", "html"))
        if best is None and not tree.is_multipart():
            best = tree
        return part_to_text(best) if best is not None else ""

    def attachments(self, tree: Message) -> list[Attachment]:
        """Return the attachment parts of the message, in tree order.

        Parts without a name are labelled ``inline-part-N`` and only kept when
        ``view_inline_attachments`` is enabled.
        """
        results: list[Attachment] = []
        count = 1

        for part in tree.walk():
            content_type = part.get_content_type()
            if content_type == "message/rfc822":
                inner = part.get_payload(0)
                content = inner.as_bytes() if isinstance(inner, Message) else b""
            elif part.is_multipart():
                continue
            else:
                content = part.get_payload(decode=True) or b""

            name = None
            if part.get_content_disposition() == "attachment":
                name = part.get_filename() or _disposition_param(part, "name")
                if name:
                    name = decode_header_value(name)

            inline = False
            if not name:
                name = f"inline-part-{count}"
                count += 1
                inline = True

            if inline and not self.view_inline_attachments:
                continue

            results.append(
                Attachment(name=name, content=content, content_type=content_type, inline=inline)
            )

        return results

    def mime_parts(self, tree: Message) -> list[str]:
        """Return the content type of every leaf part."""
        return [part.get_content_type() for part in tree.walk() if not part.is_multipart()]

    def body_part(self, tree: Message, index: int) -> bytes | None:
        """Return the content of the ``index``-th (1-based) leaf part.

        ``text/plain`` parts are converted to UTF-8; anything else is returned
        transfer-decoded but otherwise untouched. None when out of range.
        """
        leaves = [part for part in tree.walk() if not part.is_multipart()]
        if index < 1 or index > len(leaves):
            return None

        part = leaves[index - 1]
        if part.get_content_type() == "text/plain":
            return part_to_text(part).encode("utf-8")
        return part.get_payload(decode=True) or b""
