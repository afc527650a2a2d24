"""Attachment model.

Attachments are extracted lazily from a message and kept in memory until
the owning message is closed or its path changes.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field


class Attachment(BaseModel):
    """A single MIME part exposed to the user as an attachment."""

    name: str = Field(description="Display name (filename, or a generated inline-part-N label)")
    content: bytes = Field(default=b"", description="Transfer-decoded part content")
    content_type: str = Field(default="application/octet-stream", description="Part MIME type")
    inline: bool = Field(default=False, description="Whether the name was generated for an unnamed part")

    @property
    def size(self) -> int:
        return len(self.content)

    def save(self, output_path: str | Path) -> None:
        """Write the content to ``output_path``.

        Raises:
            OSError: If the file cannot be written.
        """
        Path(output_path).write_bytes(self.content)
