"""Configuration management for the Maildir message layer.

This module handles application configuration using Pydantic settings.
Configuration can be loaded from environment variables or .env files.
The message layer only ever reads these values; they are handed to
components through a :class:`~maildir_message.context.MessageContext`.
"""

import tempfile
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_INDEX_FORMAT = "[$FLAGS] $FROM - $SUBJECT"


class Settings(BaseSettings):
    """Message-layer settings with environment variable support.

    All settings can be overridden via environment variables with
    the MAILDIR_MESSAGE_ prefix (e.g., MAILDIR_MESSAGE_DISPLAY_FILTER).
    """

    model_config = SettingsConfigDict(
        env_prefix="MAILDIR_MESSAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Filters
    mail_filter: str | None = Field(
        default=None,
        description="Shell command the raw message is piped through before MIME parsing",
    )
    display_filter: str | None = Field(
        default=None,
        description="Shell command the rendered body text is piped through before display",
    )

    # Filesystem
    tmp_dir: Path = Field(
        default_factory=lambda: Path(tempfile.gettempdir()),
        description="Directory used for filter, draft and attachment temporary files",
    )
    sent_mail: Path | None = Field(
        default=None,
        description="Maildir folder receiving a copy of every sent message",
    )

    # Sending
    sendmail_path: str = Field(
        default="/usr/lib/sendmail -t",
        description="Mail transfer command the finished message is piped into",
    )
    from_address: str = Field(
        default="",
        description="From address written into composed drafts",
    )

    # Display
    index_format: str = Field(
        default=DEFAULT_INDEX_FORMAT,
        description="Default template used by Message.format() and summary filtering",
    )
    date_formats: list[str] = Field(
        default_factory=list,
        description="Additional strptime patterns tried before the built-in date formats",
    )
    view_inline_attachments: bool = Field(
        default=True,
        description="Whether unnamed inline MIME parts are listed as attachments",
    )

    # Application Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )

    @field_validator("mail_filter", "display_filter", mode="before")
    @classmethod
    def _blank_command_is_unset(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = str(v).strip()
        return v or None


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings: Application settings instance.
    """
    return Settings()
