"""Explicit context threaded through the message layer."""

from __future__ import annotations

from dataclasses import dataclass, field

from maildir_message.config import Settings, get_settings
from maildir_message.hooks import DefaultHooks, MessageHooks


@dataclass
class MessageContext:
    """Settings plus host capabilities, owned by the top-level application."""

    settings: Settings
    hooks: MessageHooks = field(default_factory=DefaultHooks)

    @classmethod
    def default(cls) -> MessageContext:
        """Build a context from the cached settings and the default hooks."""
        return cls(settings=get_settings(), hooks=DefaultHooks())
