"""Maildir flag suffix encoding.

A message's mutable state lives in its filename: ``<base>:2,<flags>``,
where each flag is a single upper-case character. Messages delivered into
a ``new/`` directory are implicitly new, whatever their suffix says.
"""

from __future__ import annotations

import os
from collections.abc import Iterable
from enum import Enum

FLAG_SEPARATOR = ":2,"
NEW_DIRECTORY = "new"
CUR_DIRECTORY = "cur"


class Flag(str, Enum):
    """Flag characters with a meaning in this package."""

    NEW = "N"
    SEEN = "S"
    FLAGGED = "F"
    REPLIED = "R"
    UNKNOWN = "?"

    @classmethod
    def from_char(cls, char: str) -> Flag:
        """Map a flag character to its member, or ``UNKNOWN`` for anything else."""
        try:
            return cls(char.upper())
        except ValueError:
            return cls.UNKNOWN


def in_new_directory(path: str) -> bool:
    """Whether the file at ``path`` sits directly inside a ``new`` directory."""
    return os.path.basename(os.path.dirname(path)) == NEW_DIRECTORY


def canonicalize_flags(flags: Iterable[str]) -> str:
    """Upper-case, deduplicate and sort flag characters."""
    chars: set[str] = set()
    for item in flags:
        chars.update(_char(item).upper())
    return "".join(sorted(chars))


def decode_flags(path: str) -> str:
    """Return the sorted, duplicate-free flag string encoded in ``path``.

    Characters after the ``:2,`` separator are the flags. A path whose parent
    directory is ``new`` additionally carries ``N``. No markers at all gives
    an empty string.
    """
    if not path:
        return ""

    flags = ""
    offset = path.find(FLAG_SEPARATOR)
    if offset != -1:
        flags = path[offset + len(FLAG_SEPARATOR) :]

    if in_new_directory(path):
        flags += Flag.NEW.value

    return "".join(sorted(set(flags)))


def encode_flags(path: str, flags: Iterable[str]) -> str:
    """Return ``path`` with its flag suffix replaced by the canonical ``flags``."""
    canonical = canonicalize_flags(flags)
    offset = path.find(FLAG_SEPARATOR)
    base = path if offset == -1 else path[:offset]
    return f"{base}{FLAG_SEPARATOR}{canonical}"


class FlagSet:
    """Immutable view of a message's flags.

    Membership tests are case-insensitive; unrecognised characters are kept
    so they survive a rewrite of the suffix.
    """

    __slots__ = ("_chars",)

    def __init__(self, flags: Iterable[str] = "") -> None:
        self._chars = frozenset(canonicalize_flags(flags))

    @classmethod
    def from_path(cls, path: str) -> FlagSet:
        return cls(decode_flags(path))

    def __contains__(self, flag: object) -> bool:
        if isinstance(flag, Flag):
            flag = flag.value
        if not isinstance(flag, str) or len(flag) != 1:
            return False
        return flag.upper() in self._chars

    def __iter__(self):
        return iter(sorted(self._chars))

    def __len__(self) -> int:
        return len(self._chars)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, FlagSet):
            return self._chars == other._chars
        if isinstance(other, str):
            return str(self) == canonicalize_flags(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._chars)

    def __str__(self) -> str:
        return "".join(sorted(self._chars))

    def __repr__(self) -> str:
        return f"FlagSet({str(self)!r})"

    def with_flag(self, flag: str | Flag) -> FlagSet:
        return FlagSet(str(self) + _char(flag))

    def without_flag(self, flag: str | Flag) -> FlagSet:
        char = _char(flag).upper()
        return FlagSet(c for c in self._chars if c != char)

    @property
    def known(self) -> set[Flag]:
        return {Flag.from_char(c) for c in self._chars} - {Flag.UNKNOWN}

    @property
    def unknown(self) -> str:
        return "".join(c for c in self if Flag.from_char(c) is Flag.UNKNOWN)


def _char(flag: str | Flag) -> str:
    return flag.value if isinstance(flag, Flag) else str(flag)
