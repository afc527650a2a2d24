"""Unit tests for the Maildir flag suffix helpers."""

from __future__ import annotations

import pytest

from maildir_message.maildir.flags import (
    Flag,
    FlagSet,
    canonicalize_flags,
    decode_flags,
    encode_flags,
    in_new_directory,
)


@pytest.mark.parametrize(
    ("path", "expected"),
    [
        ("/mail/INBOX/cur/1.2.host:2,SF", "FS"),
        ("/mail/INBOX/cur/1.2.host:2,", ""),
        ("/mail/INBOX/cur/1.2.host", ""),
        ("/mail/INBOX/new/1.2.host", "N"),
        ("/mail/INBOX/new/1.2.host:2,S", "NS"),
        ("/mail/INBOX/cur/1.2.host:2,SSR", "RS"),
        ("", ""),
    ],
)
def test_decode_flags(path: str, expected: str) -> None:
    assert decode_flags(path) == expected


def test_decode_flags_ignores_new_elsewhere_in_path() -> None:
    assert decode_flags("/home/newbie/mail/cur/1.2.host") == ""
    assert not in_new_directory("/mail/renew/1.2.host")
    assert in_new_directory("/mail/INBOX/new/1.2.host")


def test_decode_flags_keeps_unknown_characters() -> None:
    assert decode_flags("/mail/cur/1.2.host:2,Sa") == "Sa"


def test_encode_flags_replaces_existing_suffix() -> None:
    assert encode_flags("/mail/cur/1.2.host:2,S", "FS") == "/mail/cur/1.2.host:2,FS"


def test_encode_flags_adds_missing_suffix_in_canonical_order() -> None:
    assert encode_flags("/mail/cur/1.2.host", "sfs") == "/mail/cur/1.2.host:2,FS"


def test_canonicalize_flags_accepts_enum_members() -> None:
    assert canonicalize_flags([Flag.SEEN, Flag.FLAGGED, "r"]) == "FRS"


class TestFlagSet:
    """Test suite for FlagSet."""

    def test_membership_is_case_insensitive(self) -> None:
        flags = FlagSet("FS")

        assert "s" in flags
        assert Flag.FLAGGED in flags
        assert Flag.REPLIED not in flags
        assert "SF" not in flags

    def test_with_and_without_flag_return_new_sets(self) -> None:
        flags = FlagSet("S")

        assert str(flags.with_flag(Flag.FLAGGED)) == "FS"
        assert str(flags.without_flag("s")) == ""
        assert str(flags) == "S"

    def test_equality_with_strings(self) -> None:
        assert FlagSet("SF") == "fs"
        assert FlagSet("S") != FlagSet("F")

    def test_known_and_unknown_flags(self) -> None:
        flags = FlagSet("SXF")

        assert flags.known == {Flag.SEEN, Flag.FLAGGED}
        assert flags.unknown == "X"

    def test_from_path(self) -> None:
        flags = FlagSet.from_path("/mail/INBOX/new/1.2.host")

        assert Flag.NEW in flags
        assert len(flags) == 1


def test_flag_from_char() -> None:
    assert Flag.from_char("s") is Flag.SEEN
    assert Flag.from_char("z") is Flag.UNKNOWN


@pytest.mark.parametrize("flags", ["", "S", "sf", "SSF", "RFS", "xS", "FaRbS", "NNs"])
def test_encoded_flags_decode_to_canonical_form(flags: str) -> None:
    path = encode_flags("/mail/INBOX/cur/1.2.host:2,X", flags)

    assert decode_flags(path) == canonicalize_flags(flags)
