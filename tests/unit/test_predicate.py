"""Unit tests for filter expressions."""

from __future__ import annotations

import pytest

from maildir_message.filters.predicate import FilterPredicate, PredicateKind, matches_filter
from maildir_message.message import Message


@pytest.mark.parametrize(
    ("expression", "kind", "pattern", "headers"),
    [
        ("all", PredicateKind.ALL, "", ()),
        ("new", PredicateKind.NEW, "", ()),
        ("HEADER:From|To:bob", PredicateKind.HEADER, "bob", ("From", "To")),
        ("header:Subject:^hi$", PredicateKind.HEADER, "^hi$", ("Subject",)),
        ("HEADER:", PredicateKind.SUMMARY, "HEADER:", ()),
        ("HEADER::x", PredicateKind.SUMMARY, "HEADER::x", ()),
        ("alice", PredicateKind.SUMMARY, "alice", ()),
        ("ALL", PredicateKind.SUMMARY, "ALL", ()),
    ],
)
def test_parse(expression: str, kind: PredicateKind, pattern: str, headers: tuple[str, ...]) -> None:
    predicate = FilterPredicate.parse(expression)

    assert predicate.kind is kind
    assert predicate.pattern == pattern
    assert predicate.headers == headers


class TestMatches:
    """Evaluation against real messages."""

    @pytest.fixture
    def message(self, write_message, context) -> Message:
        return Message(write_message(flags="S"), context=context)

    def test_all(self, message: Message) -> None:
        assert matches_filter(message, "all")

    def test_new(self, message: Message, write_message, context) -> None:
        assert not matches_filter(message, "new")
        assert matches_filter(Message(write_message(subdir="new"), context=context), "new")

    def test_header_match_in_any_listed_header(self, message: Message) -> None:
        assert matches_filter(message, "HEADER:From|To:BOB@")
        assert not matches_filter(message, "HEADER:From:bob@")

    def test_header_regex_is_case_insensitive(self, message: Message) -> None:
        assert message.matches_filter("HEADER:Subject:^hi$")

    def test_summary_match(self, message: Message) -> None:
        assert matches_filter(message, "alice@example")
        assert not matches_filter(message, "carol")

    def test_invalid_regex_never_matches(self, message: Message) -> None:
        assert not matches_filter(message, "HEADER:Subject:(")
        assert not matches_filter(message, "[unclosed")

    def test_parsed_predicate_is_accepted(self, message: Message) -> None:
        assert matches_filter(message, FilterPredicate(PredicateKind.ALL))
