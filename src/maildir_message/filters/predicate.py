"""Message filter expressions.

Grammar, first match wins:

* ``all`` matches every message;
* ``new`` matches new messages;
* ``HEADER:<name>[|<name>...]:<pattern>`` matches when the case-insensitive
  regular expression finds a match in any of the named headers;
* anything else is a case-insensitive regular expression searched for in
  the message's default summary line.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from maildir_message.message import Message

logger = structlog.get_logger()

HEADER_KEYWORD = "HEADER:"


class PredicateKind(str, Enum):
    """Filter expression kinds."""

    ALL = "all"
    NEW = "new"
    HEADER = "header"
    SUMMARY = "summary"


@dataclass(frozen=True)
class FilterPredicate:
    """A parsed filter expression."""

    kind: PredicateKind
    pattern: str = ""
    headers: tuple[str, ...] = ()

    @classmethod
    def parse(cls, expression: str) -> FilterPredicate:
        """Classify ``expression`` according to the filter grammar."""
        if expression == "all":
            return cls(PredicateKind.ALL)
        if expression == "new":
            return cls(PredicateKind.NEW)

        prefix_length = len(HEADER_KEYWORD)
        if len(expression) > prefix_length + 1 and expression[:prefix_length].upper() == HEADER_KEYWORD:
            # The header list needs at least one character before its closing colon.
            offset = expression.find(":", prefix_length + 1)
            if offset != -1:
                names = expression[prefix_length:offset]
                return cls(
                    PredicateKind.HEADER,
                    pattern=expression[offset + 1 :],
                    headers=tuple(names.split("|")),
                )

        return cls(PredicateKind.SUMMARY, pattern=expression)

    def matches(self, message: Message) -> bool:
        """Evaluate the expression against ``message``."""
        if self.kind is PredicateKind.ALL:
            return True
        if self.kind is PredicateKind.NEW:
            return message.is_new()

        regex = self._compile()
        if regex is None:
            return False

        if self.kind is PredicateKind.HEADER:
            return any(regex.search(message.header(name)) for name in self.headers)

        return regex.search(message.format()) is not None

    def _compile(self) -> re.Pattern[str] | None:
        try:
            return re.compile(self.pattern, re.IGNORECASE)
        except re.error as exc:
            logger.warning("filter_pattern_invalid", pattern=self.pattern, error=str(exc))
            return None


def matches_filter(message: Message, expression: str | FilterPredicate) -> bool:
    """Whether ``message`` satisfies the filter ``expression``."""
    predicate = expression if isinstance(expression, FilterPredicate) else FilterPredicate.parse(expression)
    return predicate.matches(message)
