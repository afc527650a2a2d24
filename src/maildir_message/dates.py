"""Parsing of free-form ``Date:`` header values.

Mail in the wild carries dates in many shapes, so rather than relying on a
single RFC 5322 parser we try an ordered list of strptime patterns. A
pattern only has to match a prefix of the header; a numeric ``+HHMM`` /
``-HHMM`` offset trailing that prefix is then used to normalise the result
to UTC. Named zones such as ``BST`` are accepted by some patterns but never
adjusted for.
"""

from __future__ import annotations

import calendar
import locale
import re
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from datetime import datetime, timezone

import structlog

from maildir_message.models import DateFormat

logger = structlog.get_logger()

BUILTIN_DATE_FORMATS: tuple[str, ...] = (
    "%a, %d %b %y %H:%M:%S",
    "%a, %d %b %Y %H:%M:%S",
    "%a, %d %b %y %H:%M:%S %z",
    "%a, %d %b %Y %H:%M:%S %z",
    "%d %b %y %H:%M:%S",
    "%d %b %Y %H:%M:%S",
    "%a %b %d %H:%M:%S GMT %Y",
    "%a %b %d %H:%M:%S MSD %Y",
    "%a %b %d %H:%M:%S BST %Y",
    "%a %b %d %H:%M:%S CEST %Y",
    "%a %b %d %H:%M:%S PST %Y",
    "%a, %d %b %y %H:%M",
    "%a, %d %b %Y %H:%M",
    "%a, %d %b %Y %H.%M.%S",
    "%d-%b-%Y",
    "%m/%d/%y",
    "%d %b %Y",
    "%a %b %d %H:%M:%S %Y",
    "%d.%m.%Y %H:%M:%S",  # 30.04.2014 03:41:22
)

# Sentinels stored in Message's date cache.
DATE_UNSET = 0
DATE_INVALID = -1

MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)

PLACEHOLDERS = {
    DateFormat.YEAR: "$YEAR",
    DateFormat.MONTH: "$MONTH",
    DateFormat.MON: "$MONTH",
    DateFormat.DAY: "$DAY",
}

RE_NUMERIC_OFFSET = re.compile(r"^([+-])(\d{2})(\d{2})")

# Prefix of the ValueError strptime() raises when the pattern matched a prefix.
UNCONVERTED_DATA = "unconverted data remains: "


@contextmanager
def c_time_locale() -> Iterator[None]:
    """Match month and day names in the "C" locale, restoring the caller's afterwards."""
    try:
        saved = locale.setlocale(locale.LC_TIME)
    except locale.Error:
        saved = None

    if saved is not None:
        locale.setlocale(locale.LC_TIME, "C")
    try:
        yield
    finally:
        if saved is not None:
            locale.setlocale(locale.LC_TIME, saved)


class DateParser:
    """Convert ``Date:`` header values into UTC epoch seconds."""

    def __init__(self, extra_formats: Iterable[str] = ()) -> None:
        """Create a parser.

        Args:
            extra_formats: Patterns tried, in order, before the built-in ones.
        """
        self.formats: list[str] = [*extra_formats, *BUILTIN_DATE_FORMATS]

    def parse(self, value: str) -> int | None:
        """Return the instant ``value`` denotes, or None when no pattern matches."""
        value = value.strip()
        if not value:
            return None

        with c_time_locale():
            for fmt in self.formats:
                matched = self._match_prefix(value, fmt)
                if matched is not None:
                    break
            else:
                return None

        parsed, remainder = matched
        if parsed.tzinfo is not None:
            return int(parsed.timestamp())

        instant = calendar.timegm(parsed.timetuple())
        offset = RE_NUMERIC_OFFSET.match(remainder)
        if offset is not None:
            sign, hours, minutes = offset.groups()
            delta = int(hours) * 3600 + int(minutes) * 60
            instant += -delta if sign == "+" else delta
        elif remainder:
            logger.debug("date_timezone_ignored", value=value, remainder=remainder)

        return instant

    @staticmethod
    def _match_prefix(value: str, fmt: str) -> tuple[datetime, str] | None:
        # strptime() insists on consuming the whole string; when only the
        # tail is left over, parse the head again and hand back the tail.
        try:
            return datetime.strptime(value, fmt), ""
        except ValueError as exc:
            message = str(exc)
            if not message.startswith(UNCONVERTED_DATA):
                return None
            rest = message[len(UNCONVERTED_DATA) :]

        if not rest or not value.endswith(rest):
            return None

        try:
            parsed = datetime.strptime(value[: -len(rest)], fmt)
        except ValueError:
            return None
        return parsed, rest.lstrip()


def format_date_field(instant: int, fmt: DateFormat) -> str:
    """Render one field of a cached instant, or its placeholder when unset/failed."""
    if instant in (DATE_UNSET, DATE_INVALID):
        return PLACEHOLDERS.get(fmt, "$FAIL")

    moment = datetime.fromtimestamp(instant, tz=timezone.utc)
    if fmt is DateFormat.YEAR:
        return str(moment.year)
    if fmt is DateFormat.MONTH:
        return MONTH_NAMES[moment.month - 1]
    if fmt is DateFormat.MON:
        return MONTH_NAMES[moment.month - 1][:3]
    if fmt is DateFormat.DAY:
        return str(moment.day)
    return "$FAIL"
