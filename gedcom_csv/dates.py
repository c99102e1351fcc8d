"""Leaf value normalization.

Only date-typed tags are rewritten today. A date is first parsed as a whole;
when that fails and fallback delimiters are configured, the value is split into
fragments (e.g. ``"Abt. 1780 - 1790"`` -> ``"1780"``, ``"1790"``) and the mean
of every fragment that parses is used instead.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta, timezone
from typing import FrozenSet, Optional, Sequence

from dateutil import parser as date_parser

from .config import DEFAULT_DATE_TAGS

LOGGER = logging.getLogger(__name__)

# Missing month/day components fall back to January 1st. A value whose year
# changes with the default year carries no year of its own and is rejected.
_DEFAULT_DATE = datetime(2000, 1, 1)
_ALTERNATE_DEFAULT_DATE = datetime(2004, 1, 1)
_EPOCH = datetime(1970, 1, 1)


def parse_calendar_date(value: str) -> Optional[datetime]:
    """Parse ``value`` as a calendar date, returning ``None`` when it is not one."""

    if not value or not value.strip():
        return None
    try:
        parsed = date_parser.parse(value, default=_DEFAULT_DATE)
        alternate = date_parser.parse(value, default=_ALTERNATE_DEFAULT_DATE)
    except (ValueError, OverflowError):
        return None
    if parsed.year != alternate.year:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def build_delimiter_pattern(delimiters: Sequence[str]) -> re.Pattern:
    alternatives = "|".join(rf"(?:\s*{re.escape(delimiter)}\s*)" for delimiter in delimiters)
    return re.compile(alternatives, re.IGNORECASE)


def mean_date(dates: Sequence[datetime]) -> datetime:
    millis = [(value - _EPOCH) / timedelta(milliseconds=1) for value in dates]
    return _EPOCH + timedelta(milliseconds=sum(millis) / len(millis))


class ValueFormatter:
    """Formats leaf values by tag; a pure function of its inputs and settings."""

    def __init__(
        self,
        force_date_delimiters: Optional[Sequence[str]] = None,
        date_tags: FrozenSet[str] = DEFAULT_DATE_TAGS,
    ) -> None:
        self.date_tags = frozenset(date_tags)
        self.fallback_pattern: Optional[re.Pattern] = (
            build_delimiter_pattern(force_date_delimiters) if force_date_delimiters else None
        )

    def format(self, tag: str, value: Optional[str]) -> Optional[str]:
        if tag in self.date_tags and value is not None:
            return self.format_date(value)
        return value

    def format_date(self, value: str) -> Optional[str]:
        parsed = parse_calendar_date(value)
        if parsed is not None:
            return parsed.date().isoformat()

        if self.fallback_pattern is None:
            return value

        fragments = [parse_calendar_date(fragment) for fragment in self.fallback_pattern.split(value)]
        dates = [fragment for fragment in fragments if fragment is not None]
        if not dates:
            LOGGER.debug("Dropping unparseable date value", extra={"value": value})
            return None
        return mean_date(dates).date().isoformat()
