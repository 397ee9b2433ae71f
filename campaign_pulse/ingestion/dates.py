"""Date normalization for heterogeneous report date strings."""

import logging
import re
from datetime import date, datetime
from typing import Any, Callable

from ..exceptions import InvalidDateError

logger = logging.getLogger(__name__)

DateParser = Callable[[Any], date]

_ISO = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")
_ISO_SLASH = re.compile(r"^(\d{4})/(\d{1,2})/(\d{1,2})$")
_US_SLASH = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4}|\d{2})$")
_DAY_FIRST = re.compile(r"^(\d{1,2})[.-](\d{1,2})[.-](\d{4})$")

# Best-effort formats tried after the explicit patterns above
_FALLBACK_FORMATS = (
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%dT%H:%M",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %H:%M",
    "%m/%d/%y %H:%M",
    "%b %d, %Y",
    "%B %d, %Y",
    "%b %d %Y",
    "%B %d %Y",
    "%d %b %Y",
    "%d %B %Y",
    "%Y%m%d",
)


def _build(year: int, month: int, day: int, raw: Any) -> date:
    try:
        return date(year, month, day)
    except ValueError as e:
        raise InvalidDateError(raw) from e


def _expand_year(year: int) -> int:
    # Two-digit years follow the strptime %y pivot: 69-99 -> 19xx, 00-68 -> 20xx
    if year < 100:
        return 1900 + year if year >= 69 else 2000 + year
    return year


def parse_date(raw: Any) -> date:
    """Parse a report date into a calendar date.

    Handles:
    - ``date``/``datetime`` instances (passed through, time dropped)
    - ISO ``YYYY-MM-DD`` and ``YYYY/MM/DD``
    - US ``M/D/YYYY`` and ``M/D/YY``
    - Day-first ``D-M-YYYY`` and ``D.M.YYYY``
    - Timestamps and month-name forms on a best-effort basis

    Raises:
        InvalidDateError: If the value cannot be interpreted as a date.
    """
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    if raw is None:
        raise InvalidDateError(raw)

    text = str(raw).strip()
    if not text:
        raise InvalidDateError(raw)

    match = _ISO.match(text) or _ISO_SLASH.match(text)
    if match:
        year, month, day = (int(g) for g in match.groups())
        return _build(year, month, day, raw)

    match = _US_SLASH.match(text)
    if match:
        month, day, year = (int(g) for g in match.groups())
        return _build(_expand_year(year), month, day, raw)

    match = _DAY_FIRST.match(text)
    if match:
        day, month, year = (int(g) for g in match.groups())
        return _build(year, month, day, raw)

    for fmt in _FALLBACK_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue

    raise InvalidDateError(raw)


def try_parse_date(raw: Any, parser: DateParser = parse_date) -> date | None:
    """Parse with ``parser``, returning None instead of raising.

    Custom parsers signal failure with ``ValueError`` (``InvalidDateError``
    is one).
    """
    try:
        return parser(raw)
    except ValueError:
        logger.debug("Skipping unparseable date %r", raw)
        return None
